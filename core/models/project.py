import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.utils.ledger import FundingWindow, MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES, HUNDRED


class ProjectStatus(models.TextChoices):
    IDEA = 'idea', 'Idea'
    VALIDATED = 'validated', 'Validated'
    FUNDING = 'funding', 'Open for Funding'
    FUNDED = 'funded', 'Funded'
    REJECTED = 'rejected', 'Rejected'
    CANCELLED = 'cancelled', 'Cancelled'


class Project(models.Model):
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='projects'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=ProjectStatus.choices,
        default=ProjectStatus.IDEA
    )
    team_members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='team_projects',
        blank=True
    )

    funding_goal = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal('0')
    )
    funds_raised = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal('0')
    )
    funding_end_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    FUNDABLE_STATUSES = (ProjectStatus.FUNDING,)
    FUNDED_STATUS = ProjectStatus.FUNDED

    class Meta:
        ordering = ('-created_at',)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(funds_raised__gte=0),
                name='project_funds_raised_non_negative',
            ),
        ]

    def __str__(self):
        return self.title

    # Funding target interface shared with Campaign

    @property
    def goal_amount(self):
        return self.funding_goal

    @property
    def funding_window(self):
        return FundingWindow(closes_at=self.funding_end_date)

    @property
    def is_fundable(self):
        return self.status in self.FUNDABLE_STATUSES

    def is_owned_or_staffed_by(self, user):
        if self.owner_id == user.pk:
            return True
        return self.team_members.filter(pk=user.pk).exists()

    def beneficiaries(self):
        return [self.owner]


class Vote(models.Model):
    class Direction(models.IntegerChoices):
        UP = 1, 'Upvote'
        DOWN = -1, 'Downvote'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='votes')
    voter = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='votes')
    value = models.SmallIntegerField(choices=Direction.choices)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['project', 'voter'], name='unique_vote_per_project'),
        ]

    def __str__(self):
        return f"{self.voter} {self.get_value_display()} {self.project}"


class ThresholdStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    THRESHOLD_MET = 'threshold_met', 'Threshold Met'
    EXPIRED = 'expired', 'Expired'


class CrowdfundThreshold(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.OneToOneField(Project, on_delete=models.CASCADE, related_name='crowdfund')
    threshold_votes = models.PositiveIntegerField(
        default=100,
        validators=[MinValueValidator(1), MaxValueValidator(10000)]
    )
    vote_deadline = models.DateTimeField(null=True, blank=True)
    total_votes = models.PositiveIntegerField(default=0)
    upvotes = models.PositiveIntegerField(default=0)
    downvotes = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=ThresholdStatus.choices,
        default=ThresholdStatus.PENDING
    )
    threshold_met_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'vote_deadline'], name='threshold_status_deadline_idx'),
        ]

    def __str__(self):
        return f"Threshold for {self.project}: {self.total_votes}/{self.threshold_votes}"

    @property
    def net_votes(self):
        return self.upvotes - self.downvotes

    @property
    def is_voting_active(self):
        return self.vote_deadline is None or timezone.now() < self.vote_deadline

    @property
    def vote_progress(self):
        progress = Decimal(self.total_votes) / Decimal(self.threshold_votes) * HUNDRED
        return min(progress, HUNDRED)

    @property
    def is_pending(self):
        return self.status == ThresholdStatus.PENDING
