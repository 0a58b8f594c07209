import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models.project import Project
from core.utils.ledger import FundingWindow, MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES


class CampaignStatus(models.TextChoices):
    PENDING_APPROVAL = 'pending_approval', 'Pending Approval'
    LIVE = 'live', 'Live'
    FUNDED = 'funded', 'Funded'
    CANCELLED = 'cancelled', 'Cancelled'


class Campaign(models.Model):

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='campaigns'
    )
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='campaigns'
    )
    goal_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES
    )
    funds_raised = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal('0')
    )
    currency = models.CharField(max_length=10, default='USDC')
    deadline = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=CampaignStatus.choices,
        default=CampaignStatus.PENDING_APPROVAL
    )

    whitepaper_url = models.URLField(null=True, blank=True)
    pitch_deck_url = models.URLField(null=True, blank=True)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_campaigns'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_reason = models.TextField(null=True, blank=True, default='')
    escrow_contract_ref = models.CharField(max_length=128, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    FUNDABLE_STATUSES = (CampaignStatus.LIVE,)
    FUNDED_STATUS = CampaignStatus.FUNDED

    class Meta:
        ordering = ('-created_at',)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(funds_raised__gte=0),
                name='campaign_funds_raised_non_negative',
            ),
        ]

    def __str__(self):
        return f"Campaign for {self.project} ({self.get_status_display()})"

    @property
    def has_documents(self):
        return bool(self.whitepaper_url or self.pitch_deck_url)

    @property
    def funding_window(self):
        return FundingWindow(opens_at=self.approved_at, closes_at=self.deadline)

    @property
    def is_fundable(self):
        return self.status in self.FUNDABLE_STATUSES

    def is_owned_or_staffed_by(self, user):
        if self.creator_id == user.pk or self.project.owner_id == user.pk:
            return True
        return self.project.team_members.filter(pk=user.pk).exists()

    def beneficiaries(self):
        return [self.creator]


class CampaignMilestone(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='milestones')
    title = models.CharField(max_length=200)
    description = models.TextField()
    index = models.PositiveIntegerField()
    payout_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal('0')
    )
    escrow_index = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('campaign', 'index')
        constraints = [
            models.UniqueConstraint(fields=['campaign', 'index'], name='unique_campaign_milestone_index'),
        ]

    def __str__(self):
        return f"{self.index}. {self.title}"
