import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.utils.ledger import MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES


class GrantStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    OPEN = 'open', 'Open'
    CLOSED = 'closed', 'Closed'
    ARCHIVED = 'archived', 'Archived'


class Grant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='grants'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(max_length=5000)
    total_budget = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        validators=[MinValueValidator(Decimal('1'))]
    )
    rules = models.TextField(max_length=2000)
    status = models.CharField(
        max_length=20,
        choices=GrantStatus.choices,
        default=GrantStatus.DRAFT
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)
        indexes = [
            models.Index(fields=['creator', 'status'], name='grant_creator_status_idx'),
        ]

    def __str__(self):
        return self.title


class GrantMilestone(models.Model):
    """Milestone template published with a grant program."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    grant = models.ForeignKey(Grant, on_delete=models.CASCADE, related_name='milestones')
    index = models.PositiveIntegerField()
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=500)
    expected_payout = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        validators=[MinValueValidator(Decimal('0'))]
    )

    class Meta:
        ordering = ('grant', 'index')
        constraints = [
            models.UniqueConstraint(fields=['grant', 'index'], name='unique_grant_milestone_index'),
        ]

    def __str__(self):
        return self.title


class ApplicationStatus(models.TextChoices):
    SUBMITTED = 'submitted', 'Submitted'
    AWAITING_FINAL_APPROVAL = 'awaiting_final_approval', 'Awaiting Final Approval'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'


REVIEWABLE_STATUSES = (ApplicationStatus.SUBMITTED, ApplicationStatus.AWAITING_FINAL_APPROVAL)
REVISABLE_STATUSES = (
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.AWAITING_FINAL_APPROVAL,
    ApplicationStatus.APPROVED,
)
ESCROW_LOCKABLE_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.IN_PROGRESS)


class GrantApplication(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Deleting a grant must not delete its applications.
    grant = models.ForeignKey(
        Grant,
        on_delete=models.SET_NULL,
        null=True,
        related_name='applications'
    )
    applicant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='grant_applications'
    )
    title = models.CharField(max_length=200)
    summary = models.TextField()
    status = models.CharField(
        max_length=30,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.SUBMITTED
    )
    escrowed_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal('0')
    )
    escrow_reference = models.CharField(max_length=128, null=True, blank=True)
    milestones_completed = models.PositiveIntegerField(default=0)
    admin_note = models.TextField(null=True, blank=True, default='')
    archived = models.BooleanField(default=False)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_applications'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)
        constraints = [
            models.UniqueConstraint(
                fields=['grant', 'applicant'],
                condition=models.Q(archived=False),
                name='unique_active_application_per_grant',
            ),
            models.CheckConstraint(
                condition=models.Q(escrowed_amount__gte=0),
                name='application_escrowed_amount_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"

    @property
    def is_terminal(self):
        return self.status in (ApplicationStatus.REJECTED, ApplicationStatus.COMPLETED)

    @property
    def total_expected_payout(self):
        return sum((m.expected_payout for m in self.milestones.all()), Decimal('0'))


class ApplicationMilestone(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    application = models.ForeignKey(GrantApplication, on_delete=models.CASCADE, related_name='milestones')
    index = models.PositiveIntegerField()
    title = models.CharField(max_length=200)
    description = models.TextField()
    expected_payout = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        validators=[MinValueValidator(Decimal('0'))]
    )
    supporting_documents = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ('application', 'index')
        constraints = [
            models.UniqueConstraint(fields=['application', 'index'], name='unique_application_milestone_index'),
        ]

    def __str__(self):
        return f"{self.index}. {self.title}"
