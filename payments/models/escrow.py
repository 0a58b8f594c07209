import uuid
from decimal import Decimal
from django.db import models
from django.conf import settings

from core.exceptions import PreconditionFailed
from core.utils.ledger import MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES
from grants.models import ApplicationMilestone


class EscrowStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    LOCKED = 'locked', 'Locked'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    DISPUTED = 'disputed', 'Disputed'
    RELEASED = 'released', 'Released'


ESCROW_TRANSITIONS = {
    EscrowStatus.PENDING: {EscrowStatus.LOCKED},
    EscrowStatus.LOCKED: {EscrowStatus.APPROVED, EscrowStatus.REJECTED, EscrowStatus.DISPUTED},
    EscrowStatus.APPROVED: {EscrowStatus.RELEASED, EscrowStatus.DISPUTED},
    EscrowStatus.REJECTED: {EscrowStatus.DISPUTED},
    EscrowStatus.DISPUTED: {EscrowStatus.APPROVED, EscrowStatus.REJECTED},
    EscrowStatus.RELEASED: set(),
}


def assert_transition(current, target):
    if target not in ESCROW_TRANSITIONS[EscrowStatus(current)]:
        raise PreconditionFailed(
            f"Milestone escrow cannot move from '{current}' to '{target}'."
        )


class MilestoneEscrowRecord(models.Model):

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    milestone = models.OneToOneField(ApplicationMilestone, on_delete=models.CASCADE, related_name='escrow')
    status = models.CharField(max_length=20, choices=EscrowStatus.choices, default=EscrowStatus.PENDING)
    escrowed_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal('0')
    )
    lock_tx_hash = models.CharField(max_length=128, null=True, blank=True)
    escrow_reference = models.CharField(max_length=128, null=True, blank=True)
    release_tx_hash = models.CharField(max_length=128, null=True, blank=True, unique=True)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    disputed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    dispute_reason = models.TextField(null=True, blank=True, default='')

    locked_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    disputed_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('milestone__application', 'milestone__index')

    def __str__(self):
        return f"Escrow {self.milestone} [{self.status}]"

    @property
    def application(self):
        return self.milestone.application
