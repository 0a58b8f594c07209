import uuid
from django.db import models
from django.conf import settings

from core.models import Campaign, Project
from core.utils.ledger import MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES


class SettlementKind(models.TextChoices):
    CONTRIBUTION = 'contribution', 'Contribution'
    ESCROW_LOCK = 'escrow_lock', 'Escrow Lock'
    ESCROW_RELEASE = 'escrow_release', 'Escrow Release'


class SettlementTransaction(models.Model):
    """
    Global registry of settlement references seen by the platform.
    Every local effect keyed by a settlement tx inserts a row here in the same
    database transaction, so a replayed reference fails on the unique index.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference = models.CharField(max_length=128, unique=True)
    kind = models.CharField(max_length=20, choices=SettlementKind.choices)
    amount = models.DecimalField(max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-timestamp',)

    def __str__(self):
        return f"{self.kind}:{self.reference}"


class Contribution(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    contributor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='contributions'
    )
    campaign = models.ForeignKey(
        Campaign,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='contributions'
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='contributions'
    )
    amount = models.DecimalField(max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    settlement_tx_id = models.CharField(max_length=128, unique=True)
    wallet_address = models.CharField(max_length=56, null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-timestamp',)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='contribution_amount_positive',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(campaign__isnull=False, project__isnull=True)
                    | models.Q(campaign__isnull=True, project__isnull=False)
                ),
                name='contribution_single_target',
            ),
        ]

    def __str__(self):
        return f"{self.amount} from {self.contributor} ({self.settlement_tx_id})"

    @property
    def target(self):
        return self.campaign or self.project

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Contributions are immutable once recorded.")
        super().save(*args, **kwargs)
