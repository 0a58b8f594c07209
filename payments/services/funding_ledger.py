import logging

from django.conf import settings
from django.db import IntegrityError, transaction as db_transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.exceptions import Conflict, InvalidArgument, PreconditionFailed
from core.models import Campaign, Project
from core.utils.helper import is_valid_settlement_tx_id, is_valid_stellar_address
from core.utils.ledger import ZERO, to_money
from core.utils.notification import default_emitter
from payments.models import Contribution, SettlementKind, SettlementTransaction
from payments.services.audit import PaymentAuditService

logger = logging.getLogger(__name__)

DUPLICATE_TX_MESSAGE = "This transaction has already been processed"


class FundingLedger:
    """
    Records contributions against a funding target (a Campaign or a Project).

    The running ``funds_raised`` total is only ever changed here, in the same
    database transaction that appends the Contribution, so it always equals
    the sum of the target's contributions.
    """

    def __init__(self, emitter=None):
        self.emitter = emitter or default_emitter

    def contribute(self, target, contributor, amount, settlement_tx_id, wallet_address=None):
        amount = self._check_amount(amount)
        if wallet_address and not is_valid_stellar_address(wallet_address):
            raise InvalidArgument("Invalid Stellar wallet address.")
        if not is_valid_settlement_tx_id(settlement_tx_id):
            raise InvalidArgument("Invalid transaction hash format.")
        if SettlementTransaction.objects.filter(reference=settlement_tx_id).exists():
            raise Conflict(DUPLICATE_TX_MESSAGE)

        now = timezone.now()
        if target.funding_window.has_closed(now):
            raise PreconditionFailed("The funding period for this target has ended.")
        if target.is_owned_or_staffed_by(contributor):
            raise PreconditionFailed("You cannot fund your own project.")
        if not target.is_fundable:
            raise PreconditionFailed("This target is not currently accepting funds.")

        model = type(target)
        with db_transaction.atomic():
            locked = model.objects.select_for_update().get(pk=target.pk)
            if not locked.is_fundable or locked.funding_window.has_closed(now):
                raise PreconditionFailed("This target is not currently accepting funds.")

            try:
                with db_transaction.atomic():
                    SettlementTransaction.objects.create(
                        reference=settlement_tx_id,
                        kind=SettlementKind.CONTRIBUTION,
                        amount=amount,
                        user=contributor,
                    )
                    contribution = Contribution.objects.create(
                        contributor=contributor,
                        amount=amount,
                        settlement_tx_id=settlement_tx_id,
                        wallet_address=wallet_address or None,
                        **self._target_kwargs(locked),
                    )
            except IntegrityError:
                raise Conflict(DUPLICATE_TX_MESSAGE)

            model.objects.filter(pk=locked.pk).update(funds_raised=F('funds_raised') + amount)
            locked.refresh_from_db(fields=['funds_raised'])
            goal_met = locked.goal_amount is not None and locked.funds_raised >= locked.goal_amount
            if goal_met:
                locked.status = model.FUNDED_STATUS
                locked.save(update_fields=['status', 'updated_at'])

            PaymentAuditService.audit(
                contributor, 'contribution', amount,
                target_type=model.__name__, target_id=locked.pk,
            )
            self.emitter.emit(
                'funding.received',
                {
                    'target_type': model.__name__.lower(),
                    'target_id': locked.pk,
                    'amount': amount,
                    'settlement_tx_id': settlement_tx_id,
                    'message': f"Your contribution of {amount} was recorded.",
                },
                recipients=[contributor],
            )
            if goal_met:
                self.emitter.emit(
                    'funding.goal_met',
                    {
                        'target_type': model.__name__.lower(),
                        'target_id': locked.pk,
                        'funds_raised': locked.funds_raised,
                        'goal': locked.goal_amount,
                    },
                    recipients=locked.beneficiaries(),
                )

        target.funds_raised = locked.funds_raised
        target.status = locked.status
        logger.info(
            f"Contribution {contribution.pk}: {amount} to {model.__name__} {locked.pk} "
            f"(raised {locked.funds_raised}/{locked.goal_amount}, status {locked.status})"
        )
        return contribution

    @staticmethod
    def raised_total(target):
        lookup = {'campaign': target} if isinstance(target, Campaign) else {'project': target}
        total = Contribution.objects.filter(**lookup).aggregate(total=Sum('amount'))['total']
        return total or ZERO

    @staticmethod
    def _check_amount(amount):
        amount = to_money(amount)
        minimum = to_money(settings.FUNDING_MIN_CONTRIBUTION, 'FUNDING_MIN_CONTRIBUTION')
        maximum = to_money(settings.FUNDING_MAX_CONTRIBUTION, 'FUNDING_MAX_CONTRIBUTION')
        if amount < minimum or amount > maximum:
            raise InvalidArgument(f"Amount must be between {minimum} and {maximum}.")
        return amount

    @staticmethod
    def _target_kwargs(target):
        if isinstance(target, Campaign):
            return {'campaign': target}
        if isinstance(target, Project):
            return {'project': target}
        raise InvalidArgument("Unsupported funding target.")
