import logging

from django.db import IntegrityError, transaction as db_transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import Conflict, Forbidden, InvalidArgument, PreconditionFailed
from core.utils.helper import get_object_or_not_found, is_valid_settlement_tx_id
from core.utils.ledger import ZERO, allocate, to_money
from core.utils.notification import default_emitter
from grants.models import ApplicationStatus, ESCROW_LOCKABLE_STATUSES, GrantApplication
from payments.models import EscrowStatus, MilestoneEscrowRecord, SettlementKind, SettlementTransaction, assert_transition
from payments.services.audit import PaymentAuditService
from users.models import UserType

logger = logging.getLogger(__name__)


class MilestoneEscrowController:
    """
    Mirrors the per-milestone escrow state of grant applications.

    Money only moves on the external settlement service. ``lock`` and
    ``release`` call it first and write locally only after it succeeds; the
    approve/reject/dispute steps are local state changes.
    """

    def __init__(self, settlement=None, emitter=None):
        if settlement is None:
            from payments.services.settlement_client import EscrowSettlementClient
            settlement = EscrowSettlementClient()
        self.settlement = settlement
        self.emitter = emitter or default_emitter

    # Funding

    def lock(self, application_id, amount, settlement_tx_id, actor, milestone_index=None):
        amount = to_money(amount)
        if amount <= ZERO:
            raise InvalidArgument("Escrow amount must be a positive number.")
        if not is_valid_settlement_tx_id(settlement_tx_id):
            raise InvalidArgument("Invalid transaction hash format.")

        application = self._get_application(application_id)
        self._check_manager(application, actor)
        if application.status not in ESCROW_LOCKABLE_STATUSES:
            raise PreconditionFailed("Funds can only be escrowed for approved applications.")
        if SettlementTransaction.objects.filter(reference=settlement_tx_id).exists():
            raise Conflict("This transaction has already been processed")
        self._lockable_records(application, milestone_index)

        escrow_ref = self.settlement.lock(amount, settlement_tx_id)

        try:
            application, records = self._record_lock(
                application, amount, settlement_tx_id, escrow_ref, actor, milestone_index
            )
        except (PreconditionFailed, Conflict) as exc:
            logger.error(
                f"Orphaned settlement lock {escrow_ref} (tx {settlement_tx_id}) for application "
                f"{application.pk}: {exc.detail}"
            )
            raise

        logger.info(
            f"Locked {amount} for application {application.pk} "
            f"({len(records)} milestone(s), escrow ref {escrow_ref})"
        )
        return application

    def _record_lock(self, application, amount, settlement_tx_id, escrow_ref, actor, milestone_index):
        with db_transaction.atomic():
            application = GrantApplication.objects.select_for_update().get(pk=application.pk)
            if application.status not in ESCROW_LOCKABLE_STATUSES:
                raise PreconditionFailed("Funds can only be escrowed for approved applications.")
            records = self._lockable_records(application, milestone_index, for_update=True)
            try:
                with db_transaction.atomic():
                    SettlementTransaction.objects.create(
                        reference=settlement_tx_id,
                        kind=SettlementKind.ESCROW_LOCK,
                        amount=amount,
                        user=actor,
                    )
            except IntegrityError:
                raise Conflict("This transaction has already been processed")

            now = timezone.now()
            shares = allocate(amount, [record.milestone.expected_payout for record in records])
            for record, share in zip(records, shares):
                assert_transition(record.status, EscrowStatus.LOCKED)
                record.status = EscrowStatus.LOCKED
                record.escrowed_amount = share
                record.lock_tx_hash = settlement_tx_id
                record.escrow_reference = escrow_ref
                record.locked_at = now
                record.save(update_fields=[
                    'status', 'escrowed_amount', 'lock_tx_hash', 'escrow_reference', 'locked_at', 'updated_at'
                ])

            application.escrowed_amount = F('escrowed_amount') + amount
            update_fields = ['escrowed_amount', 'status', 'updated_at']
            # Only a whole-application lock owns the application-level reference.
            if milestone_index is None:
                application.escrow_reference = escrow_ref
                update_fields.append('escrow_reference')
            if application.status == ApplicationStatus.APPROVED:
                application.status = ApplicationStatus.IN_PROGRESS
            application.save(update_fields=update_fields)
            application.refresh_from_db(fields=['escrowed_amount'])

            PaymentAuditService.audit(
                actor, 'escrow_lock', amount, target_type='GrantApplication', target_id=application.pk
            )
            self.emitter.emit(
                'escrow.locked',
                {
                    'application_id': application.pk,
                    'amount': amount,
                    'escrow_reference': escrow_ref,
                    'milestones': [record.milestone.index for record in records],
                },
                recipients=[application.applicant],
            )
        return application, records

    def release(self, application_id, milestone_index, actor):
        application = self._get_application(application_id)
        self._check_manager(application, actor)
        record = self._get_record(application, milestone_index)
        if record.status != EscrowStatus.APPROVED:
            raise PreconditionFailed("Only approved milestones can be released.")
        escrow_ref = record.escrow_reference or application.escrow_reference
        if not escrow_ref:
            raise PreconditionFailed("Milestone has no escrow reference to release from.")

        tx_hash = self.settlement.release(escrow_ref, record.milestone.index)

        with db_transaction.atomic():
            application = GrantApplication.objects.select_for_update().get(pk=application.pk)
            record = self._get_record(application, milestone_index, for_update=True)
            assert_transition(record.status, EscrowStatus.RELEASED)
            try:
                with db_transaction.atomic():
                    SettlementTransaction.objects.create(
                        reference=tx_hash,
                        kind=SettlementKind.ESCROW_RELEASE,
                        amount=record.escrowed_amount,
                        user=application.applicant,
                    )
            except IntegrityError:
                raise Conflict("This release transaction has already been recorded")

            record.status = EscrowStatus.RELEASED
            record.release_tx_hash = tx_hash
            record.released_at = timezone.now()
            record.save(update_fields=['status', 'release_tx_hash', 'released_at', 'updated_at'])

            application.milestones_completed = F('milestones_completed') + 1
            application.save(update_fields=['milestones_completed', 'updated_at'])
            application.refresh_from_db(fields=['milestones_completed'])

            outstanding = MilestoneEscrowRecord.objects.filter(
                milestone__application=application
            ).exclude(status=EscrowStatus.RELEASED).exists()
            if not outstanding:
                application.status = ApplicationStatus.COMPLETED
                application.save(update_fields=['status', 'updated_at'])
                self.emitter.emit(
                    'grant_application.completed',
                    {'application_id': application.pk},
                    recipients=[application.applicant],
                )

            PaymentAuditService.audit(
                actor, 'escrow_release', record.escrowed_amount,
                target_type='MilestoneEscrowRecord', target_id=record.pk,
            )
            self.emitter.emit(
                'escrow.milestone_released',
                {
                    'application_id': application.pk,
                    'milestone_index': record.milestone.index,
                    'amount': record.escrowed_amount,
                    'tx_hash': tx_hash,
                },
                recipients=[application.applicant],
            )

        logger.info(f"Released milestone {milestone_index} of application {application.pk}: {tx_hash}")
        return record

    # Review of delivered work

    def approve_milestone(self, application_id, milestone_index, actor):
        return self._review(
            application_id, milestone_index, actor,
            target=EscrowStatus.APPROVED, event='escrow.milestone_approved',
        )

    def reject_milestone(self, application_id, milestone_index, actor):
        # No compensating settlement call; reversal is handled on the settlement side.
        return self._review(
            application_id, milestone_index, actor,
            target=EscrowStatus.REJECTED, event='escrow.milestone_rejected',
        )

    def dispute_milestone(self, application_id, milestone_index, actor, reason):
        if not reason or not str(reason).strip():
            raise InvalidArgument("A reason is required to dispute a milestone.")
        with db_transaction.atomic():
            application = self._get_application(application_id, for_update=True)
            if not self._is_applicant(application, actor) and not self._is_grant_creator(application, actor):
                raise Forbidden("Only the applicant or the grant creator can dispute a milestone.")
            record = self._get_record(application, milestone_index, for_update=True)
            assert_transition(record.status, EscrowStatus.DISPUTED)
            record.status = EscrowStatus.DISPUTED
            record.disputed_by = actor
            record.disputed_at = timezone.now()
            record.dispute_reason = str(reason).strip()
            record.save(update_fields=['status', 'disputed_by', 'disputed_at', 'dispute_reason', 'updated_at'])
            self.emitter.emit(
                'escrow.milestone_disputed',
                {
                    'application_id': application.pk,
                    'milestone_index': record.milestone.index,
                    'message': f"Milestone {record.milestone.index} was disputed: {record.dispute_reason}",
                },
                recipients=self._parties(application),
            )
        logger.info(f"Milestone {milestone_index} of application {application.pk} disputed by {actor.pk}")
        return record

    def resolve_dispute(self, application_id, milestone_index, actor, decision):
        if not actor.has_role(UserType.ADMIN):
            raise Forbidden("Only admins can resolve disputes.")
        if decision not in (EscrowStatus.APPROVED, EscrowStatus.REJECTED):
            raise InvalidArgument("Decision must be 'approved' or 'rejected'.")
        with db_transaction.atomic():
            application = self._get_application(application_id, for_update=True)
            record = self._get_record(application, milestone_index, for_update=True)
            if record.status != EscrowStatus.DISPUTED:
                raise PreconditionFailed("Milestone is not under dispute.")
            assert_transition(record.status, decision)
            now = timezone.now()
            record.status = decision
            record.resolved_by = actor
            if decision == EscrowStatus.APPROVED:
                record.approved_by, record.approved_at = actor, now
            else:
                record.rejected_by, record.rejected_at = actor, now
            record.save()
            self.emitter.emit(
                'escrow.dispute_resolved',
                {
                    'application_id': application.pk,
                    'milestone_index': record.milestone.index,
                    'decision': decision,
                },
                recipients=self._parties(application),
            )
        logger.info(f"Dispute on milestone {milestone_index} of application {application.pk} resolved: {decision}")
        return record

    def _review(self, application_id, milestone_index, actor, target, event):
        with db_transaction.atomic():
            application = self._get_application(application_id, for_update=True)
            self._check_manager(application, actor)
            record = self._get_record(application, milestone_index, for_update=True)
            if record.status != EscrowStatus.LOCKED:
                raise PreconditionFailed(f"Only locked milestones can be {target}.")
            assert_transition(record.status, target)
            now = timezone.now()
            record.status = target
            if target == EscrowStatus.APPROVED:
                record.approved_by, record.approved_at = actor, now
            else:
                record.rejected_by, record.rejected_at = actor, now
            record.save()
            self.emitter.emit(
                event,
                {'application_id': application.pk, 'milestone_index': record.milestone.index},
                recipients=[application.applicant],
            )
        logger.info(f"Milestone {milestone_index} of application {application.pk} {target} by {actor.pk}")
        return record

    # Lookups and checks

    def _get_application(self, application_id, for_update=False):
        queryset = GrantApplication.objects.select_related('grant', 'grant__creator', 'applicant')
        if for_update:
            queryset = queryset.select_for_update(of=('self',))
        return get_object_or_not_found(queryset, "Grant application not found.", pk=application_id)

    def _get_record(self, application, milestone_index, for_update=False):
        queryset = MilestoneEscrowRecord.objects.select_related('milestone')
        if for_update:
            queryset = queryset.select_for_update(of=('self',))
        try:
            index = int(milestone_index)
        except (TypeError, ValueError):
            raise InvalidArgument("Milestone index must be an integer.")
        return get_object_or_not_found(
            queryset, "Milestone not found.",
            milestone__application=application, milestone__index=index,
        )

    def _lockable_records(self, application, milestone_index, for_update=False):
        if milestone_index is not None:
            record = self._get_record(application, milestone_index, for_update=for_update)
            if record.status != EscrowStatus.PENDING:
                raise PreconditionFailed("Milestone escrow is already funded.")
            return [record]
        queryset = MilestoneEscrowRecord.objects.select_related('milestone').filter(
            milestone__application=application, status=EscrowStatus.PENDING
        ).order_by('milestone__index')
        if for_update:
            queryset = queryset.select_for_update(of=('self',))
        records = list(queryset)
        if not records:
            raise PreconditionFailed("No milestones are awaiting escrow.")
        return records

    @staticmethod
    def _is_grant_creator(application, user):
        return application.grant is not None and application.grant.creator_id == user.pk

    @staticmethod
    def _is_applicant(application, user):
        return application.applicant_id == user.pk

    def _check_manager(self, application, user):
        if not (self._is_grant_creator(application, user) or user.has_role(UserType.ADMIN)):
            raise Forbidden("Only the grant creator or an admin can manage milestone escrow.")

    @staticmethod
    def _parties(application):
        parties = [application.applicant]
        if application.grant is not None:
            parties.append(application.grant.creator)
        return parties
