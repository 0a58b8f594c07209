import logging

from django.db import IntegrityError, transaction as db_transaction
from django.utils import timezone

from core.exceptions import Conflict, Forbidden, InvalidArgument, PreconditionFailed
from core.utils.helper import get_object_or_not_found, is_reference_list
from core.utils.ledger import ZERO, to_money, to_positive_money
from core.utils.notification import default_emitter
from grants.models import (
    ApplicationMilestone,
    ApplicationStatus,
    Grant,
    GrantApplication,
    GrantMilestone,
    GrantStatus,
    REVIEWABLE_STATUSES,
    REVISABLE_STATUSES,
)
from payments.models import MilestoneEscrowRecord
from payments.services.audit import PaymentAuditService
from users.models import UserType

logger = logging.getLogger(__name__)

ALREADY_APPLIED_MESSAGE = "You have already applied for this grant."
REVIEW_DECISIONS = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


def _require_text(data, key, label):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{label} is required.")
    return value.strip()


def normalize_milestones(milestones, budget=None, with_documents=False):
    """
    Validate milestone input and return field dicts with ordinal indexes.
    When ``budget`` is given the expected payouts may not exceed it.
    """
    if not isinstance(milestones, list) or not milestones:
        raise InvalidArgument("At least one milestone is required.")
    rows = []
    for idx, milestone in enumerate(milestones):
        label = f"Milestone {idx + 1}"
        if not isinstance(milestone, dict):
            raise InvalidArgument(f"{label}: must be an object.")
        row = {
            'index': idx,
            'title': _require_text(milestone, 'title', f"{label}: title"),
            'description': _require_text(milestone, 'description', f"{label}: description"),
            'expected_payout': to_money(milestone.get('expected_payout'), f"{label}: expected_payout"),
        }
        if row['expected_payout'] < ZERO:
            raise InvalidArgument(f"{label}: expected_payout cannot be negative.")
        if with_documents:
            documents = milestone.get('supporting_documents', [])
            if documents is None:
                documents = []
            if not is_reference_list(documents):
                raise InvalidArgument(f"{label}: supporting_documents must be a list of strings.")
            row['supporting_documents'] = documents
        rows.append(row)

    total = sum((row['expected_payout'] for row in rows), ZERO)
    if budget is not None and total > budget:
        raise InvalidArgument(
            f"Total milestone payouts cannot exceed total budget (payouts {total}, budget {budget})."
        )
    return rows


class GrantService:
    @staticmethod
    def create_grant(creator, data):
        if not (creator.has_role(UserType.CREATOR) or creator.has_role(UserType.ADMIN)):
            raise Forbidden("Only creators can create grants.")
        title = _require_text(data, 'title', "Title")
        description = _require_text(data, 'description', "Description")
        rules = _require_text(data, 'rules', "Rules")
        total_budget = to_positive_money(data.get('total_budget'), 'total_budget')
        if total_budget < 1:
            raise InvalidArgument("Total budget must be at least 1.")
        rows = normalize_milestones(data.get('milestones'), budget=total_budget)

        with db_transaction.atomic():
            grant = Grant.objects.create(
                creator=creator,
                title=title,
                description=description,
                total_budget=total_budget,
                rules=rules,
                status=GrantStatus.DRAFT,
            )
            GrantMilestone.objects.bulk_create([GrantMilestone(grant=grant, **row) for row in rows])
        logger.info(f"Grant {grant.pk} created by {creator.pk} with budget {total_budget}")
        return grant

    @staticmethod
    def update_grant_status(grant_id, actor, status):
        if status not in (GrantStatus.OPEN, GrantStatus.CLOSED):
            raise InvalidArgument("Status must be 'open' or 'closed'.")
        with db_transaction.atomic():
            grant = get_object_or_not_found(Grant.objects.select_for_update(), "Grant not found.", pk=grant_id)
            if grant.creator_id != actor.pk:
                raise Forbidden("Only the grant creator can change its status.")
            if grant.status == GrantStatus.ARCHIVED:
                raise Conflict("Archived grants cannot be modified.")
            if grant.status == GrantStatus.DRAFT and status == GrantStatus.CLOSED:
                raise PreconditionFailed("A draft grant must be opened before it can be closed.")
            if grant.status == status:
                return grant
            grant.status = status
            grant.save(update_fields=['status', 'updated_at'])
        logger.info(f"Grant {grant.pk} status changed to {status} by {actor.pk}")
        return grant


class GrantApplicationWorkflow:
    """
    Submission, milestone negotiation and admin review of grant applications.

    Review is not idempotent: once an application has left the reviewable
    statuses a second review is a Conflict.
    """

    def __init__(self, emitter=None):
        self.emitter = emitter or default_emitter

    def submit(self, grant_id, applicant, proposal):
        grant = get_object_or_not_found(Grant.objects.select_related('creator'), "Grant not found.", pk=grant_id)
        if grant.status != GrantStatus.OPEN:
            raise PreconditionFailed("This grant is not accepting applications.")
        title = _require_text(proposal, 'title', "Title")
        summary = _require_text(proposal, 'summary', "Summary")
        rows = normalize_milestones(proposal.get('milestones'), budget=grant.total_budget, with_documents=True)

        if GrantApplication.objects.filter(grant=grant, applicant=applicant, archived=False).exists():
            raise Conflict(ALREADY_APPLIED_MESSAGE)

        try:
            with db_transaction.atomic():
                application = GrantApplication.objects.create(
                    grant=grant,
                    applicant=applicant,
                    title=title,
                    summary=summary,
                    status=ApplicationStatus.SUBMITTED,
                )
                self._create_milestones(application, rows)
                self.emitter.emit(
                    'grant_application.submitted',
                    {
                        'application_id': application.pk,
                        'grant_id': grant.pk,
                        'message': f"New application '{title}' for {grant.title}",
                    },
                    recipients=[grant.creator],
                )
        except IntegrityError:
            raise Conflict(ALREADY_APPLIED_MESSAGE)
        logger.info(f"Application {application.pk} submitted to grant {grant.pk} by {applicant.pk}")
        return application

    def revise_milestones(self, application_id, actor, milestones):
        with db_transaction.atomic():
            application = get_object_or_not_found(
                GrantApplication.objects.select_related('grant', 'applicant').select_for_update(of=('self',)),
                "Grant application not found.",
                pk=application_id,
            )
            grant = application.grant
            is_grant_creator = grant is not None and grant.creator_id == actor.pk
            if not (is_grant_creator or application.applicant_id == actor.pk):
                raise Forbidden("Only the grant creator or the applicant can revise milestones.")
            if application.status not in REVISABLE_STATUSES:
                raise Conflict(f"Milestones cannot be revised while the application is {application.status}.")
            budget = grant.total_budget if grant is not None else None
            rows = normalize_milestones(milestones, budget=budget, with_documents=True)

            application.milestones.all().delete()
            self._create_milestones(application, rows)
            application.status = ApplicationStatus.AWAITING_FINAL_APPROVAL
            application.save(update_fields=['status', 'updated_at'])

            other_party = application.applicant if is_grant_creator else (grant.creator if grant else None)
            self.emitter.emit(
                'grant_application.milestones_revised',
                {'application_id': application.pk, 'milestones': len(rows)},
                recipients=[other_party],
            )
        logger.info(f"Application {application.pk} milestones revised by {actor.pk}")
        return application

    def review(self, application_id, admin, decision, note=''):
        if not admin.has_role(UserType.ADMIN):
            raise Forbidden("Only admins can review grant applications.")
        if decision not in REVIEW_DECISIONS:
            raise InvalidArgument("Decision must be 'approved' or 'rejected'.")

        with db_transaction.atomic():
            application = get_object_or_not_found(
                GrantApplication.objects.select_related('applicant').select_for_update(of=('self',)),
                "Grant application not found.",
                pk=application_id,
            )
            if application.status not in REVIEWABLE_STATUSES:
                raise Conflict(f"Application has already been reviewed (status: {application.status}).")
            application.status = decision
            application.archived = decision == ApplicationStatus.REJECTED
            application.admin_note = note or ''
            application.reviewed_by = admin
            application.reviewed_at = timezone.now()
            application.save(update_fields=[
                'status', 'archived', 'admin_note', 'reviewed_by', 'reviewed_at', 'updated_at'
            ])
            PaymentAuditService.audit(
                admin, f'grant_application_{decision}',
                target_type='GrantApplication', target_id=application.pk,
                description=f"Application {decision}: {application.admin_note}".strip(),
            )
            self.emitter.emit(
                'grant_application.reviewed',
                {
                    'application_id': application.pk,
                    'decision': decision,
                    'message': f"Your application '{application.title}' was {decision}.",
                },
                recipients=[application.applicant],
            )
        logger.info(f"Application {application.pk} {decision} by {admin.pk}")
        return application

    @staticmethod
    def _create_milestones(application, rows):
        milestones = ApplicationMilestone.objects.bulk_create([
            ApplicationMilestone(application=application, **row) for row in rows
        ])
        MilestoneEscrowRecord.objects.bulk_create([
            MilestoneEscrowRecord(milestone=milestone) for milestone in milestones
        ])
        return milestones
