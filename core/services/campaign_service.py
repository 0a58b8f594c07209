import logging
from decimal import Decimal

from django.db import transaction as db_transaction
from django.utils import timezone

from core.exceptions import Conflict, Forbidden, InvalidArgument, PreconditionFailed
from core.models import Campaign, CampaignStatus, CampaignMilestone, Project, ProjectStatus
from core.utils.ledger import HUNDRED, ZERO, percentage_of, to_percentage, to_positive_money, ensure_future
from core.utils.helper import get_object_or_not_found
from core.utils.notification import default_emitter
from users.models import UserType

logger = logging.getLogger(__name__)


def normalize_milestones(goal_amount, milestones):
    """
    Validate raw milestone input and derive ordinal/escrow indexes and payout
    amounts (goal x percentage / 100). Returns a list of field dicts.
    """
    if not isinstance(milestones, list) or not milestones:
        raise InvalidArgument("At least one milestone is required.")
    normalized = []
    for idx, milestone in enumerate(milestones):
        if not isinstance(milestone, dict):
            raise InvalidArgument(f"Milestone {idx + 1}: must be an object.")
        title = milestone.get('title')
        description = milestone.get('description')
        if not isinstance(title, str) or not title.strip():
            raise InvalidArgument(f"Milestone {idx + 1}: title is required.")
        if not isinstance(description, str) or not description.strip():
            raise InvalidArgument(f"Milestone {idx + 1}: description is required.")
        pct = to_percentage(milestone.get('payout_percentage'), field=f"Milestone {idx + 1} payout_percentage")
        normalized.append({
            'title': title.strip(),
            'description': description.strip(),
            'index': idx,
            'escrow_index': idx,
            'payout_percentage': pct,
            'amount': percentage_of(goal_amount, pct),
        })
    return normalized


def check_fundable(campaign, milestones, now=None):
    """Every rule a campaign must satisfy before it may accept money."""
    now = now or timezone.now()
    if not milestones:
        raise PreconditionFailed("Campaign must have at least one milestone.")
    if campaign.deadline is None or campaign.deadline <= now:
        raise PreconditionFailed("Campaign deadline must be in the future.")
    if campaign.goal_amount is None or campaign.goal_amount <= ZERO:
        raise PreconditionFailed("Campaign goal must be greater than zero.")
    if not campaign.has_documents:
        raise PreconditionFailed("Campaign requires a whitepaper or pitch deck.")
    total_pct = sum((m.payout_percentage for m in milestones), Decimal('0'))
    if total_pct != HUNDRED:
        raise PreconditionFailed(f"Milestone payouts must total 100%, got {total_pct}%.")


class CampaignService:
    def __init__(self, settlement=None, emitter=None):
        if settlement is None:
            from payments.services.settlement_client import EscrowSettlementClient
            settlement = EscrowSettlementClient()
        self.settlement = settlement
        self.emitter = emitter or default_emitter

    def create_campaign(self, project_id, creator, goal_amount, deadline, milestones,
                        whitepaper_url=None, pitch_deck_url=None):
        if not creator.has_role(UserType.CREATOR):
            raise Forbidden("Only creators can create campaigns.")
        goal_amount = to_positive_money(goal_amount, field='goal_amount')
        if deadline is None:
            raise InvalidArgument("Valid deadline is required.")
        ensure_future(deadline)
        milestone_rows = normalize_milestones(goal_amount, milestones)

        project = get_object_or_not_found(Project.objects.all(), "Project not found.", pk=project_id)
        if project.owner_id != creator.pk:
            raise Forbidden("You are not the owner of this project.")
        if project.status != ProjectStatus.VALIDATED:
            raise PreconditionFailed("Project must be validated before launching a campaign.")

        with db_transaction.atomic():
            campaign = Campaign.objects.create(
                project=project,
                creator=creator,
                goal_amount=goal_amount,
                deadline=deadline,
                whitepaper_url=whitepaper_url or None,
                pitch_deck_url=pitch_deck_url or None,
                status=CampaignStatus.PENDING_APPROVAL,
            )
            CampaignMilestone.objects.bulk_create([
                CampaignMilestone(campaign=campaign, **row) for row in milestone_rows
            ])
        logger.info(f"Campaign {campaign.pk} created for project {project.pk}, pending approval")
        return campaign

    def approve(self, campaign_id, approver):
        if not approver.has_role(UserType.ADMIN):
            raise Forbidden("Only admins can approve campaigns.")

        with db_transaction.atomic():
            campaign = self._lock(campaign_id)
            if campaign.status != CampaignStatus.PENDING_APPROVAL:
                raise Conflict(f"Campaign is not pending approval (status: {campaign.status}).")
            milestones = list(campaign.milestones.all())
            check_fundable(campaign, milestones)

            campaign.status = CampaignStatus.LIVE
            campaign.approved_by = approver
            campaign.approved_at = timezone.now()
            campaign.escrow_contract_ref = self.settlement.provision_contract(campaign)
            campaign.save(update_fields=['status', 'approved_by', 'approved_at', 'escrow_contract_ref', 'updated_at'])

            self.emitter.emit(
                'campaign.approved',
                {'campaign_id': campaign.pk, 'escrow_contract_ref': campaign.escrow_contract_ref},
                recipients=[campaign.creator],
            )
        logger.info(f"Campaign {campaign.pk} approved by {approver.pk}")
        return campaign

    def reject(self, campaign_id, approver, reason):
        if not approver.has_role(UserType.ADMIN):
            raise Forbidden("Only admins can reject campaigns.")
        if not reason or not str(reason).strip():
            raise InvalidArgument("Rejection reason is required when rejecting a campaign.")

        with db_transaction.atomic():
            campaign = self._lock(campaign_id)
            if campaign.status != CampaignStatus.PENDING_APPROVAL:
                raise Conflict(f"Campaign is not pending approval (status: {campaign.status}).")
            campaign.status = CampaignStatus.CANCELLED
            campaign.approved_by = approver
            campaign.approved_at = timezone.now()
            campaign.rejected_reason = str(reason).strip()
            campaign.save(update_fields=['status', 'approved_by', 'approved_at', 'rejected_reason', 'updated_at'])
            self.emitter.emit(
                'campaign.rejected',
                {'campaign_id': campaign.pk, 'message': f"Your campaign was rejected: {campaign.rejected_reason}"},
                recipients=[campaign.creator],
            )
        logger.info(f"Campaign {campaign.pk} rejected by {approver.pk}")
        return campaign

    def _lock(self, campaign_id):
        return get_object_or_not_found(Campaign.objects.select_for_update(), "Campaign not found.", pk=campaign_id)
