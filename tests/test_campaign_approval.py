"""
Tests for campaign creation and the admin approval gate.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from core.exceptions import Conflict, Forbidden, InvalidArgument, PreconditionFailed
from core.models import Campaign, CampaignMilestone, CampaignStatus


def _future(days=30):
    return timezone.now() + timedelta(days=days)


@pytest.fixture
def bare_campaign(validated_project, creator):
    """A pending campaign written directly, bypassing creation checks."""
    return Campaign.objects.create(
        project=validated_project,
        creator=creator,
        goal_amount=Decimal('1000'),
        deadline=_future(),
        whitepaper_url='https://example.com/whitepaper.pdf',
    )


def _add_milestones(campaign, *percentages):
    for idx, pct in enumerate(percentages):
        CampaignMilestone.objects.create(
            campaign=campaign,
            title=f'Step {idx + 1}',
            description='Deliverable',
            index=idx,
            escrow_index=idx,
            payout_percentage=Decimal(pct),
            amount=campaign.goal_amount * Decimal(pct) / 100,
        )


class TestCreateCampaign:

    def test_milestone_amounts_are_derived_from_goal(self, pending_campaign):
        milestones = list(pending_campaign.milestones.order_by('index'))

        assert pending_campaign.status == CampaignStatus.PENDING_APPROVAL
        assert [m.amount for m in milestones] == [Decimal('400'), Decimal('600')]
        assert [m.escrow_index for m in milestones] == [0, 1]

    def test_backer_cannot_create(self, campaign_service, validated_project, backer, milestone_plan):
        with pytest.raises(Forbidden):
            campaign_service.create_campaign(validated_project.pk, backer, '1000', _future(), milestone_plan)

    def test_only_owner_can_create(self, campaign_service, validated_project, other_creator, milestone_plan):
        with pytest.raises(Forbidden):
            campaign_service.create_campaign(validated_project.pk, other_creator, '1000', _future(), milestone_plan)

    def test_project_must_be_validated(self, campaign_service, idea_project, creator, milestone_plan):
        with pytest.raises(PreconditionFailed):
            campaign_service.create_campaign(idea_project.pk, creator, '1000', _future(), milestone_plan)

    @pytest.mark.parametrize('goal', ['0', '-10', 'lots', None])
    def test_goal_must_be_positive(self, campaign_service, validated_project, creator, milestone_plan, goal):
        with pytest.raises(InvalidArgument):
            campaign_service.create_campaign(validated_project.pk, creator, goal, _future(), milestone_plan)

    def test_deadline_must_be_future(self, campaign_service, validated_project, creator, milestone_plan):
        with pytest.raises(InvalidArgument):
            campaign_service.create_campaign(
                validated_project.pk, creator, '1000', timezone.now() - timedelta(days=1), milestone_plan
            )

    def test_milestones_required(self, campaign_service, validated_project, creator):
        with pytest.raises(InvalidArgument):
            campaign_service.create_campaign(validated_project.pk, creator, '1000', _future(), [])

    def test_milestone_needs_title(self, campaign_service, validated_project, creator):
        milestones = [{'title': ' ', 'description': 'x', 'payout_percentage': '100'}]
        with pytest.raises(InvalidArgument, match='title'):
            campaign_service.create_campaign(validated_project.pk, creator, '1000', _future(), milestones)


class TestApproveCampaign:

    def test_approve_goes_live_and_provisions_escrow(self, campaign_service, pending_campaign, admin_user, emitter):
        campaign = campaign_service.approve(pending_campaign.pk, admin_user)

        campaign.refresh_from_db()
        assert campaign.status == CampaignStatus.LIVE
        assert campaign.approved_by == admin_user
        assert campaign.approved_at is not None
        assert campaign.escrow_contract_ref == f'escrow-contract-{campaign.pk.hex}'
        assert emitter.types() == ['campaign.approved']

    def test_zero_milestones(self, campaign_service, bare_campaign, admin_user):
        with pytest.raises(PreconditionFailed, match='at least one milestone'):
            campaign_service.approve(bare_campaign.pk, admin_user)

        bare_campaign.refresh_from_db()
        assert bare_campaign.status == CampaignStatus.PENDING_APPROVAL

    def test_single_milestone_at_full_payout(self, campaign_service, bare_campaign, admin_user):
        _add_milestones(bare_campaign, '100')

        campaign = campaign_service.approve(bare_campaign.pk, admin_user)

        assert campaign.status == CampaignStatus.LIVE

    def test_payouts_must_total_hundred(self, campaign_service, bare_campaign, admin_user):
        _add_milestones(bare_campaign, '40', '50')

        with pytest.raises(PreconditionFailed, match='100%'):
            campaign_service.approve(bare_campaign.pk, admin_user)

    def test_documents_required(self, campaign_service, bare_campaign, admin_user):
        _add_milestones(bare_campaign, '100')
        Campaign.objects.filter(pk=bare_campaign.pk).update(whitepaper_url=None)

        with pytest.raises(PreconditionFailed, match='whitepaper'):
            campaign_service.approve(bare_campaign.pk, admin_user)

    def test_pitch_deck_is_enough(self, campaign_service, bare_campaign, admin_user):
        _add_milestones(bare_campaign, '100')
        Campaign.objects.filter(pk=bare_campaign.pk).update(
            whitepaper_url=None, pitch_deck_url='https://example.com/deck.pdf'
        )

        assert campaign_service.approve(bare_campaign.pk, admin_user).status == CampaignStatus.LIVE

    def test_deadline_passed_before_approval(self, campaign_service, bare_campaign, admin_user):
        _add_milestones(bare_campaign, '100')
        Campaign.objects.filter(pk=bare_campaign.pk).update(deadline=timezone.now() - timedelta(hours=1))

        with pytest.raises(PreconditionFailed, match='deadline'):
            campaign_service.approve(bare_campaign.pk, admin_user)

    def test_non_admin_forbidden(self, campaign_service, pending_campaign, creator):
        with pytest.raises(Forbidden):
            campaign_service.approve(pending_campaign.pk, creator)

    def test_staff_user_counts_as_admin(self, campaign_service, pending_campaign, backer):
        backer.is_staff = True
        backer.save()

        assert campaign_service.approve(pending_campaign.pk, backer).status == CampaignStatus.LIVE

    def test_approve_twice_conflicts(self, campaign_service, live_campaign, admin_user):
        with pytest.raises(Conflict):
            campaign_service.approve(live_campaign.pk, admin_user)


class TestRejectCampaign:

    def test_reject_requires_reason(self, campaign_service, pending_campaign, admin_user):
        with pytest.raises(InvalidArgument):
            campaign_service.reject(pending_campaign.pk, admin_user, '  ')

    def test_reject_cancels(self, campaign_service, pending_campaign, admin_user, emitter):
        campaign = campaign_service.reject(pending_campaign.pk, admin_user, 'Missing team details')

        assert campaign.status == CampaignStatus.CANCELLED
        assert campaign.rejected_reason == 'Missing team details'
        assert emitter.types() == ['campaign.rejected']

    def test_cannot_reject_live_campaign(self, campaign_service, live_campaign, admin_user):
        with pytest.raises(Conflict):
            campaign_service.reject(live_campaign.pk, admin_user, 'Too late')
