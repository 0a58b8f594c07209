"""
Tests for the funding ledger.

Covers:
- Goal crossing on campaigns and projects
- Settlement transaction replay protection
- Input validation and fundability rules
- Audit and event side effects
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from core.exceptions import Conflict, InvalidArgument, PreconditionFailed
from core.models import Campaign, CampaignStatus, Project, ProjectStatus
from payments.models import AuditLog, Contribution, SettlementKind, SettlementTransaction
from payments.services.funding_ledger import FundingLedger
from tests.conftest import make_tx_hash


@pytest.fixture
def ledger(emitter):
    return FundingLedger(emitter=emitter)


class TestCampaignFunding:

    def test_goal_crossing_marks_campaign_funded(self, ledger, live_campaign, backer, second_backer, emitter):
        """Totals accumulate and the status flips once the goal is reached."""
        # Act
        ledger.contribute(live_campaign, backer, '600', make_tx_hash('a'))

        # Assert
        live_campaign.refresh_from_db()
        assert live_campaign.funds_raised == Decimal('600')
        assert live_campaign.status == CampaignStatus.LIVE

        ledger.contribute(live_campaign, second_backer, '500', make_tx_hash('b'))

        live_campaign.refresh_from_db()
        assert live_campaign.funds_raised == Decimal('1100')
        assert live_campaign.status == CampaignStatus.FUNDED
        assert FundingLedger.raised_total(live_campaign) == live_campaign.funds_raised
        assert emitter.types().count('funding.goal_met') == 1

    def test_funded_campaign_rejects_further_contributions(self, ledger, live_campaign, backer, second_backer):
        ledger.contribute(live_campaign, backer, '1000', make_tx_hash('full'))

        with pytest.raises(PreconditionFailed):
            ledger.contribute(live_campaign, second_backer, '10', make_tx_hash('late'))

    def test_passed_instance_is_updated(self, ledger, live_campaign, backer):
        ledger.contribute(live_campaign, backer, '250.5', make_tx_hash('c'))

        assert live_campaign.funds_raised == Decimal('250.5')
        assert live_campaign.status == CampaignStatus.LIVE

    def test_interleaved_contributions_through_stale_copies(self, ledger, live_campaign, backer, second_backer):
        """Writers holding outdated copies of the campaign never lose each other's contributions."""
        # Arrange
        first_copy = Campaign.objects.get(pk=live_campaign.pk)
        second_copy = Campaign.objects.get(pk=live_campaign.pk)
        steps = [
            (first_copy, backer, Decimal('100')),
            (second_copy, second_backer, Decimal('250')),
            (first_copy, backer, Decimal('75.5')),
            (second_copy, second_backer, Decimal('300')),
        ]

        # Act
        for index, (copy, contributor, amount) in enumerate(steps):
            ledger.contribute(copy, contributor, amount, make_tx_hash(f'interleaved-{index}'))

        # Assert
        expected = sum(amount for _, _, amount in steps)
        live_campaign.refresh_from_db()
        assert live_campaign.funds_raised == expected == Decimal('725.5')
        assert FundingLedger.raised_total(live_campaign) == expected
        assert second_copy.funds_raised == expected
        assert first_copy.funds_raised == Decimal('425.5')
        assert Contribution.objects.filter(campaign=live_campaign).count() == 4

    def test_duplicate_tx_is_rejected(self, ledger, live_campaign, backer, second_backer):
        tx = make_tx_hash('dup')
        ledger.contribute(live_campaign, backer, '100', tx)

        with pytest.raises(Conflict, match='already been processed'):
            ledger.contribute(live_campaign, second_backer, '100', tx)

        live_campaign.refresh_from_db()
        assert live_campaign.funds_raised == Decimal('100')
        assert Contribution.objects.filter(campaign=live_campaign).count() == 1

    def test_tx_used_by_escrow_cannot_fund(self, ledger, live_campaign, backer):
        tx = make_tx_hash('escrow')
        SettlementTransaction.objects.create(reference=tx, kind=SettlementKind.ESCROW_LOCK, amount=Decimal('5'))

        with pytest.raises(Conflict):
            ledger.contribute(live_campaign, backer, '100', tx)

    def test_pending_campaign_not_fundable(self, ledger, pending_campaign, backer):
        with pytest.raises(PreconditionFailed):
            ledger.contribute(pending_campaign, backer, '100', make_tx_hash('p'))

    def test_creator_cannot_fund_own_campaign(self, ledger, live_campaign, creator):
        with pytest.raises(PreconditionFailed, match='own project'):
            ledger.contribute(live_campaign, creator, '100', make_tx_hash('self'))

    def test_team_member_cannot_fund(self, ledger, live_campaign, backer):
        live_campaign.project.team_members.add(backer)

        with pytest.raises(PreconditionFailed, match='own project'):
            ledger.contribute(live_campaign, backer, '100', make_tx_hash('team'))

    def test_closed_window(self, ledger, live_campaign, backer):
        Campaign.objects.filter(pk=live_campaign.pk).update(deadline=timezone.now() - timedelta(minutes=5))
        live_campaign.refresh_from_db()

        with pytest.raises(PreconditionFailed, match='ended'):
            ledger.contribute(live_campaign, backer, '100', make_tx_hash('closed'))


class TestContributionValidation:

    @pytest.mark.parametrize('amount', ['0', '-5', '0.5', '10000.01', 'abc', None])
    def test_amount_out_of_bounds(self, ledger, live_campaign, backer, amount):
        with pytest.raises(InvalidArgument):
            ledger.contribute(live_campaign, backer, amount, make_tx_hash('amount'))

        assert not Contribution.objects.exists()

    @pytest.mark.parametrize('tx', ['', 'abc', 'z' * 64, make_tx_hash('x')[:63]])
    def test_malformed_tx(self, ledger, live_campaign, backer, tx):
        with pytest.raises(InvalidArgument):
            ledger.contribute(live_campaign, backer, '10', tx)

    def test_bad_wallet(self, ledger, live_campaign, backer):
        with pytest.raises(InvalidArgument, match='wallet'):
            ledger.contribute(live_campaign, backer, '10', make_tx_hash('w'), wallet_address='GNOTAWALLET')

    def test_valid_wallet_is_stored(self, ledger, live_campaign, backer, stellar_address):
        contribution = ledger.contribute(
            live_campaign, backer, '10', make_tx_hash('w2'), wallet_address=stellar_address
        )

        assert contribution.wallet_address == stellar_address

    def test_contributions_are_immutable(self, ledger, live_campaign, backer):
        contribution = ledger.contribute(live_campaign, backer, '10', make_tx_hash('imm'))

        contribution.amount = Decimal('99')
        with pytest.raises(ValueError):
            contribution.save()


class TestProjectFunding:

    def test_project_reaches_goal(self, ledger, funding_project, backer):
        contribution = ledger.contribute(funding_project, backer, '1000', make_tx_hash('proj'))

        funding_project.refresh_from_db()
        assert contribution.project == funding_project
        assert contribution.campaign is None
        assert funding_project.status == ProjectStatus.FUNDED
        assert FundingLedger.raised_total(funding_project) == Decimal('1000')

    def test_validated_project_not_fundable(self, ledger, validated_project, backer):
        with pytest.raises(PreconditionFailed):
            ledger.contribute(validated_project, backer, '10', make_tx_hash('v'))

    def test_project_end_date_passed(self, ledger, funding_project, backer):
        Project.objects.filter(pk=funding_project.pk).update(funding_end_date=timezone.now() - timedelta(days=1))
        funding_project.refresh_from_db()

        with pytest.raises(PreconditionFailed):
            ledger.contribute(funding_project, backer, '10', make_tx_hash('end'))


class TestSideEffects:

    def test_audit_and_events(self, ledger, funding_project, backer, emitter):
        tx = make_tx_hash('side')
        ledger.contribute(funding_project, backer, '40', tx)

        audit = AuditLog.objects.get(action_type='contribution')
        assert audit.user == backer
        assert audit.target_type == 'Project'
        assert audit.target_id == str(funding_project.pk)

        event, payload, recipients = emitter.events[0]
        assert event == 'funding.received'
        assert payload['settlement_tx_id'] == tx
        assert recipients == [backer]

        registry = SettlementTransaction.objects.get(reference=tx)
        assert registry.kind == SettlementKind.CONTRIBUTION
        assert registry.amount == Decimal('40')
