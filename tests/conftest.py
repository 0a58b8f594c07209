"""
Shared fixtures: users for every role, a fake Escrow Settlement Service and
ready-made projects, campaigns, grants and applications.
"""
import base64
import binascii
import hashlib
import os
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from core.exceptions import EscrowServiceError
from core.models import Project, ProjectStatus
from core.services.campaign_service import CampaignService
from core.services.project_service import ProjectService
from grants.services import GrantApplicationWorkflow, GrantService
from payments.services.escrow_service import MilestoneEscrowController
from users.models import User, UserType


def make_tx_hash(seed):
    """Deterministic 64-hex settlement transaction id."""
    return hashlib.sha256(str(seed).encode()).hexdigest()


def make_stellar_address(payload=None):
    payload = payload or os.urandom(32)
    body = bytes([6 << 3]) + payload
    checksum = binascii.crc_hqx(body, 0).to_bytes(2, 'little')
    return base64.b32encode(body + checksum).decode()


class FakeSettlement:
    """In-memory stand-in for EscrowSettlementClient."""

    def __init__(self):
        self.locks = []
        self.releases = []
        self.error = None

    def fail_with(self, error=None):
        self.error = error or EscrowServiceError("The escrow settlement service timed out. Please retry.")

    def lock(self, amount, reference):
        if self.error:
            raise self.error
        self.locks.append((amount, reference))
        return f"escrow-{reference[:12]}"

    def release(self, escrow_ref, milestone_index):
        if self.error:
            raise self.error
        self.releases.append((escrow_ref, milestone_index))
        return make_tx_hash(f"release:{escrow_ref}:{milestone_index}")

    def provision_contract(self, campaign):
        return f"escrow-contract-{campaign.pk.hex}"


class RecordingEmitter:
    """Collects emitted events instead of writing notifications."""

    def __init__(self):
        self.events = []

    def emit(self, event_type, payload, recipients=()):
        self.events.append((event_type, payload, list(recipients)))

    def types(self):
        return [event for event, _, _ in self.events]


def _user(username, user_type, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password='pass-1234-word',
        user_type=user_type,
        **extra
    )


# Users

@pytest.fixture
def admin_user(db):
    return _user('platform_admin', UserType.ADMIN)


@pytest.fixture
def creator(db):
    return _user('creator', UserType.CREATOR)


@pytest.fixture
def other_creator(db):
    return _user('other_creator', UserType.CREATOR)


@pytest.fixture
def backer(db):
    return _user('backer', UserType.BACKER)


@pytest.fixture
def second_backer(db):
    return _user('second_backer', UserType.BACKER)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def _login(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _login


# Collaborators

@pytest.fixture
def settlement():
    return FakeSettlement()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def stellar_address():
    return make_stellar_address(b'\x01' * 32)


# Projects & campaigns

@pytest.fixture
def idea_project(creator):
    return ProjectService.create_idea(
        creator,
        'Solar water pumps',
        description='Community irrigation',
        threshold_votes=2,
        vote_deadline=timezone.now() + timedelta(days=7),
    )


@pytest.fixture
def validated_project(creator):
    return Project.objects.create(owner=creator, title='Open ledger', status=ProjectStatus.VALIDATED)


@pytest.fixture
def funding_project(creator):
    return Project.objects.create(
        owner=creator,
        title='Library rebuild',
        status=ProjectStatus.FUNDING,
        funding_goal=Decimal('1000'),
        funding_end_date=timezone.now() + timedelta(days=30),
    )


@pytest.fixture
def campaign_service(settlement, emitter):
    return CampaignService(settlement=settlement, emitter=emitter)


@pytest.fixture
def milestone_plan():
    return [
        {'title': 'Prototype', 'description': 'Working prototype', 'payout_percentage': '40'},
        {'title': 'Launch', 'description': 'Public launch', 'payout_percentage': '60'},
    ]


@pytest.fixture
def pending_campaign(campaign_service, validated_project, creator, milestone_plan):
    return campaign_service.create_campaign(
        validated_project.pk,
        creator,
        goal_amount='1000',
        deadline=timezone.now() + timedelta(days=30),
        milestones=milestone_plan,
        whitepaper_url='https://example.com/whitepaper.pdf',
    )


@pytest.fixture
def live_campaign(campaign_service, pending_campaign, admin_user):
    return campaign_service.approve(pending_campaign.pk, admin_user)


# Grants

@pytest.fixture
def grant_data():
    return {
        'title': 'Open tooling fund',
        'description': 'Funding for open developer tooling',
        'total_budget': '5000',
        'rules': 'Open source licence required',
        'milestones': [
            {'title': 'Design', 'description': 'Architecture', 'expected_payout': '1000'},
            {'title': 'Build', 'description': 'Implementation', 'expected_payout': '2000'},
        ],
    }


@pytest.fixture
def open_grant(creator, grant_data):
    grant = GrantService.create_grant(creator, grant_data)
    return GrantService.update_grant_status(grant.pk, creator, 'open')


@pytest.fixture
def proposal():
    return {
        'title': 'Static analyser',
        'summary': 'A linter for smart contracts',
        'milestones': [
            {
                'title': 'Parser',
                'description': 'Grammar and AST',
                'expected_payout': '1000',
                'supporting_documents': ['https://example.com/design.md'],
            },
            {'title': 'Rules', 'description': 'First twenty rules', 'expected_payout': '1500'},
        ],
    }


@pytest.fixture
def workflow(emitter):
    return GrantApplicationWorkflow(emitter=emitter)


@pytest.fixture
def submitted_application(workflow, open_grant, backer, proposal):
    return workflow.submit(open_grant.pk, backer, proposal)


@pytest.fixture
def approved_application(workflow, submitted_application, admin_user):
    return workflow.review(submitted_application.pk, admin_user, 'approved', 'Looks good')


@pytest.fixture
def controller(settlement, emitter):
    return MilestoneEscrowController(settlement=settlement, emitter=emitter)
