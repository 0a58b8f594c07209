"""
Tests for the crowdfund vote threshold tracker.

Covers:
- Vote registration, changes and duplicates
- Vote removal
- Monotonic threshold_met / expired transitions
- Periodic expiry sweep
"""
from datetime import timedelta

import pytest
from django.core.management import call_command
from django.utils import timezone

from core.exceptions import InvalidArgument, NotFound, PreconditionFailed
from core.models import CrowdfundThreshold, ProjectStatus, ThresholdStatus, Vote
from core.services.threshold_tracker import CrowdfundThresholdTracker


@pytest.fixture
def tracker(emitter):
    return CrowdfundThresholdTracker(emitter=emitter)


class TestRegisterVote:

    def test_upvote_then_duplicate_then_downvote(self, tracker, idea_project, backer):
        """Second identical vote is an error; switching direction updates the tally."""
        # Act
        vote, created = tracker.register_vote(idea_project.pk, backer, 1)

        # Assert
        assert created
        threshold = CrowdfundThreshold.objects.get(project=idea_project)
        assert (threshold.upvotes, threshold.downvotes, threshold.total_votes) == (1, 0, 1)

        with pytest.raises(PreconditionFailed, match="already cast this vote"):
            tracker.register_vote(idea_project.pk, backer, 1)

        vote, created = tracker.register_vote(idea_project.pk, backer, -1)
        assert not created
        assert vote.value == -1
        threshold.refresh_from_db()
        assert (threshold.upvotes, threshold.downvotes, threshold.total_votes) == (0, 1, 1)
        assert Vote.objects.filter(project=idea_project).count() == 1

    @pytest.mark.parametrize('direction', [0, 2, 'up', None, True, 1.0, '1'])
    def test_invalid_direction(self, tracker, idea_project, backer, direction):
        with pytest.raises(InvalidArgument):
            tracker.register_vote(idea_project.pk, backer, direction)

    def test_unknown_project(self, tracker, backer):
        import uuid
        with pytest.raises(NotFound):
            tracker.register_vote(uuid.uuid4(), backer, 1)

    def test_owner_cannot_vote(self, tracker, idea_project, creator):
        with pytest.raises(PreconditionFailed):
            tracker.register_vote(idea_project.pk, creator, 1)

    def test_project_without_threshold_is_not_voteable(self, tracker, validated_project, backer):
        with pytest.raises(PreconditionFailed):
            tracker.register_vote(validated_project.pk, backer, 1)


class TestThresholdTransitions:

    def test_threshold_met_promotes_project(self, tracker, idea_project, backer, second_backer, emitter):
        tracker.register_vote(idea_project.pk, backer, 1)
        tracker.register_vote(idea_project.pk, second_backer, -1)

        threshold = CrowdfundThreshold.objects.get(project=idea_project)
        idea_project.refresh_from_db()
        assert threshold.status == ThresholdStatus.THRESHOLD_MET
        assert threshold.threshold_met_at is not None
        assert idea_project.status == ProjectStatus.VALIDATED
        assert emitter.types().count('crowdfund.threshold_met') == 1

    def test_status_never_moves_backward(self, tracker, idea_project, backer, second_backer):
        tracker.register_vote(idea_project.pk, backer, 1)
        tracker.register_vote(idea_project.pk, second_backer, 1)

        tracker.remove_vote(idea_project.pk, backer)

        threshold = CrowdfundThreshold.objects.get(project=idea_project)
        assert threshold.total_votes == 1
        assert threshold.status == ThresholdStatus.THRESHOLD_MET

    def test_late_vote_expires_pending_threshold(self, tracker, idea_project, backer, emitter):
        CrowdfundThreshold.objects.filter(project=idea_project).update(
            vote_deadline=timezone.now() - timedelta(minutes=1)
        )

        tracker.register_vote(idea_project.pk, backer, 1)

        threshold = CrowdfundThreshold.objects.get(project=idea_project)
        assert threshold.status == ThresholdStatus.EXPIRED
        assert threshold.total_votes == 1
        assert 'crowdfund.expired' in emitter.types()


class TestRemoveVote:

    def test_remove_without_vote(self, tracker, idea_project, backer):
        with pytest.raises(NotFound):
            tracker.remove_vote(idea_project.pk, backer)

    def test_remove_recounts(self, tracker, idea_project, backer):
        tracker.register_vote(idea_project.pk, backer, -1)
        threshold = tracker.remove_vote(idea_project.pk, backer)
        assert (threshold.upvotes, threshold.downvotes, threshold.total_votes) == (0, 0, 0)


class TestExpirySweep:

    def test_expire_overdue(self, tracker, idea_project):
        CrowdfundThreshold.objects.filter(project=idea_project).update(
            vote_deadline=timezone.now() - timedelta(hours=1)
        )

        assert tracker.expire_overdue() == 1
        assert tracker.expire_overdue() == 0
        assert CrowdfundThreshold.objects.get(project=idea_project).status == ThresholdStatus.EXPIRED

    def test_management_command(self, idea_project, capsys):
        CrowdfundThreshold.objects.filter(project=idea_project).update(
            vote_deadline=timezone.now() - timedelta(hours=1)
        )

        call_command('expire_vote_thresholds')

        assert 'Expired 1 vote threshold(s)' in capsys.readouterr().out
        assert CrowdfundThreshold.objects.get(project=idea_project).status == ThresholdStatus.EXPIRED
