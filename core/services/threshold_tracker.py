import logging

from django.db import transaction as db_transaction
from django.db.models import Count, Q
from django.utils import timezone

from core.exceptions import InvalidArgument, NotFound, PreconditionFailed
from core.models import Project, ProjectStatus, Vote, CrowdfundThreshold, ThresholdStatus
from core.utils.helper import get_object_or_not_found
from core.utils.notification import default_emitter

logger = logging.getLogger(__name__)

VOTEABLE_STATUSES = (ProjectStatus.IDEA, ProjectStatus.VALIDATED)


class CrowdfundThresholdTracker:
    """
    Turns community votes on an idea-stage project into a go/no-go signal.

    Threshold status only ever moves forward: pending -> threshold_met or
    pending -> expired. Votes cast afterwards are still recorded.
    """

    def __init__(self, emitter=None):
        self.emitter = emitter or default_emitter

    def register_vote(self, project_id, voter, direction):
        if (
            isinstance(direction, bool)
            or not isinstance(direction, int)
            or direction not in (Vote.Direction.UP, Vote.Direction.DOWN)
        ):
            raise InvalidArgument("Vote value must be either 1 (upvote) or -1 (downvote)")

        with db_transaction.atomic():
            project = self._get_project(project_id)
            threshold = self._lock_threshold(project)
            if project.status not in VOTEABLE_STATUSES:
                raise PreconditionFailed("Project is not available for voting.")
            if project.owner_id == voter.pk:
                raise PreconditionFailed("You cannot vote on your own project")

            vote = Vote.objects.select_for_update().filter(project=project, voter=voter).first()
            created = vote is None
            if created:
                vote = Vote.objects.create(project=project, voter=voter, value=direction)
            elif vote.value == direction:
                raise PreconditionFailed("You have already cast this vote")
            else:
                vote.value = direction
                vote.save(update_fields=['value', 'updated_at'])

            self._recount(threshold)
            self._expire_if_overdue(threshold)
            self._evaluate(threshold, project)
            logger.info(
                f"Vote {direction:+d} by {voter.pk} on project {project.pk}: "
                f"{threshold.total_votes}/{threshold.threshold_votes} ({threshold.status})"
            )
            return vote, created

    def remove_vote(self, project_id, voter):
        with db_transaction.atomic():
            project = self._get_project(project_id)
            threshold = self._lock_threshold(project)
            deleted, _ = Vote.objects.filter(project=project, voter=voter).delete()
            if not deleted:
                raise NotFound("You have not voted on this project")
            self._recount(threshold)
            logger.info(f"Vote by {voter.pk} removed from project {project.pk}")
            return threshold

    def expire_overdue(self, now=None):
        """Flip every pending threshold whose deadline has passed to expired."""
        now = now or timezone.now()
        expired = 0
        candidates = CrowdfundThreshold.objects.filter(
            status=ThresholdStatus.PENDING,
            vote_deadline__lt=now,
        ).values_list('pk', flat=True)
        for pk in candidates:
            with db_transaction.atomic():
                threshold = CrowdfundThreshold.objects.select_for_update().select_related('project').get(pk=pk)
                if self._expire_if_overdue(threshold, now):
                    expired += 1
        return expired

    def _get_project(self, project_id):
        return get_object_or_not_found(Project.objects.select_related("owner"), "Project not found", pk=project_id)

    def _lock_threshold(self, project):
        try:
            return CrowdfundThreshold.objects.select_for_update().get(project=project)
        except CrowdfundThreshold.DoesNotExist:
            raise PreconditionFailed("Project is not open for community voting.")

    def _recount(self, threshold):
        counts = Vote.objects.filter(project_id=threshold.project_id).aggregate(
            up=Count('pk', filter=Q(value=Vote.Direction.UP)),
            down=Count('pk', filter=Q(value=Vote.Direction.DOWN)),
        )
        threshold.upvotes = counts['up']
        threshold.downvotes = counts['down']
        threshold.total_votes = counts['up'] + counts['down']
        threshold.save(update_fields=['upvotes', 'downvotes', 'total_votes', 'updated_at'])

    def _expire_if_overdue(self, threshold, now=None):
        now = now or timezone.now()
        if not threshold.is_pending or threshold.vote_deadline is None or threshold.vote_deadline >= now:
            return False
        threshold.status = ThresholdStatus.EXPIRED
        threshold.expired_at = now
        threshold.save(update_fields=['status', 'expired_at', 'updated_at'])
        self.emitter.emit(
            'crowdfund.expired',
            {'project_id': threshold.project_id, 'total_votes': threshold.total_votes},
            recipients=[threshold.project.owner],
        )
        return True

    def _evaluate(self, threshold, project):
        if not threshold.is_pending or threshold.total_votes < threshold.threshold_votes:
            return False
        threshold.status = ThresholdStatus.THRESHOLD_MET
        threshold.threshold_met_at = timezone.now()
        threshold.save(update_fields=['status', 'threshold_met_at', 'updated_at'])
        if project.status == ProjectStatus.IDEA:
            project.status = ProjectStatus.VALIDATED
            project.save(update_fields=['status', 'updated_at'])
        self.emitter.emit(
            'crowdfund.threshold_met',
            {
                'project_id': project.pk,
                'total_votes': threshold.total_votes,
                'message': f"{project.title} reached {threshold.threshold_votes} votes and is ready for a campaign.",
            },
            recipients=[project.owner],
        )
        return True
