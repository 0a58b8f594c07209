import logging

from django.conf import settings
from django.db import transaction as db_transaction

from core.exceptions import Forbidden, InvalidArgument, PreconditionFailed
from core.models import Project, ProjectStatus, CrowdfundThreshold
from core.utils.helper import get_object_or_not_found
from core.utils.ledger import to_positive_money, ensure_future

logger = logging.getLogger(__name__)


class ProjectService:
    @staticmethod
    def create_idea(owner, title, description='', threshold_votes=None, vote_deadline=None, team_members=()):
        if not title or not str(title).strip():
            raise InvalidArgument("Project title is required.")
        threshold_votes = threshold_votes or settings.CROWDFUND_DEFAULT_THRESHOLD
        if not 1 <= int(threshold_votes) <= 10000:
            raise InvalidArgument("Threshold votes must be between 1 and 10,000.")
        if vote_deadline is not None:
            ensure_future(vote_deadline, field='vote_deadline')

        with db_transaction.atomic():
            project = Project.objects.create(
                owner=owner,
                title=title.strip(),
                description=description or '',
                status=ProjectStatus.IDEA,
            )
            if team_members:
                project.team_members.set(team_members)
            CrowdfundThreshold.objects.create(
                project=project,
                threshold_votes=int(threshold_votes),
                vote_deadline=vote_deadline,
            )
        logger.info(f"Project idea {project.pk} created by {owner.pk}")
        return project

    @staticmethod
    def open_funding(project_id, actor, goal, end_date):
        goal = to_positive_money(goal, field='funding_goal')
        ensure_future(end_date, field='funding_end_date')
        with db_transaction.atomic():
            project = get_object_or_not_found(Project.objects.select_for_update(), "Project not found", pk=project_id)
            if project.owner_id != actor.pk:
                raise Forbidden("Only the project owner can open funding.")
            if project.status != ProjectStatus.VALIDATED:
                raise PreconditionFailed("Project must be validated before it can receive funding.")
            project.funding_goal = goal
            project.funding_end_date = end_date
            project.status = ProjectStatus.FUNDING
            project.save(update_fields=['funding_goal', 'funding_end_date', 'status', 'updated_at'])
        logger.info(f"Project {project.pk} opened for funding, goal {goal}")
        return project
