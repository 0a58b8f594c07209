import logging

from django.db import transaction

logger = logging.getLogger(__name__)


EVENT_TITLES = {
    'funding.received': ('funding', "Funding Successful"),
    'funding.goal_met': ('funding', "Funding Goal Reached"),
    'campaign.approved': ('campaign', "Campaign Approved"),
    'campaign.rejected': ('campaign', "Campaign Rejected"),
    'crowdfund.threshold_met': ('crowdfund', "Vote Threshold Reached"),
    'crowdfund.expired': ('crowdfund', "Voting Period Ended"),
    'grant_application.submitted': ('grant', "New Grant Application"),
    'grant_application.milestones_revised': ('grant', "Application Milestones Revised"),
    'grant_application.reviewed': ('grant', "Grant Application Reviewed"),
    'grant_application.completed': ('grant', "Grant Application Completed"),
    'escrow.locked': ('escrow', "Funds Locked in Escrow"),
    'escrow.milestone_approved': ('escrow', "Milestone Approved"),
    'escrow.milestone_rejected': ('escrow', "Milestone Rejected"),
    'escrow.milestone_disputed': ('escrow', "Milestone Disputed"),
    'escrow.dispute_resolved': ('escrow', "Milestone Dispute Resolved"),
    'escrow.milestone_released': ('escrow', "Milestone Funds Released"),
}


class NotificationEmitter:
    """
    Fire-and-forget sink for lifecycle events.

    Delivery is deferred until the surrounding transaction commits and every
    failure is logged, so an emitter problem can never roll back or fail the
    financial write that produced the event.
    """

    def emit(self, event_type, payload, recipients=()):
        recipients = [user for user in recipients if user is not None]
        transaction.on_commit(lambda: self._deliver(event_type, payload, recipients))

    def _deliver(self, event_type, payload, recipients):
        try:
            self.deliver(event_type, payload, recipients)
        except Exception as e:
            logger.error(f"Failed to emit {event_type}: {e}")

    def deliver(self, event_type, payload, recipients):
        from core.models import Notification

        notification_type, title = EVENT_TITLES.get(event_type, ('custom', event_type))
        message = payload.get('message') or title
        data = {key: str(value) for key, value in payload.items()}
        for user in recipients:
            Notification.objects.create(
                user=user,
                event_type=event_type,
                title=title,
                message=message,
                type=notification_type,
                payload=data,
            )
        logger.info(f"Event {event_type} emitted to {len(recipients)} recipient(s): {data}")


default_emitter = NotificationEmitter()
