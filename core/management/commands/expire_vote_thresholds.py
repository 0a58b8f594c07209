import logging
from django.core.management.base import BaseCommand

from core.services.threshold_tracker import CrowdfundThresholdTracker

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Marks pending crowdfund vote thresholds whose deadline has passed as expired'

    def handle(self, *args, **options):
        expired = CrowdfundThresholdTracker().expire_overdue()
        logger.info(f'Expired {expired} vote threshold(s)')
        self.stdout.write(self.style.SUCCESS(f'Expired {expired} vote threshold(s)'))
