import logging
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.conf import settings

from users.models import UserType

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Creates the platform admin superuser if it does not already exist'

    def add_arguments(self, parser):
        parser.add_argument('--username', default=settings.SUPERUSER_USERNAME)
        parser.add_argument('--email', default=settings.SUPERUSER_EMAIL)

    def handle(self, *args, **options):
        username = options['username']
        email = options['email']
        password = settings.SUPERUSER_PASSWORD

        if not password:
            logger.warning('SUPERUSER_PASSWORD is not set; skipping superuser creation')
            self.stdout.write(self.style.WARNING('SUPERUSER_PASSWORD is not set, nothing to do'))
            return

        User = get_user_model()

        if not User.objects.filter(username=username).exists():
            User.objects.create_superuser(username=username, email=email, password=password, user_type=UserType.ADMIN)
            logger.info(f'Superuser {username} created successfully')
            self.stdout.write(self.style.SUCCESS(f'Superuser {username} created successfully'))
        else:
            logger.info(f'Superuser {username} already exists')
            self.stdout.write(self.style.SUCCESS(f'Superuser {username} already exists'))
