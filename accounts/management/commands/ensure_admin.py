import os
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from loguru import logger

User = get_user_model()


class Command(BaseCommand):
    help = 'Create the salon admin account if none exists (uses SALON_ADMIN_* env vars)'

    def handle(self, *args, **options):
        if User.objects.filter(role=User.Role.ADMIN).exists():
            self.stdout.write('Admin account already exists, skipping.')
            return

        username = os.environ.get('SALON_ADMIN_USERNAME', 'admin')
        email = os.environ.get('SALON_ADMIN_EMAIL', 'admin@salon.local')
        password = os.environ.get('SALON_ADMIN_PASSWORD')

        if not password:
            self.stdout.write('SALON_ADMIN_PASSWORD not set, skipping admin creation.')
            return

        User.objects.create_superuser(
            username=username,
            email=email,
            password=password,
            first_name='Admin',
            last_name='User',
            role=User.Role.ADMIN,
        )
        logger.info(f"Admin account '{username}' created")
        self.stdout.write(f'Admin "{username}" created successfully.')
