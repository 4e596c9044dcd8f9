"""
Create the initial ADMIN account.
Run: python manage.py seed_admin
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from app.platform.accounts.models import User
from app.platform.rbac.constants import Roles


class Command(BaseCommand):
    help = 'Create the initial admin user from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Overrides SEED_ADMIN_EMAIL')
        parser.add_argument('--password', help='Overrides SEED_ADMIN_PASSWORD')

    def handle(self, *args, **options):
        email = (options.get('email') or settings.SEED_ADMIN_EMAIL or '').strip().lower()
        password = options.get('password') or settings.SEED_ADMIN_PASSWORD

        if not email:
            raise CommandError('No admin email configured (SEED_ADMIN_EMAIL).')

        existing = User.objects.filter(email__iexact=email).first()
        if existing:
            self.stdout.write(f'Admin user already exists: {existing.email}')
            return

        if not password:
            raise CommandError('SEED_ADMIN_PASSWORD must be set to create the admin user.')

        User.objects.create_user(
            email=email,
            password=password,
            name='Admin',
            role=Roles.ADMIN.value,
            is_staff=True,
        )
        self.stdout.write(self.style.SUCCESS(f'Created admin user: {email}'))
