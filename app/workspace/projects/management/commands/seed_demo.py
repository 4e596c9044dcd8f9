"""
Fill the database with demo users, parameters, permissions, projects and
messages.
Run: python manage.py seed_demo --projects 250 --users 45
"""
import random
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from app.platform.accounts.models import User
from app.platform.flac.cache import get_permission_cache
from app.platform.flac.models import FieldPermission, ProjectParameter
from app.platform.rbac.constants import Roles
from app.workspace.inbox.models import Message, Notification
from app.workspace.projects.models import Project

DEMO_PASSWORD = 'demoseed123'

FIRST_NAMES = ['Alex', 'Jordan', 'Sam', 'Taylor', 'Morgan', 'Casey', 'Riley', 'Avery', 'Quinn', 'Reese', 'Jamie', 'Drew']
LAST_NAMES = ['Smith', 'Johnson', 'Garcia', 'Miller', 'Davis', 'Wilson', 'Anderson', 'Lee', 'Clark', 'Lewis']
PROJECT_PREFIXES = ['Dashboard', 'API', 'Mobile', 'Web', 'Backend', 'Auth', 'Billing', 'Reports', 'Search', 'Analytics']
MESSAGE_TITLES = ['Sprint planning update', 'Deployment completed', 'Meeting reminder', 'Release notes', 'Security patch applied']
CLIENT_NAMES = ['Acme Corp', 'Beta Inc', 'Gamma LLC', 'Delta Co', 'Zeta Industries']

# (key, label, type, options)
DEMO_PARAMETERS = [
    ('dueDate', 'Due Date', 'date', None),
    ('assignee', 'Assignee', 'text', None),
    ('priority', 'Priority', 'select', 'low,medium,high'),
    ('effort', 'Effort (pts)', 'number', None),
    ('cost', 'Cost', 'number', None),
    ('startDate', 'Start Date', 'date', None),
    ('endDate', 'End Date', 'date', None),
    ('department', 'Department', 'select', 'eng,design,product,qa,ops'),
    ('region', 'Region', 'select', 'us,eu,apac'),
    ('category', 'Category', 'select', 'feature,bug,chore'),
    ('risk', 'Risk', 'select', 'low,medium,high,critical'),
    ('owner', 'Owner', 'text', None),
    ('client', 'Client', 'text', None),
    ('budget', 'Budget', 'number', None),
    ('progress', 'Progress %', 'number', None),
    ('phase', 'Phase', 'select', 'discovery,design,dev,qa,launch'),
    ('tags', 'Tags', 'text', None),
    ('milestone', 'Milestone', 'text', None),
    ('version', 'Version', 'text', None),
    ('severity', 'Severity', 'select', 'P0,P1,P2,P3'),
]


class Command(BaseCommand):
    help = 'Seed demo data for local development'

    def add_arguments(self, parser):
        parser.add_argument('--projects', type=int, default=250, help='Number of projects to create')
        parser.add_argument('--users', type=int, default=45, help='Total number of users to reach')
        parser.add_argument('--messages', type=int, default=20, help='Number of messages to post')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data')

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])

        admin = self._ensure_admin()
        parameters = self._ensure_parameters()
        users = self._ensure_users(options['users'], rng)
        self._create_projects(options['projects'], parameters, users, rng)
        self._create_messages(options['messages'], [admin] + users, rng)

        get_permission_cache().clear()
        self.stdout.write(self.style.SUCCESS('Demo data ready.'))

    def _ensure_admin(self):
        email = (settings.SEED_ADMIN_EMAIL or 'admin@example.com').strip().lower()
        admin = User.objects.filter(email__iexact=email).first()
        if admin:
            return admin
        admin = User.objects.create_user(
            email=email,
            password=settings.SEED_ADMIN_PASSWORD or DEMO_PASSWORD,
            name='Admin',
            role=Roles.ADMIN.value,
            is_staff=True,
        )
        self.stdout.write(f'  Created admin user: {email}')
        return admin

    def _ensure_parameters(self):
        parameters = []
        for order, (key, label, field_type, options) in enumerate(DEMO_PARAMETERS):
            parameter, created = ProjectParameter.objects.get_or_create(
                key=key,
                defaults={'label': label, 'type': field_type, 'options': options, 'order': order},
            )
            parameters.append(parameter)
            if not created:
                continue
            for role in Roles:
                writer = role in (Roles.ADMIN, Roles.MANAGER)
                FieldPermission.objects.get_or_create(
                    parameter=parameter,
                    role=role.value,
                    defaults={'can_view': True, 'can_edit': writer, 'can_update': writer},
                )
        self.stdout.write(f'  Parameters ensured: {len(parameters)}')
        return parameters

    def _ensure_users(self, target, rng):
        users = list(User.objects.exclude(role=Roles.ADMIN.value))
        existing = User.objects.count()
        to_create = max(0, target - existing)
        for index in range(to_create):
            user = User.objects.create_user(
                email=f'user{existing + index}@demo.example.com',
                password=DEMO_PASSWORD,
                name=f'{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}',
                role=Roles.MANAGER.value if index < 5 else Roles.STAFF.value,
            )
            users.append(user)
        self.stdout.write(f'  Users created: {to_create}')
        return users

    def _random_value(self, parameter, users, rng):
        if parameter.key in ('assignee', 'owner'):
            return rng.choice(users).display_name if users else None
        if parameter.type == ProjectParameter.FieldType.DATE:
            day = timezone.now().date() + timedelta(days=rng.randint(-30, 90))
            return day.isoformat()
        if parameter.type == ProjectParameter.FieldType.NUMBER:
            if parameter.key == 'progress':
                return rng.randint(0, 100)
            if parameter.key in ('cost', 'budget'):
                return rng.randint(1000, 51000)
            return rng.randint(0, 20)
        if parameter.type == ProjectParameter.FieldType.SELECT:
            return rng.choice(parameter.option_list) if parameter.option_list else None
        if parameter.key == 'client':
            return rng.choice(CLIENT_NAMES)
        return f'{parameter.key}-{rng.randint(1, 99)}'

    def _create_projects(self, count, parameters, users, rng):
        projects = [
            Project(
                name=f'{rng.choice(PROJECT_PREFIXES)} project {index + 1}',
                status=rng.choice(Project.SUGGESTED_STATUSES),
                attributes={p.key: self._random_value(p, users, rng) for p in parameters},
            )
            for index in range(count)
        ]
        Project.objects.bulk_create(projects, batch_size=500)
        self.stdout.write(f'  Projects created: {count}')

    def _create_messages(self, count, senders, rng):
        recipients = list(User.objects.filter(is_active=True).values_list('pk', flat=True))
        for _ in range(count):
            message = Message.objects.create(
                sender=rng.choice(senders),
                title=rng.choice(MESSAGE_TITLES),
                body='Generated by seed_demo.',
                priority=rng.choice(list(Message.Priority.values)),
            )
            Notification.objects.bulk_create(
                [Notification(user_id=pk, message=message, read=rng.random() < 0.3) for pk in recipients]
            )
        self.stdout.write(f'  Messages created: {count}')
