"""
Management command to populate the database with demo data.

Creates one care home, a handful of staff and a spread of action plans in
every audit category, standing in for the audit workflow that normally
raises them.
"""
import random
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from careboard.models import PARTITION_MODELS, Category, Organization, Priority, Status, User


TEMPLATES = {
    Category.RESIDENT: ['Resident Experience', 'Dignity and Respect', 'Mealtime Experience'],
    Category.CAREFILE: ['Care Plan Review', 'Risk Assessments', 'Medication Profile'],
    Category.GOVERNANCE: ['Quality Assurance', 'Complaints Log', 'Staff Supervision'],
    Category.CLINICAL: ['Falls Analysis', 'Pressure Care', 'Infection Control'],
    Category.ENVIRONMENT: ['Fire Safety', 'Kitchen Hygiene', 'Maintenance Walkround'],
}

FINDINGS = [
    'Update the documentation and sign off with the resident',
    'Re-train staff on the agreed procedure',
    'Replace the missing equipment',
    'Review the findings with the unit lead',
    'Book a follow-up audit',
]


class Command(BaseCommand):
    help = 'Populate database with demo organisation, staff and action plans'

    def add_arguments(self, parser):
        parser.add_argument('--per-category', type=int, default=4, help='Plans to create per category')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')

        org = self.create_organization()
        staff = self.create_staff(org)
        created = self.create_action_plans(org, staff, options['per_category'], rng)

        self.stdout.write(self.style.SUCCESS(f'Demo data ready: {len(staff)} staff, {created} action plans'))

    def create_organization(self):
        org, _ = Organization.objects.get_or_create(id='org1', defaults={'name': 'Meadow View Care Home'})
        self.stdout.write(f'Organisation: {org.name}')
        return org

    def create_staff(self, org):
        staff_data = [
            {'username': 'manager1', 'email': 'manager1@meadowview.test', 'role': 'manager',
             'first_name': 'Morgan', 'last_name': 'Hale'},
            {'username': 'nurse1', 'email': 'nurse1@meadowview.test', 'role': 'nurse',
             'first_name': 'Sam', 'last_name': 'Okafor'},
            {'username': 'carer1', 'email': 'carer1@meadowview.test', 'role': 'carer',
             'first_name': 'Alex', 'last_name': 'Byrne'},
            {'username': 'carer2', 'email': 'carer2@meadowview.test', 'role': 'carer',
             'first_name': 'Jordan', 'last_name': 'Patel'},
        ]
        staff = []
        for data in staff_data:
            user, created = User.objects.get_or_create(
                username=data['username'],
                defaults={**data, 'organization': org, 'password': make_password('changeme123')},
            )
            staff.append(user)
            if created:
                self.stdout.write(f'Created user: {user.username} ({user.role})')
        return staff

    def create_action_plans(self, org, staff, per_category, rng):
        now = timezone.now()
        creator = staff[0]
        assignees = staff[1:]
        count = 0
        for category, model in PARTITION_MODELS.items():
            for i in range(per_category):
                assignee = assignees[(i + count) % len(assignees)]
                status = rng.choice(Status.values)
                template = TEMPLATES[category][i % len(TEMPLATES[category])]
                extra = {}
                if category in (Category.RESIDENT, Category.CAREFILE):
                    extra['resident_ref'] = f'res-{i + 1:03d}'
                if category == Category.CAREFILE:
                    extra['care_file_reference'] = f'CF-{i + 1:04d}'
                _, created = model.objects.get_or_create(
                    audit_ref=f'demo-{category}-{i + 1}',
                    defaults={
                        'template_name': template,
                        'description': rng.choice(FINDINGS),
                        'priority': rng.choice(Priority.values),
                        'status': status,
                        'assigned_to': assignee.identity,
                        'assigned_to_name': assignee.display_name,
                        'created_by': creator.identity,
                        'created_by_name': creator.display_name,
                        'due_date': now + timedelta(days=rng.randint(-10, 21)),
                        'completed_at': now if status == Status.COMPLETED else None,
                        'organization_ref': org.id,
                        **extra,
                    },
                )
                count += int(created)
            self.stdout.write(f'Action plans for {category.label}')
        return count
