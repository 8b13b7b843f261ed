import itertools
from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone

from careboard.models import PARTITION_MODELS, Organization, User

_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def org(db):
    return Organization.objects.create(id='org1', name='Meadow View')


@pytest.fixture
def carer(db, org):
    return User.objects.create_user(username='carer1', email='carer1@example.com', password='pass12345',
                                    role='carer', organization=org, first_name='Alex', last_name='Byrne')


@pytest.fixture
def manager(db, org):
    return User.objects.create_user(username='manager1', email='manager1@example.com', password='pass12345',
                                    role='manager', organization=org, first_name='Morgan', last_name='Hale')


@pytest.fixture
def make_plan(db):
    """Create a plan row in the given category's table."""
    def _make(category, **fields):
        n = next(_seq)
        defaults = {
            'description': f'Action {n}',
            'template_name': 'Quarterly audit',
            'assigned_to': 'carer1@example.com',
            'assigned_to_name': 'Alex Byrne',
            'created_by': 'manager1@example.com',
            'created_by_name': 'Morgan Hale',
            'priority': 'Medium',
            'due_date': timezone.now() + timedelta(days=7),
            'organization_ref': 'org1',
        }
        defaults.update(fields)
        return PARTITION_MODELS[category].objects.create(**defaults)
    return _make
