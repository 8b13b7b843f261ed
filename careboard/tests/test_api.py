"""
Integration tests for the action plan board API.

These exercise authentication, the merged board read, routed status
updates, the delete boundary checks and the error envelope, using DRF's
APIClient within the APITestCase base class.
"""
from datetime import timedelta

from django.core.cache import cache
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from careboard.models import (
    CareFileAuditActionPlan,
    ClinicalAuditActionPlan,
    GovernanceAuditActionPlan,
    Organization,
    ResidentAuditActionPlan,
    User,
)


class ActionPlanAPITests(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.org = Organization.objects.create(id='org1', name='Meadow View')
        self.carer = User.objects.create_user(
            username='carer1', email='carer1@example.com', password='carerpass',
            role='carer', organization=self.org, first_name='Alex', last_name='Byrne',
        )
        self.manager = User.objects.create_user(
            username='manager1', email='manager1@example.com', password='managerpass',
            role='manager', organization=self.org,
        )
        self.outsider = User.objects.create_user(
            username='outsider', email='outsider@example.com', password='outsiderpass',
        )
        common = {
            'assigned_to': 'carer1@example.com',
            'assigned_to_name': 'Alex Byrne',
            'created_by': 'manager1@example.com',
            'created_by_name': 'manager1',
            'organization_ref': 'org1',
        }
        self.carefile_plan = CareFileAuditActionPlan.objects.create(
            description='Update falls risk assessment', priority='High',
            due_date=timezone.now() - timedelta(days=1), **common,
        )
        self.clinical_plan = ClinicalAuditActionPlan.objects.create(
            description='Re-audit pressure care', due_date=timezone.now() + timedelta(days=3), **common,
        )
        self.governance_plan = GovernanceAuditActionPlan.objects.create(description='File supervision notes', **common)
        self.done_plan = ResidentAuditActionPlan.objects.create(
            description='Mealtime feedback', status='completed', completed_at=timezone.now(), **common,
        )

    def auth(self, user) -> None:
        token, _ = Token.objects.get_or_create(user=user)
        self.client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')

    def test_login_returns_tokens(self) -> None:
        url = reverse('login')
        resp = self.client.post(url, {'username': 'carer1', 'password': 'carerpass'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['ok'])
        self.assertIn('token', resp.data)
        self.assertIn('jwt_access', resp.data)
        self.assertEqual(resp.data['user']['identity'], 'carer1@example.com')
        self.assertEqual(resp.data['organization']['id'], 'org1')

    def test_login_rejects_bad_password(self) -> None:
        resp = self.client.post(reverse('login'), {'username': 'carer1', 'password': 'wrong'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data['ok'])

    def test_board_requires_authentication(self) -> None:
        resp = self.client.get(reverse('action-plan-board'))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data['ok'])

    def test_board_buckets_and_overdue(self) -> None:
        self.auth(self.carer)
        resp = self.client.get(reverse('action-plan-board'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data['data']
        self.assertTrue(data['ready'])
        pending_ids = [p['id'] for p in data['buckets']['pending']]
        self.assertEqual(pending_ids[0], str(self.carefile_plan.pk))
        self.assertEqual(len(pending_ids), 3)
        self.assertEqual([p['id'] for p in data['buckets']['completed']], [str(self.done_plan.pk)])
        self.assertEqual(data['buckets']['in_progress'], [])
        self.assertEqual(data['overdueIds'], [str(self.carefile_plan.pk)])
        self.assertTrue(data['buckets']['pending'][0]['isOverdue'])
        self.assertEqual(data['buckets']['pending'][0]['category'], 'carefile')
        self.assertEqual(data['counts']['total'], 4)

    def test_stats(self) -> None:
        self.auth(self.carer)
        resp = self.client.get(reverse('action-plan-stats'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['overdue'], 1)
        self.assertEqual(resp.data['data']['high_priority'], 1)

    def test_unseen_and_acknowledge(self) -> None:
        self.auth(self.carer)
        resp = self.client.get(reverse('action-plan-unseen'))
        self.assertEqual(resp.data['data']['categories']['governance'], 1)
        self.assertEqual(resp.data['data']['total'], 4)

        resp = self.client.post(reverse('action-plan-acknowledge'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['categories']['clinical'], 1)

        resp = self.client.get(reverse('action-plan-unseen'))
        self.assertEqual(resp.data['data']['total'], 0)

    def test_detail(self) -> None:
        self.auth(self.carer)
        url = reverse('action-plan-detail')
        resp = self.client.get(url, {'category': 'clinical', 'id': str(self.clinical_plan.pk)})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['description'], 'Re-audit pressure care')

        resp = self.client.get(url, {'category': 'governance', 'id': str(self.clinical_plan.pk)})
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_detail_hidden_from_uninvolved_staff(self) -> None:
        self.auth(self.outsider)
        resp = self.client.get(reverse('action-plan-detail'),
                               {'category': 'clinical', 'id': str(self.clinical_plan.pk)})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_status_completes_clinical_plan(self) -> None:
        self.auth(self.carer)
        resp = self.client.post(reverse('action-plan-update-status'), {
            'category': 'clinical',
            'id': str(self.clinical_plan.pk),
            'status': 'completed',
            'comment': '<b>Done</b> and signed off',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['status'], 'completed')
        self.assertEqual(resp.data['data']['category'], 'clinical')
        self.clinical_plan.refresh_from_db()
        self.assertEqual(self.clinical_plan.status, 'completed')
        self.assertEqual(self.clinical_plan.latest_comment, 'Done and signed off')
        self.assertEqual(self.clinical_plan.status_history[-1]['updatedBy'], 'carer1@example.com')
        # other partitions untouched
        self.assertEqual(GovernanceAuditActionPlan.objects.get().status, 'pending')

    def test_update_status_backward_conflict(self) -> None:
        self.auth(self.carer)
        resp = self.client.post(reverse('action-plan-update-status'), {
            'category': 'resident', 'id': str(self.done_plan.pk), 'status': 'pending',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error']['code'], 'invalid_transition')

    def test_update_status_unknown_category(self) -> None:
        self.auth(self.carer)
        resp = self.client.post(reverse('action-plan-update-status'), {
            'category': 'kitchen', 'id': str(self.clinical_plan.pk), 'status': 'completed',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'unresolved_category')
        self.clinical_plan.refresh_from_db()
        self.assertEqual(self.clinical_plan.status, 'pending')

    def test_delete_only_completed(self) -> None:
        self.auth(self.carer)
        url = reverse('action-plan-delete')
        resp = self.client.post(url, {'category': 'clinical', 'id': str(self.clinical_plan.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error']['code'], 'delete_not_allowed')

        resp = self.client.post(url, {'category': 'resident', 'id': str(self.done_plan.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(ResidentAuditActionPlan.objects.exists())

        resp = self.client.post(url, {'category': 'resident', 'id': str(self.done_plan.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_unknown_category_mutates_nothing(self) -> None:
        self.auth(self.carer)
        resp = self.client.post(reverse('action-plan-delete'),
                                {'category': 'unknown', 'id': str(self.done_plan.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'unresolved_category')
        self.assertTrue(ResidentAuditActionPlan.objects.filter(pk=self.done_plan.pk).exists())

    def test_manager_can_delete_completed_plan_of_others(self) -> None:
        self.done_plan.created_by = 'someone@example.com'
        self.done_plan.save()
        self.auth(self.manager)
        resp = self.client.post(reverse('action-plan-delete'),
                                {'category': 'resident', 'id': str(self.done_plan.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_manager_of_another_home_is_forbidden(self) -> None:
        other_home = Organization.objects.create(id='org9', name='Harbour Court')
        boss = User.objects.create_user(
            username='boss', email='boss@elsewhere.example', password='bosspass',
            role='manager', organization=other_home,
        )
        self.auth(boss)
        resp = self.client.get(reverse('action-plan-detail'),
                               {'category': 'clinical', 'id': str(self.clinical_plan.pk)})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.post(reverse('action-plan-delete'),
                                {'category': 'resident', 'id': str(self.done_plan.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data['error']['code'], 'permission_denied')
        self.assertTrue(ResidentAuditActionPlan.objects.filter(pk=self.done_plan.pk).exists())

    def test_healthz(self) -> None:
        resp = self.client.get(reverse('healthz'))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['ok'])
