from datetime import timedelta

import pytest
from django.utils import timezone

from careboard.exceptions import DeleteNotAllowed, InvalidTransition, NotFound, PermissionDenied, TransientStoreError, UnresolvedCategory
from careboard.models import PARTITION_MODELS, Category, ClinicalAuditActionPlan, ResidentAuditActionPlan, Status
from careboard.services import board as board_module
from careboard.services.board import ActionPlanBoard, Actor, BoardSession
from careboard.services.ports import build_ports
from careboard.services.records import ActionPlan

pytestmark = pytest.mark.django_db

CARER = Actor(identity='carer1@example.com', display_name='Alex Byrne', scope_id='org1', role='carer')
MANAGER = Actor(identity='manager1@example.com', display_name='Morgan Hale', scope_id='org1', role='manager')
OTHER_HOME_MANAGER = Actor(identity='boss@elsewhere.example', scope_id='org9', role='manager')


@pytest.fixture
def board():
    return ActionPlanBoard()


def test_actor_from_user(carer):
    actor = Actor.from_user(carer)
    assert actor.identity == 'carer1@example.com'
    assert actor.display_name == 'Alex Byrne'
    assert actor.scope_id == 'org1'
    assert not actor.can_manage


def test_aggregate_merges_every_partition(board, make_plan):
    for category in Category:
        make_plan(category)
    agg = board.get_aggregate(CARER)
    assert agg.ready
    assert sorted(p.category for p in agg.items) == sorted(Category)


def test_plan_both_assigned_and_created_appears_once(board, make_plan):
    make_plan(Category.RESIDENT, assigned_to=CARER.identity, created_by=CARER.identity)
    agg = board.get_aggregate(CARER)
    assert len(agg.items) == 1


def test_scoped_partition_hides_other_organisations(board, make_plan):
    make_plan(Category.CLINICAL, organization_ref='org2')
    make_plan(Category.ENVIRONMENT, organization_ref='org2')
    agg = board.get_aggregate(CARER)
    assert [p.category for p in agg.items] == [Category.ENVIRONMENT]


def test_failing_partition_keeps_board_not_ready(make_plan, monkeypatch):
    make_plan(Category.RESIDENT)
    ports = build_ports()

    def unavailable(*args, **kwargs):
        raise TransientStoreError()

    monkeypatch.setattr(ports[Category.GOVERNANCE], 'list_by_assignee', unavailable)
    agg = ActionPlanBoard(ports=ports).get_aggregate(CARER)
    assert not agg.ready
    assert agg.errors == {'governance:assigned': 'transient_error'}
    assert len(agg.items) == 1


def test_overdue_carefile_plan(board, make_plan):
    make_plan(Category.CAREFILE, due_date=timezone.now() - timedelta(days=1))
    agg = board.get_aggregate(CARER)
    plan = agg.buckets[Status.PENDING][0]
    assert plan.category == Category.CAREFILE
    assert agg.is_overdue(plan)


def test_get_plan_requires_involvement(board, make_plan):
    row = make_plan(Category.CLINICAL, assigned_to='other@example.com')
    with pytest.raises(PermissionDenied):
        board.get_plan(CARER, 'clinical', row.pk)
    assert board.get_plan(MANAGER, 'clinical', row.pk).id == str(row.pk)


def test_update_status_goes_to_owning_partition_and_clears_selection(board, make_plan):
    row = make_plan(Category.CLINICAL)
    session = BoardSession(actor=CARER)
    board.select(session, 'clinical', row.pk)
    updated = board.update_status(session, Status.COMPLETED, 'All staff re-trained')
    assert updated.status == Status.COMPLETED
    assert session.selected is None
    assert session.last_error is None
    row.refresh_from_db()
    assert row.status == Status.COMPLETED
    assert row.latest_comment == 'All staff re-trained'


def test_failed_update_keeps_selection_for_retry(board, make_plan):
    row = make_plan(Category.CLINICAL, status=Status.COMPLETED)
    session = BoardSession(actor=CARER)
    board.select(session, 'clinical', row.pk)
    with pytest.raises(InvalidTransition) as info:
        board.update_status(session, Status.PENDING)
    assert session.selected is not None
    assert session.last_error is info.value


def test_update_without_selection(board):
    with pytest.raises(NotFound):
        board.update_status(BoardSession(actor=CARER), Status.COMPLETED)


def test_delete_requires_completed_status(board, make_plan):
    row = make_plan(Category.RESIDENT, status=Status.IN_PROGRESS)
    session = BoardSession(actor=CARER)
    with pytest.raises(DeleteNotAllowed):
        board.request_delete(session, 'resident', row.pk)
    assert session.pending_delete is None
    assert ResidentAuditActionPlan.objects.filter(pk=row.pk).exists()


def test_delete_rechecks_stored_status(board, make_plan):
    row = make_plan(Category.RESIDENT, status=Status.COMPLETED)
    session = BoardSession(actor=CARER)
    board.request_delete(session, 'resident', row.pk)
    # another writer changed the plan since it was selected
    ResidentAuditActionPlan.objects.filter(pk=row.pk).update(status=Status.IN_PROGRESS)
    with pytest.raises(DeleteNotAllowed):
        board.delete(session)
    assert session.pending_delete is not None


def test_delete_completed_plan(board, make_plan):
    row = make_plan(Category.CLINICAL, status=Status.COMPLETED)
    session = BoardSession(actor=CARER)
    board.request_delete(session, 'clinical', row.pk)
    board.delete(session)
    assert not ClinicalAuditActionPlan.objects.filter(pk=row.pk).exists()
    assert session.pending_delete is None


def test_delete_with_unknown_category_touches_nothing(board, make_plan):
    rows = [make_plan(c, status=Status.COMPLETED) for c in Category]
    session = BoardSession(actor=CARER)
    with pytest.raises(UnresolvedCategory):
        board.request_delete(session, 'kitchen', rows[0].pk)
    assert isinstance(session.last_error, UnresolvedCategory)
    assert sum(model.objects.count() for model in PARTITION_MODELS.values()) == len(rows)


def test_managers_only_reach_their_own_organisation(board, make_plan):
    row = make_plan(Category.CLINICAL, assigned_to='other@example.com', created_by='other@example.com')
    assert board.get_plan(MANAGER, 'clinical', row.pk).id == str(row.pk)
    with pytest.raises(PermissionDenied):
        board.get_plan(OTHER_HOME_MANAGER, 'clinical', row.pk)
    superuser = Actor(identity='root@example.com', role='admin', is_superuser=True)
    assert board.get_plan(superuser, 'clinical', row.pk).id == str(row.pk)


def test_manager_of_another_home_cannot_delete(board, make_plan):
    row = make_plan(Category.CLINICAL, status=Status.COMPLETED)
    session = BoardSession(actor=OTHER_HOME_MANAGER)
    with pytest.raises(PermissionDenied):
        board.request_delete(session, 'clinical', row.pk)
    assert session.pending_delete is None

    # a stale selection is checked against the stored row as well
    session.pending_delete = ActionPlan.from_record(row)
    with pytest.raises(PermissionDenied):
        board.delete(session)
    assert isinstance(session.last_error, PermissionDenied)
    assert ClinicalAuditActionPlan.objects.filter(pk=row.pk).exists()


def test_delete_of_held_plan_with_unknown_category(board, make_plan):
    row = make_plan(Category.RESIDENT, status=Status.COMPLETED)
    held = ActionPlan(id=str(row.pk), category='kitchen', status=Status.COMPLETED,
                      priority='Medium', description=row.description,
                      assigned_to=CARER.identity, organization_ref='org1')
    session = BoardSession(actor=CARER, pending_delete=held)
    with pytest.raises(UnresolvedCategory):
        board.delete(session)
    assert isinstance(session.last_error, UnresolvedCategory)
    assert session.pending_delete is held
    assert ResidentAuditActionPlan.objects.filter(pk=row.pk).exists()


def test_write_schedules_refresh_after_commit(board, make_plan, monkeypatch, django_capture_on_commit_callbacks):
    sent = []
    monkeypatch.setattr(board_module, 'broadcast_board_refresh',
                        lambda identities, **event: sent.append((set(identities), event)))
    row = make_plan(Category.CLINICAL)
    session = BoardSession(actor=CARER)
    board.select(session, 'clinical', row.pk)
    with django_capture_on_commit_callbacks(execute=True):
        board.update_status(session, Status.IN_PROGRESS)
    assert sent == [(
        {'carer1@example.com', 'manager1@example.com'},
        {'reason': 'status_updated', 'category': 'clinical', 'plan_id': str(row.pk)},
    )]


def test_open_board_acknowledges_unseen(board, make_plan):
    make_plan(Category.GOVERNANCE)
    make_plan(Category.GOVERNANCE)
    assert board.open_board(CARER)['governance'] == 2
    assert board.open_board(CARER)['governance'] == 0
    assert not any(p.is_new for p in board.get_aggregate(CARER).items)


def test_stats(board, make_plan):
    make_plan(Category.RESIDENT, priority='High')
    make_plan(Category.CLINICAL, status=Status.COMPLETED)
    stats = board.stats(CARER)
    assert stats['total'] == 2
    assert stats['completed'] == 1
    assert stats['high_priority'] == 1
