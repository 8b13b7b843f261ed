"""
Action plan board endpoints.

Every endpoint works on behalf of ``request.user``; the actor is never
taken from the request body.  Reads return the merged board aggregate
across all five audit categories.  Writes name the plan by category and
id and are routed by the dispatcher to the owning partition only.
Errors raised by the board are rendered by the project exception handler
as ``{"ok": false, "error": {...}}``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from careboard.serializers.action_plans import (
    PlanRefSerializer,
    UpdateStatusSerializer,
    serialize_aggregate,
    serialize_plan,
)
from careboard.services.board import ActionPlanBoard, Actor, BoardSession
from careboard.services.lifecycle import is_overdue


def _actor(request) -> Actor:
    return Actor.from_user(request.user)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def action_plan_board(request):
    aggregate = ActionPlanBoard().get_aggregate(_actor(request))
    return Response({'ok': True, 'data': serialize_aggregate(aggregate)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def action_plan_stats(request):
    return Response({'ok': True, 'data': ActionPlanBoard().stats(_actor(request))})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def action_plan_unseen(request):
    board = ActionPlanBoard()
    counts = board.tracker.unseen_counts(_actor(request).identity)
    return Response({'ok': True, 'data': {'categories': counts, 'total': sum(counts.values())}})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def action_plan_acknowledge(request):
    """Board opened: mark the actor's unseen plans as viewed."""
    acknowledged = ActionPlanBoard().open_board(_actor(request))
    return Response({'ok': True, 'data': {'categories': acknowledged}})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def action_plan_detail(request):
    s = PlanRefSerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    board = ActionPlanBoard()
    plan = board.get_plan(_actor(request), s.validated_data['category'], s.validated_data['id'])
    return Response({'ok': True, 'data': serialize_plan(plan, overdue=is_overdue(plan, board.clock()))})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def action_plan_update_status(request):
    s = UpdateStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    board = ActionPlanBoard()
    session = BoardSession(actor=_actor(request))
    board.select(session, vd['category'], vd['id'])
    plan = board.update_status(session, vd['status'], vd.get('comment') or None)
    return Response({'ok': True, 'data': serialize_plan(plan, overdue=is_overdue(plan, board.clock()))})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def action_plan_delete(request):
    s = PlanRefSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    board = ActionPlanBoard()
    session = BoardSession(actor=_actor(request))
    board.request_delete(session, s.validated_data['category'], s.validated_data['id'])
    board.delete(session)
    return Response({'ok': True})
