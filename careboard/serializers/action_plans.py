"""
Request validation and JSON shapes for the action plan endpoints.

Output keys are camelCase to match what the board front-end already reads.
The category is validated by the dispatcher rather than here so that an
unknown tag is reported as ``unresolved_category``.
"""
import bleach
from rest_framework import serializers

from careboard.models import Status
from careboard.services.aggregator import Aggregate
from careboard.services.records import ActionPlan


def _iso(value):
    return value.isoformat() if value else None


class PlanRefSerializer(serializers.Serializer):
    category = serializers.CharField(max_length=32)
    id = serializers.CharField(max_length=64)


class UpdateStatusSerializer(PlanRefSerializer):
    status = serializers.ChoiceField(choices=Status.choices)
    comment = serializers.CharField(required=False, allow_blank=True, max_length=2000)

    def validate_comment(self, v):
        return bleach.clean((v or '').strip(), tags=[], strip=True)


def serialize_plan(plan: ActionPlan, *, overdue: bool = False) -> dict:
    return {
        'id': plan.id,
        'category': plan.category.value,
        'status': plan.status.value,
        'priority': plan.priority,
        'description': plan.description,
        'templateName': plan.template_name,
        'assignedTo': plan.assigned_to,
        'assignedToName': plan.assigned_to_name,
        'createdBy': plan.created_by,
        'createdByName': plan.created_by_name,
        'dueDate': _iso(plan.due_date),
        'createdAt': _iso(plan.created_at),
        'updatedAt': _iso(plan.updated_at),
        'completedAt': _iso(plan.completed_at),
        'viewedAt': _iso(plan.viewed_at),
        'isNew': plan.is_new,
        'isOverdue': overdue,
        'latestComment': plan.latest_comment,
        'organizationId': plan.organization_ref or None,
        'statusHistory': plan.status_history,
    }


def serialize_aggregate(aggregate: Aggregate) -> dict:
    return {
        'ready': aggregate.ready,
        'buckets': {
            status.value: [serialize_plan(p, overdue=aggregate.is_overdue(p)) for p in plans]
            for status, plans in aggregate.buckets.items()
        },
        'overdueIds': sorted(aggregate.overdue_ids),
        'counts': aggregate.stats(),
        'errors': aggregate.errors,
        'pendingSources': aggregate.pending_sources,
    }
