from typing import Optional

from careboard.models import ActionPlanRecord, Notification, Status


def notify_status_change(record: ActionPlanRecord, *, old_status: str, actor_id: str,
                         actor_name: Optional[str] = None, comment: Optional[str] = None) -> Optional[Notification]:
    """Tell the plan's creator that someone else changed its status."""
    if not record.created_by or record.created_by == actor_id:
        return None
    who = actor_name or actor_id or 'An assignee'
    what = record.template_name or f"{record.CATEGORY} audit"
    if record.status == Status.COMPLETED:
        kind, title = 'action_plan_completed', 'Action Plan Completed'
        message = f'{who} completed the action plan for {what}: "{record.description}"'
    else:
        kind, title = 'action_plan_status_updated', 'Action Plan Status Updated'
        message = f'{who} updated the action plan status to "{record.status}" for {what}: "{record.description}"'
    if comment:
        message += f"\n\nComment: {comment}"
    return Notification.objects.create(
        recipient=record.created_by,
        sender=actor_id,
        sender_name=actor_name or '',
        kind=kind,
        title=title,
        message=message,
        metadata={
            'actionPlanId': str(record.pk),
            'auditCategory': record.CATEGORY,
            'oldStatus': old_status,
            'newStatus': record.status,
            'priority': record.priority,
        },
    )
