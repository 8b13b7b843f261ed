"""
Error taxonomy for the action plan board and the unified API handler.

Every failure raised by a source port, the dispatcher or the board
view-model derives from :class:`ActionPlanError` and carries the HTTP
status and stable error code the API reports for it.
"""
from rest_framework import status
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response


class ActionPlanError(Exception):
    code = 'action_plan_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Action plan request failed'

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class NotFound(ActionPlanError):
    """The plan was deleted or moved between load and action."""
    code = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Action plan not found'


class PermissionDenied(ActionPlanError):
    code = 'permission_denied'
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You are not allowed to change this action plan'


class UnresolvedCategory(ActionPlanError):
    """The category tag maps to no partition; nothing was written."""
    code = 'unresolved_category'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Unknown action plan category'


class UnsupportedOperation(ActionPlanError):
    code = 'unsupported_operation'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Unknown action plan operation'


class InvalidTransition(ActionPlanError):
    code = 'invalid_transition'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Status change not allowed'


class DeleteNotAllowed(ActionPlanError):
    code = 'delete_not_allowed'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Only completed action plans can be deleted'


class TransientStoreError(ActionPlanError):
    """The store could not be reached; the same request may be retried."""
    code = 'transient_error'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Action plan store temporarily unavailable'


def api_exception_handler(exc, context):
    if isinstance(exc, ActionPlanError):
        return Response({'ok': False, 'error': {'code': exc.code, 'message': exc.message}}, status=exc.status_code)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
