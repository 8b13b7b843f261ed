"""
URL mappings for the care home action plan API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``).
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view
from .views import health
from .views.action_plans import (
    action_plan_board,
    action_plan_stats,
    action_plan_unseen,
    action_plan_acknowledge,
    action_plan_detail,
    action_plan_update_status,
    action_plan_delete,
)


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login'),
    path('api/auth/jwt/refresh', jwt_refresh_view, name='jwt-refresh'),
    path('api/auth/jwt/logout', jwt_logout_view, name='jwt-logout'),
    # Action plan board
    path('api/action-plans/board', action_plan_board, name='action-plan-board'),
    path('api/action-plans/stats', action_plan_stats, name='action-plan-stats'),
    path('api/action-plans/unseen', action_plan_unseen, name='action-plan-unseen'),
    path('api/action-plans/acknowledge', action_plan_acknowledge, name='action-plan-acknowledge'),
    path('api/action-plans/detail', action_plan_detail, name='action-plan-detail'),
    path('api/action-plans/update-status', action_plan_update_status, name='action-plan-update-status'),
    path('api/action-plans/delete', action_plan_delete, name='action-plan-delete'),
]
