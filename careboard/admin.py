"""
Django admin registrations for the careboard models.

Every partition table is registered with the same list configuration so
that staff can inspect plans per audit category at ``/admin/``.
"""

from django.contrib import admin

from .models import (
    PARTITION_MODELS,
    Notification,
    Organization,
    User,
)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at')
    search_fields = ('id', 'name')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'role', 'organization', 'is_staff', 'is_superuser')
    list_filter = ('role', 'organization')
    search_fields = ('username', 'email', 'first_name', 'last_name')


class ActionPlanAdmin(admin.ModelAdmin):
    list_display = ('description', 'status', 'priority', 'assigned_to', 'created_by', 'due_date', 'is_new')
    list_filter = ('status', 'priority', 'is_new')
    search_fields = ('description', 'template_name', 'assigned_to', 'created_by')
    readonly_fields = ('id', 'status_history', 'created_at', 'updated_at')
    ordering = ('-created_at',)


for model in PARTITION_MODELS.values():
    admin.site.register(model, ActionPlanAdmin)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'kind', 'title', 'is_read', 'created_at')
    list_filter = ('kind', 'is_read')
    search_fields = ('recipient', 'title')
