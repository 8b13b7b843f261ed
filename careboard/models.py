"""
Database models for the care-home action plan board.

Action plans are remediation tasks raised against audit findings.  Each
audit category keeps its plans in its own table (its *partition*); the
five concrete models below share one abstract base so that the board can
read and write them through a uniform port.  Users and organisations
mirror the identities the audit workflow stores on each plan.
"""
from __future__ import annotations

import uuid
from typing import ClassVar

from django.contrib.auth.models import AbstractUser
from django.db import models


class Category(models.TextChoices):
    """The closed set of audit categories; the routing key for every write."""
    RESIDENT = 'resident', 'Resident'
    CAREFILE = 'carefile', 'Care file'
    GOVERNANCE = 'governance', 'Governance'
    CLINICAL = 'clinical', 'Clinical'
    ENVIRONMENT = 'environment', 'Environment'


class Status(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETED = 'completed', 'Completed'


class Priority(models.TextChoices):
    LOW = 'Low', 'Low'
    MEDIUM = 'Medium', 'Medium'
    HIGH = 'High', 'High'


class Organization(models.Model):
    """A care home (or care group) that audits and staff belong to."""
    id = models.CharField(
        max_length=40,
        primary_key=True,
        help_text="Unique identifier for the organisation (e.g. 'org1')",
    )
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class User(AbstractUser):
    """Custom user model with a role and optional organisation binding.

    Action plans refer to staff by identity string (e-mail, falling back
    to username) rather than by foreign key, exactly as the audit
    workflow records them.
    """
    ROLE_CHOICES = [
        ('carer', 'Carer'),
        ('nurse', 'Nurse'),
        ('manager', 'Manager'),
        ('admin', 'Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='carer')
    organization = models.ForeignKey(
        Organization, null=True, blank=True, on_delete=models.SET_NULL, related_name='users', db_index=True
    )

    @property
    def identity(self) -> str:
        return self.email or self.username

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.identity

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class ActionPlanRecord(models.Model):
    """Fields shared by every audit category's action plan table.

    ``is_new`` drives the unseen badge and is cleared by the mark-viewed
    acknowledgement.  ``status_history`` keeps the status updates made
    against this plan on the record itself.  Overdue state is never
    stored; it is derived from ``due_date`` and ``status`` when read.
    """
    CATEGORY: ClassVar[str] = ''

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    audit_ref = models.CharField(max_length=64, blank=True, help_text="Audit response the plan was raised from")
    template_name = models.CharField(max_length=255, blank=True)
    description = models.TextField()
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    assigned_to = models.CharField(max_length=254, db_index=True)
    assigned_to_name = models.CharField(max_length=255, blank=True)
    created_by = models.CharField(max_length=254, db_index=True)
    created_by_name = models.CharField(max_length=255, blank=True)
    due_date = models.DateTimeField(null=True, blank=True)
    is_new = models.BooleanField(default=True)
    viewed_at = models.DateTimeField(null=True, blank=True)
    latest_comment = models.TextField(blank=True)
    status_history = models.JSONField(default=list, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    organization_ref = models.CharField(max_length=40, blank=True, db_index=True)
    team_ref = models.CharField(max_length=40, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __str__(self) -> str:
        return f"{self.CATEGORY}:{self.description[:30]} ({self.status})"


class ResidentAuditActionPlan(ActionPlanRecord):
    CATEGORY = Category.RESIDENT

    resident_ref = models.CharField(max_length=64, blank=True)


class CareFileAuditActionPlan(ActionPlanRecord):
    CATEGORY = Category.CAREFILE

    resident_ref = models.CharField(max_length=64, blank=True)
    care_file_reference = models.CharField(max_length=255, blank=True)


class GovernanceAuditActionPlan(ActionPlanRecord):
    CATEGORY = Category.GOVERNANCE


class ClinicalAuditActionPlan(ActionPlanRecord):
    CATEGORY = Category.CLINICAL


class EnvironmentAuditActionPlan(ActionPlanRecord):
    CATEGORY = Category.ENVIRONMENT


PARTITION_MODELS: dict[str, type[ActionPlanRecord]] = {
    Category.RESIDENT: ResidentAuditActionPlan,
    Category.CAREFILE: CareFileAuditActionPlan,
    Category.GOVERNANCE: GovernanceAuditActionPlan,
    Category.CLINICAL: ClinicalAuditActionPlan,
    Category.ENVIRONMENT: EnvironmentAuditActionPlan,
}


class Notification(models.Model):
    """A message for a plan's creator about changes made by the assignee."""
    KIND_CHOICES = (
        ('action_plan_status_updated', 'action_plan_status_updated'),
        ('action_plan_completed', 'action_plan_completed'),
    )
    recipient = models.CharField(max_length=254, db_index=True)
    sender = models.CharField(max_length=254, blank=True)
    sender_name = models.CharField(max_length=255, blank=True)
    kind = models.CharField(max_length=64, choices=KIND_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['recipient', 'is_read', 'created_at'], name='careboard_n_recipie_idx'),
        ]

    def __str__(self):
        return f"{self.kind}:{self.recipient}@{self.created_at:%F %T}"
