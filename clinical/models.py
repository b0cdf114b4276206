"""
Database models for the clinical workspace backend.

The models capture organizations and their workspaces, the staff bound
to them, patients with their loosely typed clinical records, and the
collaboration records built on top (tasks, shift handoffs, protocols,
notifications, calculator results and vital-sign alerts).  JSON fields
are used wherever the front-end stores free-form structured content so
that the API can return it unchanged.
"""
from __future__ import annotations

import datetime

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Custom user with a system-wide role.

    ``role`` only governs cross-workspace powers: ``super`` users can see
    every workspace, everyone else is scoped by :class:`WorkspaceMember`.
    """
    ROLE_CHOICES = [
        ('member', 'Member'),
        ('admin', 'Administrator'),
        ('super', 'Super Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='member')
    specialty = models.CharField(max_length=100, blank=True)

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Organization(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


MEMBER_STATUS_CHOICES = [
    ('active', 'Active'),
    ('invited', 'Invited'),
    ('inactive', 'Inactive'),
]


class OrganizationMember(models.Model):
    ROLE_CHOICES = [
        ('owner', 'Owner'),
        ('admin', 'Admin'),
        ('member', 'Member'),
    ]
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='organization_memberships')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='member')
    status = models.CharField(max_length=10, choices=MEMBER_STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('organization', 'user')]

    def __str__(self) -> str:
        return f"{self.user} in {self.organization} as {self.role}"


class Workspace(models.Model):
    """A tenant-scoped grouping of patients and staff (a ward or a team)."""
    organization = models.ForeignKey(
        Organization, null=True, blank=True, on_delete=models.CASCADE, related_name='workspaces'
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, blank=True)
    color = models.CharField(max_length=20, default='#3b82f6')
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='workspaces_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


class WorkspaceMember(models.Model):
    ROLE_CHOICES = [
        ('owner', 'Owner'),
        ('admin', 'Admin'),
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('resident', 'Resident'),
        ('observer', 'Observer'),
    ]
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='workspace_memberships')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='doctor')
    status = models.CharField(max_length=10, choices=MEMBER_STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('workspace', 'user')]

    def __str__(self) -> str:
        return f"{self.user} in {self.workspace} as {self.role}"


class Patient(models.Model):
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]
    WORKFLOW_CHOICES = [
        ('admission', 'Admission'),
        ('assessment', 'Assessment'),
        ('treatment', 'Treatment'),
        ('observation', 'Observation'),
        ('discharge_planning', 'Discharge planning'),
        ('discharged', 'Discharged'),
    ]
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='patients')
    name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    admission_date = models.DateTimeField(default=timezone.now)
    discharge_date = models.DateTimeField(null=True, blank=True)
    # Filtered on every board view
    workflow_state = models.CharField(max_length=20, choices=WORKFLOW_CHOICES, default='admission', db_index=True)
    category = models.CharField(max_length=100, blank=True)
    assigned_to = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='assigned_patients'
    )
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['workspace', 'workflow_state'], name='patient_ws_state_idx'),
        ]

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None and self.discharge_date is None

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


class PatientData(models.Model):
    """A free-form clinical record attached to a patient.

    The shape of ``content`` depends on ``data_type``: vital signs carry
    numeric measurements, history carries a ``conditions`` list,
    medications carry a ``name`` and so on.
    """
    DATA_TYPE_CHOICES = [
        ('demographics', 'Demographics'),
        ('anamnesis', 'Anamnesis'),
        ('vital_signs', 'Vital signs'),
        ('medications', 'Medications'),
        ('history', 'History'),
        ('notes', 'Notes'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='data')
    data_type = models.CharField(max_length=20, choices=DATA_TYPE_CHOICES)
    content = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'data_type', 'created_at'], name='patientdata_type_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.data_type} for patient {self.patient_id}"


class PatientTest(models.Model):
    TEST_TYPE_CHOICES = [
        ('laboratory', 'Laboratory'),
        ('imaging', 'Imaging'),
        ('other', 'Other'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='tests')
    test_type = models.CharField(max_length=20, choices=TEST_TYPE_CHOICES, default='laboratory')
    test_name = models.CharField(max_length=255, blank=True)
    results = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'test_type', 'created_at'], name='patienttest_type_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.test_name or self.test_type} for patient {self.patient_id}"


class Task(models.Model):
    """A clinical or administrative work item inside a workspace.

    Tasks may point at a patient, carry a checklist and comments, and are
    soft deleted so that the activity history survives.
    """
    PRIORITY_CHOICES = [
        ('urgent', 'Urgent'),
        ('high', 'High'),
        ('medium', 'Medium'),
        ('low', 'Low'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('on_hold', 'On hold'),
    ]
    CATEGORY_CHOICES = [
        ('clinical', 'Clinical'),
        ('administrative', 'Administrative'),
        ('lab', 'Lab'),
        ('imaging', 'Imaging'),
        ('medication', 'Medication'),
        ('consultation', 'Consultation'),
        ('discharge', 'Discharge'),
        ('other', 'Other'),
    ]
    OPEN_STATUSES = ('pending', 'in_progress', 'on_hold')

    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='tasks')
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='tasks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium', db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='clinical')
    created_by = models.ForeignKey(
        User, null=True, on_delete=models.SET_NULL, related_name='tasks_created'
    )
    assigned_to = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='tasks_assigned'
    )
    due_date = models.DateTimeField(null=True, blank=True, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    reminder_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    @property
    def is_overdue(self) -> bool:
        return bool(self.due_date and self.status in self.OPEN_STATUSES and self.due_date < timezone.now())

    def __str__(self) -> str:
        return f"{self.title} (#{self.id})"


class TaskChecklistItem(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='checklist_items')
    title = models.CharField(max_length=255)
    is_completed = models.BooleanField(default=False)
    position = models.PositiveIntegerField(default=0)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self) -> str:
        return self.title


class TaskComment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='task_comments')
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Comment on {self.task_id} by {self.author_id}"


class Handoff(models.Model):
    """A shift-change summary passed from one clinician to the next."""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending_review', 'Pending review'),
        ('completed', 'Completed'),
        ('archived', 'Archived'),
    ]
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='handoffs')
    from_user = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='handoffs_given')
    to_user = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='handoffs_received')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    summary = models.TextField(blank=True)
    content = models.JSONField(default=dict, blank=True)
    ai_generated = models.BooleanField(default=False)
    acknowledged_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='handoffs_acknowledged'
    )
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Handoff #{self.id} {self.from_user_id} -> {self.to_user_id}"


CHECKLIST_PRIORITY_CHOICES = [
    ('critical', 'Critical'),
    ('high', 'High'),
    ('medium', 'Medium'),
    ('low', 'Low'),
]


class HandoffPatient(models.Model):
    handoff = models.ForeignKey(Handoff, on_delete=models.CASCADE, related_name='patients')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='handoff_entries')
    summary = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=CHECKLIST_PRIORITY_CHOICES, default='medium')
    notes = models.TextField(blank=True)

    class Meta:
        unique_together = [('handoff', 'patient')]

    def __str__(self) -> str:
        return f"Patient {self.patient_id} in handoff {self.handoff_id}"


class HandoffChecklistItem(models.Model):
    CATEGORY_CHOICES = [
        ('patient_care', 'Patient care'),
        ('medication', 'Medication'),
        ('procedure', 'Procedure'),
        ('follow_up', 'Follow up'),
        ('other', 'Other'),
    ]
    handoff = models.ForeignKey(Handoff, on_delete=models.CASCADE, related_name='checklist_items')
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    title = models.CharField(max_length=255)
    priority = models.CharField(max_length=10, choices=CHECKLIST_PRIORITY_CHOICES, default='medium')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='patient_care')
    is_completed = models.BooleanField(default=False)
    completed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    completed_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return self.title


class Protocol(models.Model):
    """A clinical protocol or guideline; ``workspace=None`` means global."""
    workspace = models.ForeignKey(
        Workspace, null=True, blank=True, on_delete=models.CASCADE, related_name='protocols'
    )
    title = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    content = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    is_published = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.title


class ProtocolFavorite(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='protocol_favorites')
    protocol = models.ForeignKey(Protocol, on_delete=models.CASCADE, related_name='favorites')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('user', 'protocol')]


class Notification(models.Model):
    TYPE_CHOICES = [
        ('patient_created', 'Patient created'),
        ('patient_updated', 'Patient updated'),
        ('patient_assigned', 'Patient assigned'),
        ('patient_discharged', 'Patient discharged'),
        ('mention', 'Mention'),
        ('note_added', 'Note added'),
        ('ai_alert', 'Clinical alert'),
        ('ai_analysis_complete', 'Analysis complete'),
        ('critical_value', 'Critical value'),
        ('task_assigned', 'Task assigned'),
        ('task_due', 'Task due'),
        ('task_completed', 'Task completed'),
        ('assignment', 'Assignment'),
        ('workspace_invite', 'Workspace invite'),
        ('system', 'System'),
    ]
    SEVERITY_CHOICES = [
        ('critical', 'Critical'),
        ('high', 'High'),
        ('medium', 'Medium'),
        ('low', 'Low'),
        ('info', 'Info'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, null=True)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default='info')
    related_patient = models.ForeignKey(
        Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='notifications'
    )
    related_workspace = models.ForeignKey(
        Workspace, null=True, blank=True, on_delete=models.SET_NULL, related_name='notifications'
    )
    related_note_id = models.CharField(max_length=64, blank=True, null=True)
    data = models.JSONField(default=dict, blank=True)
    action_url = models.CharField(max_length=512, blank=True, null=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    sent_push = models.BooleanField(default=False)
    sent_email = models.BooleanField(default=False)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_read_created_idx'),
            models.Index(fields=['user', 'created_at'], name='notif_user_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.type} -> {self.user_id}: {self.title}"


class NotificationPreference(models.Model):
    """Per-user delivery preferences; created lazily with the defaults."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='notification_preferences')
    # Channels
    email = models.BooleanField(default=True)
    push = models.BooleanField(default=True)
    sms = models.BooleanField(default=False)
    # Types
    mention = models.BooleanField(default=True)
    assignment = models.BooleanField(default=True)
    critical_alerts = models.BooleanField(default=True)
    patient_updates = models.BooleanField(default=True)
    ai_alerts = models.BooleanField(default=True)
    # Quiet hours, may wrap midnight
    quiet_hours_enabled = models.BooleanField(default=False)
    quiet_hours_start = models.TimeField(default=datetime.time(22, 0))
    quiet_hours_end = models.TimeField(default=datetime.time(8, 0))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Preferences of {self.user_id}"


class CalculatorResult(models.Model):
    CALCULATOR_CHOICES = [
        ('gcs', 'Glasgow Coma Scale'),
        ('apache_ii', 'APACHE II'),
        ('sofa', 'SOFA'),
        ('qsofa', 'qSOFA'),
        ('wells', 'Wells Criteria'),
        ('chads2vasc', 'CHA2DS2-VASc'),
        ('hasbled', 'HAS-BLED'),
    ]
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='calculator_results')
    patient = models.ForeignKey(
        Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='calculator_results'
    )
    user = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='calculator_results')
    calculator_type = models.CharField(max_length=20, choices=CALCULATOR_CHOICES, db_index=True)
    input_data = models.JSONField(default=dict)
    score = models.FloatField(null=True, blank=True)
    score_interpretation = models.TextField(blank=True, null=True)
    risk_category = models.CharField(max_length=20, blank=True, null=True)
    recommendations = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['workspace', 'created_at'], name='calcresult_ws_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.calculator_type}={self.score} (patient {self.patient_id})"


class MonitoringConfig(models.Model):
    """Per-patient monitoring switches, thresholds and alert recipients.

    ``alert_thresholds`` maps a metric name to a dict with any of
    ``min``, ``max``, ``critical_min``, ``critical_max``; metrics that are
    not listed fall back to the default vital thresholds.
    ``notification_recipients`` is a list of ``{"user_id", "channels"}``.
    """
    patient = models.OneToOneField(Patient, on_delete=models.CASCADE, related_name='monitoring_config')
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='monitoring_configs')
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    auto_analysis_enabled = models.BooleanField(default=True)
    analysis_frequency_minutes = models.PositiveIntegerField(default=60)
    monitored_metrics = models.JSONField(default=list, blank=True)
    alert_thresholds = models.JSONField(default=dict, blank=True)
    notify_on_critical = models.BooleanField(default=True)
    notify_on_deterioration = models.BooleanField(default=True)
    notify_on_improvement = models.BooleanField(default=False)
    notification_recipients = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    last_alert_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Monitoring for patient {self.patient_id}"


class ClinicalAlert(models.Model):
    ALERT_TYPE_CHOICES = [
        ('critical_value', 'Critical value'),
        ('deterioration', 'Deterioration'),
        ('red_flag', 'Red flag'),
        ('trend_warning', 'Trend warning'),
        ('sepsis_risk', 'Sepsis risk'),
        ('early_warning', 'Early warning'),
        ('lab_critical', 'Lab critical'),
        ('vital_critical', 'Vital critical'),
    ]
    SEVERITY_CHOICES = [
        ('critical', 'Critical'),
        ('high', 'High'),
        ('medium', 'Medium'),
        ('low', 'Low'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('acknowledged', 'Acknowledged'),
        ('resolved', 'Resolved'),
        ('dismissed', 'Dismissed'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='alerts')
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name='alerts')
    alert_type = models.CharField(max_length=20, choices=ALERT_TYPE_CHOICES)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default='high')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    trigger_data = models.JSONField(default=dict, blank=True)
    urgency_level = models.PositiveSmallIntegerField(default=5)
    requires_immediate_action = models.BooleanField(default=False)
    status = models.CharField(max_length=15, choices=STATUS_CHOICES, default='active', db_index=True)
    acknowledged_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    resolved_at = models.DateTimeField(null=True, blank=True)
    resolution_notes = models.TextField(blank=True)
    dismissed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    dismissed_at = models.DateTimeField(null=True, blank=True)
    dismissal_reason = models.TextField(blank=True)
    notification_sent = models.BooleanField(default=False)
    notification_channels = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['workspace', 'status', 'created_at'], name='alert_ws_status_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.severity} {self.alert_type} for patient {self.patient_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
