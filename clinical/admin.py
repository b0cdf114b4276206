"""
Django admin registrations.

Superusers can inspect workspaces, patients and the collaboration
records through ``/admin/``.  List displays favour the columns support
staff filter on when chasing a report from a ward.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    AuditEvent,
    CalculatorResult,
    ClinicalAlert,
    Handoff,
    HandoffChecklistItem,
    HandoffPatient,
    MonitoringConfig,
    Notification,
    NotificationPreference,
    Organization,
    OrganizationMember,
    Patient,
    PatientData,
    PatientTest,
    Protocol,
    Task,
    TaskChecklistItem,
    TaskComment,
    User,
    Workspace,
    WorkspaceMember,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'role', 'specialty', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_staff', 'is_superuser')
    fieldsets = BaseUserAdmin.fieldsets + (('Clinical', {'fields': ('role', 'specialty')}),)


class OrganizationMemberInline(admin.TabularInline):
    model = OrganizationMember
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'slug', 'created_at')
    search_fields = ('name', 'slug')
    inlines = [OrganizationMemberInline]


class WorkspaceMemberInline(admin.TabularInline):
    model = WorkspaceMember
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'organization', 'created_at', 'deleted_at')
    list_filter = ('organization',)
    search_fields = ('name', 'slug')
    inlines = [WorkspaceMemberInline]


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'workspace', 'workflow_state', 'assigned_to', 'admission_date', 'discharge_date')
    list_filter = ('workflow_state', 'workspace')
    search_fields = ('name', 'category')
    raw_id_fields = ('assigned_to', 'created_by')


@admin.register(PatientData)
class PatientDataAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'data_type', 'created_at')
    list_filter = ('data_type',)
    raw_id_fields = ('patient', 'created_by')


@admin.register(PatientTest)
class PatientTestAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'test_type', 'test_name', 'created_at')
    list_filter = ('test_type',)
    raw_id_fields = ('patient', 'created_by')


class TaskChecklistInline(admin.TabularInline):
    model = TaskChecklistItem
    extra = 0


class TaskCommentInline(admin.TabularInline):
    model = TaskComment
    extra = 0
    raw_id_fields = ('author',)


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'workspace', 'status', 'priority', 'assigned_to', 'due_date')
    list_filter = ('status', 'priority', 'category')
    search_fields = ('title', 'description')
    raw_id_fields = ('patient', 'created_by', 'assigned_to')
    inlines = [TaskChecklistInline, TaskCommentInline]


class HandoffPatientInline(admin.TabularInline):
    model = HandoffPatient
    extra = 0
    raw_id_fields = ('patient',)


class HandoffChecklistInline(admin.TabularInline):
    model = HandoffChecklistItem
    extra = 0
    raw_id_fields = ('patient', 'completed_by')


@admin.register(Handoff)
class HandoffAdmin(admin.ModelAdmin):
    list_display = ('id', 'workspace', 'from_user', 'to_user', 'status', 'ai_generated', 'created_at')
    list_filter = ('status', 'ai_generated')
    inlines = [HandoffPatientInline, HandoffChecklistInline]


@admin.register(Protocol)
class ProtocolAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'category', 'workspace', 'is_published', 'updated_at')
    list_filter = ('category', 'is_published')
    search_fields = ('title', 'content')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'type', 'severity', 'title', 'is_read', 'created_at')
    list_filter = ('type', 'severity', 'is_read')
    search_fields = ('title', 'user__username')


admin.site.register(NotificationPreference)


@admin.register(CalculatorResult)
class CalculatorResultAdmin(admin.ModelAdmin):
    list_display = ('id', 'calculator_type', 'score', 'risk_category', 'patient', 'created_at')
    list_filter = ('calculator_type', 'risk_category')


@admin.register(MonitoringConfig)
class MonitoringConfigAdmin(admin.ModelAdmin):
    list_display = ('patient', 'workspace', 'is_active', 'notify_on_critical', 'last_alert_at')
    raw_id_fields = ('patient',)


@admin.register(ClinicalAlert)
class ClinicalAlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'alert_type', 'severity', 'status', 'created_at')
    list_filter = ('status', 'severity', 'alert_type')
    raw_id_fields = ('patient',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
    search_fields = ('object_id', 'user__username')
