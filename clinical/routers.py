"""
URL mappings for the clinical API.

Every endpoint lives under ``/api/`` without a trailing slash.  Route
names match the view function names so that tests can ``reverse()``
them.
"""
from django.urls import include, path

from .auth_views import login_view, logout_view, me_view, refresh_view
from .views import (
    calculators,
    dashboard,
    handoffs,
    health,
    monitoring,
    notifications,
    patients,
    protocols,
    tasks,
    workspaces,
)

urlpatterns = [
    # django_prometheus serves /metrics
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', refresh_view, name='refresh_view'),
    path('api/auth/logout', logout_view, name='logout_view'),
    path('api/auth/me', me_view, name='me_view'),

    path('api/organizations', workspaces.organizations, name='organizations'),
    path('api/workspaces', workspaces.workspaces, name='workspaces'),
    path('api/workspaces/<int:workspace_id>', workspaces.workspace_detail, name='workspace_detail'),
    path('api/workspaces/<int:workspace_id>/members', workspaces.workspace_members, name='workspace_members'),
    path('api/workspaces/<int:workspace_id>/members/<int:user_id>', workspaces.workspace_member_detail,
         name='workspace_member_detail'),
    path('api/workspaces/<int:workspace_id>/dashboard', dashboard.workspace_dashboard, name='workspace_dashboard'),
    path('api/workspaces/<int:workspace_id>/patients', patients.workspace_patients, name='workspace_patients'),

    path('api/patients/<int:pk>', patients.patient_detail, name='patient_detail'),
    path('api/patients/<int:pk>/workflow', patients.patient_workflow, name='patient_workflow'),
    path('api/patients/<int:pk>/discharge', patients.patient_discharge, name='patient_discharge'),
    path('api/patients/<int:pk>/data', patients.patient_data, name='patient_data'),
    path('api/patients/<int:pk>/tests', patients.patient_tests, name='patient_tests'),
    path('api/patients/<int:pk>/monitoring', monitoring.patient_monitoring, name='patient_monitoring'),
    path('api/patients/<int:pk>/check-vitals', monitoring.patient_check_vitals, name='patient_check_vitals'),

    path('api/alerts', monitoring.alerts_list, name='alerts_list'),
    path('api/alerts/statistics', monitoring.alert_statistics, name='alert_statistics'),
    path('api/alerts/<int:pk>', monitoring.alert_action, name='alert_action'),

    path('api/tasks', tasks.tasks_list, name='tasks_list'),
    path('api/tasks/statistics', tasks.task_statistics, name='task_statistics'),
    path('api/tasks/<int:pk>', tasks.task_detail, name='task_detail'),
    path('api/tasks/<int:pk>/checklist', tasks.task_checklist, name='task_checklist'),
    path('api/tasks/<int:pk>/checklist/<int:item_id>', tasks.task_checklist_toggle, name='task_checklist_toggle'),
    path('api/tasks/<int:pk>/comments', tasks.task_comments, name='task_comments'),

    path('api/handoffs', handoffs.handoffs_list, name='handoffs_list'),
    path('api/handoffs/generate', handoffs.handoff_generate, name='handoff_generate'),
    path('api/handoffs/<int:pk>', handoffs.handoff_detail, name='handoff_detail'),
    path('api/handoffs/<int:pk>/acknowledge', handoffs.handoff_acknowledge, name='handoff_acknowledge'),
    path('api/handoffs/<int:pk>/checklist/<int:item_id>', handoffs.handoff_checklist_toggle,
         name='handoff_checklist_toggle'),

    path('api/protocols', protocols.protocols_list, name='protocols_list'),
    path('api/protocols/<int:pk>', protocols.protocol_detail, name='protocol_detail'),
    path('api/protocols/<int:pk>/favorite', protocols.protocol_favorite, name='protocol_favorite'),

    path('api/notifications', notifications.notifications_list, name='notifications_list'),
    path('api/notifications/read-all', notifications.notifications_read_all, name='notifications_read_all'),
    path('api/notifications/stats', notifications.notifications_stats, name='notifications_stats'),
    path('api/notifications/preferences', notifications.notification_preferences, name='notification_preferences'),
    path('api/notifications/<int:pk>', notifications.notification_detail, name='notification_detail'),
    path('api/notifications/<int:pk>/read', notifications.notification_read, name='notification_read'),

    path('api/calculators', calculators.calculators, name='calculators'),
    path('api/calculators/auto-fill', calculators.calculator_auto_fill, name='calculator_auto_fill'),
]
