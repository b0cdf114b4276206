import datetime

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(
                    default=False,
                    help_text='Designates that this user has all permissions without explicitly assigning them.',
                    verbose_name='superuser status')),
                ('username', models.CharField(
                    error_messages={'unique': 'A user with that username already exists.'},
                    help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.',
                    max_length=150, unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(
                    default=False, help_text='Designates whether the user can log into this admin site.',
                    verbose_name='staff status')),
                ('is_active', models.BooleanField(
                    default=True,
                    help_text='Designates whether this user should be treated as active. '
                              'Unselect this instead of deleting accounts.',
                    verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(
                    choices=[('member', 'Member'), ('admin', 'Administrator'), ('super', 'Super Administrator')],
                    default='member', max_length=10)),
                ('specialty', models.CharField(blank=True, max_length=100)),
                ('groups', models.ManyToManyField(
                    blank=True,
                    help_text='The groups this user belongs to. A user will get all permissions granted to each '
                              'of their groups.',
                    related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(
                    blank=True, help_text='Specific permissions for this user.', related_name='user_set',
                    related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('slug', models.SlugField(max_length=100, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='OrganizationMember',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(
                    choices=[('owner', 'Owner'), ('admin', 'Admin'), ('member', 'Member')],
                    default='member', max_length=10)),
                ('status', models.CharField(
                    choices=[('active', 'Active'), ('invited', 'Invited'), ('inactive', 'Inactive')],
                    default='active', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='members',
                    to='clinical.organization')),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='organization_memberships',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'unique_together': {('organization', 'user')},
            },
        ),
        migrations.CreateModel(
            name='Workspace',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('slug', models.SlugField(blank=True, max_length=100)),
                ('color', models.CharField(default='#3b82f6', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('organization', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.CASCADE,
                    related_name='workspaces', to='clinical.organization')),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='workspaces_created', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='WorkspaceMember',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(
                    choices=[('owner', 'Owner'), ('admin', 'Admin'), ('doctor', 'Doctor'), ('nurse', 'Nurse'),
                             ('resident', 'Resident'), ('observer', 'Observer')],
                    default='doctor', max_length=10)),
                ('status', models.CharField(
                    choices=[('active', 'Active'), ('invited', 'Invited'), ('inactive', 'Inactive')],
                    db_index=True, default='active', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='members', to='clinical.workspace')),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='workspace_memberships',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'unique_together': {('workspace', 'user')},
            },
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('age', models.PositiveIntegerField(blank=True, null=True)),
                ('gender', models.CharField(
                    blank=True, choices=[('male', 'Male'), ('female', 'Female'), ('other', 'Other')],
                    max_length=10)),
                ('admission_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('discharge_date', models.DateTimeField(blank=True, null=True)),
                ('workflow_state', models.CharField(
                    choices=[('admission', 'Admission'), ('assessment', 'Assessment'), ('treatment', 'Treatment'),
                             ('observation', 'Observation'), ('discharge_planning', 'Discharge planning'),
                             ('discharged', 'Discharged')],
                    db_index=True, default='admission', max_length=20)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='patients', to='clinical.workspace')),
                ('assigned_to', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='assigned_patients', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='patients_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['workspace', 'workflow_state'], name='patient_ws_state_idx')],
            },
        ),
        migrations.CreateModel(
            name='PatientData',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('data_type', models.CharField(
                    choices=[('demographics', 'Demographics'), ('anamnesis', 'Anamnesis'),
                             ('vital_signs', 'Vital signs'), ('medications', 'Medications'),
                             ('history', 'History'), ('notes', 'Notes')],
                    max_length=20)),
                ('content', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='data', to='clinical.patient')),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['patient', 'data_type', 'created_at'],
                                         name='patientdata_type_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='PatientTest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('test_type', models.CharField(
                    choices=[('laboratory', 'Laboratory'), ('imaging', 'Imaging'), ('other', 'Other')],
                    default='laboratory', max_length=20)),
                ('test_name', models.CharField(blank=True, max_length=255)),
                ('results', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='tests', to='clinical.patient')),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['patient', 'test_type', 'created_at'],
                                         name='patienttest_type_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('priority', models.CharField(
                    choices=[('urgent', 'Urgent'), ('high', 'High'), ('medium', 'Medium'), ('low', 'Low')],
                    db_index=True, default='medium', max_length=10)),
                ('status', models.CharField(
                    choices=[('pending', 'Pending'), ('in_progress', 'In progress'), ('completed', 'Completed'),
                             ('cancelled', 'Cancelled'), ('on_hold', 'On hold')],
                    db_index=True, default='pending', max_length=20)),
                ('category', models.CharField(
                    choices=[('clinical', 'Clinical'), ('administrative', 'Administrative'), ('lab', 'Lab'),
                             ('imaging', 'Imaging'), ('medication', 'Medication'),
                             ('consultation', 'Consultation'), ('discharge', 'Discharge'), ('other', 'Other')],
                    default='clinical', max_length=20)),
                ('due_date', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('reminder_sent', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='clinical.workspace')),
                ('patient', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks',
                    to='clinical.patient')),
                ('created_by', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks_created',
                    to=settings.AUTH_USER_MODEL)),
                ('assigned_to', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='tasks_assigned', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='TaskChecklistItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('is_completed', models.BooleanField(default=False)),
                ('position', models.PositiveIntegerField(default=0)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('task', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='checklist_items',
                    to='clinical.task')),
            ],
            options={
                'ordering': ['position', 'id'],
            },
        ),
        migrations.CreateModel(
            name='TaskComment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('task', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='comments', to='clinical.task')),
                ('author', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='task_comments',
                    to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Handoff',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(
                    choices=[('draft', 'Draft'), ('pending_review', 'Pending review'), ('completed', 'Completed'),
                             ('archived', 'Archived')],
                    db_index=True, default='draft', max_length=20)),
                ('summary', models.TextField(blank=True)),
                ('content', models.JSONField(blank=True, default=dict)),
                ('ai_generated', models.BooleanField(default=False)),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='handoffs', to='clinical.workspace')),
                ('from_user', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='handoffs_given',
                    to=settings.AUTH_USER_MODEL)),
                ('to_user', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='handoffs_received',
                    to=settings.AUTH_USER_MODEL)),
                ('acknowledged_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='handoffs_acknowledged', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='HandoffPatient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('summary', models.TextField(blank=True)),
                ('priority', models.CharField(
                    choices=[('critical', 'Critical'), ('high', 'High'), ('medium', 'Medium'), ('low', 'Low')],
                    default='medium', max_length=10)),
                ('notes', models.TextField(blank=True)),
                ('handoff', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='patients', to='clinical.handoff')),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='handoff_entries',
                    to='clinical.patient')),
            ],
            options={
                'unique_together': {('handoff', 'patient')},
            },
        ),
        migrations.CreateModel(
            name='HandoffChecklistItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('priority', models.CharField(
                    choices=[('critical', 'Critical'), ('high', 'High'), ('medium', 'Medium'), ('low', 'Low')],
                    default='medium', max_length=10)),
                ('category', models.CharField(
                    choices=[('patient_care', 'Patient care'), ('medication', 'Medication'),
                             ('procedure', 'Procedure'), ('follow_up', 'Follow up'), ('other', 'Other')],
                    default='patient_care', max_length=20)),
                ('is_completed', models.BooleanField(default=False)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('handoff', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='checklist_items',
                    to='clinical.handoff')),
                ('patient', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to='clinical.patient')),
                ('completed_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Protocol',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('category', models.CharField(blank=True, db_index=True, max_length=100)),
                ('content', models.TextField(blank=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('is_published', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('workspace', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='protocols',
                    to='clinical.workspace')),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ProtocolFavorite',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='protocol_favorites',
                    to=settings.AUTH_USER_MODEL)),
                ('protocol', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='favorites',
                    to='clinical.protocol')),
            ],
            options={
                'unique_together': {('user', 'protocol')},
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(
                    choices=[('patient_created', 'Patient created'), ('patient_updated', 'Patient updated'),
                             ('patient_assigned', 'Patient assigned'), ('patient_discharged', 'Patient discharged'),
                             ('mention', 'Mention'), ('note_added', 'Note added'), ('ai_alert', 'Clinical alert'),
                             ('ai_analysis_complete', 'Analysis complete'), ('critical_value', 'Critical value'),
                             ('task_assigned', 'Task assigned'), ('task_due', 'Task due'),
                             ('task_completed', 'Task completed'), ('assignment', 'Assignment'),
                             ('workspace_invite', 'Workspace invite'), ('system', 'System')],
                    max_length=30)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField(blank=True, null=True)),
                ('severity', models.CharField(
                    choices=[('critical', 'Critical'), ('high', 'High'), ('medium', 'Medium'), ('low', 'Low'),
                             ('info', 'Info')],
                    default='info', max_length=10)),
                ('related_note_id', models.CharField(blank=True, max_length=64, null=True)),
                ('data', models.JSONField(blank=True, default=dict)),
                ('action_url', models.CharField(blank=True, max_length=512, null=True)),
                ('is_read', models.BooleanField(default=False)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('sent_push', models.BooleanField(default=False)),
                ('sent_email', models.BooleanField(default=False)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='notifications',
                    to=settings.AUTH_USER_MODEL)),
                ('related_patient', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='notifications', to='clinical.patient')),
                ('related_workspace', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='notifications', to='clinical.workspace')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_read_created_idx'),
                    models.Index(fields=['user', 'created_at'], name='notif_user_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='NotificationPreference',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.BooleanField(default=True)),
                ('push', models.BooleanField(default=True)),
                ('sms', models.BooleanField(default=False)),
                ('mention', models.BooleanField(default=True)),
                ('assignment', models.BooleanField(default=True)),
                ('critical_alerts', models.BooleanField(default=True)),
                ('patient_updates', models.BooleanField(default=True)),
                ('ai_alerts', models.BooleanField(default=True)),
                ('quiet_hours_enabled', models.BooleanField(default=False)),
                ('quiet_hours_start', models.TimeField(default=datetime.time(22, 0))),
                ('quiet_hours_end', models.TimeField(default=datetime.time(8, 0))),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name='notification_preferences',
                    to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='CalculatorResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('calculator_type', models.CharField(
                    choices=[('gcs', 'Glasgow Coma Scale'), ('apache_ii', 'APACHE II'), ('sofa', 'SOFA'),
                             ('qsofa', 'qSOFA'), ('wells', 'Wells Criteria'), ('chads2vasc', 'CHA2DS2-VASc'),
                             ('hasbled', 'HAS-BLED')],
                    db_index=True, max_length=20)),
                ('input_data', models.JSONField(default=dict)),
                ('score', models.FloatField(blank=True, null=True)),
                ('score_interpretation', models.TextField(blank=True, null=True)),
                ('risk_category', models.CharField(blank=True, max_length=20, null=True)),
                ('recommendations', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='calculator_results',
                    to='clinical.workspace')),
                ('patient', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='calculator_results', to='clinical.patient')),
                ('user', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='calculator_results',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['workspace', 'created_at'], name='calcresult_ws_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='MonitoringConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('auto_analysis_enabled', models.BooleanField(default=True)),
                ('analysis_frequency_minutes', models.PositiveIntegerField(default=60)),
                ('monitored_metrics', models.JSONField(blank=True, default=list)),
                ('alert_thresholds', models.JSONField(blank=True, default=dict)),
                ('notify_on_critical', models.BooleanField(default=True)),
                ('notify_on_deterioration', models.BooleanField(default=True)),
                ('notify_on_improvement', models.BooleanField(default=False)),
                ('notification_recipients', models.JSONField(blank=True, default=list)),
                ('is_active', models.BooleanField(default=True)),
                ('last_alert_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name='monitoring_config',
                    to='clinical.patient')),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='monitoring_configs',
                    to='clinical.workspace')),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ClinicalAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('alert_type', models.CharField(
                    choices=[('critical_value', 'Critical value'), ('deterioration', 'Deterioration'),
                             ('red_flag', 'Red flag'), ('trend_warning', 'Trend warning'),
                             ('sepsis_risk', 'Sepsis risk'), ('early_warning', 'Early warning'),
                             ('lab_critical', 'Lab critical'), ('vital_critical', 'Vital critical')],
                    max_length=20)),
                ('severity', models.CharField(
                    choices=[('critical', 'Critical'), ('high', 'High'), ('medium', 'Medium'), ('low', 'Low')],
                    default='high', max_length=10)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('trigger_data', models.JSONField(blank=True, default=dict)),
                ('urgency_level', models.PositiveSmallIntegerField(default=5)),
                ('requires_immediate_action', models.BooleanField(default=False)),
                ('status', models.CharField(
                    choices=[('active', 'Active'), ('acknowledged', 'Acknowledged'), ('resolved', 'Resolved'),
                             ('dismissed', 'Dismissed')],
                    db_index=True, default='active', max_length=15)),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('resolution_notes', models.TextField(blank=True)),
                ('dismissed_at', models.DateTimeField(blank=True, null=True)),
                ('dismissal_reason', models.TextField(blank=True)),
                ('notification_sent', models.BooleanField(default=False)),
                ('notification_channels', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='clinical.patient')),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='clinical.workspace')),
                ('acknowledged_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
                ('resolved_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
                ('dismissed_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['workspace', 'status', 'created_at'],
                                         name='alert_ws_status_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.CharField(blank=True, max_length=64, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
                ],
            },
        ),
    ]
