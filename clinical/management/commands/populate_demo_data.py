"""
Management command to populate the database with demo data.

Creates one organization with an intensive care workspace, a handful of
staff accounts (password ``demo1234``), patients with vitals, labs and
history, open tasks and a few published protocols.  Re-running the
command reuses existing rows where they can be found by name.
"""
import random
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clinical.models import (
    Organization,
    OrganizationMember,
    Patient,
    PatientData,
    PatientTest,
    Protocol,
    Task,
    User,
    Workspace,
    WorkspaceMember,
)

DEMO_PASSWORD = 'demo1234'

STAFF = [
    # username, first, last, system role, workspace role, specialty
    ('dr.owner', 'Elif', 'Kaya', 'admin', 'owner', 'Intensive care'),
    ('dr.lee', 'Min', 'Lee', 'member', 'doctor', 'Internal medicine'),
    ('nurse.ana', 'Ana', 'Silva', 'member', 'nurse', ''),
    ('res.omar', 'Omar', 'Haddad', 'member', 'resident', 'Cardiology'),
    ('observer', 'Sam', 'Reed', 'member', 'observer', ''),
]

PATIENTS = [
    # name, age, gender, workflow state, history conditions, medication
    ('John Carter', 72, 'male', 'treatment', ['Heart failure', 'Hypertension'], 'Warfarin'),
    ('Maria Rossi', 65, 'female', 'observation', ['Diabetes mellitus type 2'], 'Metformin'),
    ('Ahmet Yilmaz', 58, 'male', 'assessment', ['Stroke (2019)'], 'Aspirin'),
    ('Grace Chen', 81, 'female', 'admission', ['Hypertension', 'Peripheral vascular disease'], 'Clopidogrel'),
    ('Tom Becker', 44, 'male', 'discharge_planning', [], 'Paracetamol'),
]

PROTOCOLS = [
    ('Sepsis bundle (hour-1)', 'infection', ['sepsis', 'antibiotics'],
     'Measure lactate, obtain blood cultures, give broad-spectrum antibiotics, '
     'begin 30 ml/kg crystalloid for hypotension or lactate >= 4 mmol/L.'),
    ('Atrial fibrillation anticoagulation', 'cardiology', ['af', 'anticoagulation'],
     'Calculate CHA2DS2-VASc and HAS-BLED before starting anticoagulation.'),
    ('Early warning escalation', 'nursing', ['news', 'escalation'],
     'Escalate to the responsible doctor when vital signs cross critical thresholds.'),
]

TASKS = [
    ('Review morning labs', 'lab', 'high'),
    ('Repeat blood cultures', 'lab', 'urgent'),
    ('Medication reconciliation', 'medication', 'medium'),
    ('Cardiology consult', 'consultation', 'medium'),
    ('Prepare discharge summary', 'discharge', 'low'),
]


class Command(BaseCommand):
    help = 'Populate the database with demo workspaces, staff, patients and tasks'

    def add_arguments(self, parser):
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible values.')

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')

        staff = self.create_staff()
        org, workspace = self.create_workspace(staff)
        patients = self.create_patients(workspace, staff, rng)
        self.create_tasks(workspace, patients, staff)
        self.create_protocols(workspace, staff[0])

        self.stdout.write(self.style.SUCCESS(
            f'Demo data ready: organization "{org.name}", workspace #{workspace.id}, '
            f'{len(staff)} staff, {len(patients)} patients (password: {DEMO_PASSWORD})'
        ))

    def create_staff(self):
        users = []
        for username, first, last, role, _, specialty in STAFF:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'first_name': first,
                    'last_name': last,
                    'email': f'{username}@example.org',
                    'role': role,
                    'specialty': specialty,
                    'password': make_password(DEMO_PASSWORD),
                },
            )
            users.append(user)
            if created:
                self.stdout.write(f'  user {username}')
        return users

    def create_workspace(self, staff):
        owner = staff[0]
        org, _ = Organization.objects.get_or_create(slug='demo-hospital', defaults={'name': 'Demo Hospital'})
        OrganizationMember.objects.get_or_create(organization=org, user=owner, defaults={'role': 'owner'})
        workspace, _ = Workspace.objects.get_or_create(
            organization=org,
            name='Intensive Care Unit',
            defaults={'slug': 'icu', 'color': '#ef4444', 'created_by': owner,
                      'description': 'Adult ICU, 12 beds'},
        )
        for user, (_, _, _, _, ws_role, _) in zip(staff, STAFF):
            WorkspaceMember.objects.get_or_create(workspace=workspace, user=user, defaults={'role': ws_role})
            if user != owner:
                OrganizationMember.objects.get_or_create(organization=org, user=user)
        return org, workspace

    def create_patients(self, workspace, staff, rng):
        now = timezone.now()
        doctors = [u for u, row in zip(staff, STAFF) if row[4] in ('owner', 'doctor', 'resident')]
        patients = []
        for i, (name, age, gender, state, conditions, medication) in enumerate(PATIENTS):
            patient, created = Patient.objects.get_or_create(
                workspace=workspace,
                name=name,
                defaults={
                    'age': age,
                    'gender': gender,
                    'workflow_state': state,
                    'category': 'ICU',
                    'assigned_to': doctors[i % len(doctors)],
                    'created_by': staff[0],
                    'admission_date': now - timedelta(days=rng.randint(1, 10)),
                },
            )
            patients.append(patient)
            if not created:
                continue
            if conditions:
                PatientData.objects.create(patient=patient, data_type='history', created_by=staff[0],
                                           content={'conditions': conditions})
            PatientData.objects.create(patient=patient, data_type='medications', created_by=staff[0],
                                       content={'name': medication, 'dose': 'per protocol'})
            # Two vitals sets so that trends are visible; the latest one is used by the calculators
            for hours_ago in (8, 1):
                PatientData.objects.create(
                    patient=patient,
                    data_type='vital_signs',
                    created_by=staff[2],
                    created_at=now - timedelta(hours=hours_ago),
                    content={
                        'systolic_bp': rng.randint(85, 160),
                        'diastolic_bp': rng.randint(50, 95),
                        'heart_rate': rng.randint(58, 125),
                        'respiratory_rate': rng.randint(12, 26),
                        'temperature': round(rng.uniform(36.1, 38.9), 1),
                        'oxygen_saturation': rng.randint(89, 99),
                        'glasgow_coma_scale': rng.choice([15, 15, 14, 13]),
                    },
                )
            PatientTest.objects.create(
                patient=patient,
                test_type='laboratory',
                test_name='Morning panel',
                created_by=staff[1],
                results={
                    'platelets': rng.randint(90, 320),
                    'bilirubin': round(rng.uniform(0.4, 2.5), 1),
                    'creatinine': round(rng.uniform(0.6, 2.4), 1),
                    'sodium': rng.randint(131, 146),
                    'potassium': round(rng.uniform(3.2, 5.4), 1),
                    'hematocrit': rng.randint(30, 46),
                    'white_blood_cells': round(rng.uniform(4.0, 17.0), 1),
                    'arterial_ph': round(rng.uniform(7.30, 7.46), 2),
                    'pao2': rng.randint(65, 110),
                    'fio2': rng.choice([0.21, 0.3, 0.4]),
                },
            )
        return patients

    def create_tasks(self, workspace, patients, staff):
        if Task.objects.filter(workspace=workspace).exists():
            return
        now = timezone.now()
        for i, (title, category, priority) in enumerate(TASKS):
            task = Task.objects.create(
                workspace=workspace,
                patient=patients[i % len(patients)],
                title=title,
                category=category,
                priority=priority,
                created_by=staff[0],
                assigned_to=staff[1 + i % (len(staff) - 2)],
                due_date=now + timedelta(hours=2 * i - 1),
            )
            task.checklist_items.create(title='Confirm with the patient record', position=0)

    def create_protocols(self, workspace, author):
        for title, category, tags, content in PROTOCOLS:
            Protocol.objects.get_or_create(
                title=title,
                defaults={'workspace': workspace, 'category': category, 'tags': tags,
                          'content': content, 'created_by': author},
            )
