import pytest
from django.urls import reverse

from clinical.models import CalculatorResult, PatientData, Workspace, WorkspaceMember

pytestmark = pytest.mark.django_db


def test_auto_fill_from_latest_vitals(client_for, doctor, patient):
    PatientData.objects.create(patient=patient, data_type='vital_signs',
                               content={'respiratory_rate': 24, 'systolic_bp': 95, 'glasgow_coma_scale': 14})
    resp = client_for(doctor).get(reverse('calculator_auto_fill'),
                                  {'patient_id': patient.id, 'calculator_type': 'qsofa'})
    assert resp.status_code == 200
    data = resp.data['data']
    assert data['values'] == {'respiratory_rate': 24, 'systolic_bp': 95, 'altered_mentation': True}
    assert data['can_calculate'] is True
    assert data['missing_fields'] == []


def test_auto_fill_reports_missing_inputs(client_for, doctor, patient):
    resp = client_for(doctor).get(reverse('calculator_auto_fill'),
                                  {'patient_id': patient.id, 'calculator_type': 'gcs'})
    data = resp.data['data']
    assert data['values'] == {}
    assert data['can_calculate'] is False
    assert data['missing_fields'] == ['Glasgow Coma Scale']


def test_score_is_saved_with_details(client_for, workspace, doctor, patient):
    resp = client_for(doctor).post(reverse('calculators'), {
        'calculator_type': 'gcs',
        'patient_id': patient.id,
        'input_data': {'eye_response': 2, 'verbal_response': 2, 'motor_response': 4},
    }, format='json')
    assert resp.status_code == 201
    data = resp.data['data']
    assert data['score'] == 8
    assert data['risk_category'] == 'severe'
    assert data['workspace_id'] == workspace.id
    assert data['details'] == {'eye_response': 2, 'verbal_response': 2, 'motor_response': 4}

    history = client_for(doctor).get(reverse('calculators'), {'patient_id': patient.id}).data['data']
    assert [r['id'] for r in history] == [data['id']]
    assert 'details' not in history[0]


def test_unknown_calculator(client_for, workspace, doctor):
    resp = client_for(doctor).post(reverse('calculators'), {
        'calculator_type': 'ranson', 'workspace_id': workspace.id, 'input_data': {},
    }, format='json')
    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'unknown_calculator'
    assert not CalculatorResult.objects.exists()


def test_incomplete_input(client_for, workspace, doctor):
    resp = client_for(doctor).post(reverse('calculators'), {
        'calculator_type': 'qsofa', 'workspace_id': workspace.id, 'input_data': {'respiratory_rate': 30},
    }, format='json')
    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'calculator_input'
    assert 'systolic_bp' in resp.data['error']['message']


def test_workspace_or_patient_required(client_for, doctor):
    resp = client_for(doctor).post(reverse('calculators'), {'calculator_type': 'gcs', 'input_data': {}},
                                   format='json')
    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'invalid'


def test_patient_must_match_workspace(client_for, doctor, patient):
    other = Workspace.objects.create(name='Ward B')
    WorkspaceMember.objects.create(workspace=other, user=doctor, role='doctor')
    resp = client_for(doctor).post(reverse('calculators'), {
        'calculator_type': 'gcs', 'workspace_id': other.id, 'patient_id': patient.id,
        'input_data': {'eye_response': 4, 'verbal_response': 5, 'motor_response': 6},
    }, format='json')
    assert resp.status_code == 400


def test_history_hidden_from_outsiders(client_for, workspace, doctor, outsider):
    CalculatorResult.objects.create(workspace=workspace, user=doctor, calculator_type='gcs', score=15)
    assert client_for(outsider).get(reverse('calculators')).data['data'] == []
    assert client_for(outsider).get(reverse('calculators'), {'workspace_id': workspace.id}).status_code == 403
