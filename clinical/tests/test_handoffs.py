import json
from datetime import timedelta
from unittest import mock

import pytest
import requests
from django.urls import reverse
from django.utils import timezone

from clinical.models import ClinicalAlert, Handoff, Patient, PatientData, Task, Workspace, WorkspaceMember

pytestmark = pytest.mark.django_db


@pytest.fixture
def sick_patient(workspace, patient, doctor):
    PatientData.objects.create(patient=patient, data_type='vital_signs', created_by=doctor,
                               content={'heart_rate': 132, 'temperature': 38.6})
    ClinicalAlert.objects.create(patient=patient, workspace=workspace, alert_type='vital_critical',
                                 severity='critical', title='Tachycardia')
    Task.objects.create(workspace=workspace, patient=patient, title='Repeat lactate',
                        due_date=timezone.now() - timedelta(hours=1))
    return patient


def _generate(client, workspace, to_user, **extra):
    body = {'workspace_id': workspace.id, 'to_user': to_user.id}
    body.update(extra)
    return client.post(reverse('handoff_generate'), body, format='json')


def test_generate_draft_without_text_service(client_for, workspace, owner, doctor, sick_patient):
    Patient.objects.create(workspace=workspace, name='Stable Sam', workflow_state='observation')
    resp = _generate(client_for(doctor), workspace, owner)
    assert resp.status_code == 201
    data = resp.data['data']
    assert data['ai_generated'] is False
    assert data['status'] == 'draft'
    assert data['from_user'] == doctor.id
    assert data['summary'] == '2 active patient(s), 1 critical, 0 pending discharge.'

    by_id = {p['patient_id']: p for p in data['patients']}
    assert by_id[sick_patient.id]['priority'] == 'critical'
    assert 'John Carter (admission), 1 active alert(s), 1 open task(s)' == by_id[sick_patient.id]['summary']
    assert [c['priority'] for c in data['checklist']] == ['critical', 'high']
    assert data['checklist'][0]['title'] == 'Review critical alert: Tachycardia (John Carter)'

    context = next(p for p in data['content']['patients'] if p['patient_id'] == sick_patient.id)
    assert context['latest_vital_signs']['heart_rate'] == 132
    assert context['pending_tasks'][0]['is_overdue'] is True
    assert data['content']['overall_statistics']['stable_patients'] == 1


def test_generate_limited_to_selected_patients(client_for, workspace, owner, doctor, patient):
    other = Patient.objects.create(workspace=workspace, name='Other')
    resp = _generate(client_for(doctor), workspace, owner, patient_ids=[other.id])
    assert [p['patient_id'] for p in resp.data['data']['patients']] == [other.id]


def test_generate_requires_active_patients(client_for, workspace, owner, doctor):
    resp = _generate(client_for(doctor), workspace, owner)
    assert resp.status_code == 404
    assert not Handoff.objects.exists()


def test_generate_rejects_non_member_recipient(client_for, workspace, doctor, outsider, patient):
    resp = _generate(client_for(doctor), workspace, outsider)
    assert resp.status_code == 400
    assert 'to_user' in resp.data['error']['message']


def _completion(payload):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {'choices': [{'message': {'content': json.dumps(payload)}}]}
    return response


def test_generate_with_text_service(settings, client_for, workspace, owner, doctor, sick_patient):
    settings.OPENAI_API_KEY = 'test-key'
    settings.OPENAI_BASE_URL = 'https://llm.example.org/v1/'
    reply = {
        'summary': 'One unstable patient overnight.',
        'patient_summaries': [{'patient_id': sick_patient.id, 'summary': 'Septic picture, on fluids.',
                               'critical_items': ['lactate due']}],
    }
    with mock.patch('clinical.services.handoffs.requests.post', return_value=_completion(reply)) as post:
        resp = _generate(client_for(doctor), workspace, owner)

    assert resp.status_code == 201
    data = resp.data['data']
    assert data['ai_generated'] is True
    assert data['summary'] == 'One unstable patient overnight.'
    assert data['patients'][0]['summary'] == 'Septic picture, on fluids.'
    assert data['content']['patients'][0]['critical_items'] == ['lactate due']

    args, kwargs = post.call_args
    assert args[0] == 'https://llm.example.org/v1/chat/completions'
    assert kwargs['headers'] == {'Authorization': 'Bearer test-key'}
    assert kwargs['json']['response_format'] == {'type': 'json_object'}


def test_text_service_failure_saves_nothing(settings, client_for, workspace, owner, doctor, patient):
    settings.OPENAI_API_KEY = 'test-key'
    with mock.patch('clinical.services.handoffs.requests.post', side_effect=requests.ConnectionError('down')):
        resp = _generate(client_for(doctor), workspace, owner)
    assert resp.status_code == 502
    assert resp.data['error']['code'] == 'handoff_generation_failed'
    assert not Handoff.objects.exists()


def test_create_and_acknowledge(client_for, workspace, owner, doctor, patient):
    resp = client_for(doctor).post(reverse('handoffs_list'), {
        'workspace_id': workspace.id,
        'to_user': owner.id,
        'summary': 'Quiet night',
        'patients': [{'patient_id': patient.id, 'priority': 'high', 'notes': 'watch BP'}],
        'checklist': [{'title': 'Check BP at 06:00', 'patient_id': patient.id}],
    }, format='json')
    assert resp.status_code == 201
    handoff_id = resp.data['data']['id']
    item_id = resp.data['data']['checklist'][0]['id']

    assert client_for(doctor).post(reverse('handoff_acknowledge', args=[handoff_id])).status_code == 403
    ack = client_for(owner).post(reverse('handoff_acknowledge', args=[handoff_id]))
    assert ack.status_code == 200
    assert ack.data['data']['status'] == 'completed'
    assert ack.data['data']['acknowledged_by'] == owner.id

    toggled = client_for(owner).post(reverse('handoff_checklist_toggle', args=[handoff_id, item_id]))
    assert toggled.data['data']['is_completed'] is True
    assert toggled.data['data']['completed_by'] == owner.id


def test_create_rejects_checklist_patients_outside_workspace(client_for, workspace, owner, doctor, patient):
    other = Workspace.objects.create(name='Surgery', slug='surgery')
    foreign = Patient.objects.create(workspace=other, name='Elsewhere')
    body = {'workspace_id': workspace.id, 'to_user': owner.id,
            'patients': [{'patient_id': patient.id}]}

    for stray in (foreign.id, 999999):
        resp = client_for(doctor).post(reverse('handoffs_list'), {
            **body, 'checklist': [{'title': 'Follow up', 'patient_id': stray}],
        }, format='json')
        assert resp.status_code == 400
        assert resp.data['error']['code'] == 'invalid'
    assert not Handoff.objects.exists()

    ok = client_for(doctor).post(reverse('handoffs_list'), {
        **body, 'checklist': [{'title': 'Ward round'}],
    }, format='json')
    assert ok.status_code == 201
    assert ok.data['data']['checklist'][0]['patient_id'] is None


def test_only_author_or_admin_edits(client_for, make_user, workspace, owner, doctor):
    nurse = make_user('nurse1')
    WorkspaceMember.objects.create(workspace=workspace, user=nurse, role='nurse')
    handoff = Handoff.objects.create(workspace=workspace, from_user=doctor, to_user=nurse)
    url = reverse('handoff_detail', args=[handoff.id])

    assert client_for(nurse).patch(url, {'summary': 'x'}, format='json').status_code == 403
    assert client_for(doctor).patch(url, {'summary': 'Updated'}, format='json').data['data']['summary'] == 'Updated'
    assert client_for(owner).delete(url).status_code == 204
    assert not Handoff.objects.filter(id=handoff.id).exists()


def test_handoffs_hidden_from_other_workspaces(client_for, workspace, owner, doctor, outsider):
    handoff = Handoff.objects.create(workspace=workspace, from_user=doctor, to_user=owner)
    assert client_for(outsider).get(reverse('handoff_detail', args=[handoff.id])).status_code == 404
    listed = client_for(owner).get(reverse('handoffs_list'), {'mine': 'true'})
    assert [h['id'] for h in listed.data['data']] == [handoff.id]
