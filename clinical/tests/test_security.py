import pytest
from django.urls import reverse
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from clinical.models import Patient, User, WorkspaceMember

pytestmark = pytest.mark.django_db


def login(client, username, password):
    r = client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')
    assert r.status_code in (200, 400, 401, 429)
    return r


def test_no_role_bypass_in_login():
    client = APIClient()
    u = User.objects.create_user(username='u1', password='P@ssw0rd1')
    r = client.post(reverse('login_view'), {'username': 'u1', 'password': 'P@ssw0rd1', 'role': 'super'}, format='json')
    assert r.status_code == 200
    u.refresh_from_db()
    assert u.role == 'member'
    assert r.data['data']['user']['role'] == 'member'


def test_login_is_throttled():
    User.objects.create_user(username='u2', password='P@ssw0rd1')
    client = APIClient()
    codes = [login(client, 'u2', 'wrong').status_code for _ in range(11)]
    assert codes[:10] == [401] * 10
    assert codes[10] == 429


def test_legacy_token_header_authenticates(make_user):
    u = make_user('tok')
    token = Token.objects.create(user=u)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
    assert client.get(reverse('me_view')).data['data']['username'] == 'tok'
    client.credentials(HTTP_AUTHORIZATION='Token not-a-real-key')
    assert client.get(reverse('me_view')).status_code == 401


def test_inactive_member_loses_access(client_for, workspace, doctor, patient):
    WorkspaceMember.objects.filter(workspace=workspace, user=doctor).update(status='inactive')
    client = client_for(doctor)
    assert client.get(reverse('patient_detail', args=[patient.id])).status_code == 403
    assert client.get(reverse('workspaces')).data['data'] == []


def test_super_sees_every_workspace(client_for, make_user, workspace, patient):
    admin = make_user('root', role='super')
    client = client_for(admin)
    assert client.get(reverse('patient_detail', args=[patient.id])).status_code == 200
    assert [w['id'] for w in client.get(reverse('workspaces')).data['data']] == [workspace.id]


def test_markup_is_stripped_from_patient_fields(client_for, workspace, owner):
    resp = client_for(owner).post(reverse('workspace_patients', args=[workspace.id]),
                                  {'name': '<img src=x onerror=alert(1)>Eve', 'category': '<i>cardiac</i>'},
                                  format='json')
    assert resp.status_code == 201
    p = Patient.objects.get(id=resp.data['data']['id'])
    assert p.name == 'Eve'
    assert p.category == 'cardiac'


def test_markup_only_name_is_rejected(client_for, workspace, owner):
    resp = client_for(owner).post(reverse('workspace_patients', args=[workspace.id]),
                                  {'name': '<script></script>'}, format='json')
    assert resp.status_code == 400


def test_errors_use_envelope(client_for, doctor):
    resp = client_for(doctor).get(reverse('patient_detail', args=[999999]))
    assert resp.status_code == 404
    assert resp.data == {'ok': False, 'error': {'code': 'not_found', 'message': 'patient not found'}}
