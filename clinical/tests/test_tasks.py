from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone

from clinical.models import Notification, Task
from clinical.services.tasks import send_due_reminders

pytestmark = pytest.mark.django_db


def _create(client, workspace, **payload):
    body = {'workspace_id': workspace.id, 'title': 'Check potassium'}
    body.update(payload)
    return client.post(reverse('tasks_list'), body, format='json')


def test_create_task_with_checklist_notifies_assignee(client_for, workspace, owner, doctor, patient):
    resp = _create(client_for(owner), workspace, patient_id=patient.id, assigned_to=doctor.id,
                   priority='urgent', checklist=['Draw blood', '  ', 'Call lab'])
    assert resp.status_code == 201
    data = resp.data['data']
    assert data['patient_name'] == 'John Carter'
    assert [i['title'] for i in data['checklist']] == ['Draw blood', 'Call lab']
    assert [i['position'] for i in data['checklist']] == [0, 1]

    n = Notification.objects.get(user=doctor, type='task_assigned')
    assert n.data['task_id'] == data['id']
    assert n.action_url == f'/dashboard/patients/{patient.id}?tab=tasks'


def test_observer_cannot_create_tasks(client_for, workspace, observer):
    resp = _create(client_for(observer), workspace)
    assert resp.status_code == 403
    assert resp.data['error']['code'] == 'permission_denied'


def test_assignee_must_belong_to_workspace(client_for, workspace, owner, outsider):
    resp = _create(client_for(owner), workspace, assigned_to=outsider.id)
    assert resp.status_code == 400
    assert 'assigned_to' in resp.data['error']['message']


def test_list_filters_and_pagination(client_for, workspace, owner, doctor):
    now = timezone.now()
    Task.objects.create(workspace=workspace, title='Overdue', status='pending', due_date=now - timedelta(hours=2),
                        assigned_to=doctor)
    Task.objects.create(workspace=workspace, title='Later', status='in_progress', priority='high',
                        due_date=now + timedelta(days=1))
    Task.objects.create(workspace=workspace, title='Done', status='completed', due_date=now - timedelta(days=1))
    client = client_for(doctor)

    resp = client.get(reverse('tasks_list'), {'workspace_id': workspace.id, 'status': 'pending,in_progress'})
    assert {t['title'] for t in resp.data['data']} == {'Overdue', 'Later'}
    assert resp.data['pagination'] == {'page': 1, 'limit': 20, 'total': 2, 'total_pages': 1}

    resp = client.get(reverse('tasks_list'), {'is_overdue': 'true'})
    assert [t['title'] for t in resp.data['data']] == ['Overdue']
    assert resp.data['data'][0]['is_overdue'] is True

    resp = client.get(reverse('tasks_list'), {'assigned_to': doctor.id})
    assert [t['title'] for t in resp.data['data']] == ['Overdue']

    resp = client.get(reverse('tasks_list'), {'sort': 'due_date', 'limit': 1, 'page': 2})
    assert [t['title'] for t in resp.data['data']] == ['Overdue']
    assert resp.data['pagination']['total_pages'] == 3


def test_tasks_are_scoped_to_membership(client_for, workspace, owner, outsider):
    task = Task.objects.create(workspace=workspace, title='Private', created_by=owner)
    client = client_for(outsider)
    assert client.get(reverse('tasks_list')).data['data'] == []
    assert client.get(reverse('task_detail', args=[task.id])).status_code == 404


def test_completing_a_task_notifies_creator(client_for, workspace, owner, doctor):
    task = Task.objects.create(workspace=workspace, title='Chase CT report', created_by=owner, assigned_to=doctor)
    resp = client_for(doctor).patch(reverse('task_detail', args=[task.id]), {'status': 'completed'}, format='json')
    assert resp.status_code == 200
    assert resp.data['data']['completed_at'] is not None
    assert Notification.objects.filter(user=owner, type='task_completed').count() == 1

    # reopening clears the completion time
    resp = client_for(doctor).patch(reverse('task_detail', args=[task.id]), {'status': 'pending'}, format='json')
    assert resp.data['data']['completed_at'] is None


def test_checklist_and_comments(client_for, workspace, owner, doctor):
    task = Task.objects.create(workspace=workspace, title='Prepare discharge', created_by=owner)
    client = client_for(doctor)

    item = client.post(reverse('task_checklist', args=[task.id]), {'title': 'Letter'}, format='json').data['data']
    url = reverse('task_checklist_toggle', args=[task.id, item['id']])
    toggled = client.post(url, {}, format='json').data['data']
    assert toggled['is_completed'] is True
    assert toggled['completed_at'] is not None
    forced = client.post(url, {'is_completed': True}, format='json').data['data']
    assert forced['is_completed'] is True
    assert client.post(reverse('task_checklist_toggle', args=[task.id, 9999]), {}, format='json').status_code == 404

    resp = client.post(reverse('task_comments', args=[task.id]),
                       {'content': '<strong>Done</strong><script>alert(1)</script>'}, format='json')
    assert resp.status_code == 201
    assert resp.data['data']['content'] == '<strong>Done</strong>alert(1)'
    comments = client.get(reverse('task_comments', args=[task.id])).data['data']
    assert [c['author'] for c in comments] == [doctor.id]


def test_statistics(client_for, workspace, owner):
    now = timezone.now()
    Task.objects.create(workspace=workspace, title='a', priority='urgent', due_date=now - timedelta(minutes=5))
    Task.objects.create(workspace=workspace, title='b', status='completed', completed_at=now)
    Task.objects.create(workspace=workspace, title='c', deleted_at=now)

    stats = client_for(owner).get(reverse('task_statistics'), {'workspace_id': workspace.id}).data['data']
    assert stats['total'] == 2
    assert stats['by_status']['pending'] == 1
    assert stats['by_priority']['urgent'] == 1
    assert stats['overdue'] == 1
    assert stats['completed_today'] == 1


def test_due_reminders_sent_once(workspace, owner, doctor):
    now = timezone.now()
    soon = Task.objects.create(workspace=workspace, title='Soon', assigned_to=doctor, due_date=now + timedelta(minutes=30))
    Task.objects.create(workspace=workspace, title='Tomorrow', assigned_to=doctor, due_date=now + timedelta(days=1))
    Task.objects.create(workspace=workspace, title='Finished', assigned_to=doctor, status='completed',
                        due_date=now + timedelta(minutes=10))

    assert send_due_reminders(60, now=now) == [soon]
    assert send_due_reminders(60, now=now) == []
    soon.refresh_from_db()
    assert soon.reminder_sent is True
    assert Notification.objects.filter(user=doctor, type='task_due').count() == 1


def test_send_task_reminders_command(workspace, doctor):
    Task.objects.create(workspace=workspace, title='Soon', assigned_to=doctor,
                        due_date=timezone.now() + timedelta(minutes=15))
    out = StringIO()
    call_command('send_task_reminders', '--minutes', '30', stdout=out)
    assert 'Sent 1 reminders' in out.getvalue()
    assert Notification.objects.filter(user=doctor, type='task_due').exists()
