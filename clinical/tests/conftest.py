import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinical.models import Patient, User, Workspace, WorkspaceMember


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and cached dashboards live in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(username, role='member', **extra):
        return User.objects.create_user(username=username, password='P@ssw0rd1', role=role, **extra)
    return _make


@pytest.fixture
def workspace(db):
    return Workspace.objects.create(name='ICU', slug='icu')


@pytest.fixture
def owner(make_user, workspace):
    u = make_user('owner1', email='owner1@example.org', first_name='Olive', last_name='Owner')
    WorkspaceMember.objects.create(workspace=workspace, user=u, role='owner')
    return u


@pytest.fixture
def doctor(make_user, workspace):
    u = make_user('doctor1', email='doctor1@example.org', first_name='Dana', last_name='Doctor')
    WorkspaceMember.objects.create(workspace=workspace, user=u, role='doctor')
    return u


@pytest.fixture
def observer(make_user, workspace):
    u = make_user('observer1')
    WorkspaceMember.objects.create(workspace=workspace, user=u, role='observer')
    return u


@pytest.fixture
def outsider(make_user):
    return make_user('outsider1')


@pytest.fixture
def patient(workspace, doctor, owner):
    return Patient.objects.create(workspace=workspace, name='John Carter', age=72, gender='male',
                                  assigned_to=doctor, created_by=owner)


@pytest.fixture
def client_for():
    def _client(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c
    return _client
