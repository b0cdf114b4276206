import pytest
from django.urls import reverse

from clinical.models import Protocol, Workspace

pytestmark = pytest.mark.django_db


@pytest.fixture
def library(workspace, owner):
    other = Workspace.objects.create(name='Elsewhere')
    return {
        'global': Protocol.objects.create(title='Sepsis bundle', category='infection', content='Give fluids'),
        'local': Protocol.objects.create(workspace=workspace, title='ICU sedation', category='sedation',
                                         created_by=owner),
        'draft': Protocol.objects.create(workspace=workspace, title='Draft weaning', is_published=False,
                                         created_by=owner),
        'foreign': Protocol.objects.create(workspace=other, title='Other ward protocol'),
    }


def test_visibility(client_for, library, owner, doctor):
    titles = [p['title'] for p in client_for(doctor).get(reverse('protocols_list')).data['data']]
    assert titles == ['ICU sedation', 'Sepsis bundle']
    # authors see their own drafts
    titles = [p['title'] for p in client_for(owner).get(reverse('protocols_list')).data['data']]
    assert titles == ['Draft weaning', 'ICU sedation', 'Sepsis bundle']


def test_search_and_category(client_for, library, doctor):
    client = client_for(doctor)
    assert [p['title'] for p in client.get(reverse('protocols_list'), {'q': 'fluids'}).data['data']] == \
        ['Sepsis bundle']
    assert [p['title'] for p in client.get(reverse('protocols_list'), {'category': 'sedation'}).data['data']] == \
        ['ICU sedation']


def test_favorite_toggle(client_for, library, doctor):
    client = client_for(doctor)
    url = reverse('protocol_favorite', args=[library['global'].id])
    assert client.post(url).data['data']['is_favorite'] is True
    favorites = client.get(reverse('protocols_list'), {'favorites': 'true'}).data['data']
    assert [p['id'] for p in favorites] == [library['global'].id]
    assert favorites[0]['is_favorite'] is True
    assert client.post(url).data['data']['is_favorite'] is False


def test_foreign_protocol_not_found(client_for, library, doctor):
    resp = client_for(doctor).get(reverse('protocol_detail', args=[library['foreign'].id]))
    assert resp.status_code == 404


def test_create_requires_manage_role(client_for, workspace, owner, doctor):
    body = {'workspace_id': workspace.id, 'title': 'Line care', 'content': '<p>Daily</p><script>x</script>',
            'tags': ['cvc', ' ']}
    assert client_for(doctor).post(reverse('protocols_list'), body, format='json').status_code == 403

    resp = client_for(owner).post(reverse('protocols_list'), body, format='json')
    assert resp.status_code == 201
    assert resp.data['data']['content'] == '<p>Daily</p>x'
    assert resp.data['data']['tags'] == ['cvc']


def test_global_protocols_need_super(client_for, owner, make_user):
    assert client_for(owner).post(reverse('protocols_list'), {'title': 'Global'}, format='json').status_code == 403
    admin = make_user('root', role='super')
    resp = client_for(admin).post(reverse('protocols_list'), {'title': 'Global'}, format='json')
    assert resp.status_code == 201
    assert resp.data['data']['workspace_id'] is None


def test_edit_rights(client_for, library, owner, doctor):
    url = reverse('protocol_detail', args=[library['local'].id])
    assert client_for(doctor).patch(url, {'category': 'x'}, format='json').status_code == 403
    resp = client_for(owner).patch(url, {'category': 'sedation-analgesia'}, format='json')
    assert resp.data['data']['category'] == 'sedation-analgesia'
    assert client_for(owner).delete(reverse('protocol_detail', args=[library['global'].id])).status_code == 403
    assert client_for(owner).delete(url).status_code == 204
