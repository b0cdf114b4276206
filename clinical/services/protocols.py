"""Clinical protocols: search, CRUD and per-user favourites."""
from __future__ import annotations

from typing import Any, Mapping

import bleach
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework.exceptions import NotFound, PermissionDenied

from clinical.models import Protocol, ProtocolFavorite
from clinical.permissions import MANAGE_ROLES, is_super, membership_for
from clinical.services.audit import log_action

EDITABLE_FIELDS = ('title', 'category', 'content', 'tags', 'is_published')

# protocol bodies keep basic formatting markup
CONTENT_TAGS = ['p', 'br', 'b', 'i', 'em', 'strong', 'ul', 'ol', 'li', 'h2', 'h3', 'h4', 'code', 'blockquote']


def serialize_protocol(p: Protocol, *, favorite_ids=frozenset(), detail: bool = False) -> dict:
    data = {
        'id': p.id,
        'workspace_id': p.workspace_id,
        'title': p.title,
        'category': p.category or None,
        'tags': p.tags,
        'is_published': p.is_published,
        'is_favorite': p.id in favorite_ids,
        'created_by': p.created_by_id,
        'created_at': p.created_at.isoformat() if p.created_at else None,
        'updated_at': p.updated_at.isoformat() if p.updated_at else None,
    }
    if detail:
        data['content'] = p.content
    return data


def favorite_ids_for(user) -> set:
    return set(ProtocolFavorite.objects.filter(user=user).values_list('protocol_id', flat=True))


def _clean(values: Mapping[str, Any]) -> dict:
    fields = {f: values[f] for f in EDITABLE_FIELDS if f in values}
    if 'title' in fields:
        fields['title'] = bleach.clean((fields['title'] or '').strip(), strip=True)
    if 'category' in fields:
        fields['category'] = bleach.clean((fields['category'] or '').strip(), strip=True)
    if 'content' in fields:
        fields['content'] = bleach.clean(fields['content'] or '', tags=CONTENT_TAGS, strip=True)
    if 'tags' in fields:
        fields['tags'] = [str(t).strip() for t in fields['tags'] or [] if str(t).strip()]
    return fields


def visible_protocols(user, workspace_ids):
    """Global protocols plus those of the user's workspaces; drafts only for their authors."""
    qs = Protocol.objects.filter(Q(workspace__isnull=True) | Q(workspace_id__in=workspace_ids))
    return qs.filter(Q(is_published=True) | Q(created_by=user))


def search_protocols(user, workspace_ids, filters: Mapping[str, Any]):
    qs = visible_protocols(user, workspace_ids)
    if filters.get('workspace_id'):
        qs = qs.filter(Q(workspace_id=filters['workspace_id']) | Q(workspace__isnull=True))
    if filters.get('category'):
        qs = qs.filter(category=filters['category'])
    if filters.get('q'):
        term = filters['q']
        qs = qs.filter(Q(title__icontains=term) | Q(content__icontains=term))
    if filters.get('favorites'):
        qs = qs.filter(favorites__user=user)
    return qs.order_by('title', 'id')


def get_protocol(user, workspace_ids, protocol_id) -> Protocol:
    protocol = visible_protocols(user, workspace_ids).filter(id=protocol_id).first()
    if protocol is None:
        raise NotFound('protocol not found')
    return protocol


def _can_edit(user, protocol: Protocol) -> bool:
    if is_super(user) or protocol.created_by_id == user.id:
        return True
    if protocol.workspace_id is None:
        return False
    member = membership_for(user, protocol.workspace_id)
    return member is not None and member.role in MANAGE_ROLES


def create_protocol(user, workspace, values: Mapping[str, Any]) -> Protocol:
    if workspace is None and not is_super(user):
        raise PermissionDenied('Only super administrators can publish global protocols')
    protocol = Protocol.objects.create(workspace=workspace, created_by=user, **_clean(values))
    log_action(user=user, action='protocol_create', object_type='protocol', object_id=protocol.id)
    return protocol


def update_protocol(user, protocol: Protocol, values: Mapping[str, Any]) -> Protocol:
    if not _can_edit(user, protocol):
        raise PermissionDenied('You cannot edit this protocol')
    fields = _clean(values)
    for f, v in fields.items():
        setattr(protocol, f, v)
    if fields:
        protocol.save()
        log_action(user=user, action='protocol_update', object_type='protocol', object_id=protocol.id,
                   detail={'fields': sorted(fields)})
    return protocol


def delete_protocol(user, protocol: Protocol) -> None:
    if not _can_edit(user, protocol):
        raise PermissionDenied('You cannot delete this protocol')
    pid = protocol.id
    protocol.delete()
    log_action(user=user, action='protocol_delete', object_type='protocol', object_id=pid)


def toggle_favorite(user, protocol: Protocol) -> bool:
    """Flip the favourite flag; returns the new state."""
    deleted, _ = ProtocolFavorite.objects.filter(user=user, protocol=protocol).delete()
    if deleted:
        return False
    try:
        with transaction.atomic():
            ProtocolFavorite.objects.create(user=user, protocol=protocol)
    except IntegrityError:
        # double click raced with itself
        pass
    return True
