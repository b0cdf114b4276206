"""
Organizations, workspaces and their memberships.

Creating a workspace makes the creator its owner.  Adding a member sends
a ``workspace_invite`` notification to the added user.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

import bleach
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.text import slugify
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from clinical.models import Organization, OrganizationMember, Workspace, WorkspaceMember
from clinical.permissions import is_super, membership_for, workspace_ids_for
from clinical.services.audit import log_action
from clinical.services.events import publish_workspace_event
from clinical.services.notification_helpers import notify_workspace_invite

logger = logging.getLogger(__name__)

User = get_user_model()


def serialize_organization(org: Organization, role=None) -> dict:
    return {
        'id': org.id,
        'name': org.name,
        'slug': org.slug,
        'role': role,
        'created_at': org.created_at.isoformat() if org.created_at else None,
    }


def serialize_workspace(ws: Workspace, role=None) -> dict:
    return {
        'id': ws.id,
        'organization_id': ws.organization_id,
        'name': ws.name,
        'slug': ws.slug,
        'color': ws.color,
        'description': ws.description,
        'role': role,
        'patient_count': getattr(ws, 'patient_count', None),
        'member_count': getattr(ws, 'member_count', None),
        'created_by': ws.created_by_id,
        'created_at': ws.created_at.isoformat() if ws.created_at else None,
    }


def serialize_member(m: WorkspaceMember) -> dict:
    return {
        'id': m.id,
        'user_id': m.user_id,
        'username': m.user.username,
        'name': m.user.display_name,
        'email': m.user.email,
        'specialty': m.user.specialty,
        'role': m.role,
        'status': m.status,
        'joined_at': m.created_at.isoformat() if m.created_at else None,
    }


def _unique_slug(model, name: str, **scope) -> str:
    base = slugify(name)[:80] or 'item'
    slug, n = base, 2
    while model.objects.filter(slug=slug, **scope).exists():
        slug = f'{base}-{n}'
        n += 1
    return slug


# ---------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------
def list_organizations(user) -> list[dict]:
    if is_super(user):
        return [serialize_organization(o, 'owner') for o in Organization.objects.order_by('name')]
    rows = OrganizationMember.objects.select_related('organization').filter(user=user, status='active')
    return [serialize_organization(m.organization, m.role) for m in rows.order_by('organization__name')]


def create_organization(user, name: str) -> Organization:
    name = bleach.clean((name or '').strip(), strip=True)
    if not name:
        raise ValidationError({'name': 'name is required'})
    with transaction.atomic():
        org = Organization.objects.create(name=name, slug=_unique_slug(Organization, name))
        OrganizationMember.objects.create(organization=org, user=user, role='owner')
    log_action(user=user, action='organization_create', object_type='organization', object_id=org.id)
    return org


def _org_role(user, organization_id):
    m = OrganizationMember.objects.filter(organization_id=organization_id, user=user, status='active').first()
    return m.role if m else None


# ---------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------
def list_workspaces(user) -> list[dict]:
    roles = dict(WorkspaceMember.objects.filter(user=user, status='active').values_list('workspace_id', 'role'))
    qs = Workspace.objects.filter(id__in=workspace_ids_for(user)).annotate(
        patient_count=Count('patients', filter=Q(patients__deleted_at__isnull=True,
                                                 patients__discharge_date__isnull=True), distinct=True),
        member_count=Count('members', filter=Q(members__status='active'), distinct=True),
    )
    return [serialize_workspace(ws, roles.get(ws.id)) for ws in qs.order_by('name', 'id')]


def create_workspace(user, values: Mapping[str, Any]) -> Workspace:
    name = bleach.clean((values.get('name') or '').strip(), strip=True)
    if not name:
        raise ValidationError({'name': 'name is required'})
    org_id = values.get('organization_id')
    if org_id is not None:
        if not Organization.objects.filter(id=org_id).exists():
            raise NotFound('organization not found')
        if not is_super(user) and _org_role(user, org_id) not in ('owner', 'admin'):
            raise PermissionDenied('Only organization owners and admins can create workspaces')
    with transaction.atomic():
        ws = Workspace.objects.create(
            organization_id=org_id,
            name=name,
            slug=_unique_slug(Workspace, name, organization_id=org_id),
            color=values.get('color') or '#3b82f6',
            description=bleach.clean(values.get('description') or '', strip=True),
            created_by=user,
        )
        WorkspaceMember.objects.create(workspace=ws, user=user, role='owner')
    log_action(user=user, action='workspace_create', object_type='workspace', object_id=ws.id)
    return ws


def update_workspace(user, ws: Workspace, values: Mapping[str, Any]) -> Workspace:
    fields = []
    for f in ('name', 'color', 'description'):
        if f in values and values[f] is not None:
            setattr(ws, f, bleach.clean(str(values[f]).strip(), strip=True))
            fields.append(f)
    if fields:
        ws.save()
        log_action(user=user, action='workspace_update', object_type='workspace', object_id=ws.id,
                   detail={'fields': fields})
    return ws


def delete_workspace(user, ws: Workspace) -> None:
    ws.deleted_at = timezone.now()
    ws.save(update_fields=['deleted_at', 'updated_at'])
    log_action(user=user, action='workspace_delete', object_type='workspace', object_id=ws.id)


# ---------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------
def list_members(ws: Workspace):
    return WorkspaceMember.objects.select_related('user').filter(workspace=ws).exclude(
        status='inactive'
    ).order_by('created_at', 'id')


def add_member(actor, ws: Workspace, values: Mapping[str, Any]) -> WorkspaceMember:
    target = None
    if values.get('user_id'):
        target = User.objects.filter(id=values['user_id'], is_active=True).first()
    elif values.get('email'):
        target = User.objects.filter(email__iexact=values['email'], is_active=True).first()
    if target is None:
        raise NotFound('user not found')
    role = values.get('role') or 'doctor'
    if role == 'owner' and not is_super(actor):
        raise ValidationError({'role': 'ownership cannot be granted through invitations'})

    with transaction.atomic():
        member, created = WorkspaceMember.objects.get_or_create(
            workspace=ws, user=target, defaults={'role': role, 'status': 'active'}
        )
        if not created:
            if member.status == 'active':
                raise ValidationError({'user_id': 'user is already a member of this workspace'})
            member.role, member.status = role, 'active'
            member.save(update_fields=['role', 'status'])
        if ws.organization_id:
            OrganizationMember.objects.get_or_create(
                organization_id=ws.organization_id, user=target, defaults={'role': 'member'}
            )
        if target.id != actor.id:
            notify_workspace_invite(target, ws, actor.display_name, role)
    log_action(user=actor, action='workspace_member_add', object_type='workspace', object_id=ws.id,
               detail={'user_id': target.id, 'role': role})
    publish_workspace_event(ws.id, 'member.added', serialize_member(member))
    return member


def _require_owner(actor, ws: Workspace, message: str) -> None:
    if is_super(actor):
        return
    membership = membership_for(actor, ws.id)
    if membership is None or membership.role != 'owner':
        raise PermissionDenied(message)


def update_member_role(actor, ws: Workspace, user_id, role: str) -> WorkspaceMember:
    member = WorkspaceMember.objects.select_related('user').filter(workspace=ws, user_id=user_id).first()
    if member is None:
        raise NotFound('member not found')
    if member.user_id == actor.id and not is_super(actor):
        raise PermissionDenied('you cannot change your own role')
    if 'owner' in (role, member.role):
        _require_owner(actor, ws, 'only owners can grant or revoke ownership')
    if member.role == 'owner' and role != 'owner' and \
            not WorkspaceMember.objects.filter(workspace=ws, role='owner', status='active').exclude(id=member.id).exists():
        raise ValidationError({'role': 'a workspace needs at least one owner'})
    member.role = role
    member.save(update_fields=['role'])
    log_action(user=actor, action='workspace_member_role', object_type='workspace', object_id=ws.id,
               detail={'user_id': member.user_id, 'role': role})
    return member


def remove_member(actor, ws: Workspace, user_id) -> None:
    member = WorkspaceMember.objects.filter(workspace=ws, user_id=user_id, status='active').first()
    if member is None:
        raise NotFound('member not found')
    if member.role == 'owner' and member.user_id != actor.id:
        _require_owner(actor, ws, 'only owners can remove an owner')
    if member.role == 'owner' and \
            not WorkspaceMember.objects.filter(workspace=ws, role='owner', status='active').exclude(id=member.id).exists():
        raise ValidationError({'user_id': 'the last owner cannot be removed'})
    member.status = 'inactive'
    member.save(update_fields=['status'])
    log_action(user=actor, action='workspace_member_remove', object_type='workspace', object_id=ws.id,
               detail={'user_id': member.user_id})
    publish_workspace_event(ws.id, 'member.removed', {'user_id': member.user_id})
