"""
Workspace scoped access control.

Every clinical row belongs to a workspace; a user may touch it only
through an *active* :class:`WorkspaceMember` row.  ``super`` users see
every workspace.  Helpers raise DRF ``NotFound`` / ``PermissionDenied``
so the unified exception handler renders them.
"""
from __future__ import annotations

from typing import Iterable, Optional

from rest_framework.exceptions import NotFound, PermissionDenied

from .models import Patient, Workspace, WorkspaceMember

MANAGE_ROLES = {'owner', 'admin'}
# observers can read but never write clinical data
WRITE_ROLES = {'owner', 'admin', 'doctor', 'nurse', 'resident'}


def is_super(user) -> bool:
    return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'super')


def workspace_ids_for(user):
    """Queryset of workspace ids the user may read."""
    if is_super(user):
        return Workspace.objects.filter(deleted_at__isnull=True).values_list('id', flat=True)
    return WorkspaceMember.objects.filter(
        user=user, status='active', workspace__deleted_at__isnull=True
    ).values_list('workspace_id', flat=True)


def membership_for(user, workspace_id) -> Optional[WorkspaceMember]:
    return WorkspaceMember.objects.filter(workspace_id=workspace_id, user=user, status='active').first()


def require_workspace(user, workspace_id, *, roles: Optional[Iterable[str]] = None) -> Workspace:
    """Return the live workspace if ``user`` is an active member (with one of ``roles``)."""
    workspace = Workspace.objects.filter(id=workspace_id, deleted_at__isnull=True).first()
    if workspace is None:
        raise NotFound('workspace not found')
    if is_super(user):
        return workspace
    member = membership_for(user, workspace.id)
    if member is None:
        raise PermissionDenied('You are not a member of this workspace')
    if roles is not None and member.role not in set(roles):
        raise PermissionDenied('Your workspace role does not allow this action')
    return workspace


def require_patient(user, patient_id, *, write: bool = False) -> Patient:
    patient = Patient.objects.select_related('workspace', 'assigned_to').filter(
        id=patient_id, deleted_at__isnull=True
    ).first()
    if patient is None:
        raise NotFound('patient not found')
    require_workspace(user, patient.workspace_id, roles=WRITE_ROLES if write else None)
    return patient
