"""
Role based permission classes.

Roles come from the closed ``Role`` enum.  Each gate lists the roles it
admits; a user whose ``user_type`` does not parse to a known role is
never admitted, whatever the gate.
"""
from typing import FrozenSet, Optional

from rest_framework.permissions import BasePermission

from .models import Role


def role_of(user) -> Optional[Role]:
    if not (user and getattr(user, 'is_authenticated', False)):
        return None
    return Role.parse(getattr(user, 'user_type', None))


class RolePermission(BasePermission):
    allowed_roles: FrozenSet[Role] = frozenset()
    message = 'Access denied.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return role_of(getattr(request, 'user', None)) in self.allowed_roles


class IsOwner(RolePermission):
    """Institute owner only."""
    allowed_roles = frozenset({Role.OWNER})
    message = 'Access denied. Owner privileges required.'


class IsManager(RolePermission):
    """Hall manager, or the owner who supervises every hall."""
    allowed_roles = frozenset({Role.MANAGER, Role.OWNER})
    message = 'Access denied. Manager privileges required.'


class IsStudent(RolePermission):
    allowed_roles = frozenset({Role.STUDENT})
    message = 'Access denied. Student account required.'


class IsInstituteMember(RolePermission):
    """Any signed in account belonging to an institute (not the guest)."""
    allowed_roles = frozenset({Role.OWNER, Role.MANAGER, Role.STUDENT})
