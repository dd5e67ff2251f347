# accounts/authz.py
"""
Authorization utilities for BuildLedger.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require: Check permissions and raise if not granted

Permissions come from the user's role (accounts.permission_defaults).
Superusers and ADMIN users are allowed everything.
"""

from dataclasses import dataclass
from typing import FrozenSet
from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated

from accounts.permission_defaults import permissions_for_user


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    This is passed to commands and policies so they know who is
    performing an action, for permission checks and audit attribution.

    Attributes:
        user: The authenticated user
        perms: Set of permission codes the user has
    """
    user: object  # User model
    perms: FrozenSet[str]

    def has(self, code: str) -> bool:
        """
        Check if actor has a specific permission.

        Order of checks:
        1. inactive users: deny
        2. superuser / ADMIN role: implicit allow
        3. everyone else: only code in perms
        """
        if not getattr(self.user, "is_active", False):
            return False
        if self.is_admin:
            return True
        return code in self.perms

    def has_permission(self, code: str) -> bool:
        """Alias for has()."""
        return self.has(code)

    @property
    def is_authenticated(self) -> bool:
        """Mirror Django's user.is_authenticated for compatibility."""
        return bool(getattr(self.user, "is_authenticated", False))

    @property
    def is_admin(self) -> bool:
        return bool(
            getattr(self.user, "is_superuser", False)
            or getattr(self.user, "role", None) == "ADMIN"
        )

    @property
    def role(self) -> str:
        return getattr(self.user, "role", "")

    @property
    def user_id(self):
        return getattr(self.user, "pk", None)


def actor_for_user(user) -> ActorContext:
    """Build an ActorContext for a user (management commands, tests)."""
    return ActorContext(user=user, perms=permissions_for_user(user))


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Permissions are resolved fresh on every request so that role
    changes take effect immediately.

    Raises:
        NotAuthenticated: If user is not authenticated
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    return actor_for_user(user)


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Raises PermissionDenied if the permission is not granted.

    Example:
        require(actor, "journal.approve")
        # If we get here, permission is granted
    """
    if not actor.has(code):
        raise PermissionDenied(f"Permission denied: {code}")

