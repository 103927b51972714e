"""In-memory registry of roles and permissions.

RoleRegistry owns the canonical :class:`Role` and :class:`Permission`
records.  Upserts replace any existing record with the same identifier;
lookups of unknown identifiers return ``None`` and never raise.

The registry performs no referential-integrity checks: a role may list
permission ids that are registered later (or never).

Example
-------
>>> registry = RoleRegistry()
>>> registry.upsert_permission(Permission(id="read-all", name="Read All", action="read"))
>>> registry.upsert_role(Role(id="user", name="User", permissions=["read-all"]))
>>> registry.get_role("user").permissions
('read-all',)
"""
from __future__ import annotations

import logging
import threading
from typing import Protocol

from aumos_rbac.models import Permission, Role

logger = logging.getLogger(__name__)


class RoleLookup(Protocol):
    """Read side of a registry, as needed by the assignment store."""

    def get_role(self, role_id: str) -> Role | None: ...


class RoleRegistry:
    """Thread-safe keyed store of roles and permissions."""

    def __init__(self) -> None:
        self._roles: dict[str, Role] = {}
        self._permissions: dict[str, Permission] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def upsert_role(self, role: Role) -> None:
        """Insert ``role``, replacing any role with the same id."""
        with self._lock:
            replaced = role.id in self._roles
            self._roles[role.id] = role
        logger.debug("Role %s %s", role.id, "replaced" if replaced else "added")

    def upsert_permission(self, permission: Permission) -> None:
        """Insert ``permission``, replacing any permission with the same id."""
        with self._lock:
            replaced = permission.id in self._permissions
            self._permissions[permission.id] = permission
        logger.debug(
            "Permission %s %s", permission.id, "replaced" if replaced else "added"
        )

    def reset(self) -> None:
        """Remove every role and permission."""
        with self._lock:
            self._roles.clear()
            self._permissions.clear()

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def get_role(self, role_id: str) -> Role | None:
        with self._lock:
            return self._roles.get(role_id)

    def get_permission(self, permission_id: str) -> Permission | None:
        with self._lock:
            return self._permissions.get(permission_id)

    def has_role(self, role_id: str) -> bool:
        with self._lock:
            return role_id in self._roles

    def list_roles(self) -> list[Role]:
        """Return all roles in insertion order."""
        with self._lock:
            return list(self._roles.values())

    def list_permissions(self) -> list[Permission]:
        """Return all permissions in insertion order."""
        with self._lock:
            return list(self._permissions.values())

    @property
    def role_count(self) -> int:
        with self._lock:
            return len(self._roles)

    @property
    def permission_count(self) -> int:
        with self._lock:
            return len(self._permissions)
