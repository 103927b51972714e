"""In-memory stores for roles, permissions and role assignments."""
from __future__ import annotations

from aumos_rbac.store.assignments import AssignmentStore
from aumos_rbac.store.registry import RoleLookup, RoleRegistry

__all__ = [
    "AssignmentStore",
    "RoleLookup",
    "RoleRegistry",
]
