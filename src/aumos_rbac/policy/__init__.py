"""YAML policy files describing permissions, roles and assignments."""
from __future__ import annotations

from aumos_rbac.policy.loader import (
    AssignmentSpec,
    PermissionSpec,
    PolicyDocument,
    PolicyFileError,
    PolicyLoader,
    RoleSpec,
)

__all__ = [
    "AssignmentSpec",
    "PermissionSpec",
    "PolicyDocument",
    "PolicyFileError",
    "PolicyLoader",
    "RoleSpec",
]
