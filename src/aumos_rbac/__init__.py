"""aumos-rbac — Role-based permission evaluation engine.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_rbac as rbac
>>> rbac.__version__
'0.1.0'
>>> acl = rbac.AccessControlService()
>>> assignment = acl.assign_role("u1", "admin")
>>> acl.check_permission("u1", rbac.PermissionAction.DELETE).granted
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

from aumos_rbac.service import AccessControlService

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from aumos_rbac.models import (
    Assignment,
    AssignmentOptions,
    DecisionRecord,
    Permission,
    PermissionAction,
    PermissionContext,
    Role,
)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from aumos_rbac.errors import AccessControlError, DuplicateError, NotFoundError

# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------
from aumos_rbac.cache.result_cache import CacheBackend, ResultCache
from aumos_rbac.clock import Clock, ManualClock, SystemClock
from aumos_rbac.config import AclConfig
from aumos_rbac.evaluation.evaluator import PermissionEvaluator, resolve_permissions
from aumos_rbac.evaluation.match_rules import ExactMatchRule, MatchRule, WildcardMatchRule
from aumos_rbac.store.assignments import AssignmentStore
from aumos_rbac.store.registry import RoleRegistry

# ---------------------------------------------------------------------------
# Policy files
# ---------------------------------------------------------------------------
from aumos_rbac.policy.loader import PolicyDocument, PolicyFileError, PolicyLoader

__all__ = [
    "__version__",
    "AccessControlService",
    # Models
    "Assignment",
    "AssignmentOptions",
    "DecisionRecord",
    "Permission",
    "PermissionAction",
    "PermissionContext",
    "Role",
    # Errors
    "AccessControlError",
    "DuplicateError",
    "NotFoundError",
    # Components
    "AclConfig",
    "AssignmentStore",
    "CacheBackend",
    "Clock",
    "ExactMatchRule",
    "ManualClock",
    "MatchRule",
    "PermissionEvaluator",
    "ResultCache",
    "RoleRegistry",
    "SystemClock",
    "WildcardMatchRule",
    "resolve_permissions",
    # Policy files
    "PolicyDocument",
    "PolicyFileError",
    "PolicyLoader",
]
