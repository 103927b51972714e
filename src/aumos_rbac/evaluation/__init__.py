"""Permission resolution and the ordered match-rule evaluator.

Example
-------
::

    from aumos_rbac.evaluation import PermissionEvaluator, resolve_permissions

    permissions = resolve_permissions(roles, registry.get_permission)
    decision = PermissionEvaluator().evaluate(context, roles, permissions, clock.now())
"""
from __future__ import annotations

from aumos_rbac.evaluation.evaluator import PermissionEvaluator, resolve_permissions
from aumos_rbac.evaluation.match_rules import (
    DEFAULT_RULES,
    ExactMatchRule,
    MatchRule,
    WildcardMatchRule,
)

__all__ = [
    "DEFAULT_RULES",
    "ExactMatchRule",
    "MatchRule",
    "PermissionEvaluator",
    "WildcardMatchRule",
    "resolve_permissions",
]
