"""Match rules for the permission evaluator.

A match rule inspects a user's resolved permissions and picks the first one
that satisfies the request, or returns ``None``.  The evaluator runs rules in
order and stops at the first rule that selects a permission.

Built-in rules:
- ExactMatchRule    — same action, compatible resource type
- WildcardMatchRule — any permission carrying the ``*`` (ALL) action
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from aumos_rbac.models import Permission, PermissionAction, PermissionContext


class MatchRule(ABC):
    """Abstract base for a single step of the evaluation chain."""

    name: str = "rule"

    @abstractmethod
    def select(
        self,
        context: PermissionContext,
        permissions: Sequence[Permission],
    ) -> Permission | None:
        """Return the first permission this rule accepts, or ``None``."""

    @abstractmethod
    def describe(self, permission: Permission) -> str:
        """Return the grant reason for ``permission``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ExactMatchRule(MatchRule):
    """Grant when a permission names the requested action.

    The resource types are compatible when either side leaves the resource
    type unset, or both name the same type.
    """

    name = "exact"

    def select(
        self,
        context: PermissionContext,
        permissions: Sequence[Permission],
    ) -> Permission | None:
        for permission in permissions:
            if permission.action != context.action:
                continue
            if (
                context.resource_type is None
                or permission.resource_type is None
                or permission.resource_type == context.resource_type
            ):
                return permission
        return None

    def describe(self, permission: Permission) -> str:
        return f"Permission granted via role permission: {permission.name}"


class WildcardMatchRule(MatchRule):
    """Grant any action through a permission carrying the ALL action.

    Resource types are ignored.
    """

    name = "wildcard"

    def select(
        self,
        context: PermissionContext,
        permissions: Sequence[Permission],
    ) -> Permission | None:
        for permission in permissions:
            if permission.action is PermissionAction.ALL:
                return permission
        return None

    def describe(self, permission: Permission) -> str:
        return f"Permission granted via role ALL permission: {permission.name}"


DEFAULT_RULES: tuple[MatchRule, ...] = (ExactMatchRule(), WildcardMatchRule())
