"""Deny-by-default permission evaluator.

PermissionEvaluator turns a user's active roles and resolved permissions into
a :class:`DecisionRecord`.  It performs no I/O and reads no clock: callers
pass in everything, including the evaluation timestamp.

Evaluation order (first rule that selects a permission wins):

1. Exact match    — permission action equals the requested action and the
   resource types are compatible.
2. Wildcard match — permission action is ``*``.
3. Deny           — nothing matched.  Denial is a normal result, not an error.

Example
-------
::

    evaluator = PermissionEvaluator()
    roles = [Role(id="user", name="User", permissions=["read-all"])]
    permissions = resolve_permissions(roles, registry.get_permission)
    decision = evaluator.evaluate(
        PermissionContext(user_id="u1", action="read"),
        roles,
        permissions,
        evaluated_at=clock.now(),
    )
    assert decision.granted
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

from aumos_rbac.evaluation.match_rules import DEFAULT_RULES, MatchRule
from aumos_rbac.models import DecisionRecord, Permission, PermissionContext, Role


def resolve_permissions(
    roles: Sequence[Role],
    lookup: Callable[[str], Permission | None],
) -> list[Permission]:
    """Resolve the permission ids of ``roles`` into Permission records.

    Roles are walked in order and each role's ids in declaration order.  The
    first occurrence of a permission id wins; ids that ``lookup`` cannot
    resolve are skipped.
    """
    resolved: dict[str, Permission] = {}
    for role in roles:
        for permission_id in role.permissions:
            if permission_id in resolved:
                continue
            permission = lookup(permission_id)
            if permission is not None:
                resolved[permission_id] = permission
    return list(resolved.values())


class PermissionEvaluator:
    """Runs an ordered chain of match rules and falls back to deny.

    Parameters
    ----------
    rules:
        Match rules in priority order.  Defaults to exact then wildcard.
    """

    def __init__(self, rules: Sequence[MatchRule] | None = None) -> None:
        self._rules: tuple[MatchRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    @property
    def rules(self) -> tuple[MatchRule, ...]:
        return self._rules

    def evaluate(
        self,
        context: PermissionContext,
        roles: Sequence[Role],
        permissions: Sequence[Permission],
        evaluated_at: datetime,
    ) -> DecisionRecord:
        """Decide ``context`` against the user's roles and permissions.

        Parameters
        ----------
        context:
            The permission question.
        roles:
            The user's active roles, in resolution order.
        permissions:
            Permissions resolved from ``roles`` (see :func:`resolve_permissions`).
        evaluated_at:
            Timestamp stamped on the decision.

        Returns
        -------
        DecisionRecord
        """
        role_ids = tuple(role.id for role in roles)

        for rule in self._rules:
            permission = rule.select(context, permissions)
            if permission is None:
                continue
            source_role = _source_role(roles, permission.id)
            reason = rule.describe(permission)
            if source_role is not None:
                reason = f"{reason} (role: {source_role})"
            return DecisionRecord(
                granted=True,
                reason=reason,
                evaluated_at=evaluated_at,
                applied_roles=role_ids,
                applied_permissions=(permission.id,),
                rule=rule.name,
            )

        return DecisionRecord(
            granted=False,
            reason=f"No matching permission found for action: {context.action.value}",
            evaluated_at=evaluated_at,
            applied_roles=role_ids,
        )


def _source_role(roles: Sequence[Role], permission_id: str) -> str | None:
    """Return the id of the first role listing ``permission_id``."""
    for role in roles:
        if permission_id in role.permissions:
            return role.id
    return None
