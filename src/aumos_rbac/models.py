"""Core value types: permissions, roles, assignments and decisions.

All records are frozen dataclasses.  Stores replace records wholesale rather
than mutating them, and the result cache can hand the same instance to many
callers without any risk of one caller altering what another sees.

Example
-------
::

    read_docs = Permission(
        id="read-docs",
        name="Read Documents",
        action=PermissionAction.READ,
        resource_type="document",
    )
    reader = Role(id="reader", name="Reader", permissions=["read-docs"])
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from aumos_rbac.clock import ensure_utc


# ---------------------------------------------------------------------------
# PermissionAction
# ---------------------------------------------------------------------------


class PermissionAction(str, Enum):
    """The closed set of actions a permission can authorise."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ALL = "*"

    @classmethod
    def coerce(cls, value: PermissionAction | str) -> PermissionAction:
        """Convert a plain string (``"read"``, ``"*"``, ``"all"``) to a member.

        Raises
        ------
        ValueError
            If ``value`` does not name a known action.
        """
        if isinstance(value, cls):
            return value
        normalised = str(value).strip().lower()
        if normalised == "all":
            return cls.ALL
        try:
            return cls(normalised)
        except ValueError:
            known = ", ".join(repr(member.value) for member in cls)
            raise ValueError(
                f"Unknown permission action {value!r}. Known actions: {known}."
            ) from None

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Permission / Role
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Permission:
    """An (action, optional resource type) authorisation unit.

    Attributes
    ----------
    id:
        Unique identifier within a registry.
    name:
        Display name, used in decision reasons.
    action:
        The action granted.  ``PermissionAction.ALL`` grants every action.
    resource_type:
        Optional resource-type tag.  ``None`` means the permission applies to
        every resource type.
    """

    id: str
    name: str
    action: PermissionAction
    resource_type: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Permission.id must not be empty.")
        object.__setattr__(self, "action", PermissionAction.coerce(self.action))


@dataclass(frozen=True)
class Role:
    """A named bundle of permission identifiers.

    ``permissions`` may be given as any iterable; it is stored as a tuple in
    first-seen order with duplicates removed.  Identifiers that are not (yet)
    registered are kept and simply resolve to nothing.
    """

    id: str
    name: str
    permissions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Role.id must not be empty.")
        if isinstance(self.permissions, str):
            raise TypeError("Role.permissions must be a collection of ids, not a string.")
        object.__setattr__(self, "permissions", unique_ids(self.permissions))


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


def _frozen_metadata(metadata: Mapping[str, object] | None) -> Mapping[str, object]:
    return MappingProxyType(dict(metadata or {}))


def unique_ids(values: Iterable[str]) -> tuple[str, ...]:
    """Return ``values`` de-duplicated in first-seen order."""
    return tuple(dict.fromkeys(values))


@dataclass(frozen=True)
class AssignmentOptions:
    """Optional settings for a role assignment.

    Attributes
    ----------
    expires_at:
        When the assignment stops being active.  ``None`` means never.
    reason:
        Free-text justification recorded with the assignment.
    metadata:
        Arbitrary caller data recorded with the assignment.
    """

    expires_at: datetime | None = None
    reason: str | None = None
    metadata: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class Assignment:
    """A binding of one role to one user.

    The assignment is *active* while ``expires_at`` is unset or strictly in
    the future.  Expired assignments stay in the store until revoked.
    """

    user_id: str
    role_id: str
    assigned_at: datetime
    expires_at: datetime | None = None
    reason: str | None = None
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "assigned_at", ensure_utc(self.assigned_at))
        if self.expires_at is not None:
            object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
        object.__setattr__(self, "metadata", _frozen_metadata(self.metadata))

    def is_active(self, now: datetime) -> bool:
        """Return True if the assignment has not expired at ``now``."""
        return self.expires_at is None or self.expires_at > ensure_utc(now)


# ---------------------------------------------------------------------------
# Checks and decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PermissionContext:
    """A single permission question: may ``user_id`` perform ``action``?

    ``resource_id`` and ``additional_context`` are carried for callers and
    log output; the built-in match rules do not consult them.
    """

    user_id: str
    action: PermissionAction
    resource_type: str | None = None
    resource_id: str | None = None
    additional_context: Mapping[str, object] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", PermissionAction.coerce(self.action))


@dataclass(frozen=True)
class DecisionRecord:
    """Outcome of a permission check.

    Attributes
    ----------
    granted:
        Whether the action is permitted.
    reason:
        Human-readable explanation naming the rule, permission and role.
    evaluated_at:
        When the decision was computed.  Cached decisions keep the time of
        the original evaluation.
    applied_roles:
        Identifiers of every active role that was considered.
    applied_permissions:
        Identifiers of the permissions that produced a grant (empty on deny).
    rule:
        Name of the match rule that fired, or ``None`` for the default deny.
    """

    granted: bool
    reason: str
    evaluated_at: datetime
    applied_roles: tuple[str, ...] = ()
    applied_permissions: tuple[str, ...] = ()
    rule: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "applied_roles", tuple(self.applied_roles))
        object.__setattr__(self, "applied_permissions", tuple(self.applied_permissions))

    def __bool__(self) -> bool:
        """Return True if the action is granted."""
        return self.granted

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation."""
        return {
            "granted": self.granted,
            "reason": self.reason,
            "rule": self.rule,
            "applied_roles": list(self.applied_roles),
            "applied_permissions": list(self.applied_permissions),
            "evaluated_at": self.evaluated_at.isoformat(),
        }
