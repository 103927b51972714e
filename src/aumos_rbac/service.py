"""AccessControlService — the public facade of the engine.

Composes the role registry, the assignment store, the permission evaluator
and the result cache behind the operations applications call: permission
checks, role queries, role assignment and revocation, cache control and
registry upserts.

Cache layout
------------
Three key namespaces exist per user:

- ``user-roles:<user>``                                   active roles
- ``user-role-permissions:<user>``                        resolved permissions
- ``permission:<user>:<action>:<any | type=<resource>>``  decisions

Key parts escape ``\\`` and ``:``, so a user id can never reach into another
user's keys.  Assigning or revoking a role evicts all three namespaces for
that user.  Changing a role or permission in the registry clears the whole
cache, since any user's decisions may depend on it.

A cached entry also stops being served once the earliest expiry among the
assignments it was built from has passed, even if its TTL has not.

Every public operation runs under one re-entrant lock, so a check can never
re-populate a user's cache between a role change and its invalidation.

Example
-------
>>> acl = AccessControlService()
>>> assignment = acl.assign_role("u1", "user")
>>> acl.has_permission("u1", "read")
True
>>> acl.has_permission("u1", "delete")
False
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from aumos_rbac.cache.result_cache import CacheBackend, ResultCache
from aumos_rbac.clock import Clock, SystemClock
from aumos_rbac.config import AclConfig
from aumos_rbac.evaluation.evaluator import PermissionEvaluator, resolve_permissions
from aumos_rbac.models import (
    Assignment,
    AssignmentOptions,
    DecisionRecord,
    Permission,
    PermissionAction,
    PermissionContext,
    Role,
)
from aumos_rbac.store.assignments import AssignmentStore
from aumos_rbac.store.registry import RoleRegistry

logger = logging.getLogger(__name__)

_PERMISSION_NS = "permission"
_USER_ROLES_NS = "user-roles"
_USER_PERMISSIONS_NS = "user-role-permissions"
_ANY_RESOURCE = "any"
_KEY_SEPARATOR = ":"

DEFAULT_PERMISSIONS: tuple[Permission, ...] = (
    Permission(id="read-all", name="Read All", action=PermissionAction.READ),
    Permission(id="admin-all", name="Admin All", action=PermissionAction.ALL),
)

DEFAULT_ROLES: tuple[Role, ...] = (
    Role(id="admin", name="Admin", permissions=("admin-all",)),
    Role(id="user", name="User", permissions=("read-all",)),
)


def _escape_key_part(part: str) -> str:
    return part.replace("\\", "\\\\").replace(_KEY_SEPARATOR, "\\" + _KEY_SEPARATOR)


def cache_key(*parts: str) -> str:
    """Join key parts into a cache key, escaping separators inside parts."""
    return _KEY_SEPARATOR.join(_escape_key_part(part) for part in parts)


def _resource_part(resource_type: str | None) -> str:
    """Encode a resource type so that ``None`` never shares a key with a value."""
    return _ANY_RESOURCE if resource_type is None else f"type={resource_type}"


@dataclass(frozen=True)
class _Bounded:
    """A cached value that must not be served at or after ``valid_until``."""

    value: object
    valid_until: datetime | None = None

    def is_valid(self, now: datetime) -> bool:
        return self.valid_until is None or now < self.valid_until


class AccessControlService:
    """Role-based permission checks with time-bounded assignments.

    Parameters
    ----------
    config:
        An :class:`AclConfig` or a mapping of its options.
    registry:
        Role/permission registry.  A fresh one is created when omitted.
    assignments:
        Assignment store.  A fresh one bound to ``registry`` and ``clock`` is
        created when omitted.
    cache:
        Cache backend.  A :class:`ResultCache` with the configured TTL is
        created when omitted.
    clock:
        Time source for expiry checks and decision timestamps.
    evaluator:
        Permission evaluator.  Defaults to exact-then-wildcard matching.
    load_defaults:
        Register the default ``read-all``/``admin-all`` permissions and the
        ``user``/``admin`` roles.
    """

    def __init__(
        self,
        config: AclConfig | Mapping[str, object] | None = None,
        *,
        registry: RoleRegistry | None = None,
        assignments: AssignmentStore | None = None,
        cache: CacheBackend | None = None,
        clock: Clock | None = None,
        evaluator: PermissionEvaluator | None = None,
        load_defaults: bool = True,
    ) -> None:
        self._config = AclConfig.coerce(config)
        self._clock: Clock = clock or SystemClock()
        self._registry = registry if registry is not None else RoleRegistry()
        self._assignments = (
            assignments
            if assignments is not None
            else AssignmentStore(self._registry, clock=self._clock)
        )
        self._cache: CacheBackend = (
            cache
            if cache is not None
            else ResultCache(ttl_seconds=self._config.cache_ttl, clock=self._clock)
        )
        self._evaluator = evaluator or PermissionEvaluator()
        self._lock = threading.RLock()

        if load_defaults:
            for permission in DEFAULT_PERMISSIONS:
                self._registry.upsert_permission(permission)
            for role in DEFAULT_ROLES:
                self._registry.upsert_role(role)

        logger.info(
            "AccessControlService initialised "
            "(cache_enabled=%s cache_ttl=%ss debug_mode=%s strict_mode=%s roles=%d permissions=%d)",
            self._config.cache_enabled,
            self._config.cache_ttl,
            self._config.debug_mode,
            self._config.strict_mode,
            self._registry.role_count,
            self._registry.permission_count,
        )

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------

    def check_permission(
        self,
        user_id: str | PermissionContext,
        action: PermissionAction | str | None = None,
        resource_type: str | None = None,
    ) -> DecisionRecord:
        """Decide whether ``user_id`` may perform ``action``.

        Parameters
        ----------
        user_id:
            The user being checked, or a prepared :class:`PermissionContext`
            (in which case ``action`` and ``resource_type`` must be omitted).
        action:
            A :class:`PermissionAction` or its string value.
        resource_type:
            Optional resource type the action targets.

        Returns
        -------
        DecisionRecord
            Always returned, whether granted or denied.

        Raises
        ------
        TypeError
            When a context is combined with ``action``/``resource_type``, or
            a user id is given without an action.
        """
        if isinstance(user_id, PermissionContext):
            if action is not None or resource_type is not None:
                raise TypeError(
                    "check_permission() takes either a PermissionContext or "
                    "user_id/action/resource_type, not both."
                )
            return self.evaluate(user_id)
        if action is None:
            raise TypeError("check_permission() missing required argument: 'action'")
        return self.evaluate(
            PermissionContext(user_id=user_id, action=action, resource_type=resource_type)
        )

    def evaluate(self, context: PermissionContext) -> DecisionRecord:
        """Decide a prepared :class:`PermissionContext`.

        A cached decision is returned unchanged, including its original
        ``evaluated_at``.
        """
        key = cache_key(
            _PERMISSION_NS,
            context.user_id,
            context.action.value,
            _resource_part(context.resource_type),
        )
        with self._lock:
            now = self._clock.now()
            cached = self._cache_get(key, now)
            if isinstance(cached, DecisionRecord):
                logger.debug("Decision cache hit: %s", key)
                return cached

            roles, valid_until = self._active_roles(context.user_id, now)
            permissions = self._resolved_permissions(context.user_id, roles, valid_until, now)
            decision = self._evaluator.evaluate(context, roles, permissions, evaluated_at=now)
            self._cache_set(key, decision, valid_until)

        logger.log(
            logging.INFO if self._config.debug_mode else logging.DEBUG,
            "Decision user=%s action=%s resource_type=%s granted=%s reason=%s",
            context.user_id,
            context.action.value,
            _resource_part(context.resource_type),
            decision.granted,
            decision.reason,
        )
        return decision

    def has_permission(
        self,
        user_id: str,
        action: PermissionAction | str,
        resource_type: str | None = None,
    ) -> bool:
        """Shorthand for ``check_permission(...).granted``."""
        return self.check_permission(user_id, action, resource_type).granted

    # ------------------------------------------------------------------
    # Role queries
    # ------------------------------------------------------------------

    def has_role(self, user_id: str, role_name: str) -> bool:
        """Return True if one of the user's active roles has this name or id."""
        return any(
            role.name == role_name or role.id == role_name
            for role in self.get_user_roles(user_id)
        )

    def get_user_roles(self, user_id: str) -> list[Role]:
        """Return the user's active roles in assignment order."""
        with self._lock:
            roles, _ = self._active_roles(user_id, self._clock.now())
            return list(roles)

    def get_user_permissions(self, user_id: str) -> list[Permission]:
        """Return the de-duplicated permissions granted by the user's active roles."""
        with self._lock:
            now = self._clock.now()
            roles, valid_until = self._active_roles(user_id, now)
            return list(self._resolved_permissions(user_id, roles, valid_until, now))

    # ------------------------------------------------------------------
    # Role assignment
    # ------------------------------------------------------------------

    def assign_role(
        self,
        user_id: str,
        role_id: str,
        options: AssignmentOptions | None = None,
        *,
        expires_at: datetime | None = None,
    ) -> Assignment:
        """Assign ``role_id`` to ``user_id`` and invalidate the user's cache.

        The expiry may be given directly or through ``options``, not both.

        Raises
        ------
        DuplicateError
            When the user already holds the role (even if expired).
        NotFoundError
            When the role is not registered.
        """
        if options is not None and expires_at is not None:
            raise ValueError("Pass expires_at either directly or via options, not both.")
        effective = options or AssignmentOptions(expires_at=expires_at)

        with self._lock:
            assignment = self._assignments.assign(
                user_id,
                role_id,
                effective.expires_at,
                reason=effective.reason,
                metadata=effective.metadata,
            )
            self._invalidate_user(user_id)
        return assignment

    def revoke_role(self, user_id: str, role_id: str) -> Assignment:
        """Remove the user's assignment of ``role_id`` and invalidate their cache.

        Raises
        ------
        NotFoundError
            When the user does not hold the role.
        """
        with self._lock:
            removed = self._assignments.revoke(user_id, role_id)
            self._invalidate_user(user_id)
        return removed

    # ------------------------------------------------------------------
    # Cache control
    # ------------------------------------------------------------------

    def clear_user_cache(self, user_id: str) -> None:
        """Evict every cached entry for ``user_id``.  No-op when caching is off."""
        if not self._config.cache_enabled:
            return
        with self._lock:
            self._invalidate_user(user_id)

    def clear_cache(self) -> None:
        """Evict every cached entry.  No-op when caching is off."""
        if not self._config.cache_enabled:
            return
        with self._lock:
            self._cache.clear()
        logger.debug("Cleared decision cache")

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_role(self, role: Role) -> None:
        """Insert or replace a role."""
        with self._lock:
            self._registry.upsert_role(role)
            self.clear_cache()

    def add_permission(self, permission: Permission) -> None:
        """Insert or replace a permission."""
        with self._lock:
            self._registry.upsert_permission(permission)
            self.clear_cache()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> AclConfig:
        return self._config

    @property
    def registry(self) -> RoleRegistry:
        return self._registry

    @property
    def assignments(self) -> AssignmentStore:
        return self._assignments

    @property
    def cache(self) -> CacheBackend:
        return self._cache

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _active_roles(
        self, user_id: str, now: datetime
    ) -> tuple[tuple[Role, ...], datetime | None]:
        """Return the user's active roles and the instant the first of them lapses."""
        key = cache_key(_USER_ROLES_NS, user_id)
        cached = self._cache_get(key, now)
        if cached is not None:
            return cached  # type: ignore[return-value]

        active = self._assignments.active_assignments_for(user_id)
        roles = tuple(
            role
            for role in (self._registry.get_role(a.role_id) for a in active)
            if role is not None
        )
        valid_until = min(
            (a.expires_at for a in active if a.expires_at is not None), default=None
        )
        self._cache_set(key, (roles, valid_until), valid_until)
        return roles, valid_until

    def _resolved_permissions(
        self,
        user_id: str,
        roles: tuple[Role, ...],
        valid_until: datetime | None,
        now: datetime,
    ) -> tuple[Permission, ...]:
        key = cache_key(_USER_PERMISSIONS_NS, user_id)
        cached = self._cache_get(key, now)
        if cached is not None:
            return cached  # type: ignore[return-value]
        permissions = tuple(resolve_permissions(roles, self._registry.get_permission))
        self._cache_set(key, permissions, valid_until)
        return permissions

    def _cache_get(self, key: str, now: datetime) -> object | None:
        if not self._config.cache_enabled:
            return None
        entry = self._cache.get(key)
        if not isinstance(entry, _Bounded):
            return None
        if not entry.is_valid(now):
            self._cache.delete(key)
            return None
        return entry.value

    def _cache_set(self, key: str, value: object, valid_until: datetime | None) -> None:
        if self._config.cache_enabled:
            self._cache.set(key, _Bounded(value, valid_until))

    def _invalidate_user(self, user_id: str) -> None:
        if not self._config.cache_enabled:
            return
        evicted = 0
        for namespace in (_USER_ROLES_NS, _USER_PERMISSIONS_NS, _PERMISSION_NS):
            user_key = cache_key(namespace, user_id)
            self._cache.delete(user_key)
            evicted += self._cache.delete_by_prefix(user_key + _KEY_SEPARATOR)
        logger.debug("Invalidated cache for user %s (%d decisions evicted)", user_id, evicted)

    def __repr__(self) -> str:
        return (
            f"AccessControlService(cache_enabled={self._config.cache_enabled}, "
            f"roles={self._registry.role_count}, permissions={self._registry.permission_count})"
        )
