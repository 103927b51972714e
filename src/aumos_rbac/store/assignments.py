"""Time-bounded (user, role) assignment store.

AssignmentStore holds at most one assignment per (user_id, role_id) pair.
Assignments carry an optional expiry; an expired assignment is invisible to
:meth:`AssignmentStore.active_roles_for` but stays in the store (and still
blocks a second ``assign`` for the same pair) until it is revoked or swept
with :meth:`AssignmentStore.purge_expired`.

Example
-------
::

    store = AssignmentStore(registry, clock=ManualClock())
    store.assign("u1", "admin", expires_at=clock.now() + timedelta(hours=1))
    [role.id for role in store.active_roles_for("u1")]   # ['admin']
    store.revoke("u1", "admin")
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from datetime import datetime

from aumos_rbac.clock import Clock, SystemClock
from aumos_rbac.errors import DuplicateError, NotFoundError
from aumos_rbac.models import Assignment, Role
from aumos_rbac.store.registry import RoleLookup

logger = logging.getLogger(__name__)


class AssignmentStore:
    """Thread-safe in-memory store of role assignments.

    Per-user assignments are kept in insertion order, which fixes the order
    in which a user's roles (and therefore their permissions) are resolved.

    Parameters
    ----------
    registry:
        Role lookup used to validate new assignments and resolve active ones.
    clock:
        Time source for ``assigned_at`` stamps and expiry checks.
    """

    def __init__(self, registry: RoleLookup, clock: Clock | None = None) -> None:
        self._registry = registry
        self._clock: Clock = clock or SystemClock()
        self._assignments: dict[str, dict[str, Assignment]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def assign(
        self,
        user_id: str,
        role_id: str,
        expires_at: datetime | None = None,
        *,
        reason: str | None = None,
        metadata: Mapping[str, object] | None = None,
    ) -> Assignment:
        """Bind ``role_id`` to ``user_id``.

        Returns
        -------
        Assignment
            The newly stored record.

        Raises
        ------
        DuplicateError
            When the pair already has an assignment, active or expired.
        NotFoundError
            When ``role_id`` is not registered.
        """
        with self._lock:
            user_assignments = self._assignments.get(user_id, {})
            if role_id in user_assignments:
                raise DuplicateError.already_assigned(user_id, role_id)
            if self._registry.get_role(role_id) is None:
                raise NotFoundError.unknown_role(role_id, user_id=user_id)

            assignment = Assignment(
                user_id=user_id,
                role_id=role_id,
                assigned_at=self._clock.now(),
                expires_at=expires_at,
                reason=reason,
                metadata=metadata or {},
            )
            self._assignments.setdefault(user_id, {})[role_id] = assignment

        logger.debug(
            "Assigned role %s to user %s (expires_at=%s)",
            role_id,
            user_id,
            assignment.expires_at.isoformat() if assignment.expires_at else "never",
        )
        return assignment

    def revoke(self, user_id: str, role_id: str) -> Assignment:
        """Remove the assignment for (user_id, role_id), expired or not.

        Raises
        ------
        NotFoundError
            When the pair has no assignment.
        """
        with self._lock:
            user_assignments = self._assignments.get(user_id)
            if not user_assignments or role_id not in user_assignments:
                raise NotFoundError.not_assigned(user_id, role_id)
            removed = user_assignments.pop(role_id)
            if not user_assignments:
                del self._assignments[user_id]

        logger.debug("Revoked role %s from user %s", role_id, user_id)
        return removed

    def purge_expired(self) -> list[Assignment]:
        """Delete every assignment that is no longer active.

        Expiry alone never removes records; long-running processes that do
        not revoke expired assignments can call this to bound memory.

        Returns
        -------
        list[Assignment]
            The removed records.
        """
        now = self._clock.now()
        removed: list[Assignment] = []
        with self._lock:
            for user_id in list(self._assignments):
                user_assignments = self._assignments[user_id]
                for role_id, assignment in list(user_assignments.items()):
                    if not assignment.is_active(now):
                        removed.append(user_assignments.pop(role_id))
                if not user_assignments:
                    del self._assignments[user_id]

        if removed:
            logger.info("Purged %d expired role assignments", len(removed))
        return removed

    def reset(self) -> None:
        """Remove every assignment."""
        with self._lock:
            self._assignments.clear()

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def get(self, user_id: str, role_id: str) -> Assignment | None:
        with self._lock:
            return self._assignments.get(user_id, {}).get(role_id)

    def assignments_for(self, user_id: str) -> list[Assignment]:
        """Return all of a user's assignments, including expired ones."""
        with self._lock:
            return list(self._assignments.get(user_id, {}).values())

    def is_active(self, assignment: Assignment) -> bool:
        """Return True if ``assignment`` has not expired on this store's clock."""
        return assignment.is_active(self._clock.now())

    def active_assignments_for(self, user_id: str) -> list[Assignment]:
        """Return a user's unexpired assignments in insertion order."""
        now = self._clock.now()
        return [
            assignment
            for assignment in self.assignments_for(user_id)
            if assignment.is_active(now)
        ]

    def active_roles_for(self, user_id: str) -> list[Role]:
        """Return the roles behind a user's active assignments.

        Roles that have since disappeared from the registry are skipped.
        """
        roles: list[Role] = []
        for assignment in self.active_assignments_for(user_id):
            role = self._registry.get_role(assignment.role_id)
            if role is not None:
                roles.append(role)
        return roles

    def user_ids(self) -> list[str]:
        """Return every user id holding at least one assignment."""
        with self._lock:
            return list(self._assignments)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(user_assignments) for user_assignments in self._assignments.values())
