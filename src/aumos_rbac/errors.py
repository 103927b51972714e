"""Exceptions raised by the access-control engine.

Permission denial is never an exception: ``check_permission`` always returns
a :class:`~aumos_rbac.models.DecisionRecord`.  The errors below cover invalid
role-assignment requests only.
"""
from __future__ import annotations


class AccessControlError(Exception):
    """Base class for recoverable access-control errors.

    Attributes
    ----------
    user_id:
        The user the failed operation targeted, if any.
    role_id:
        The role the failed operation targeted, if any.
    """

    def __init__(
        self,
        message: str,
        user_id: str | None = None,
        role_id: str | None = None,
    ) -> None:
        self.user_id = user_id
        self.role_id = role_id
        super().__init__(message)


class NotFoundError(AccessControlError, LookupError):
    """Raised when a role does not exist or a user does not hold it."""

    @classmethod
    def unknown_role(cls, role_id: str, user_id: str | None = None) -> NotFoundError:
        return cls(f"Role with ID {role_id} not found", user_id=user_id, role_id=role_id)

    @classmethod
    def not_assigned(cls, user_id: str, role_id: str) -> NotFoundError:
        return cls(
            f"Role {role_id} not assigned to user {user_id}",
            user_id=user_id,
            role_id=role_id,
        )


class DuplicateError(AccessControlError):
    """Raised when a (user, role) pair already has an assignment, expired or not."""

    @classmethod
    def already_assigned(cls, user_id: str, role_id: str) -> DuplicateError:
        return cls(
            f"Role {role_id} already assigned to user {user_id}",
            user_id=user_id,
            role_id=role_id,
        )
