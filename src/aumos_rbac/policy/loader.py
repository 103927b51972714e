"""YAML policy files: permissions, roles and assignments in one document.

PolicyLoader reads a YAML policy file, validates it with Pydantic v2 models
and returns a :class:`PolicyDocument` that can build a populated
:class:`~aumos_rbac.service.AccessControlService`.

Schema
------
::

    version: "1"
    settings:
      cache_enabled: true
      cache_ttl: 300
    permissions:
      - id: "read-docs"
        name: "Read Documents"
        action: "read"
        resource_type: "document"
      - id: "everything"
        name: "Everything"
        action: "*"
    roles:
      - id: "reader"
        name: "Reader"
        permissions: ["read-docs"]
    assignments:
      - user_id: "u1"
        role_id: "reader"
        expires_at: 2030-01-01T00:00:00Z
        reason: "Quarterly access review"

Example
-------
::

    document = PolicyLoader().load("policy.yaml")
    acl = document.build_service()
    acl.has_permission("u1", "read", "document")
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from aumos_rbac.clock import Clock
from aumos_rbac.config import AclConfig
from aumos_rbac.models import AssignmentOptions, Permission, PermissionAction, Role
from aumos_rbac.service import AccessControlService

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1", "1.0"])


class PolicyFileError(ValueError):
    """Raised when a policy file cannot be parsed or fails validation.

    Attributes
    ----------
    source:
        The file path (or other source label) that caused the error, if known.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        prefix = f"[{source}] " if source else ""
        super().__init__(f"{prefix}{message}")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class PermissionSpec(BaseModel):
    """One entry of the ``permissions`` list."""

    id: str = Field(min_length=1)
    name: str = ""
    action: PermissionAction
    resource_type: str | None = None

    @field_validator("action", mode="before")
    @classmethod
    def coerce_action(cls, value: object) -> PermissionAction:
        return PermissionAction.coerce(str(value))

    def to_permission(self) -> Permission:
        return Permission(
            id=self.id,
            name=self.name or self.id,
            action=self.action,
            resource_type=self.resource_type,
        )


class RoleSpec(BaseModel):
    """One entry of the ``roles`` list."""

    id: str = Field(min_length=1)
    name: str = ""
    permissions: list[str] = Field(default_factory=list)

    def to_role(self) -> Role:
        return Role(id=self.id, name=self.name or self.id, permissions=self.permissions)


class AssignmentSpec(BaseModel):
    """One entry of the ``assignments`` list."""

    user_id: str = Field(min_length=1)
    role_id: str = Field(min_length=1)
    expires_at: datetime | None = None
    reason: str | None = None
    metadata: dict[str, object] = Field(default_factory=dict)

    def to_options(self) -> AssignmentOptions:
        return AssignmentOptions(
            expires_at=self.expires_at,
            reason=self.reason,
            metadata=self.metadata,
        )


class PolicyDocument(BaseModel):
    """A validated policy file."""

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    description: str | None = None
    settings: AclConfig = Field(default_factory=AclConfig)
    permissions: list[PermissionSpec] = Field(default_factory=list)
    roles: list[RoleSpec] = Field(default_factory=list)
    assignments: list[AssignmentSpec] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, value: object) -> str:
        version = str(value)
        if version not in _SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported policy version {version!r}. "
                f"Supported: {sorted(_SUPPORTED_VERSIONS)}."
            )
        return version

    def build_service(
        self,
        clock: Clock | None = None,
        load_defaults: bool = False,
    ) -> AccessControlService:
        """Create an AccessControlService populated from this document.

        Permissions are registered before roles, and roles before
        assignments.

        Raises
        ------
        NotFoundError
            When an assignment names a role that is not defined.
        DuplicateError
            When the same (user, role) pair is assigned twice.
        """
        service = AccessControlService(
            self.settings, clock=clock, load_defaults=load_defaults
        )
        for permission in self.permissions:
            service.add_permission(permission.to_permission())
        for role in self.roles:
            service.add_role(role.to_role())
        for assignment in self.assignments:
            service.assign_role(
                assignment.user_id, assignment.role_id, assignment.to_options()
            )
        return service


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class PolicyLoader:
    """Loads :class:`PolicyDocument` objects from YAML files, strings or dicts.

    Example
    -------
    ::

        loader = PolicyLoader()
        document = loader.load_string(yaml_text)
        acl = document.build_service()
    """

    def load(self, policy_path: str | Path) -> PolicyDocument:
        """Load and validate a YAML policy file.

        Raises
        ------
        FileNotFoundError
            When the file does not exist.
        PolicyFileError
            When the YAML cannot be parsed or fails validation.
        """
        policy_path = Path(policy_path)
        if not policy_path.exists():
            raise FileNotFoundError(f"Policy file not found: {policy_path}")

        with policy_path.open("r", encoding="utf-8") as fh:
            text = fh.read()
        return self.load_string(text, source=str(policy_path))

    def load_string(self, yaml_content: str, source: str | None = None) -> PolicyDocument:
        """Load and validate YAML policy text."""
        try:
            raw = yaml.safe_load(yaml_content)
        except yaml.YAMLError as exc:
            raise PolicyFileError(f"Failed to parse YAML: {exc}", source) from exc
        return self.load_from_dict(raw if raw is not None else {}, source=source)

    def load_from_dict(
        self,
        data: dict[str, object],
        source: str | None = None,
    ) -> PolicyDocument:
        """Validate an already-parsed policy mapping."""
        if not isinstance(data, dict):
            raise PolicyFileError("Policy document must be a YAML mapping (dict).", source)
        try:
            document = PolicyDocument.model_validate(data)
        except ValidationError as exc:
            raise PolicyFileError(f"Invalid policy document: {exc}", source) from exc

        logger.info(
            "Loaded policy from %s: %d permissions, %d roles, %d assignments",
            source or "<dict>",
            len(document.permissions),
            len(document.roles),
            len(document.assignments),
        )
        return document
