#!/usr/bin/env python3
"""Example: Policy Files

Demonstrates declaring permissions, roles and assignments in YAML,
building a service from the document, and handling assignment errors.

Usage:
    python examples/02_policy_file.py

Requirements:
    pip install aumos-rbac
"""
from __future__ import annotations

import aumos_rbac as rbac
from aumos_rbac import DuplicateError, NotFoundError, PolicyLoader

_POLICY_YAML = """
version: "1"
settings:
  cacheTTL: 60
  debugMode: true
permissions:
  - id: read-docs
    name: Read Documents
    action: read
    resource_type: document
  - id: edit-docs
    name: Edit Documents
    action: update
    resource_type: document
roles:
  - id: viewer
    name: Viewer
    permissions: [read-docs]
  - id: editor
    name: Editor
    permissions: [read-docs, edit-docs]
assignments:
  - user_id: alice
    role_id: editor
  - user_id: bob
    role_id: viewer
    reason: onboarding
"""


def main() -> None:
    print(f"aumos-rbac version: {rbac.__version__}")

    # Step 1: Parse the policy document
    document = PolicyLoader().load_string(_POLICY_YAML, source="inline")
    print(
        f"Loaded {len(document.permissions)} permissions, "
        f"{len(document.roles)} roles, {len(document.assignments)} assignments"
    )

    # Step 2: Build a service from it
    acl = document.build_service()
    for user_id in ("alice", "bob"):
        names = [role.name for role in acl.get_user_roles(user_id)]
        perms = [perm.id for perm in acl.get_user_permissions(user_id)]
        print(f"  {user_id}: roles={names} permissions={perms}")

    # Step 3: Check permissions against resource types
    print("\nPermission checks:")
    for user_id, action, resource_type in [
        ("alice", "update", "document"),
        ("bob", "update", "document"),
        ("bob", "read", "invoice"),
    ]:
        decision = acl.check_permission(user_id, action, resource_type)
        print(f"  {user_id} {action} {resource_type}: {decision.granted} ({decision.rule})")

    # Step 4: Error handling
    try:
        acl.assign_role("bob", "viewer")
    except DuplicateError as exc:
        print(f"\nDuplicateError: {exc}")
    try:
        acl.assign_role("bob", "owner")
    except NotFoundError as exc:
        print(f"NotFoundError: {exc}")


if __name__ == "__main__":
    main()
