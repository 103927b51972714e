#!/usr/bin/env python3
"""Example: Quickstart for aumos-rbac

Minimal working example: assign the built-in roles, check permissions,
and watch a time-bounded assignment lapse.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install aumos-rbac
"""
from __future__ import annotations

from datetime import timedelta

import aumos_rbac as rbac


def main() -> None:
    print(f"aumos-rbac version: {rbac.__version__}")

    # Step 1: Create the service with the default 'admin' and 'user' roles
    clock = rbac.ManualClock()
    acl = rbac.AccessControlService(clock=clock)
    print(f"Service ready: {acl!r}")

    # Step 2: Assign roles, one of them only for an hour
    acl.assign_role("alice", "user")
    acl.assign_role("bob", "admin", expires_at=clock.now() + timedelta(hours=1))

    # Step 3: Check permissions
    checks = [
        ("alice", "read", None),
        ("alice", "delete", "document"),
        ("bob", "delete", "document"),
        ("carol", "read", None),
    ]
    print("\nPermission checks:")
    for user_id, action, resource_type in checks:
        decision = acl.check_permission(user_id, action, resource_type)
        icon = "GRANT" if decision.granted else "DENY"
        print(f"  [{icon}] {user_id} {action} {resource_type or 'any'}")
        print(f"    {decision.reason}")

    # Step 4: Let bob's admin role lapse
    clock.advance(hours=2)
    print(f"\nAfter two hours bob has admin: {acl.has_role('bob', 'Admin')}")
    print(f"bob may delete: {acl.has_permission('bob', 'delete', 'document')}")


if __name__ == "__main__":
    main()
