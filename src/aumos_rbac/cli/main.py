"""CLI entry point for aumos-rbac.

Invoked as::

    aumos-rbac [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_rbac.cli.main

Commands
--------
- check     Decide a permission check against a policy file
- roles     Show a user's role assignments from a policy file
- validate  Validate a policy file
- version   Show version information

Exit codes: ``check`` exits 0 when granted, 1 when denied and 2 when the
policy file cannot be loaded.  ``validate`` exits 1 on an invalid file.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aumos_rbac.errors import AccessControlError
from aumos_rbac.models import PermissionAction
from aumos_rbac.policy.loader import PolicyFileError, PolicyLoader
from aumos_rbac.service import AccessControlService

console = Console()
err_console = Console(stderr=True)

_ACTION_CHOICES = [action.value for action in PermissionAction] + ["all"]


def _build_service(policy_path: str, with_defaults: bool) -> AccessControlService:
    """Load ``policy_path`` and build a service, exiting with code 2 on failure."""
    try:
        document = PolicyLoader().load(Path(policy_path))
        return document.build_service(load_defaults=with_defaults)
    except (PolicyFileError, AccessControlError) as exc:
        err_console.print(f"[red]Error loading policy:[/red] {escape(str(exc))}")
        sys.exit(2)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-rbac")
def cli() -> None:
    """aumos-rbac CLI: role-based permission checks against policy files."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_rbac import __version__

    console.print(
        Panel(
            f"[bold]aumos-rbac[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Role-based permission evaluation engine.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.option(
    "--policy",
    "-p",
    "policy_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML policy file.",
)
@click.option("--user", "-u", "user_id", required=True, help="User to check.")
@click.option(
    "--action",
    "-a",
    required=True,
    type=click.Choice(_ACTION_CHOICES),
    help="Requested action.",
)
@click.option("--resource-type", "-r", default=None, help="Optional resource type.")
@click.option(
    "--with-defaults",
    is_flag=True,
    default=False,
    help="Also register the built-in 'admin' and 'user' roles.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the decision as JSON.")
def check_command(
    policy_path: str,
    user_id: str,
    action: str,
    resource_type: str | None,
    with_defaults: bool,
    as_json: bool,
) -> None:
    """Decide whether USER may perform ACTION under a policy file."""
    service = _build_service(policy_path, with_defaults)
    decision = service.check_permission(user_id, action, resource_type)

    if as_json:
        click.echo(json.dumps(decision.to_dict(), indent=2))
    else:
        status_str = "[green]GRANTED[/green]" if decision.granted else "[red]DENIED[/red]"
        console.print(Panel(status_str, title="Permission Check Result", border_style="blue"))
        resource_label = "any" if resource_type is None else resource_type
        console.print(f"  User: [cyan]{escape(user_id)}[/cyan]  Action: [cyan]{action}[/cyan]  "
                      f"Resource type: [cyan]{escape(resource_label)}[/cyan]")
        console.print(f"  Reason: {escape(decision.reason)}")
        if decision.applied_roles:
            console.print(f"  Roles considered: {escape(', '.join(decision.applied_roles))}")

    sys.exit(0 if decision.granted else 1)


# ---------------------------------------------------------------------------
# roles
# ---------------------------------------------------------------------------


@cli.command(name="roles")
@click.option(
    "--policy",
    "-p",
    "policy_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML policy file.",
)
@click.option("--user", "-u", "user_id", required=True, help="User whose roles to show.")
def roles_command(policy_path: str, user_id: str) -> None:
    """Show every role assignment held by USER, including expired ones."""
    service = _build_service(policy_path, with_defaults=False)
    assignments = service.assignments.assignments_for(user_id)

    if not assignments:
        console.print(f"[yellow]No role assignments for user {escape(user_id)}.[/yellow]")
        return

    table = Table(title=f"Role assignments for {escape(user_id)}", box=box.SIMPLE)
    table.add_column("Role", style="cyan")
    table.add_column("Name")
    table.add_column("Expires", style="dim")
    table.add_column("Status")

    for assignment in assignments:
        role = service.registry.get_role(assignment.role_id)
        expires = assignment.expires_at.isoformat() if assignment.expires_at else "never"
        status = (
            "[green]active[/green]"
            if service.assignments.is_active(assignment)
            else "[red]expired[/red]"
        )
        table.add_row(
            escape(assignment.role_id), escape(role.name) if role else "?", expires, status
        )

    console.print(table)


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.argument("policy_path", type=click.Path(exists=True, dir_okay=False))
def validate_command(policy_path: str) -> None:
    """Validate a YAML policy file and report what it defines."""
    try:
        document = PolicyLoader().load(Path(policy_path))
        document.build_service()
    except (PolicyFileError, AccessControlError) as exc:
        console.print(
            Panel(
                f"[red]INVALID[/red]  {escape(str(exc))}",
                title="Policy Validation",
                border_style="red",
            )
        )
        sys.exit(1)

    console.print(
        Panel(
            f"[green]VALID[/green]  {escape(policy_path)}\n"
            f"  Permissions: {len(document.permissions)}  "
            f"Roles: {len(document.roles)}  "
            f"Assignments: {len(document.assignments)}",
            title="Policy Validation",
            border_style="green",
        )
    )


if __name__ == "__main__":
    cli()
