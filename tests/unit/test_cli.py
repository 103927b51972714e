"""Tests for the aumos-rbac CLI."""
from __future__ import annotations

import json
import pathlib
import textwrap

import pytest
from click.testing import CliRunner

from aumos_rbac.cli.main import cli

_POLICY = textwrap.dedent(
    """\
    version: "1"
    permissions:
      - id: read-docs
        name: Read Documents
        action: read
        resource_type: document
    roles:
      - id: reader
        name: Reader
        permissions: [read-docs]
    assignments:
      - user_id: alice
        role_id: reader
      - user_id: carol
        role_id: reader
        expires_at: 2000-01-01T00:00:00Z
    """
)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def policy_file(tmp_path: pathlib.Path) -> str:
    path = tmp_path / "policy.yaml"
    path.write_text(_POLICY, encoding="utf-8")
    return str(path)


class TestCLIVersion:
    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "aumos-rbac" in result.output


class TestCLICheck:
    def test_granted_exits_zero(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(
            cli, ["check", "-p", policy_file, "-u", "alice", "-a", "read", "-r", "document"]
        )
        assert result.exit_code == 0
        assert "GRANTED" in result.output

    def test_denied_exits_one(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["check", "-p", policy_file, "-u", "alice", "-a", "delete"])
        assert result.exit_code == 1
        assert "DENIED" in result.output

    def test_expired_assignment_denied(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["check", "-p", policy_file, "-u", "carol", "-a", "read"])
        assert result.exit_code == 1

    def test_json_output(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(
            cli, ["check", "-p", policy_file, "-u", "alice", "-a", "read", "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["granted"] is True
        assert payload["applied_permissions"] == ["read-docs"]
        assert payload["rule"] == "exact"

    def test_with_defaults_flag(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(
            cli, ["check", "-p", policy_file, "-u", "alice", "-a", "read", "--with-defaults"]
        )
        assert result.exit_code == 0

    def test_invalid_action_rejected(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["check", "-p", policy_file, "-u", "alice", "-a", "execute"])
        assert result.exit_code == 2

    def test_markup_in_arguments_printed_literally(
        self, runner: CliRunner, policy_file: str
    ) -> None:
        result = runner.invoke(
            cli,
            ["check", "-p", policy_file, "-u", "[bold]mallory", "-a", "read", "-r", "[i]doc"],
        )
        assert result.exit_code == 1
        assert "[bold]mallory" in result.output
        assert "[i]doc" in result.output

    def test_broken_policy_exits_two(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("roles: [\n", encoding="utf-8")
        result = runner.invoke(cli, ["check", "-p", str(path), "-u", "alice", "-a", "read"])
        assert result.exit_code == 2


class TestCLIRoles:
    def test_lists_assignments(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["roles", "-p", policy_file, "-u", "alice"])
        assert result.exit_code == 0
        assert "reader" in result.output
        assert "active" in result.output

    def test_shows_expired(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["roles", "-p", policy_file, "-u", "carol"])
        assert result.exit_code == 0
        assert "expired" in result.output

    def test_user_without_roles(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["roles", "-p", policy_file, "-u", "nobody"])
        assert result.exit_code == 0
        assert "No role assignments" in result.output

    def test_markup_in_user_printed_literally(
        self, runner: CliRunner, policy_file: str
    ) -> None:
        result = runner.invoke(cli, ["roles", "-p", policy_file, "-u", "[red]eve"])
        assert result.exit_code == 0
        assert "[red]eve" in result.output


class TestCLIValidate:
    def test_valid_file(self, runner: CliRunner, policy_file: str) -> None:
        result = runner.invoke(cli, ["validate", policy_file])
        assert result.exit_code == 0
        assert "VALID" in result.output

    def test_unknown_role_is_invalid(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(
            "assignments:\n  - user_id: u1\n    role_id: ghost\n", encoding="utf-8"
        )
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "INVALID" in result.output

    def test_bad_yaml_is_invalid(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("roles: [\n", encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
