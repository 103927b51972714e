"""Command-line interface for aumos-rbac."""
