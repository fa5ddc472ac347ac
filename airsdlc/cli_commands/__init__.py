"""
AirSDLC CLI Commands - Modular command structure.

Each submodule registers its commands when imported.

Structure:
    cli_commands/
    ├── __init__.py      # This file - registration and shared helpers
    ├── workspace.py     # init, status, next, audit, report
    ├── artifacts.py     # new, show, list, edit, move, supersede, delete
    ├── trace.py         # trace, impact
    ├── playbook_cmd.py  # playbook (add, list, show, search)
    ├── config_cmd.py    # config (show, set)
    └── ui.py            # serve

Usage:
    from airsdlc.cli_commands import register_all

    @click.group()
    def cli():
        pass

    register_all(cli)
"""

import json
import sys
from typing import Any

import click

from airsdlc.store import ArtifactStore

pass_store = click.make_pass_decorator(ArtifactStore)


def fail(error: Any) -> None:
    """Print an error to stderr and exit 1."""
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def register_all(cli: click.Group) -> None:
    """Register all command modules with the CLI group.

    Each module has a `register(cli)` function that adds its commands
    to the CLI group using Click decorators.
    """
    from . import workspace
    from . import artifacts
    from . import trace
    from . import playbook_cmd
    from . import config_cmd
    from . import ui

    workspace.register(cli)
    artifacts.register(cli)
    trace.register(cli)
    playbook_cmd.register(cli)
    config_cmd.register(cli)
    ui.register(cli)


__all__ = ["echo_json", "fail", "pass_store", "register_all"]
