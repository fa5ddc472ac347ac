"""
Configuration Commands - Workspace settings.

Commands:
- config show: Show current settings
- config set: Change a setting
"""

import click

from airsdlc.cli_commands import echo_json, fail, pass_store
from airsdlc.config import load_config, set_config_value, settable_keys
from airsdlc.exceptions import AirSDLCError
from airsdlc.store import ArtifactStore


def register(cli):
    """Register configuration commands with CLI."""

    @cli.group("config")
    def config_group():
        """Show or change workspace settings."""
        pass

    @config_group.command("show")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def config_show(store: ArtifactStore, as_json: bool):
        """Show workspace configuration."""
        config = load_config(store.root)
        if as_json:
            echo_json(config.to_dict())
            return

        click.echo(f"Configuration for {store.root}:")
        for key in settable_keys():
            click.echo(f"  {key}: {getattr(config, key)}")

    @config_group.command("set")
    @click.argument("key", type=click.Choice(sorted(settable_keys())))
    @click.argument("value")
    @pass_store
    def config_set(store: ArtifactStore, key: str, value: str):
        """Set a configuration value.

        \b
        Examples:
            airsdlc config set strict_lineage false
            airsdlc config set history_limit 50
            airsdlc config set default_author alice
        """
        if not store.is_initialized():
            fail(f"No AirSDLC workspace at {store.root} (run: airsdlc init)")

        try:
            config = set_config_value(store.root, key, value)
        except AirSDLCError as e:
            fail(e)

        store.reload_config()
        click.echo(f"{key} = {getattr(config, key)}")
