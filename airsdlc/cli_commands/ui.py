"""
UI Commands - Read-only JSON API.

Commands:
- serve: Start the AirSDLC API server
"""

import sys

import click

from airsdlc.cli_commands import pass_store
from airsdlc.store import ArtifactStore


def register(cli):
    """Register UI commands with CLI."""

    @cli.command()
    @click.option('--port', default=8080, help='Port to serve on')
    @click.option('--host', default='127.0.0.1', help='Host to bind to')
    @pass_store
    def serve(store: ArtifactStore, port: int, host: str):
        """Start the read-only JSON API for this workspace.

        Examples:
            airsdlc serve
            airsdlc serve --port 3000
        """
        try:
            from airsdlc.ui.server import create_app
            import uvicorn
        except ImportError as e:
            click.echo("API dependencies not installed.", err=True)
            click.echo("Run: pip install airsdlc[ui]", err=True)
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

        app = create_app(store.root)
        click.echo(f"AirSDLC API for {store.root}")
        click.echo(f"URL: http://{host}:{port}/api/artifacts")
        click.echo("Press Ctrl+C to stop")
        click.echo("")

        uvicorn.run(app, host=host, port=port, log_level="warning")
