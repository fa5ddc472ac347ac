"""
AirSDLC CLI - Artifact tracking for the AI-driven lifecycle.

Commands:
- Workspace: init, status, next, audit, report, config
- Artifacts: new, show, list, edit, move, supersede, delete
- Traceability: trace, impact
- Playbook: playbook add/list/show/search
- API: serve
"""

import logging

import click

from airsdlc import __version__
from airsdlc.cli_commands import register_all
from airsdlc.store import ArtifactStore, default_root


@click.group()
@click.version_option(version=__version__)
@click.option("--root", type=click.Path(file_okay=False), envvar="AIRSDLC_ROOT", default=None,
              help="Workspace root (default: current directory, or $AIRSDLC_ROOT)")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, root: str, verbose: bool):
    """AirSDLC - Track PRD -> DAA/TIP -> RFC -> ADR -> Bolt lineage.

    Stores artifacts with their status, gates lifecycle transitions,
    and answers traceability and impact questions.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = ArtifactStore(root or default_root())


register_all(cli)


def main():
    cli()


if __name__ == "__main__":
    main()
