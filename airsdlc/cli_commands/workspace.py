"""
Workspace Commands - Setup, status and health.

Commands:
- init: Create the .airsdlc workspace
- status: Counts per type/status and open work
- next: Suggest the next workflow action
- audit: Check lineage, supersession, links and playbook consistency
- report: Generate a TRACE.md traceability matrix
"""

import sys

import click

from airsdlc.audit import run_audit
from airsdlc.cli_commands import echo_json, fail, pass_store
from airsdlc.exceptions import AirSDLCError
from airsdlc.generators.trace_md import generate_trace_md
from airsdlc.guidance import format_status, next_steps, project_status, workspace_next_steps
from airsdlc.store import ArtifactStore


def register(cli):
    """Register workspace commands with CLI."""

    @cli.command()
    @pass_store
    def init(store: ArtifactStore):
        """Create an AirSDLC workspace in the root directory.

        Safe to run again; existing artifacts and config are kept.
        """
        existed = store.is_initialized()
        store = ArtifactStore.init(store.root)
        if existed:
            click.echo(f"Workspace already initialized: {store.workspace}")
        else:
            click.echo(f"Initialized workspace: {store.workspace}")
            click.echo("\nNext: airsdlc new prd \"<title>\"")

    @cli.command()
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def status(store: ArtifactStore, as_json: bool):
        """Show artifact counts and open work."""
        try:
            if as_json:
                echo_json(project_status(store))
            else:
                click.echo(format_status(store))
        except AirSDLCError as e:
            fail(e)

    @cli.command("next")
    @click.argument("artifact_id", required=False)
    @pass_store
    def next_cmd(store: ArtifactStore, artifact_id: str):
        """Suggest what to do next.

        With ARTIFACT_ID, guidance for that artifact; otherwise for all open work.

        \b
        Examples:
            airsdlc next
            airsdlc next PRD-001
        """
        try:
            if artifact_id:
                artifact = store.get(artifact_id)
                click.echo(artifact.summary_line())
                steps = next_steps(artifact)
            else:
                steps = workspace_next_steps(store)
        except AirSDLCError as e:
            fail(e)

        for step in steps:
            click.echo(f"  -> {step}")

    @cli.command()
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def audit(store: ArtifactStore, as_json: bool):
        """Check workspace consistency.

        Exits 1 when any error-level issue is found.
        """
        try:
            report = run_audit(store)
        except AirSDLCError as e:
            fail(e)

        if as_json:
            echo_json(report.to_dict())
        else:
            for issue in report.issues:
                click.echo(issue.format())
            click.echo(
                f"\nChecked {report.checked} artifacts: "
                f"{len(report.errors)} errors, {len(report.warnings)} warnings"
            )
            click.echo("Audit passed" if report.ok else "Audit failed")

        if not report.ok:
            sys.exit(1)

    @cli.command()
    @click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
                  help="Write to file instead of stdout")
    @pass_store
    def report(store: ArtifactStore, output: str):
        """Generate a traceability matrix (markdown)."""
        try:
            content = generate_trace_md(store, output_path=output)
        except AirSDLCError as e:
            fail(e)

        if output:
            click.echo(f"Wrote {output}")
        else:
            click.echo(content)
