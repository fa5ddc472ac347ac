"""
Traceability Commands - Lineage lookups and impact analysis.

Commands:
- trace: Show lineage chains, parents and children of an artifact
- impact: Show what a change to an artifact would affect
"""

import click

from airsdlc.cli_commands import echo_json, fail, pass_store
from airsdlc.exceptions import AirSDLCError
from airsdlc.graph import TraceGraph
from airsdlc.store import ArtifactStore


def register(cli):
    """Register traceability commands with CLI."""

    @cli.command()
    @click.argument("artifact_id")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def trace(store: ArtifactStore, artifact_id: str, as_json: bool):
        """Show where an artifact comes from and what derives from it.

        \b
        Example:
            airsdlc trace BOLT-004
        """
        try:
            artifact = store.get(artifact_id)
            graph = TraceGraph.from_store(store)
        except AirSDLCError as e:
            fail(e)

        chains = graph.lineage(artifact.id)
        children = graph.children(artifact.id)
        descendants = graph.topo_sort(list(graph.descendants(artifact.id)))

        if as_json:
            echo_json({
                "artifact": artifact.id,
                "parents": graph.parents(artifact.id),
                "children": children,
                "lineage": chains,
                "descendants": descendants,
            })
            return

        click.echo(artifact.summary_line())
        click.echo("\nLineage:")
        for chain in chains:
            click.echo("  " + " -> ".join(chain))

        if descendants:
            click.echo("\nDerived artifacts:")
            for d in descendants:
                node = graph.nodes[d]
                marker = "*" if d in children else " "
                click.echo(f"  {marker} {node.summary_line()}")
        else:
            click.echo("\nNothing derives from it yet.")

    @cli.command()
    @click.argument("artifact_id")
    @click.option("--depth", type=click.IntRange(min=1), default=None, help="Max lineage depth to follow")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def impact(store: ArtifactStore, artifact_id: str, depth: int, as_json: bool):
        """Analyze the impact of changing an artifact."""
        try:
            artifact = store.get(artifact_id)
            result = TraceGraph.from_store(store).impact_analysis(artifact.id, depth=depth)
        except AirSDLCError as e:
            fail(e)

        if as_json:
            echo_json(result)
            return

        click.echo(f"Impact of changing {result['artifact']} ({result['status']})")
        click.echo(f"  Risk: {result['risk']}")
        click.echo(f"  Total affected: {result['total_affected']}")
        if result["direct_dependents"]:
            click.echo(f"  Direct: {', '.join(result['direct_dependents'])}")
        if result["transitive_dependents"]:
            click.echo(f"  Transitive: {', '.join(result['transitive_dependents'])}")
        if result["requires_supersession"]:
            click.echo(f"  Frozen (supersede to change): {', '.join(result['requires_supersession'])}")
