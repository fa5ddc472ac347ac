"""
Playbook Commands - Patterns learned from post-mortems.

Commands:
- playbook add: Add a pattern citing published post-mortems
- playbook list: List patterns
- playbook show: Show a pattern
- playbook search: Search name, problem and solution text
"""

import click

from airsdlc.cli_commands import echo_json, fail, pass_store
from airsdlc.exceptions import AirSDLCError
from airsdlc.playbook import Playbook
from airsdlc.store import ArtifactStore


def _print_pattern_line(pattern) -> None:
    tags = f" [{', '.join(pattern.tags)}]" if pattern.tags else ""
    click.echo(f"{pattern.id}: {pattern.name}{tags}  <- {', '.join(pattern.sources)}")


def register(cli):
    """Register playbook commands with CLI."""

    @cli.group()
    def playbook():
        """Reusable patterns fed back from post-mortems."""
        pass

    @playbook.command("add")
    @click.argument("name")
    @click.option("-s", "--source", "sources", multiple=True, required=True,
                  help="Published post-mortem id (repeatable)")
    @click.option("--problem", default="", help="Problem the pattern addresses")
    @click.option("--solution", default="", help="The pattern itself")
    @click.option("-t", "--tag", "tags", multiple=True, help="Tag (repeatable)")
    @pass_store
    def playbook_add(store: ArtifactStore, name: str, sources: tuple, problem: str, solution: str, tags: tuple):
        """Add a pattern distilled from post-mortems.

        \b
        Example:
            airsdlc playbook add "Transactional outbox" -s PM-001 --problem "Lost events"
        """
        try:
            book = Playbook.load(store.workspace)
            pattern = book.add(store, name, problem=problem, solution=solution, sources=sources, tags=tags)
        except AirSDLCError as e:
            fail(e)

        click.echo(f"Added {pattern.id}: {pattern.name}")

    @playbook.command("list")
    @click.option("--tag", default=None, help="Filter by tag")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def playbook_list(store: ArtifactStore, tag: str, as_json: bool):
        """List playbook patterns."""
        try:
            patterns = Playbook.load(store.workspace).list(tag=tag)
        except AirSDLCError as e:
            fail(e)

        if as_json:
            echo_json([p.to_dict() for p in patterns])
            return
        if not patterns:
            click.echo("Playbook is empty.")
            return
        for p in patterns:
            _print_pattern_line(p)

    @playbook.command("show")
    @click.argument("pattern_id")
    @pass_store
    def playbook_show(store: ArtifactStore, pattern_id: str):
        """Show a playbook pattern."""
        try:
            pattern = Playbook.load(store.workspace).get(pattern_id)
        except AirSDLCError as e:
            fail(e)

        if pattern is None:
            fail(f"Pattern not found: {pattern_id}")

        click.echo(f"{pattern.id}: {pattern.name}")
        click.echo(f"  Sources: {', '.join(pattern.sources)}")
        if pattern.tags:
            click.echo(f"  Tags: {', '.join(pattern.tags)}")
        if pattern.problem:
            click.echo(f"\nProblem:\n  {pattern.problem}")
        if pattern.solution:
            click.echo(f"\nSolution:\n  {pattern.solution}")

    @playbook.command("search")
    @click.argument("text")
    @pass_store
    def playbook_search(store: ArtifactStore, text: str):
        """Search patterns by text."""
        try:
            patterns = Playbook.load(store.workspace).search(text)
        except AirSDLCError as e:
            fail(e)

        if not patterns:
            click.echo(f"No patterns match '{text}'.")
            return
        for p in patterns:
            _print_pattern_line(p)
