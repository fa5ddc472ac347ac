"""
Artifact Commands - Create, inspect and move artifacts.

Commands:
- new: Create an artifact (PRD, DAA, TIP, RFC, ADR, Bolt, ...)
- show: Show an artifact with its history
- list: List artifacts
- edit: Change title, body or tags of a non-frozen artifact
- move: Transition an artifact to a new status
- supersede: Register a replacement for a frozen artifact
- delete: Delete an untouched artifact
"""

import click

from airsdlc.cli_commands import echo_json, fail, pass_store
from airsdlc.exceptions import AirSDLCError
from airsdlc.guidance import next_steps
from airsdlc.lifecycle import allowed_transitions, supersede, transition
from airsdlc.models.artifact import ArtifactType, normalize_id
from airsdlc.store import ArtifactStore

TYPE_CHOICES = [t.value for t in ArtifactType]


def _parse_type(ctx, param, value):
    if value is None:
        return None
    try:
        return ArtifactType.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _read_body(body: str, body_file) -> str:
    if body is not None and body_file is not None:
        raise click.UsageError("use either --body or --body-file, not both")
    if body_file is not None:
        return body_file.read()
    return body


def register(cli):
    """Register artifact commands with CLI."""

    @cli.command()
    @click.argument("artifact_type", metavar="TYPE", callback=_parse_type)
    @click.argument("title")
    @click.option("-p", "--parent", "parents", multiple=True, help="Lineage parent id (repeatable)")
    @click.option("--body", default=None, help="Markdown body")
    @click.option("--body-file", type=click.File("r"), default=None, help="Read body from file ('-' for stdin)")
    @click.option("--author", default="", help="Author name")
    @click.option("--ai", "ai_produced", is_flag=True, help="Mark as produced by AI (needs human validation)")
    @click.option("-t", "--tag", "tags", multiple=True, help="Tag (repeatable)")
    @pass_store
    def new(store: ArtifactStore, artifact_type: ArtifactType, title: str, parents: tuple,
            body: str, body_file, author: str, ai_produced: bool, tags: tuple):
        """Create a new artifact.

        TYPE: prd, daa, tip, rfc, adr, bolt, deployment, incident, postmortem

        \b
        Examples:
            airsdlc new prd "Booking cancellation"
            airsdlc new daa "Booking domain model" --parent PRD-001 --ai
            airsdlc new rfc "Cancellation via outbox" -p DAA-001 --body-file rfc.md
        """
        try:
            artifact = store.create(
                artifact_type,
                title,
                body=_read_body(body, body_file) or "",
                parents=parents,
                author=author,
                produced_by="ai" if ai_produced else "human",
                tags=tags,
            )
        except AirSDLCError as e:
            fail(e)

        click.echo(f"Created {artifact.id}: {artifact.title}")
        click.echo(f"  Status: {artifact.status}")
        if artifact.parents:
            click.echo(f"  Parents: {', '.join(artifact.parents)}")
        click.echo(f"  File: {store.path_for(artifact.id)}")
        click.echo(f"\nNext: {next_steps(artifact)[0]}")

    @cli.command()
    @click.argument("artifact_id")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @click.option("--history/--no-history", default=True, help="Show transition history")
    @pass_store
    def show(store: ArtifactStore, artifact_id: str, as_json: bool, history: bool):
        """Show an artifact."""
        try:
            artifact = store.get(artifact_id)
            children = store.children_of(artifact.id)
        except AirSDLCError as e:
            fail(e)

        if as_json:
            data = artifact.to_dict()
            data["children"] = children
            data["allowed_transitions"] = allowed_transitions(artifact.type, artifact.status)
            echo_json(data)
            return

        click.echo(f"{artifact.id}: {artifact.title}")
        click.echo(f"  Type: {artifact.type.label}")
        click.echo(f"  Status: {artifact.status}")
        click.echo(f"  Author: {artifact.author or '-'} ({artifact.produced_by})")
        if artifact.approver:
            click.echo(f"  Approver: {artifact.approver}")
        if artifact.parents:
            click.echo(f"  Parents: {', '.join(artifact.parents)}")
        if children:
            click.echo(f"  Children: {', '.join(children)}")
        if artifact.supersedes:
            click.echo(f"  Supersedes: {artifact.supersedes}")
        if artifact.superseded_by:
            click.echo(f"  Superseded by: {artifact.superseded_by}")
        if artifact.tags:
            click.echo(f"  Tags: {', '.join(artifact.tags)}")
        moves = [s for s in allowed_transitions(artifact.type, artifact.status) if s != "superseded"]
        click.echo(f"  Can move to: {', '.join(moves) if moves else '-'}")

        if artifact.body.strip():
            click.echo("")
            click.echo(artifact.body.rstrip())

        if history and artifact.history:
            click.echo("\nHistory:")
            for h in artifact.history:
                arrow = f"{h.from_status or '*'} -> {h.to_status}"
                who = f" by {h.actor}" if h.actor else ""
                note = f" ({h.note})" if h.note else ""
                click.echo(f"  {h.timestamp.strftime('%Y-%m-%d %H:%M')} {arrow}{who}{note}")

    @cli.command("list")
    @click.option("--type", "artifact_type", default=None, callback=_parse_type,
                  help=f"Filter by type ({', '.join(TYPE_CHOICES)})")
    @click.option("--status", default=None, help="Filter by status")
    @click.option("--tag", default=None, help="Filter by tag")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @pass_store
    def list_artifacts(store: ArtifactStore, artifact_type, status: str, tag: str, as_json: bool):
        """List artifacts."""
        try:
            artifacts = store.list(artifact_type=artifact_type, status=status, tag=tag)
        except AirSDLCError as e:
            fail(e)

        if as_json:
            echo_json([
                {"id": a.id, "type": a.type.value, "status": a.status, "title": a.title, "parents": a.parents}
                for a in artifacts
            ])
            return

        if not artifacts:
            click.echo("No artifacts found.")
            return

        for a in artifacts:
            parents = f"  <- {', '.join(a.parents)}" if a.parents else ""
            click.echo(f"{a.id:<9} {a.status:<12} {a.title}{parents}")

    @cli.command()
    @click.argument("artifact_id")
    @click.option("--title", default=None, help="New title")
    @click.option("--body", default=None, help="New markdown body")
    @click.option("--body-file", type=click.File("r"), default=None, help="Read body from file ('-' for stdin)")
    @click.option("-t", "--tag", "tags", multiple=True, help="Replace tags (repeatable)")
    @pass_store
    def edit(store: ArtifactStore, artifact_id: str, title: str, body: str, body_file, tags: tuple):
        """Edit a draft artifact. Frozen artifacts must be superseded instead."""
        new_body = _read_body(body, body_file)
        if title is None and new_body is None and not tags:
            fail("nothing to change (use --title, --body, --body-file or --tag)")

        try:
            artifact = store.update(artifact_id, title=title, body=new_body, tags=tags or None)
        except AirSDLCError as e:
            fail(e)

        click.echo(f"Updated {artifact.id}: {artifact.title}")

    @cli.command()
    @click.argument("artifact_id")
    @click.argument("status")
    @click.option("--actor", default=None, help="Who is making the change")
    @click.option("--approver", default=None, help="Human approver (required for approval statuses)")
    @click.option("--note", default="", help="Note recorded in history")
    @pass_store
    def move(store: ArtifactStore, artifact_id: str, status: str, actor: str, approver: str, note: str):
        """Move an artifact to a new status.

        \b
        Examples:
            airsdlc move PRD-001 in_review
            airsdlc move PRD-001 approved --approver alice
            airsdlc move BOLT-003 in-progress --actor bob
        """
        try:
            before = store.get(artifact_id).status
            artifact = transition(
                store,
                artifact_id,
                status,
                actor=actor or approver or store.config.default_author,
                approver=approver,
                note=note,
            )
        except AirSDLCError as e:
            fail(e)

        click.echo(f"{artifact.id}: {before} -> {artifact.status}")
        if artifact.supersedes:
            old = store.find(artifact.supersedes)
            if old is not None and old.superseded_by == artifact.id:
                click.echo(f"{old.id}: superseded by {artifact.id}")
        click.echo(f"\nNext: {next_steps(artifact)[0]}")

    @cli.command("supersede")
    @click.argument("old_id")
    @click.argument("new_id")
    @click.option("--actor", default=None, help="Who is making the change")
    @pass_store
    def supersede_cmd(store: ArtifactStore, old_id: str, new_id: str, actor: str):
        """Register NEW_ID as the replacement for OLD_ID.

        OLD_ID becomes superseded once NEW_ID is approved.
        """
        try:
            new = supersede(store, old_id, new_id, actor=actor or store.config.default_author)
        except AirSDLCError as e:
            fail(e)

        click.echo(f"{new.id} will supersede {new.supersedes} once approved")

    @cli.command()
    @click.argument("artifact_id")
    @click.option("--yes", is_flag=True, help="Skip confirmation")
    @pass_store
    def delete(store: ArtifactStore, artifact_id: str, yes: bool):
        """Delete an artifact still in its initial status with no children."""
        if not yes and not click.confirm(f"Delete {artifact_id}?"):
            click.echo("Aborted.")
            return

        try:
            store.delete(artifact_id)
        except AirSDLCError as e:
            fail(e)

        click.echo(f"Deleted {normalize_id(artifact_id)}")
