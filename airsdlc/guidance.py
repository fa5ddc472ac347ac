"""
Next-step guidance for the AirSDLC workflow.

Tells the user what normally follows an artifact's current status, and
summarises open work across the workspace.
"""

from typing import Dict, List, Tuple

from airsdlc.lifecycle import SUPERSEDED, TRANSITIONS, is_terminal
from airsdlc.models.artifact import Artifact, ArtifactType

T = ArtifactType

# Placeholders: {id} is the artifact id
NEXT_STEPS: Dict[Tuple[ArtifactType, str], List[str]] = {
    (T.PRD, "draft"): ["Fill in business requirements, then: airsdlc move {id} in_review"],
    (T.PRD, "in_review"): ["Approve with: airsdlc move {id} approved --approver <name>",
                           "Or send back with: airsdlc move {id} draft"],
    (T.PRD, "approved"): ["Create a DAA: airsdlc new daa \"<title>\" --parent {id} --ai",
                          "For a simple feature, create a TIP instead: airsdlc new tip \"<title>\" --parent {id}"],
    (T.DAA, "draft"): ["Review the domain model (contexts, aggregates, invariants): airsdlc move {id} in_review"],
    (T.DAA, "in_review"): ["A human validates it: airsdlc move {id} validated --approver <name>"],
    (T.DAA, "validated"): ["Lock it: airsdlc move {id} locked",
                           "Open an RFC: airsdlc new rfc \"<title>\" --parent {id}"],
    (T.DAA, "locked"): ["Open an RFC: airsdlc new rfc \"<title>\" --parent {id}"],
    (T.TIP, "draft"): ["Describe the technical approach, then: airsdlc move {id} in_review"],
    (T.TIP, "in_review"): ["Approve with: airsdlc move {id} approved --approver <name>"],
    (T.TIP, "approved"): ["Open an RFC: airsdlc new rfc \"<title>\" --parent {id}"],
    (T.RFC, "draft"): ["Circulate for review: airsdlc move {id} in_review"],
    (T.RFC, "in_review"): ["Accept with: airsdlc move {id} accepted --approver <name>",
                           "Or reject/withdraw: airsdlc move {id} rejected"],
    (T.RFC, "accepted"): ["Record the decision: airsdlc new adr \"<title>\" --parent {id}"],
    (T.ADR, "proposed"): ["Accept with: airsdlc move {id} accepted --approver <name>"],
    (T.ADR, "accepted"): ["Break it into Bolts: airsdlc new bolt \"<title>\" --parent {id}"],
    (T.BOLT, "todo"): ["Start work: airsdlc move {id} in_progress"],
    (T.BOLT, "in_progress"): ["Finish with: airsdlc move {id} done",
                              "If stuck: airsdlc move {id} blocked"],
    (T.BOLT, "blocked"): ["Resume with: airsdlc move {id} in_progress"],
    (T.BOLT, "done"): ["Record a deployment: airsdlc new deployment \"<title>\" --parent {id}"],
    (T.DEPLOYMENT, "pending"): ["Ship it: airsdlc move {id} deployed"],
    (T.DEPLOYMENT, "deployed"): ["If something breaks: airsdlc new incident \"<title>\" --parent {id}",
                                 "Roll back with: airsdlc move {id} rolled_back"],
    (T.DEPLOYMENT, "rolled_back"): ["Write up what happened: airsdlc new incident \"<title>\" --parent {id}"],
    (T.INCIDENT, "open"): ["Mitigate: airsdlc move {id} mitigated"],
    (T.INCIDENT, "mitigated"): ["Resolve: airsdlc move {id} resolved",
                                "Start the retrospective: airsdlc new postmortem \"<title>\" --parent {id}"],
    (T.INCIDENT, "resolved"): ["Start the retrospective: airsdlc new postmortem \"<title>\" --parent {id}"],
    (T.POSTMORTEM, "draft"): ["Review it: airsdlc move {id} in_review"],
    (T.POSTMORTEM, "in_review"): ["Publish with: airsdlc move {id} published --approver <name>"],
    (T.POSTMORTEM, "published"): ["Feed the playbook: airsdlc playbook add \"<pattern>\" --source {id}"],
}

# Statuses that still need someone to act
OPEN_STATUSES = {"draft", "in_review", "proposed", "todo", "in_progress", "blocked",
                 "pending", "open", "mitigated"}


def next_steps(artifact: Artifact) -> List[str]:
    """Recommended next actions for an artifact. Never empty."""
    if artifact.status == SUPERSEDED:
        replacement = artifact.superseded_by or "its replacement"
        return [f"Superseded by {replacement}. Follow that artifact instead."]

    steps = NEXT_STEPS.get((artifact.type, artifact.status))
    if steps:
        return [s.format(id=artifact.id) for s in steps]

    if is_terminal(artifact.type, artifact.status):
        return [f"{artifact.id} is {artifact.status}. Nothing further to do."]

    options = ", ".join(s for s in TRANSITIONS[artifact.type][artifact.status] if s != SUPERSEDED)
    return [f"Move {artifact.id} to one of: {options}"]


def workspace_next_steps(store) -> List[str]:
    """Guidance when no artifact is selected."""
    artifacts = store.list()
    if not artifacts:
        return ["Start with a PRD: airsdlc new prd \"<title>\""]

    open_items = [a for a in artifacts if a.status in OPEN_STATUSES]
    if not open_items:
        return ["No open work. Start a new PRD or review the playbook."]
    return [f"{a.id}: {next_steps(a)[0]}" for a in open_items]


def project_status(store) -> dict:
    """Counts per type and status, plus open work."""
    by_type: Dict[str, Dict[str, int]] = {}
    open_items = []
    for artifact in store.list():
        counts = by_type.setdefault(artifact.type.value, {})
        counts[artifact.status] = counts.get(artifact.status, 0) + 1
        if artifact.status in OPEN_STATUSES:
            open_items.append(artifact.summary_line())

    return {
        "total": sum(sum(c.values()) for c in by_type.values()),
        "by_type": by_type,
        "open": open_items,
    }


def format_status(store) -> str:
    """Format workspace status for display."""
    status = project_status(store)
    lines = [f"Artifacts: {status['total']}"]

    for artifact_type in ArtifactType:
        counts = status["by_type"].get(artifact_type.value)
        if not counts:
            continue
        parts = ", ".join(f"{s}: {n}" for s, n in sorted(counts.items()))
        lines.append(f"  {artifact_type.prefix:<5} {parts}")

    lines.append("")
    if status["open"]:
        lines.append("Open work:")
        lines.extend(f"  {line}" for line in status["open"])
    else:
        lines.append("No open work.")

    return "\n".join(lines)
