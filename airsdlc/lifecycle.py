"""
Lifecycle state machine for artifacts.

Each artifact type has its own transition table. Transitions pass through
validation gates before they are applied:

- approval: approval statuses need a (human) approver
- content: leaving draft for review needs a title and a body
- lineage: approval and start-of-work need established parents

Amendment is supersede-only. An artifact is never moved to 'superseded'
directly; supersede() links a replacement, and the original flips to
'superseded' once the replacement reaches its approval status.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from airsdlc.config import TrackerConfig
from airsdlc.exceptions import GateError, InvalidTransitionError, LineageError
from airsdlc.models.artifact import Artifact, ArtifactType

if TYPE_CHECKING:
    from airsdlc.store import ArtifactStore

logger = logging.getLogger(__name__)

SUPERSEDED = "superseded"

T = ArtifactType

TRANSITIONS: Dict[ArtifactType, Dict[str, List[str]]] = {
    T.PRD: {
        "draft": ["in_review"],
        "in_review": ["draft", "approved"],
        "approved": [SUPERSEDED],
        SUPERSEDED: [],
    },
    T.DAA: {
        "draft": ["in_review"],
        "in_review": ["draft", "validated"],
        "validated": ["locked", "draft"],
        "locked": [SUPERSEDED],
        SUPERSEDED: [],
    },
    T.TIP: {
        "draft": ["in_review"],
        "in_review": ["draft", "approved"],
        "approved": [SUPERSEDED],
        SUPERSEDED: [],
    },
    T.RFC: {
        "draft": ["in_review", "withdrawn"],
        "in_review": ["draft", "accepted", "rejected", "withdrawn"],
        "accepted": [SUPERSEDED],
        "rejected": [],
        "withdrawn": [],
        SUPERSEDED: [],
    },
    T.ADR: {
        "proposed": ["accepted", "rejected"],
        "accepted": [SUPERSEDED, "deprecated"],
        "rejected": [],
        "deprecated": [],
        SUPERSEDED: [],
    },
    T.BOLT: {
        "todo": ["in_progress", "cancelled"],
        "in_progress": ["todo", "blocked", "done"],
        "blocked": ["in_progress"],
        "done": [],
        "cancelled": [],
    },
    T.DEPLOYMENT: {
        "pending": ["deployed", "cancelled"],
        "deployed": ["rolled_back"],
        "rolled_back": [],
        "cancelled": [],
    },
    T.INCIDENT: {
        "open": ["mitigated", "resolved"],
        "mitigated": ["resolved"],
        "resolved": [],
    },
    T.POSTMORTEM: {
        "draft": ["in_review"],
        "in_review": ["draft", "published"],
        "published": [],
    },
}

INITIAL_STATUS: Dict[ArtifactType, str] = {
    T.PRD: "draft",
    T.DAA: "draft",
    T.TIP: "draft",
    T.RFC: "draft",
    T.ADR: "proposed",
    T.BOLT: "todo",
    T.DEPLOYMENT: "pending",
    T.INCIDENT: "open",
    T.POSTMORTEM: "draft",
}

# Status reached when a human signs the artifact off
APPROVAL_STATUS: Dict[ArtifactType, str] = {
    T.PRD: "approved",
    T.DAA: "validated",
    T.TIP: "approved",
    T.RFC: "accepted",
    T.ADR: "accepted",
    T.POSTMORTEM: "published",
}

# Title, body and parents are immutable in these statuses
FROZEN: Dict[ArtifactType, Set[str]] = {
    T.PRD: {"approved", SUPERSEDED},
    T.DAA: {"validated", "locked", SUPERSEDED},
    T.TIP: {"approved", SUPERSEDED},
    T.RFC: {"accepted", "rejected", "withdrawn", SUPERSEDED},
    T.ADR: {"accepted", "rejected", "deprecated", SUPERSEDED},
    T.BOLT: {"done", "cancelled"},
    T.DEPLOYMENT: {"deployed", "rolled_back", "cancelled"},
    T.INCIDENT: set(),
    T.POSTMORTEM: {"published"},
}

# A parent in one of these statuses is ready to have children acted on
ESTABLISHED: Dict[ArtifactType, Set[str]] = {
    T.PRD: {"approved"},
    T.DAA: {"validated", "locked"},
    T.TIP: {"approved"},
    T.RFC: {"accepted"},
    T.ADR: {"accepted"},
    T.BOLT: {"done"},
    T.DEPLOYMENT: {"deployed", "rolled_back"},
    T.INCIDENT: {"open", "mitigated", "resolved"},
    T.POSTMORTEM: {"published"},
}

# Target statuses that require every lineage parent to be established
PARENT_GATED: Dict[ArtifactType, Set[str]] = {
    T.PRD: {"approved"},
    T.DAA: {"validated"},
    T.TIP: {"approved"},
    T.RFC: {"accepted"},
    T.ADR: {"accepted"},
    T.BOLT: {"in_progress", "done"},
    T.DEPLOYMENT: {"deployed"},
    T.INCIDENT: set(),
    T.POSTMORTEM: {"published"},
}

DRAFT_STATUSES = {"draft", "proposed"}


def normalize_status(status: str) -> str:
    """'In-Progress' -> 'in_progress'."""
    return status.strip().lower().replace("-", "_").replace(" ", "_")


def initial_status(artifact_type: ArtifactType) -> str:
    return INITIAL_STATUS[artifact_type]


def statuses(artifact_type: ArtifactType) -> List[str]:
    """All statuses known for a type, in table order."""
    return list(TRANSITIONS[artifact_type])


def allowed_transitions(artifact_type: ArtifactType, status: str) -> List[str]:
    """Statuses reachable in one step (supersession included)."""
    return list(TRANSITIONS[artifact_type].get(status, []))


def is_terminal(artifact_type: ArtifactType, status: str) -> bool:
    return not TRANSITIONS[artifact_type].get(status)


def is_frozen(artifact_type: ArtifactType, status: str) -> bool:
    return status in FROZEN[artifact_type]


def is_established(artifact_type: ArtifactType, status: str) -> bool:
    return status in ESTABLISHED[artifact_type]


def approval_status(artifact_type: ArtifactType) -> Optional[str]:
    return APPROVAL_STATUS.get(artifact_type)


def is_deletable(artifact: Artifact) -> bool:
    """Only untouched artifacts (still in their initial status) may be deleted."""
    return artifact.status == INITIAL_STATUS[artifact.type]


def check_gates(
    artifact: Artifact,
    target: str,
    parents: Dict[str, Optional[Artifact]],
    approver: Optional[str],
    config: TrackerConfig,
) -> List[str]:
    """Evaluate every gate for a transition.

    Args:
        artifact: Artifact being moved
        target: Target status (already known to be in the table)
        parents: Parent id -> artifact, None for ids that don't resolve
        approver: Approver named on this transition, if any
        config: Workspace configuration

    Returns:
        List of failure messages; empty when the transition may proceed
    """
    failures = []
    approval = APPROVAL_STATUS.get(artifact.type)

    if target == approval:
        who = (approver or "").strip()
        if not who:
            failures.append(f"an approver is required to mark it {target}")
        elif config.require_human_validation:
            if who.lower() == "ai":
                failures.append("approver must be a human, not 'ai'")
            elif artifact.produced_by == "ai" and artifact.author and who.lower() == artifact.author.strip().lower():
                failures.append("AI-produced artifacts need an approver other than the author")

    if artifact.status in DRAFT_STATUSES and (target == "in_review" or target == approval):
        if not artifact.title.strip():
            failures.append("title is empty")
        if not artifact.body.strip():
            failures.append("body is empty")

    if target in PARENT_GATED[artifact.type]:
        for parent_id in artifact.parents:
            parent = parents.get(parent_id)
            if parent is None:
                failures.append(f"parent {parent_id} does not exist")
            elif not is_established(parent.type, parent.status):
                needed = " or ".join(sorted(ESTABLISHED[parent.type]))
                failures.append(f"parent {parent.id} is {parent.status}; needs {needed}")

    return failures


def transition(
    store: "ArtifactStore",
    artifact_id: str,
    target: str,
    actor: str = "",
    approver: Optional[str] = None,
    note: str = "",
) -> Artifact:
    """Move an artifact to a new status.

    Raises:
        ArtifactNotFoundError: Unknown id
        InvalidTransitionError: Target not reachable from current status
        GateError: One or more gates failed
        LineageError: Approval would replace an artifact that can no longer be superseded
    """
    artifact = store.get(artifact_id)
    target = normalize_status(target)
    allowed = [s for s in allowed_transitions(artifact.type, artifact.status) if s != SUPERSEDED]

    if target not in allowed:
        raise InvalidTransitionError(artifact.id, artifact.status, target, allowed)

    parents = {p: (store.get(p) if store.exists(p) else None) for p in artifact.parents}
    failures = check_gates(artifact, target, parents, approver, store.config)
    if failures:
        raise GateError(artifact.id, target, failures)

    completes_supersession = target == APPROVAL_STATUS.get(artifact.type) and bool(artifact.supersedes)
    if completes_supersession:
        _check_supersedable(store, artifact)

    previous = artifact.status
    artifact.status = target
    if target == APPROVAL_STATUS.get(artifact.type):
        artifact.approver = approver.strip()
    artifact.record(previous, target, actor=actor, note=note, limit=store.config.history_limit)
    store.save(artifact)
    logger.info(f"{artifact.id}: {previous} -> {target} by {actor or 'unknown'}")

    if completes_supersession:
        _complete_supersession(store, artifact, actor)

    return artifact


def _check_supersedable(store: "ArtifactStore", replacement: Artifact) -> Artifact:
    """The artifact a replacement supersedes, if it can still be superseded.

    Raises:
        LineageError: Original is missing, no longer supersedable, or already replaced
    """
    if not store.exists(replacement.supersedes):
        raise LineageError(f"{replacement.id} supersedes missing artifact {replacement.supersedes}")

    old = store.get(replacement.supersedes)
    if SUPERSEDED not in allowed_transitions(old.type, old.status):
        raise LineageError(
            f"{old.id} is {old.status} and can no longer be superseded by {replacement.id}"
        )
    if old.superseded_by and old.superseded_by != replacement.id:
        raise LineageError(f"{old.id} is already superseded by {old.superseded_by}")
    return old


def _complete_supersession(store: "ArtifactStore", replacement: Artifact, actor: str) -> None:
    old = _check_supersedable(store, replacement)

    previous = old.status
    old.status = SUPERSEDED
    old.superseded_by = replacement.id
    old.record(previous, SUPERSEDED, actor=actor, note=f"superseded by {replacement.id}",
               limit=store.config.history_limit)
    store.save(old)
    logger.info(f"{old.id}: {previous} -> {SUPERSEDED} (replaced by {replacement.id})")


def supersede(store: "ArtifactStore", old_id: str, new_id: str, actor: str = "") -> Artifact:
    """Register new_id as the replacement for old_id.

    The original keeps its status until the replacement is approved.

    Returns:
        The updated replacement artifact

    Raises:
        LineageError: Type mismatch, replacement frozen, or conflicting links
        InvalidTransitionError: Original cannot be superseded from its status
    """
    old = store.get(old_id)
    new = store.get(new_id)

    if old.id == new.id:
        raise LineageError(f"{old.id} cannot supersede itself")
    if old.type != new.type:
        raise LineageError(
            f"{new.id} ({new.type.value}) cannot supersede {old.id} ({old.type.value})"
        )
    if SUPERSEDED not in allowed_transitions(old.type, old.status):
        allowed = allowed_transitions(old.type, old.status)
        raise InvalidTransitionError(old.id, old.status, SUPERSEDED, allowed)
    if is_frozen(new.type, new.status):
        raise LineageError(f"replacement {new.id} is already {new.status}")
    if old.superseded_by and old.superseded_by != new.id:
        raise LineageError(f"{old.id} is already superseded by {old.superseded_by}")
    if new.supersedes and new.supersedes != old.id:
        raise LineageError(f"{new.id} already supersedes {new.supersedes}")
    # A rejected or withdrawn replacement no longer blocks the original
    rivals = [
        a.id for a in store.list(artifact_type=old.type)
        if a.supersedes == old.id and a.id != new.id and not is_terminal(a.type, a.status)
    ]
    if rivals:
        raise LineageError(f"{old.id} already has a pending replacement", rivals)

    new.supersedes = old.id
    new.record(new.status, new.status, actor=actor, note=f"replaces {old.id}",
               limit=store.config.history_limit)
    store.save(new)
    logger.info(f"{new.id} registered as replacement for {old.id}")
    return new
