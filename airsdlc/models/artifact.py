"""
Artifact model for the AirSDLC lineage.

Artifacts are the documents produced along the workflow:

    PRD -> (DAA | TIP) -> RFC -> ADR -> Bolt -> Deployment -> Incident -> Post-mortem

Each artifact carries its status, lineage parents, and a transition history.
On disk the fields live in YAML front matter and the body follows as markdown.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ArtifactType(Enum):
    """Kinds of artifact, in lineage order."""
    PRD = "prd"
    DAA = "daa"
    TIP = "tip"
    RFC = "rfc"
    ADR = "adr"
    BOLT = "bolt"
    DEPLOYMENT = "deployment"
    INCIDENT = "incident"
    POSTMORTEM = "postmortem"

    @property
    def prefix(self) -> str:
        return ID_PREFIXES[self]

    @property
    def label(self) -> str:
        return TYPE_LABELS[self]

    @classmethod
    def parse(cls, value: Union[str, "ArtifactType"]) -> "ArtifactType":
        """Accept a type value ('adr'), name ('ADR') or id prefix ('PM')."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for t in cls:
            if text == t.value or text == t.prefix.lower():
                return t
        if text in ("post-mortem", "post_mortem"):
            return cls.POSTMORTEM
        raise ValueError(f"Unknown artifact type: {value}")


ID_PREFIXES: Dict[ArtifactType, str] = {
    ArtifactType.PRD: "PRD",
    ArtifactType.DAA: "DAA",
    ArtifactType.TIP: "TIP",
    ArtifactType.RFC: "RFC",
    ArtifactType.ADR: "ADR",
    ArtifactType.BOLT: "BOLT",
    ArtifactType.DEPLOYMENT: "DEP",
    ArtifactType.INCIDENT: "INC",
    ArtifactType.POSTMORTEM: "PM",
}

TYPE_LABELS: Dict[ArtifactType, str] = {
    ArtifactType.PRD: "Product Requirements Document",
    ArtifactType.DAA: "Domain Architecture Analysis",
    ArtifactType.TIP: "Technical Implementation Proposal",
    ArtifactType.RFC: "Request for Comments",
    ArtifactType.ADR: "Architectural Decision Record",
    ArtifactType.BOLT: "Bolt",
    ArtifactType.DEPLOYMENT: "Deployment",
    ArtifactType.INCIDENT: "Incident",
    ArtifactType.POSTMORTEM: "Post-mortem",
}

TYPE_ORDER: List[ArtifactType] = list(ArtifactType)

PRODUCERS = ("human", "ai")

_ID_RE = re.compile(r"^([A-Za-z]+)-(\d+)$")


def format_id(artifact_type: ArtifactType, number: int) -> str:
    """Format an artifact id, e.g. (ADR, 7) -> 'ADR-007'."""
    return f"{artifact_type.prefix}-{number:03d}"


def parse_id(artifact_id: str) -> Tuple[ArtifactType, int]:
    """Split an id into its type and sequence number.

    Raises:
        ValueError: If the id is not of the form PREFIX-NNN
    """
    match = _ID_RE.match(artifact_id.strip())
    if not match:
        raise ValueError(f"Malformed artifact id: {artifact_id}")
    prefix, number = match.groups()
    prefix = prefix.upper()
    for t, p in ID_PREFIXES.items():
        if p == prefix:
            return t, int(number)
    raise ValueError(f"Unknown artifact id prefix: {prefix}")


def normalize_id(artifact_id: str) -> str:
    """Canonical upper-case, zero-padded form of an id."""
    t, n = parse_id(artifact_id)
    return format_id(t, n)


def sort_key(artifact_id: str) -> Tuple[int, int]:
    t, n = parse_id(artifact_id)
    return TYPE_ORDER.index(t), n


def _parse_dt(value: Any) -> Optional[datetime]:
    # Hand-edited front matter may hold unquoted timestamps that YAML parses itself
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class TransitionRecord:
    """One entry in an artifact's status history."""
    timestamp: datetime
    from_status: str
    to_status: str
    actor: str = ""
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "from": self.from_status,
            "to": self.to_status,
            "actor": self.actor,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TransitionRecord":
        return cls(
            timestamp=_parse_dt(d.get("timestamp")) or datetime.now(),
            from_status=d.get("from", ""),
            to_status=d.get("to", ""),
            actor=d.get("actor", "") or "",
            note=d.get("note", "") or "",
        )


@dataclass
class Artifact:
    """A single artifact in the lineage."""
    id: str
    type: ArtifactType
    title: str
    status: str
    body: str = ""
    parents: List[str] = field(default_factory=list)
    supersedes: Optional[str] = None
    superseded_by: Optional[str] = None

    # Provenance
    author: str = ""
    produced_by: str = "human"  # "human" | "ai"
    approver: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    history: List[TransitionRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize everything, body included."""
        d = self.front_matter()
        d["body"] = self.body
        return d

    def front_matter(self) -> Dict[str, Any]:
        """Fields stored in the YAML header (everything but the body)."""
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "status": self.status,
            "parents": list(self.parents),
            "supersedes": self.supersedes,
            "superseded_by": self.superseded_by,
            "author": self.author,
            "produced_by": self.produced_by,
            "approver": self.approver,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Artifact":
        return cls(
            id=normalize_id(d["id"]),
            type=ArtifactType.parse(d["type"]),
            title=d.get("title", "") or "",
            status=d["status"],
            body=d.get("body", "") or "",
            parents=[normalize_id(p) for p in d.get("parents") or []],
            supersedes=d.get("supersedes"),
            superseded_by=d.get("superseded_by"),
            author=d.get("author", "") or "",
            produced_by=d.get("produced_by", "human") or "human",
            approver=d.get("approver"),
            tags=list(d.get("tags") or []),
            created_at=_parse_dt(d.get("created_at")) or datetime.now(),
            updated_at=_parse_dt(d.get("updated_at")) or datetime.now(),
            history=[TransitionRecord.from_dict(h) for h in d.get("history") or []],
        )

    @property
    def number(self) -> int:
        return parse_id(self.id)[1]

    def record(self, from_status: str, to_status: str, actor: str = "", note: str = "",
               limit: Optional[int] = None) -> TransitionRecord:
        """Append a transition record, trimming to the newest `limit` entries."""
        entry = TransitionRecord(
            timestamp=datetime.now(),
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            note=note,
        )
        self.history.append(entry)
        if limit is not None and len(self.history) > limit:
            self.history = self.history[-limit:]
        self.updated_at = entry.timestamp
        return entry

    def summary_line(self) -> str:
        return f"{self.id} [{self.status}] {self.title}"
