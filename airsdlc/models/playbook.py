"""
Playbook pattern model.

Patterns are distilled from published post-mortems. They form a reference
collection beside the lineage, not part of it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List


@dataclass
class PlaybookPattern:
    """A reusable architectural pattern."""
    id: str
    name: str
    problem: str = ""
    solution: str = ""
    sources: List[str] = field(default_factory=list)  # post-mortem ids
    tags: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "problem": self.problem,
            "solution": self.solution,
            "sources": self.sources,
            "tags": self.tags,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PlaybookPattern":
        created = d.get("created_at")
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        return cls(
            id=d["id"],
            name=d.get("name", ""),
            problem=d.get("problem", "") or "",
            solution=d.get("solution", "") or "",
            sources=list(d.get("sources") or []),
            tags=list(d.get("tags") or []),
            created_at=created or datetime.now(),
        )

    def matches(self, text: str) -> bool:
        needle = text.lower()
        return any(needle in s.lower() for s in (self.name, self.problem, self.solution))
