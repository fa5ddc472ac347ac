"""
Playbook of reusable patterns.

Stored in .airsdlc/playbook.yaml. Every pattern must cite at least one
published post-mortem; that citation is the feedback edge from incidents
back into design guidance.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

import yaml

from airsdlc.exceptions import ArtifactStoreError, LineageError
from airsdlc.models.artifact import ArtifactType, normalize_id
from airsdlc.models.playbook import PlaybookPattern

logger = logging.getLogger(__name__)

PLAYBOOK_VERSION = 1


def _pattern_number(pattern_id: str) -> int:
    try:
        return int(pattern_id.split("-", 1)[1])
    except (IndexError, ValueError):
        return 0


@dataclass
class Playbook:
    """All patterns of one workspace."""
    path: Path
    patterns: List[PlaybookPattern] = field(default_factory=list)

    @classmethod
    def load(cls, workspace: Path) -> "Playbook":
        """Load from a workspace directory (.airsdlc). Empty when absent."""
        path = Path(workspace) / "playbook.yaml"
        playbook = cls(path=path)
        if not path.exists():
            return playbook

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ArtifactStoreError(f"{path}: invalid YAML", [str(e)])

        if not isinstance(data, dict):
            raise ArtifactStoreError(f"{path}: playbook must be a mapping with a 'patterns' list")
        entries = data.get("patterns") or []
        if not isinstance(entries, list):
            raise ArtifactStoreError(f"{path}: 'patterns' must be a list")

        for i, entry in enumerate(entries, 1):
            try:
                playbook.patterns.append(PlaybookPattern.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise ArtifactStoreError(f"{path}: invalid pattern #{i}", [f"{type(e).__name__}: {e}"])
        return playbook

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": PLAYBOOK_VERSION,
            "patterns": [p.to_dict() for p in self.patterns],
        }
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def next_id(self) -> str:
        highest = max((_pattern_number(p.id) for p in self.patterns), default=0)
        return f"PAT-{highest + 1:03d}"

    def add(
        self,
        store,
        name: str,
        problem: str = "",
        solution: str = "",
        sources: Iterable[str] = (),
        tags: Iterable[str] = (),
    ) -> PlaybookPattern:
        """Add a pattern distilled from published post-mortems.

        Raises:
            LineageError: No sources, or a source that is not a published post-mortem
        """
        if not name.strip():
            raise ArtifactStoreError("pattern name is required")

        problems = []
        cited = []
        for raw in sources:
            try:
                source_id = normalize_id(raw)
            except ValueError:
                problems.append(f"{raw} is not an artifact id")
                continue
            artifact = store.find(source_id)
            if artifact is None:
                problems.append(f"{source_id} does not exist")
            elif artifact.type != ArtifactType.POSTMORTEM:
                problems.append(f"{source_id} is a {artifact.type.value}, not a post-mortem")
            elif artifact.status != "published":
                problems.append(f"{source_id} is {artifact.status}; publish it first")
            elif source_id not in cited:
                cited.append(source_id)

        if not cited and not problems:
            problems.append("cite at least one published post-mortem")
        if problems:
            raise LineageError("Playbook patterns must come from published post-mortems", problems)

        pattern = PlaybookPattern(
            id=self.next_id(),
            name=name.strip(),
            problem=problem,
            solution=solution,
            sources=cited,
            tags=[t.strip().lower() for t in tags if t.strip()],
        )
        self.patterns.append(pattern)
        self.save()
        logger.info(f"Added playbook pattern {pattern.id}: {pattern.name}")
        return pattern

    def get(self, pattern_id: str) -> Optional[PlaybookPattern]:
        wanted = pattern_id.strip().upper()
        for p in self.patterns:
            if p.id == wanted:
                return p
        return None

    def list(self, tag: Optional[str] = None) -> List[PlaybookPattern]:
        if tag is None:
            return list(self.patterns)
        return [p for p in self.patterns if tag.lower() in p.tags]

    def search(self, text: str) -> List[PlaybookPattern]:
        return [p for p in self.patterns if p.matches(text)]

    def for_source(self, postmortem_id: str) -> List[PlaybookPattern]:
        wanted = normalize_id(postmortem_id)
        return [p for p in self.patterns if wanted in p.sources]
