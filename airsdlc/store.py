"""
File-backed artifact store.

Each artifact is a markdown file in .airsdlc/artifacts/<ID>.md. The YAML
front matter between the two '---' lines holds status, lineage and history;
everything after it is the body, kept verbatim.

Layout:
    .airsdlc/
      config.json
      artifacts/PRD-001.md
      playbook.yaml
"""

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import yaml

from airsdlc.config import WORKSPACE_DIR, TrackerConfig, init_config, load_config
from airsdlc.exceptions import ArtifactNotFoundError, ArtifactStoreError, ImmutableArtifactError
from airsdlc.graph import TraceGraph, validate_parents
from airsdlc.lifecycle import initial_status, is_deletable, is_frozen, normalize_status
from airsdlc.models.artifact import (
    PRODUCERS,
    Artifact,
    ArtifactType,
    format_id,
    normalize_id,
    parse_id,
    sort_key,
)

logger = logging.getLogger(__name__)

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*$\n?(.*)\Z", re.DOTALL | re.MULTILINE)


def default_root() -> str:
    """Workspace root, respecting the AIRSDLC_ROOT env var."""
    return os.environ.get("AIRSDLC_ROOT", os.getcwd())


def render_artifact(artifact: Artifact) -> str:
    """Serialize an artifact to front matter plus body."""
    header = yaml.safe_dump(artifact.front_matter(), default_flow_style=False,
                            sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\n{artifact.body}"


def parse_artifact(text: str, source: str = "<string>") -> Artifact:
    """Parse a rendered artifact file.

    Raises:
        ArtifactStoreError: Missing or malformed front matter
    """
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        raise ArtifactStoreError(f"{source}: missing YAML front matter")

    header, body = match.groups()
    try:
        data = yaml.safe_load(header) or {}
    except yaml.YAMLError as e:
        raise ArtifactStoreError(f"{source}: invalid YAML front matter", [str(e)])
    if not isinstance(data, dict):
        raise ArtifactStoreError(f"{source}: front matter must be a mapping")

    # One blank line separates header and body
    if body.startswith("\n"):
        body = body[1:]
    data["body"] = body

    try:
        return Artifact.from_dict(data)
    except (KeyError, ValueError, TypeError) as e:
        raise ArtifactStoreError(f"{source}: invalid artifact", [f"{type(e).__name__}: {e}"])


class ArtifactStore:
    """Artifacts of one workspace, read from and written to disk on demand."""

    def __init__(self, root: Optional[str] = None):
        self.root = os.path.abspath(os.path.expanduser(root or default_root()))
        self.workspace = Path(self.root) / WORKSPACE_DIR
        self.artifacts_dir = self.workspace / "artifacts"
        self._config: Optional[TrackerConfig] = None

    @classmethod
    def init(cls, root: Optional[str] = None) -> "ArtifactStore":
        """Create the workspace layout. Safe to call more than once."""
        store = cls(root)
        store.artifacts_dir.mkdir(parents=True, exist_ok=True)
        store._config = init_config(store.root)
        logger.info(f"Initialized workspace at {store.workspace}")
        return store

    def is_initialized(self) -> bool:
        return self.artifacts_dir.is_dir()

    @property
    def config(self) -> TrackerConfig:
        if self._config is None:
            self._config = load_config(self.root)
        return self._config

    def reload_config(self) -> None:
        self._config = None

    def _require_init(self) -> None:
        if not self.is_initialized():
            raise ArtifactStoreError(
                f"No AirSDLC workspace at {self.root}",
                ["run: airsdlc init"],
            )

    def path_for(self, artifact_id: str) -> Path:
        return self.artifacts_dir / f"{artifact_id}.md"

    def _canonical(self, artifact_id: str) -> str:
        try:
            return normalize_id(artifact_id)
        except ValueError as e:
            raise ArtifactNotFoundError(artifact_id) from e

    # =========================================================================
    # Reads
    # =========================================================================

    def exists(self, artifact_id: str) -> bool:
        try:
            return self.path_for(normalize_id(artifact_id)).is_file()
        except ValueError:
            return False

    def get(self, artifact_id: str) -> Artifact:
        """Load an artifact by id (case-insensitive).

        Raises:
            ArtifactNotFoundError: No such artifact
            ArtifactStoreError: File exists but cannot be parsed
        """
        self._require_init()
        canonical = self._canonical(artifact_id)
        path = self.path_for(canonical)
        if not path.is_file():
            raise ArtifactNotFoundError(canonical)
        artifact = parse_artifact(path.read_text(encoding="utf-8"), source=str(path))
        if artifact.id != canonical:
            raise ArtifactStoreError(f"{path}: front matter id {artifact.id} does not match file name")
        return artifact

    def find(self, artifact_id: str) -> Optional[Artifact]:
        """Like get(), but None for ids that don't resolve."""
        return self.get(artifact_id) if self.exists(artifact_id) else None

    def ids(self) -> List[str]:
        """Ids of every stored artifact, lineage order."""
        self._require_init()
        found = []
        for path in self.artifacts_dir.glob("*.md"):
            try:
                found.append(normalize_id(path.stem))
            except ValueError:
                logger.debug(f"Skipping non-artifact file {path.name}")
        return sorted(found, key=sort_key)

    def list(
        self,
        artifact_type: Optional[ArtifactType] = None,
        status: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[Artifact]:
        """List artifacts, optionally filtered, sorted by type then number."""
        if status is not None:
            status = normalize_status(status)
        results = []
        for artifact_id in self.ids():
            if artifact_type is not None and parse_id(artifact_id)[0] != artifact_type:
                continue
            artifact = self.get(artifact_id)
            if status is not None and artifact.status != status:
                continue
            if tag is not None and tag.lower() not in (t.lower() for t in artifact.tags):
                continue
            results.append(artifact)
        return results

    def graph(self) -> TraceGraph:
        return TraceGraph.from_artifacts(self.list())

    def children_of(self, artifact_id: str) -> List[str]:
        canonical = self._canonical(artifact_id)
        return [a.id for a in self.list() if canonical in a.parents]

    def next_id(self, artifact_type: ArtifactType) -> str:
        numbers = [n for t, n in (parse_id(i) for i in self.ids()) if t == artifact_type]
        return format_id(artifact_type, max(numbers, default=0) + 1)

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, artifact: Artifact) -> None:
        """Write an artifact to disk as-is (no lifecycle checks)."""
        self._require_init()
        path = self.path_for(artifact.id)
        tmp = path.with_suffix(".md.tmp")
        tmp.write_text(render_artifact(artifact), encoding="utf-8")
        os.replace(tmp, path)

    def create(
        self,
        artifact_type: ArtifactType,
        title: str,
        body: str = "",
        parents: Iterable[str] = (),
        author: str = "",
        produced_by: str = "human",
        tags: Iterable[str] = (),
    ) -> Artifact:
        """Create an artifact in its type's initial status.

        Raises:
            LineageError: Parents break the lineage rules
            ArtifactStoreError: Empty title or unknown producer
        """
        self._require_init()
        if not title.strip():
            raise ArtifactStoreError("title is required")
        if produced_by not in PRODUCERS:
            raise ArtifactStoreError(f"produced_by must be one of: {', '.join(PRODUCERS)}")

        canonical_parents = []
        for p in parents:
            try:
                canonical_parents.append(normalize_id(p))
            except ValueError as e:
                raise ArtifactStoreError(f"bad parent id: {p}") from e

        parent_ids = validate_parents(
            artifact_type, canonical_parents, self.find, strict=self.config.strict_lineage
        )

        now = datetime.now()
        artifact = Artifact(
            id=self.next_id(artifact_type),
            type=artifact_type,
            title=title.strip(),
            status=initial_status(artifact_type),
            body=body,
            parents=parent_ids,
            author=author or self.config.default_author,
            produced_by=produced_by,
            tags=_clean_tags(tags),
            created_at=now,
            updated_at=now,
        )
        artifact.record("", artifact.status, actor=artifact.author, note="created",
                        limit=self.config.history_limit)
        self.save(artifact)
        logger.info(f"Created {artifact.id}: {artifact.title}")
        return artifact

    def update(
        self,
        artifact_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Artifact:
        """Edit title, body or tags.

        Raises:
            ImmutableArtifactError: Artifact is frozen
        """
        artifact = self.get(artifact_id)
        if is_frozen(artifact.type, artifact.status):
            raise ImmutableArtifactError(artifact.id, artifact.status)

        if title is not None:
            if not title.strip():
                raise ArtifactStoreError("title cannot be empty")
            artifact.title = title.strip()
        if body is not None:
            artifact.body = body
        if tags is not None:
            artifact.tags = _clean_tags(tags)
        artifact.updated_at = datetime.now()
        self.save(artifact)
        logger.info(f"Updated {artifact.id}")
        return artifact

    def delete(self, artifact_id: str) -> None:
        """Delete an untouched artifact that nothing derives from."""
        artifact = self.get(artifact_id)
        if not is_deletable(artifact):
            raise ArtifactStoreError(
                f"{artifact.id} is {artifact.status}; only artifacts in their initial status can be deleted"
            )
        children = self.children_of(artifact.id)
        if children:
            raise ArtifactStoreError(f"{artifact.id} has children", children)
        self.path_for(artifact.id).unlink()
        logger.info(f"Deleted {artifact.id}")

    def counts(self) -> List[Tuple[ArtifactType, str, int]]:
        """(type, status, count) for every populated pair."""
        tally = {}
        for artifact in self.list():
            key = (artifact.type, artifact.status)
            tally[key] = tally.get(key, 0) + 1
        return sorted(
            ((t, s, n) for (t, s), n in tally.items()),
            key=lambda x: (list(ArtifactType).index(x[0]), x[1]),
        )


def _clean_tags(tags: Iterable[str]) -> List[str]:
    seen = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
