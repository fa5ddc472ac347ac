"""
Consistency audit for a workspace.

Checks that the stored artifacts still form a sound lineage: parents
resolve and have the right types, frozen artifacts sit on established
parents, supersession links agree in both directions, markdown links in
bodies resolve, and playbook patterns cite published post-mortems.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from airsdlc.exceptions import AirSDLCError
from airsdlc.graph import LINEAGE_RULES, TraceGraph, requires_parent
from airsdlc.lifecycle import APPROVAL_STATUS, SUPERSEDED, is_established, is_frozen
from airsdlc.models.artifact import Artifact, ArtifactType, normalize_id
from airsdlc.playbook import Playbook

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"

# [text](target) and ![alt](target), ignoring an optional "title"
_LINK_RE = re.compile(r"!?\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
_ID_TARGET_RE = re.compile(r"^([A-Za-z]+-\d+)(?:\.md)?$")
_EXTERNAL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass
class AuditIssue:
    """A single finding."""
    severity: str  # "error" | "warning"
    code: str
    artifact_id: str
    message: str

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "code": self.code,
            "artifact_id": self.artifact_id,
            "message": self.message,
        }

    def format(self) -> str:
        return f"[{self.severity}] {self.artifact_id} {self.code}: {self.message}"


@dataclass
class AuditReport:
    """Findings for a workspace."""
    checked: int = 0
    issues: List[AuditIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[AuditIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> List[AuditIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, severity: str, code: str, artifact_id: str, message: str) -> None:
        self.issues.append(AuditIssue(severity, code, artifact_id, message))

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "checked": self.checked,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "issues": [i.to_dict() for i in self.issues],
        }


def extract_links(body: str) -> List[str]:
    """Markdown link targets in a body, in order of appearance."""
    return [m.group(1) for m in _LINK_RE.finditer(body)]


def _check_link(target: str, artifacts: Dict[str, Artifact], artifacts_dir: Path) -> Optional[str]:
    """Return a problem description, or None when the link resolves."""
    if target.startswith("#") or _EXTERNAL_RE.match(target):
        return None

    path_part = target.split("#", 1)[0]
    id_match = _ID_TARGET_RE.match(path_part)
    if id_match:
        try:
            if normalize_id(id_match.group(1)) in artifacts:
                return None
        except ValueError:
            pass

    if (artifacts_dir / path_part).exists():
        return None
    return f"link target '{target}' does not resolve"


def _check_lineage(artifact: Artifact, graph: TraceGraph, report: AuditReport, strict: bool) -> None:
    allowed = LINEAGE_RULES[artifact.type]
    present = []

    for pid in artifact.parents:
        parent = graph.get(pid)
        if parent is None:
            report.add(ERROR, "dangling-parent", artifact.id, f"parent {pid} does not exist")
            continue
        present.append(parent)
        if parent.type not in allowed:
            report.add(ERROR, "bad-parent-type", artifact.id,
                       f"parent {pid} is a {parent.type.value}, not allowed for {artifact.type.value}")

    if requires_parent(artifact.type) and not artifact.parents:
        report.add(ERROR if strict else WARNING, "missing-parent", artifact.id,
                   f"{artifact.type.value} has no lineage parent")

    if is_frozen(artifact.type, artifact.status):
        for parent in present:
            if not (is_established(parent.type, parent.status) or parent.status == SUPERSEDED):
                report.add(ERROR, "unestablished-parent", artifact.id,
                           f"{artifact.status} but parent {parent.id} is only {parent.status}")


def _replacement_signed_off(artifact: Artifact) -> bool:
    """A replacement counts once it reached approval, even if later superseded itself."""
    if artifact.status == APPROVAL_STATUS.get(artifact.type):
        return True
    return is_frozen(artifact.type, artifact.status) and artifact.status not in ("rejected", "withdrawn")


def _check_supersession(artifact: Artifact, graph: TraceGraph, report: AuditReport) -> None:
    if artifact.supersedes:
        old = graph.get(artifact.supersedes)
        if old is None:
            report.add(ERROR, "supersession-mismatch", artifact.id,
                       f"supersedes missing artifact {artifact.supersedes}")
        elif old.type != artifact.type:
            report.add(ERROR, "supersession-mismatch", artifact.id,
                       f"supersedes {old.id} of a different type")
        elif _replacement_signed_off(artifact) and old.superseded_by != artifact.id:
            report.add(ERROR, "supersession-mismatch", artifact.id,
                       f"supersedes {old.id}, but {old.id} is superseded by {old.superseded_by or 'nothing'}")

    if artifact.superseded_by:
        new = graph.get(artifact.superseded_by)
        if new is None or new.supersedes != artifact.id:
            report.add(ERROR, "supersession-mismatch", artifact.id,
                       f"superseded_by {artifact.superseded_by} does not point back")
        if artifact.status != SUPERSEDED:
            report.add(ERROR, "supersession-mismatch", artifact.id,
                       f"has superseded_by but status is {artifact.status}")
    elif artifact.status == SUPERSEDED:
        report.add(ERROR, "supersession-mismatch", artifact.id, "superseded without a replacement")


def run_audit(store) -> AuditReport:
    """Audit every artifact and the playbook of a store."""
    artifacts = {a.id: a for a in store.list()}
    graph = TraceGraph.from_artifacts(artifacts.values())
    strict = store.config.strict_lineage
    report = AuditReport(checked=len(artifacts))

    for artifact in artifacts.values():
        _check_lineage(artifact, graph, report, strict)
        _check_supersession(artifact, graph, report)
        for target in extract_links(artifact.body):
            problem = _check_link(target, artifacts, store.artifacts_dir)
            if problem:
                report.add(ERROR, "broken-link", artifact.id, problem)

    for cycle in graph.find_cycles():
        report.add(ERROR, "cycle", cycle[0], "lineage cycle: " + " -> ".join(cycle))

    try:
        playbook = Playbook.load(store.workspace)
    except AirSDLCError as e:
        report.add(ERROR, "bad-playbook-source", "playbook", e.message)
        playbook = None

    if playbook is not None:
        for pattern in playbook.patterns:
            if not pattern.sources:
                report.add(ERROR, "bad-playbook-source", pattern.id, "cites no post-mortem")
            for source in pattern.sources:
                pm = artifacts.get(source)
                if pm is None or pm.type != ArtifactType.POSTMORTEM or pm.status != "published":
                    report.add(ERROR, "bad-playbook-source", pattern.id,
                               f"source {source} is not a published post-mortem")

    logger.debug(f"Audit checked {report.checked} artifacts: {len(report.issues)} issues")
    return report
