"""
Traceability graph over stored artifacts.

Provides TraceEdge and TraceGraph for lineage lookups, impact analysis,
and structural checks (cycles, orphans).
"""

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, Iterable, List, Optional, Set

from airsdlc.exceptions import LineageError
from airsdlc.lifecycle import is_frozen
from airsdlc.models.artifact import Artifact, ArtifactType, sort_key

if TYPE_CHECKING:
    from airsdlc.store import ArtifactStore

T = ArtifactType

# Allowed lineage parent types for each child type
LINEAGE_RULES: Dict[ArtifactType, Set[ArtifactType]] = {
    T.PRD: set(),
    T.DAA: {T.PRD},
    T.TIP: {T.PRD},
    T.RFC: {T.DAA, T.TIP},
    T.ADR: {T.RFC},
    T.BOLT: {T.ADR},
    T.DEPLOYMENT: {T.BOLT},
    T.INCIDENT: {T.DEPLOYMENT},
    T.POSTMORTEM: {T.INCIDENT, T.ADR, T.BOLT, T.PRD},
}

DERIVES_FROM = "derives_from"
SUPERSEDES = "supersedes"


def requires_parent(artifact_type: ArtifactType) -> bool:
    return bool(LINEAGE_RULES[artifact_type])


def validate_parents(
    child_type: ArtifactType,
    parent_ids: Iterable[str],
    lookup: Callable[[str], Optional[Artifact]],
    strict: bool = True,
) -> List[str]:
    """Check proposed lineage parents for a new artifact.

    Args:
        child_type: Type of the artifact being created
        parent_ids: Normalized parent ids
        lookup: Returns the parent artifact, or None if it doesn't exist
        strict: Require at least one parent for non-PRD types

    Returns:
        The parent ids, de-duplicated in their given order

    Raises:
        LineageError: With one detail line per problem
    """
    ids = list(dict.fromkeys(parent_ids))
    allowed = LINEAGE_RULES[child_type]
    problems = []

    if not allowed and ids:
        problems.append(f"{child_type.value} artifacts are lineage roots and take no parents")

    for pid in ids:
        parent = lookup(pid)
        if parent is None:
            problems.append(f"parent {pid} does not exist")
        elif allowed and parent.type not in allowed:
            names = ", ".join(sorted(t.value for t in allowed))
            problems.append(f"parent {pid} is a {parent.type.value}; {child_type.value} needs one of: {names}")

    if strict and allowed and not ids:
        names = " or ".join(sorted(t.value for t in allowed))
        problems.append(f"a {child_type.value} must reference a {names}")

    if problems:
        raise LineageError(f"Invalid lineage for new {child_type.value}", problems)
    return ids


@dataclass
class TraceEdge:
    """A link between two artifacts (source points at target)."""
    source: str
    target: str
    edge_type: str  # "derives_from" | "supersedes"

    def to_dict(self) -> dict:
        return {"source": self.source, "target": self.target, "edge_type": self.edge_type}


@dataclass
class TraceGraph:
    """Lineage graph of all artifacts in a workspace."""
    nodes: Dict[str, Artifact] = field(default_factory=dict)
    edges: List[TraceEdge] = field(default_factory=list)
    _children_index: Dict[str, Set[str]] = field(default_factory=dict, repr=False)
    _ancestors_cache: Dict[str, FrozenSet[str]] = field(default_factory=dict, repr=False)

    @classmethod
    def from_artifacts(cls, artifacts: Iterable[Artifact]) -> "TraceGraph":
        graph = cls()
        for artifact in artifacts:
            graph.add_node(artifact)
        for artifact in graph.nodes.values():
            for parent in artifact.parents:
                graph.add_edge(TraceEdge(artifact.id, parent, DERIVES_FROM))
            if artifact.supersedes:
                graph.add_edge(TraceEdge(artifact.id, artifact.supersedes, SUPERSEDES))
        return graph

    @classmethod
    def from_store(cls, store: "ArtifactStore") -> "TraceGraph":
        return cls.from_artifacts(store.list())

    def add_node(self, artifact: Artifact) -> None:
        self.nodes[artifact.id] = artifact
        self._ancestors_cache.clear()

    def add_edge(self, edge: TraceEdge) -> None:
        self.edges.append(edge)
        if edge.edge_type == DERIVES_FROM:
            self._children_index.setdefault(edge.target, set()).add(edge.source)
        self._ancestors_cache.clear()

    def get(self, artifact_id: str) -> Optional[Artifact]:
        return self.nodes.get(artifact_id)

    def _require(self, artifact_id: str) -> Artifact:
        artifact = self.nodes.get(artifact_id)
        if artifact is None:
            raise LineageError(f"Artifact not in graph: {artifact_id}")
        return artifact

    def _sorted(self, ids: Iterable[str]) -> List[str]:
        return sorted(ids, key=sort_key)

    def parents(self, artifact_id: str) -> List[str]:
        """Lineage parents that exist in the graph."""
        artifact = self._require(artifact_id)
        return [p for p in artifact.parents if p in self.nodes]

    def children(self, artifact_id: str) -> List[str]:
        """Artifacts deriving directly from this one."""
        return self._sorted(c for c in self._children_index.get(artifact_id, set()) if c in self.nodes)

    def ancestors(self, artifact_id: str) -> Set[str]:
        """All artifacts this one transitively derives from."""
        if artifact_id in self._ancestors_cache:
            return set(self._ancestors_cache[artifact_id])

        visited = set()
        to_visit = [artifact_id]
        while to_visit:
            current = to_visit.pop()
            if current in visited:
                continue
            visited.add(current)
            if current in self.nodes:
                to_visit.extend(p for p in self.parents(current) if p not in visited)

        visited.discard(artifact_id)
        self._ancestors_cache[artifact_id] = frozenset(visited)
        return visited

    def descendants(self, artifact_id: str) -> Set[str]:
        """All artifacts that transitively derive from this one."""
        visited = set()
        to_visit = [artifact_id]
        while to_visit:
            current = to_visit.pop()
            if current in visited:
                continue
            visited.add(current)
            to_visit.extend(c for c in self.children(current) if c not in visited)

        visited.discard(artifact_id)
        return visited

    def would_create_cycle(self, child_id: str, parent_id: str) -> bool:
        """True if linking child -> parent closes a loop."""
        return child_id == parent_id or parent_id in self.descendants(child_id)

    def lineage(self, artifact_id: str) -> List[List[str]]:
        """Every chain from a root down to the artifact, roots first."""
        self._require(artifact_id)
        chains: List[List[str]] = []

        def walk(node: str, path: List[str]) -> None:
            parents = [p for p in self.parents(node) if p not in path]
            if not parents:
                chains.append(list(reversed(path)))
                return
            for parent in parents:
                walk(parent, path + [parent])

        walk(artifact_id, [artifact_id])
        return sorted(chains, key=lambda c: [sort_key(i) for i in c])

    def topo_sort(self, ids: Optional[List[str]] = None) -> List[str]:
        """Order artifacts so parents come before children.

        O(V + E) using Kahn's algorithm.
        """
        ids = self._sorted(ids if ids is not None else self.nodes)
        id_set = set(ids)
        in_degree = {i: 0 for i in ids}
        children_in_set: Dict[str, List[str]] = {i: [] for i in ids}

        for i in ids:
            for parent in self.parents(i):
                if parent in id_set:
                    in_degree[i] += 1
                    children_in_set[parent].append(i)

        result = []
        queue = deque(i for i in ids if in_degree[i] == 0)
        while queue:
            current = queue.popleft()
            result.append(current)
            for child in children_in_set[current]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    queue.append(child)

        # Cycles: append what's left in id order
        result.extend(i for i in ids if i not in result)
        return result

    def impact_analysis(self, artifact_id: str, depth: Optional[int] = None) -> dict:
        """Analyze what a change to an artifact would touch.

        Args:
            artifact_id: Artifact id
            depth: Maximum lineage depth to follow (None = unlimited)

        Returns:
            Dict with dependents, counts, risk, and frozen artifacts that
            would need supersession
        """
        artifact = self._require(artifact_id)
        direct = self.children(artifact_id)

        if depth is None:
            affected = self.descendants(artifact_id)
        else:
            affected = set()
            level = {artifact_id}
            for _ in range(depth):
                next_level = set()
                for node in level:
                    for child in self.children(node):
                        if child not in affected:
                            affected.add(child)
                            next_level.add(child)
                level = next_level
                if not level:
                    break
            direct = [c for c in direct if c in affected]

        total = len(affected)
        if total > 10:
            risk = "HIGH"
        elif total >= 3:
            risk = "MEDIUM"
        else:
            risk = "LOW"

        frozen = [i for i in self._sorted(affected) if is_frozen(self.nodes[i].type, self.nodes[i].status)]

        return {
            "artifact": artifact.id,
            "title": artifact.title,
            "status": artifact.status,
            "direct_dependents": direct,
            "transitive_dependents": self._sorted(affected - set(direct)),
            "total_affected": total,
            "risk": risk,
            "requires_supersession": frozen,
        }

    def find_cycles(self) -> List[List[str]]:
        """Find lineage cycles. Each cycle starts and ends on its smallest id."""
        cycles: List[List[str]] = []
        visited: Set[str] = set()

        def dfs(node: str, stack: List[str]) -> None:
            if node in stack:
                cycle = stack[stack.index(node):]
                start = cycle.index(min(cycle, key=sort_key))
                normalized = cycle[start:] + cycle[:start] + [cycle[start]]
                if normalized not in cycles:
                    cycles.append(normalized)
                return
            if node in visited:
                return
            visited.add(node)
            for parent in self.parents(node):
                dfs(parent, stack + [node])

        for node in self._sorted(self.nodes):
            dfs(node, [])
        return cycles

    def orphans(self) -> List[str]:
        """Non-root artifacts without any lineage parent in the graph."""
        return [
            i for i in self._sorted(self.nodes)
            if requires_parent(self.nodes[i].type) and not self.parents(i)
        ]

    def roots(self) -> List[str]:
        return [i for i in self._sorted(self.nodes) if self.nodes[i].type == T.PRD]

    def stats(self) -> dict:
        by_type: Dict[str, int] = {}
        for artifact in self.nodes.values():
            by_type[artifact.type.value] = by_type.get(artifact.type.value, 0) + 1
        return {
            "artifacts": len(self.nodes),
            "links": sum(1 for e in self.edges if e.edge_type == DERIVES_FROM),
            "supersessions": sum(1 for e in self.edges if e.edge_type == SUPERSEDES),
            "by_type": by_type,
            "orphans": len(self.orphans()),
        }
