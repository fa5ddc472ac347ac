"""
TRACE.md generator for workspace traceability.

Generates a markdown matrix with one section per PRD showing the tree of
artifacts derived from it, plus any orphans that hang off nothing.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set

from airsdlc.graph import TraceGraph


def generate_trace_md(store, output_path: Optional[str] = None) -> str:
    """Generate TRACE.md from the workspace.

    Args:
        store: ArtifactStore to read
        output_path: Path to write file, or None to return content only

    Returns:
        Generated markdown content
    """
    graph = TraceGraph.from_store(store)
    content = _generate_trace_content(graph, Path(store.root).name)

    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")

    return content


def _row(graph: TraceGraph, artifact_id: str, depth: int) -> str:
    artifact = graph.nodes[artifact_id]
    indent = "&nbsp;&nbsp;" * depth
    marker = "└ " if depth else ""
    return f"| {indent}{marker}{artifact.id} | {artifact.type.value} | {artifact.status} | {artifact.title} |"


def _tree_rows(graph: TraceGraph, artifact_id: str, depth: int, seen: Set[str]) -> List[str]:
    # Artifacts with several parents appear under each of them
    rows = [_row(graph, artifact_id, depth)]
    if artifact_id in seen:
        return rows
    seen = seen | {artifact_id}
    for child in graph.children(artifact_id):
        rows.extend(_tree_rows(graph, child, depth + 1, seen))
    return rows


def _generate_trace_content(graph: TraceGraph, workspace_name: str) -> str:
    """Generate the TRACE.md content."""
    lines = []

    lines.append(f"# Traceability: {workspace_name}")
    lines.append("")
    lines.append(f"_Auto-generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}_")
    lines.append("")

    stats = graph.stats()
    lines.append(f"- **Artifacts**: {stats['artifacts']}")
    lines.append(f"- **Lineage links**: {stats['links']}")
    lines.append(f"- **Supersessions**: {stats['supersessions']}")
    lines.append("")

    roots = graph.roots()
    if not roots:
        lines.append("_No PRDs yet._")
        lines.append("")

    for root in roots:
        prd = graph.nodes[root]
        lines.append(f"## {prd.id}: {prd.title}")
        lines.append("")
        lines.append("| Artifact | Type | Status | Title |")
        lines.append("|----------|------|--------|-------|")
        lines.extend(_tree_rows(graph, root, 0, set()))
        lines.append("")

    orphans = graph.orphans()
    if orphans:
        lines.append("## Orphans")
        lines.append("")
        for orphan in orphans:
            artifact = graph.nodes[orphan]
            lines.append(f"- {artifact.summary_line()}")
        lines.append("")

    return "\n".join(lines)
