"""
Tests for the TRACE.md generator.
"""

from airsdlc.generators import generate_trace_md
from airsdlc.models.artifact import ArtifactType


class TestTraceMd:

    def test_empty_workspace(self, store):
        content = generate_trace_md(store)
        assert content.startswith("# Traceability: ")
        assert "_No PRDs yet._" in content
        assert "## Orphans" not in content

    def test_tree_per_prd(self, store, chain):
        content = generate_trace_md(store)
        assert "## PRD-001: Booking cancellation" in content
        assert "| Artifact | Type | Status | Title |" in content
        assert "| PRD-001 | prd | approved | Booking cancellation |" in content
        assert "| &nbsp;&nbsp;└ DAA-001 | daa | validated | Booking domain |" in content
        bolt_row = "| " + "&nbsp;&nbsp;" * 4 + "└ BOLT-001 | bolt | todo | Cancel endpoint |"
        assert bolt_row in content
        assert "- **Lineage links**: 4" in content

    def test_orphans_listed(self, store):
        store.config.strict_lineage = False
        store.create(ArtifactType.ADR, "Loose decision")
        content = generate_trace_md(store)
        assert "## Orphans" in content
        assert "- ADR-001 [proposed] Loose decision" in content

    def test_writes_file(self, store, chain, tmp_path):
        out = tmp_path / "TRACE.md"
        content = generate_trace_md(store, str(out))
        assert out.read_text(encoding="utf-8") == content
