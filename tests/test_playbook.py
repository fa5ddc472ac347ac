"""
Tests for the playbook of reusable patterns.
"""

import pytest

from airsdlc.exceptions import ArtifactStoreError, LineageError
from airsdlc.models.artifact import ArtifactType
from airsdlc.playbook import Playbook


@pytest.fixture
def postmortem(store, chain, sign_off):
    """A published post-mortem on the chain's ADR."""
    pm = store.create(ArtifactType.POSTMORTEM, "Duplicate cancellation emails",
                      body="Events were published twice.", parents=[chain["adr"]])
    sign_off(store, pm.id)
    return pm.id


class TestAdd:

    def test_add_and_reload(self, store, postmortem):
        playbook = Playbook.load(store.workspace)
        pattern = playbook.add(store, "Idempotent consumers", problem="Duplicate events",
                               solution="Deduplicate on event id", sources=[postmortem.lower()],
                               tags=["Messaging"])
        assert pattern.id == "PAT-001"
        assert pattern.sources == [postmortem]
        assert pattern.tags == ["messaging"]

        reloaded = Playbook.load(store.workspace)
        assert [p.name for p in reloaded.patterns] == ["Idempotent consumers"]
        assert reloaded.next_id() == "PAT-002"

    def test_requires_a_source(self, store):
        with pytest.raises(LineageError) as exc:
            Playbook.load(store.workspace).add(store, "Unfounded", sources=[])
        assert "cite at least one" in exc.value.details[0]

    def test_source_must_be_published(self, store, chain):
        draft = store.create(ArtifactType.POSTMORTEM, "Unfinished", parents=[chain["adr"]])
        with pytest.raises(LineageError) as exc:
            Playbook.load(store.workspace).add(store, "Too early", sources=[draft.id])
        assert "publish it first" in exc.value.details[0]

    def test_source_must_be_postmortem(self, store, chain):
        with pytest.raises(LineageError) as exc:
            Playbook.load(store.workspace).add(store, "Wrong kind", sources=[chain["adr"], "PM-404", "junk"])
        assert len(exc.value.details) == 3

    def test_name_required(self, store, postmortem):
        with pytest.raises(ArtifactStoreError):
            Playbook.load(store.workspace).add(store, " ", sources=[postmortem])

    def test_nothing_written_on_failure(self, store):
        with pytest.raises(LineageError):
            Playbook.load(store.workspace).add(store, "Nope", sources=["PM-001"])
        assert not (store.workspace / "playbook.yaml").exists()


    def test_malformed_file_names_itself(self, store):
        (store.workspace / "playbook.yaml").write_text("patterns:\n  - name: no id\n")
        with pytest.raises(ArtifactStoreError, match="playbook.yaml: invalid pattern #1"):
            Playbook.load(store.workspace)

        (store.workspace / "playbook.yaml").write_text("- a\n- b\n")
        with pytest.raises(ArtifactStoreError, match="must be a mapping"):
            Playbook.load(store.workspace)


class TestQueries:

    @pytest.fixture
    def playbook(self, store, postmortem):
        playbook = Playbook.load(store.workspace)
        playbook.add(store, "Transactional outbox", problem="Lost events",
                     solution="Write events with the state change", sources=[postmortem], tags=["messaging"])
        playbook.add(store, "Retry budget", problem="Retry storms",
                     solution="Cap retries per request", sources=[postmortem], tags=["resilience"])
        return playbook

    def test_get(self, playbook):
        assert playbook.get("PAT-002").name == "Retry budget"
        assert playbook.get("PAT-999") is None

    def test_list_by_tag(self, playbook):
        assert [p.id for p in playbook.list()] == ["PAT-001", "PAT-002"]
        assert [p.id for p in playbook.list(tag="Resilience")] == ["PAT-002"]

    def test_search(self, playbook):
        assert [p.id for p in playbook.search("events")] == ["PAT-001"]
        assert playbook.search("nothing like it") == []

    def test_for_source(self, playbook, postmortem):
        assert len(playbook.for_source(postmortem)) == 2
