"""
Tests for the lifecycle state machine.

Covers:
- Transition table (initial statuses, allowed moves, terminal states)
- Gates (approval, content, lineage)
- History recording
- Supersession (registration and completion on approval)
"""

import pytest

from airsdlc.audit import run_audit
from airsdlc.config import TrackerConfig
from airsdlc.exceptions import GateError, InvalidTransitionError, LineageError
from airsdlc.lifecycle import (
    APPROVAL_STATUS,
    FROZEN,
    TRANSITIONS,
    allowed_transitions,
    check_gates,
    initial_status,
    is_established,
    is_frozen,
    is_terminal,
    normalize_status,
    supersede,
    transition,
)
from airsdlc.models.artifact import Artifact, ArtifactType

T = ArtifactType


class TestTable:
    """Tests for the static transition table."""

    def test_every_type_has_a_table(self):
        for t in ArtifactType:
            assert initial_status(t) in TRANSITIONS[t]

    def test_targets_are_known_statuses(self):
        for t, table in TRANSITIONS.items():
            for status, targets in table.items():
                for target in targets:
                    assert target in table, f"{t.value}: {status} -> {target} is not a status"

    def test_frozen_statuses_exist(self):
        for t, frozen in FROZEN.items():
            for status in frozen:
                assert status in TRANSITIONS[t]

    def test_approval_statuses_are_frozen(self):
        for t, status in APPROVAL_STATUS.items():
            assert is_frozen(t, status)

    def test_bolt_lifecycle(self):
        assert initial_status(T.BOLT) == "todo"
        assert allowed_transitions(T.BOLT, "todo") == ["in_progress", "cancelled"]
        assert "done" in allowed_transitions(T.BOLT, "in_progress")
        assert is_terminal(T.BOLT, "done")

    def test_adr_is_supersede_only(self):
        assert allowed_transitions(T.ADR, "accepted") == ["superseded", "deprecated"]
        assert is_terminal(T.ADR, "superseded")

    def test_daa_locks_after_validation(self):
        assert "locked" in allowed_transitions(T.DAA, "validated")
        assert allowed_transitions(T.DAA, "locked") == ["superseded"]

    def test_deployment_record_freezes(self):
        assert not is_frozen(T.DEPLOYMENT, "pending")
        for status in ("deployed", "rolled_back", "cancelled"):
            assert is_frozen(T.DEPLOYMENT, status)

    def test_established(self):
        assert is_established(T.PRD, "approved")
        assert not is_established(T.PRD, "in_review")
        assert is_established(T.INCIDENT, "open")

    @pytest.mark.parametrize("raw,expected", [
        ("In-Progress", "in_progress"),
        (" in review ", "in_review"),
        ("DONE", "done"),
    ])
    def test_normalize_status(self, raw, expected):
        assert normalize_status(raw) == expected


def _artifact(**kwargs):
    defaults = dict(id="PRD-001", type=T.PRD, title="Title", status="in_review", body="Body")
    defaults.update(kwargs)
    return Artifact(**defaults)


class TestCheckGates:
    """Tests for gate evaluation on unsaved artifacts."""

    def test_approval_needs_approver(self):
        failures = check_gates(_artifact(), "approved", {}, None, TrackerConfig())
        assert any("approver is required" in f for f in failures)

    def test_ai_cannot_approve(self):
        failures = check_gates(_artifact(), "approved", {}, "AI", TrackerConfig())
        assert any("human" in f for f in failures)

    def test_ai_author_cannot_self_approve(self):
        art = _artifact(type=T.DAA, id="DAA-001", author="assistant", produced_by="ai")
        failures = check_gates(art, "validated", {}, "assistant", TrackerConfig())
        assert any("other than the author" in f for f in failures)

    def test_self_approval_ignores_case(self):
        art = _artifact(type=T.DAA, id="DAA-001", author="assistant", produced_by="ai")
        failures = check_gates(art, "validated", {}, "Assistant", TrackerConfig())
        assert any("other than the author" in f for f in failures)

    def test_human_check_can_be_disabled(self):
        config = TrackerConfig(require_human_validation=False)
        assert check_gates(_artifact(), "approved", {}, "ai", config) == []

    def test_content_gate(self):
        art = _artifact(status="draft", title=" ", body="")
        failures = check_gates(art, "in_review", {}, None, TrackerConfig())
        assert "title is empty" in failures
        assert "body is empty" in failures

    def test_content_gate_skips_withdrawal(self):
        art = _artifact(type=T.RFC, id="RFC-001", status="draft", body="")
        assert check_gates(art, "withdrawn", {}, None, TrackerConfig()) == []

    def test_missing_parent_reported(self):
        art = _artifact(type=T.RFC, id="RFC-001", parents=["DAA-009"])
        failures = check_gates(art, "accepted", {"DAA-009": None}, "alice", TrackerConfig())
        assert failures == ["parent DAA-009 does not exist"]


class TestTransition:
    """Tests for transition() against a real store."""

    def test_review_and_approve(self, store):
        prd = store.create(T.PRD, "Refunds", body="Refund within 14 days.")
        transition(store, prd.id, "in_review", actor="bob")
        approved = transition(store, prd.id, "approved", actor="alice", approver="alice", note="lgtm")

        assert approved.status == "approved"
        assert approved.approver == "alice"
        last = approved.history[-1]
        assert (last.from_status, last.to_status, last.actor, last.note) == ("in_review", "approved", "alice", "lgtm")

        reloaded = store.get(prd.id)
        assert reloaded.status == "approved"
        assert len(reloaded.history) == 3  # created, in_review, approved

    def test_invalid_transition(self, store):
        prd = store.create(T.PRD, "Refunds", body="x")
        with pytest.raises(InvalidTransitionError) as exc:
            transition(store, prd.id, "approved", approver="alice")
        assert exc.value.allowed == ["in_review"]
        assert store.get(prd.id).status == "draft"

    def test_superseded_cannot_be_entered_directly(self, store, sign_off):
        prd = store.create(T.PRD, "Refunds", body="x")
        sign_off(store, prd.id)
        with pytest.raises(InvalidTransitionError):
            transition(store, prd.id, "superseded")

    def test_gate_failure_leaves_artifact_unchanged(self, store):
        prd = store.create(T.PRD, "Refunds", body="x")
        transition(store, prd.id, "in_review")
        with pytest.raises(GateError) as exc:
            transition(store, prd.id, "approved")
        assert exc.value.failures
        assert store.get(prd.id).status == "in_review"

    def test_adr_blocked_until_rfc_accepted(self, store, sign_off):
        prd = store.create(T.PRD, "Refunds", body="x")
        sign_off(store, prd.id)
        tip = store.create(T.TIP, "Refund job", body="cron", parents=[prd.id])
        sign_off(store, tip.id)
        rfc = store.create(T.RFC, "Refund design", body="...", parents=[tip.id])
        transition(store, rfc.id, "in_review")
        adr = store.create(T.ADR, "Use a nightly job", body="...", parents=[rfc.id])

        with pytest.raises(GateError) as exc:
            transition(store, adr.id, "accepted", approver="alice")
        assert any(rfc.id in f and "in_review" in f for f in exc.value.failures)

        transition(store, rfc.id, "accepted", approver="alice")
        assert transition(store, adr.id, "accepted", approver="alice").status == "accepted"

    def test_bolt_starts_only_under_accepted_adr(self, store, chain):
        rfc2 = store.create(T.RFC, "Second design", body="...", parents=[chain["daa"]])
        transition(store, rfc2.id, "in_review")
        transition(store, rfc2.id, "accepted", approver="alice")
        adr2 = store.create(T.ADR, "Pending decision", body="...", parents=[rfc2.id])
        bolt2 = store.create(T.BOLT, "Blocked work", body="...", parents=[adr2.id])

        with pytest.raises(GateError):
            transition(store, bolt2.id, "in_progress")

        assert transition(store, chain["bolt"], "in-progress", actor="bob").status == "in_progress"

    def test_deployment_needs_done_bolts(self, store, chain):
        dep = store.create(T.DEPLOYMENT, "Release 1.4", body="", parents=[chain["bolt"]])
        with pytest.raises(GateError):
            transition(store, dep.id, "deployed")

        transition(store, chain["bolt"], "in_progress")
        transition(store, chain["bolt"], "done")
        assert transition(store, dep.id, "deployed").status == "deployed"

    def test_history_limit(self, store):
        store.config.history_limit = 2
        prd = store.create(T.PRD, "Refunds", body="x")
        transition(store, prd.id, "in_review")
        transition(store, prd.id, "draft")
        transition(store, prd.id, "in_review", note="again")

        history = store.get(prd.id).history
        assert len(history) == 2
        assert history[-1].note == "again"


class TestSupersede:
    """Tests for supersede-only amendment."""

    def test_replacement_supersedes_on_approval(self, store, sign_off):
        old = store.create(T.PRD, "Refunds v1", body="14 days")
        sign_off(store, old.id)
        new = store.create(T.PRD, "Refunds v2", body="30 days")

        supersede(store, old.id, new.id, actor="carol")
        assert store.get(new.id).supersedes == old.id
        assert store.get(old.id).status == "approved"

        sign_off(store, new.id)
        old_after = store.get(old.id)
        assert old_after.status == "superseded"
        assert old_after.superseded_by == new.id
        assert old_after.history[-1].note == f"superseded by {new.id}"

    def test_type_mismatch(self, store, chain):
        with pytest.raises(LineageError):
            supersede(store, chain["prd"], chain["bolt"])

    def test_original_must_be_supersedable(self, store):
        a = store.create(T.PRD, "Draft one", body="x")
        b = store.create(T.PRD, "Draft two", body="x")
        with pytest.raises(InvalidTransitionError):
            supersede(store, a.id, b.id)

    def test_daa_must_be_locked(self, store, chain):
        daa2 = store.create(T.DAA, "Booking domain v2", body="...", parents=[chain["prd"]])
        with pytest.raises(InvalidTransitionError):
            supersede(store, chain["daa"], daa2.id)

        transition(store, chain["daa"], "locked")
        assert supersede(store, chain["daa"], daa2.id).supersedes == chain["daa"]

    def test_replacement_must_not_be_frozen(self, store, sign_off):
        a = store.create(T.PRD, "One", body="x")
        b = store.create(T.PRD, "Two", body="x")
        sign_off(store, a.id)
        sign_off(store, b.id)
        with pytest.raises(LineageError):
            supersede(store, a.id, b.id)

    def test_cannot_supersede_self(self, store, sign_off):
        a = store.create(T.PRD, "One", body="x")
        sign_off(store, a.id)
        with pytest.raises(LineageError):
            supersede(store, a.id, a.id)

    def test_bolts_cannot_be_superseded(self, store, chain):
        other = store.create(T.BOLT, "Other", body="x", parents=[chain["adr"]])
        with pytest.raises(InvalidTransitionError):
            supersede(store, chain["bolt"], other.id)

    def test_one_pending_replacement_at_a_time(self, store, sign_off):
        old = store.create(T.PRD, "Refunds v1", body="14 days")
        sign_off(store, old.id)
        first = store.create(T.PRD, "Refunds v2", body="30 days")
        second = store.create(T.PRD, "Refunds v2 (alt)", body="21 days")

        supersede(store, old.id, first.id)
        with pytest.raises(LineageError) as exc:
            supersede(store, old.id, second.id)
        assert exc.value.details == [first.id]
        assert store.get(second.id).supersedes is None

        sign_off(store, first.id)
        assert store.get(old.id).superseded_by == first.id
        assert run_audit(store).ok

    def test_rejected_replacement_frees_the_original(self, store, chain):
        alt = store.create(T.RFC, "Alt design", body="x", parents=[chain["daa"]])
        supersede(store, chain["rfc"], alt.id)
        transition(store, alt.id, "in_review")
        transition(store, alt.id, "rejected")

        retry = store.create(T.RFC, "Second try", body="y", parents=[chain["daa"]])
        assert supersede(store, chain["rfc"], retry.id).supersedes == chain["rfc"]

    def test_approval_refused_once_original_is_retired(self, store, chain):
        adr2 = store.create(T.ADR, "Use CDC", body="x", parents=[chain["rfc"]])
        supersede(store, chain["adr"], adr2.id)
        transition(store, chain["adr"], "deprecated")

        with pytest.raises(LineageError, match="can no longer be superseded"):
            transition(store, adr2.id, "accepted", approver="alice")
        assert store.get(adr2.id).status == "proposed"
        assert store.get(chain["adr"]).status == "deprecated"
