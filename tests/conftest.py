"""
Shared fixtures: a fresh workspace and a signed-off lineage chain.
"""

import pytest

from airsdlc.lifecycle import APPROVAL_STATUS, transition
from airsdlc.models.artifact import ArtifactType
from airsdlc.store import ArtifactStore


@pytest.fixture
def store(tmp_path):
    """An initialized, empty workspace."""
    return ArtifactStore.init(str(tmp_path))


@pytest.fixture
def sign_off():
    """Move an artifact through review to its approval status."""
    def _sign_off(store, artifact_id, approver="alice"):
        artifact = store.get(artifact_id)
        if artifact.status == "draft":
            transition(store, artifact_id, "in_review", actor=artifact.author or "author")
        return transition(store, artifact_id, APPROVAL_STATUS[artifact.type],
                          actor=approver, approver=approver)
    return _sign_off


@pytest.fixture
def chain(store, sign_off):
    """PRD -> DAA -> RFC -> ADR all signed off, plus a todo Bolt."""
    prd = store.create(ArtifactType.PRD, "Booking cancellation", body="Guests can cancel a booking.")
    sign_off(store, prd.id)

    daa = store.create(ArtifactType.DAA, "Booking domain", body="Aggregate: Booking.",
                       parents=[prd.id], author="assistant", produced_by="ai")
    sign_off(store, daa.id)

    rfc = store.create(ArtifactType.RFC, "Cancellation flow", body="Use an outbox.", parents=[daa.id])
    sign_off(store, rfc.id)

    adr = store.create(ArtifactType.ADR, "Adopt transactional outbox", body="Decision: outbox.",
                       parents=[rfc.id])
    sign_off(store, adr.id)

    bolt = store.create(ArtifactType.BOLT, "Cancel endpoint", body="POST /bookings/{id}/cancel",
                        parents=[adr.id])

    return {"prd": prd.id, "daa": daa.id, "rfc": rfc.id, "adr": adr.id, "bolt": bolt.id}
