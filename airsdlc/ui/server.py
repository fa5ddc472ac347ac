"""FastAPI server exposing a read-only view of an AirSDLC workspace."""

from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from airsdlc import __version__
from airsdlc.audit import run_audit
from airsdlc.exceptions import AirSDLCError, ArtifactNotFoundError
from airsdlc.graph import TraceGraph
from airsdlc.guidance import next_steps, project_status
from airsdlc.models.artifact import ArtifactType
from airsdlc.playbook import Playbook
from airsdlc.store import ArtifactStore


def create_app(root: Optional[str] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="AirSDLC Tracker",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    store = ArtifactStore(root)

    def _get(artifact_id: str):
        try:
            return store.get(artifact_id)
        except ArtifactNotFoundError:
            raise HTTPException(status_code=404, detail=f"Artifact not found: {artifact_id}")

    @app.get("/api/status")
    async def status():
        """Counts per type/status and open work."""
        return project_status(store)

    @app.get("/api/artifacts")
    async def list_artifacts(
        type: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
    ):
        """List artifacts, optionally filtered."""
        artifact_type = None
        if type:
            try:
                artifact_type = ArtifactType.parse(type)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        return [
            {"id": a.id, "type": a.type.value, "status": a.status, "title": a.title, "parents": a.parents}
            for a in store.list(artifact_type=artifact_type, status=status)
        ]

    @app.get("/api/artifacts/{artifact_id}")
    async def get_artifact(artifact_id: str):
        """Full artifact with next steps."""
        artifact = _get(artifact_id)
        data = artifact.to_dict()
        data["next_steps"] = next_steps(artifact)
        return data

    @app.get("/api/artifacts/{artifact_id}/trace")
    async def trace(artifact_id: str):
        """Lineage chains, parents and children."""
        artifact = _get(artifact_id)
        graph = TraceGraph.from_store(store)
        return {
            "artifact": artifact.id,
            "parents": graph.parents(artifact.id),
            "children": graph.children(artifact.id),
            "lineage": graph.lineage(artifact.id),
        }

    @app.get("/api/artifacts/{artifact_id}/impact")
    async def impact(artifact_id: str, depth: Optional[int] = Query(default=None, ge=1)):
        """Impact analysis for a change to the artifact."""
        artifact = _get(artifact_id)
        return TraceGraph.from_store(store).impact_analysis(artifact.id, depth=depth)

    @app.get("/api/audit")
    async def audit():
        """Workspace consistency audit."""
        return run_audit(store).to_dict()

    @app.get("/api/playbook")
    async def playbook(tag: Optional[str] = Query(default=None)):
        """Playbook patterns."""
        try:
            patterns = Playbook.load(store.workspace).list(tag=tag)
        except AirSDLCError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return [p.to_dict() for p in patterns]

    return app
