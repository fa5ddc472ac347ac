"""
AirSDLC - Artifact tracker for the AI-driven development lifecycle.

A lean CLI tool for:
- Storing PRD, DAA, TIP, RFC, ADR, Bolt, Deployment, Incident and
  Post-mortem artifacts with their status
- Gating lifecycle transitions (approval, content, lineage)
- Tracing lineage and analysing the impact of a change
- Feeding post-mortem lessons into a playbook

Artifacts are plain markdown files with YAML front matter under .airsdlc/.
"""

__version__ = "0.1.0"

from airsdlc.graph import TraceGraph, TraceEdge
from airsdlc.models import Artifact, ArtifactType, PlaybookPattern
from airsdlc.store import ArtifactStore

__all__ = [
    "Artifact",
    "ArtifactType",
    "ArtifactStore",
    "PlaybookPattern",
    "TraceEdge",
    "TraceGraph",
]
