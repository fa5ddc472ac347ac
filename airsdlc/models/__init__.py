"""
AirSDLC Models - Data structures for the artifact lineage.

This module provides dataclasses and enums for:
- Artifacts and their transition history
- Playbook patterns fed by post-mortems
"""

from airsdlc.models.artifact import (
    Artifact,
    ArtifactType,
    TransitionRecord,
    TYPE_ORDER,
    format_id,
    normalize_id,
    parse_id,
    sort_key,
)
from airsdlc.models.playbook import PlaybookPattern

__all__ = [
    # Artifact
    "Artifact", "ArtifactType", "TransitionRecord", "TYPE_ORDER",
    "format_id", "normalize_id", "parse_id", "sort_key",
    # Playbook
    "PlaybookPattern",
]
