"""
Error types for the AirSDLC tracker.

Library code raises these; only the CLI turns them into exit codes.
"""

from typing import List, Optional


class AirSDLCError(Exception):
    """Base class for all tracker errors."""
    def __init__(self, message: str, details: Optional[List[str]] = None):
        self.message = message
        self.details = details or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.details:
            msg += "\n  - " + "\n  - ".join(self.details)
        return msg


class ArtifactNotFoundError(AirSDLCError):
    """Raised when an artifact id does not resolve."""
    def __init__(self, artifact_id: str):
        self.artifact_id = artifact_id
        super().__init__(f"Artifact not found: {artifact_id}")


class ArtifactStoreError(AirSDLCError):
    """Raised for unreadable artifact files or refused store operations."""


class InvalidTransitionError(AirSDLCError):
    """Raised when a status change is not in the transition table."""
    def __init__(self, artifact_id: str, current: str, target: str, allowed: Optional[List[str]] = None):
        self.artifact_id = artifact_id
        self.current = current
        self.target = target
        self.allowed = allowed or []
        hint = ", ".join(self.allowed) if self.allowed else "none (terminal status)"
        super().__init__(
            f"{artifact_id}: cannot move from '{current}' to '{target}'",
            [f"allowed: {hint}"],
        )


class GateError(AirSDLCError):
    """Raised when one or more validation gates block a transition."""
    def __init__(self, artifact_id: str, target: str, failures: List[str]):
        self.artifact_id = artifact_id
        self.target = target
        self.failures = failures
        super().__init__(f"{artifact_id}: gates failed for '{target}'", failures)


class ImmutableArtifactError(AirSDLCError):
    """Raised when editing an artifact in a frozen status."""
    def __init__(self, artifact_id: str, status: str):
        self.artifact_id = artifact_id
        self.status = status
        super().__init__(
            f"{artifact_id} is {status} and cannot be edited",
            ["create a replacement and supersede it instead"],
        )


class LineageError(AirSDLCError):
    """Raised when a parent link breaks the lineage rules."""


class ConfigError(AirSDLCError):
    """Raised for unknown config keys or invalid values."""
