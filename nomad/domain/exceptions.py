"""Domain semantic exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from nomad.domain.models import ValidationIssue


class DomainError(Exception):
    """Base domain exception."""


class ExtractionAmbiguous(DomainError):
    """Text could not be resolved to a single reading; ask the user."""

    def __init__(self, field: str, message: str = ""):
        self.field = field
        super().__init__(message or f"Ambiguous value for {field}")


class ValidationFailed(DomainError):
    """The trip is too complex or internally inconsistent."""

    def __init__(self, issues: "list[ValidationIssue]"):
        self.issues = list(issues)
        summary = "; ".join(issue.message for issue in self.issues) or "invalid trip request"
        super().__init__(summary)


class UpstreamUnavailable(DomainError):
    """Circuit for an upstream dependency is open."""

    def __init__(self, dependency: str):
        self.dependency = dependency
        super().__init__(f"Upstream dependency unavailable: {dependency}")


class GenerationFailed(DomainError):
    """No content at all could be produced for the first destination."""

    def __init__(self, destination: str, reason: str = "", draft_id: Optional[str] = None):
        self.destination = destination
        self.reason = reason
        self.draft_id = draft_id
        super().__init__(f"Could not generate an itinerary for {destination}: {reason or 'unknown error'}")


class DraftCorrupt(DomainError):
    """Persisted draft state could not be read."""

    def __init__(self, draft_id: str, reason: str = ""):
        self.draft_id = draft_id
        super().__init__(f"Draft {draft_id} is unreadable: {reason}")
