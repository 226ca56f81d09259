"""Application orchestration layer."""

from nomad.application.contracts import DialogResponse
from nomad.application.dialog import ConversationRepository, DialogController
from nomad.application.orchestrator import ProgressiveOrchestrator

__all__ = ["ConversationRepository", "DialogController", "DialogResponse", "ProgressiveOrchestrator"]
