"""Draft itinerary recovery."""

from nomad.drafts.manager import DraftManager

__all__ = ["DraftManager"]
