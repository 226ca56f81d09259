"""Conversational trip intent resolution and progressive itinerary generation."""

__version__ = "0.4.0"
