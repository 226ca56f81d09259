"""Graph node wrappers."""

from nomad.application.graph.nodes.clarify import clarify_node
from nomad.application.graph.nodes.intake import intake_node
from nomad.application.graph.nodes.prepare import prepare_node
from nomad.application.graph.nodes.reject import reject_node

__all__ = [
    "clarify_node",
    "intake_node",
    "prepare_node",
    "reject_node",
]
