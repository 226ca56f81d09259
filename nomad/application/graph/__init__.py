"""Application graph workflow entrypoints."""

from nomad.application.graph.workflow import build_graph, compile_graph, route_after_intake

__all__ = ["build_graph", "compile_graph", "route_after_intake"]
