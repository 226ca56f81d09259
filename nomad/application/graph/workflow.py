"""LangGraph turn graph: intake -> route -> clarify | reject | prepare."""

from __future__ import annotations

from functools import partial
from typing import Any, Optional

from langgraph.graph import END, StateGraph

from nomad.application.graph.nodes.clarify import clarify_node
from nomad.application.graph.nodes.intake import intake_node
from nomad.application.graph.nodes.prepare import prepare_node
from nomad.application.graph.nodes.reject import reject_node
from nomad.application.state import GraphState
from nomad.config.settings import Settings
from nomad.domain.models import ValidationIssue
from nomad.parsing.intent import blocking_issues


def route_after_intake(state: dict[str, Any]) -> str:
    issues = [ValidationIssue.model_validate(raw) for raw in state.get("issues", [])]
    if blocking_issues(issues):
        return "reject"
    if state.get("missing_fields"):
        return "clarify"
    return "prepare"


def build_graph(settings: Optional[Settings] = None) -> StateGraph:
    settings = settings or Settings()
    graph = StateGraph(GraphState)

    graph.add_node("intake", partial(intake_node, limits=settings.limits))
    graph.add_node("clarify", partial(clarify_node, priority=settings.dialog.question_priority))
    graph.add_node("reject", reject_node)
    graph.add_node("prepare", partial(prepare_node, limits=settings.limits))

    graph.set_entry_point("intake")
    graph.add_conditional_edges("intake", route_after_intake, {
        "clarify": "clarify",
        "reject": "reject",
        "prepare": "prepare",
    })
    graph.add_edge("clarify", END)
    graph.add_edge("reject", END)
    graph.add_edge("prepare", END)
    return graph


def compile_graph(settings: Optional[Settings] = None):
    """Compile the turn graph once; the result is reusable across turns."""
    return build_graph(settings).compile()
