# graph.py — LangGraph workflow definition
# Defines node order and conditional error routing
"""
graph.py — LangGraph EDA Workflow

Wires the EDA nodes into a single linear graph with error routing.

Flow:
    START → load_table → profile_columns → select_columns → analyze_time_series → build_payload → END
                ↓               ↓                ↓                  ↓                  ↓
             [ERROR] ───────────┴────────────────┴──────────────────┴──────────────→ handle_error → END

Any node that sets state["error"] routes to handle_error_node.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Literal

from langgraph.graph import END, START, StateGraph

from eda_config.settings import EDAConfig
from eda_agent.state import EDAState, create_initial_state
from eda_agent.nodes import (
    analyze_time_series_node,
    build_payload_node,
    handle_error_node,
    load_table_node,
    profile_columns_node,
    select_columns_node,
)


# Happy path, in order
PIPELINE = [
    ("load_table", load_table_node),
    ("profile_columns", profile_columns_node),
    ("select_columns", select_columns_node),
    ("analyze_time_series", analyze_time_series_node),
    ("build_payload", build_payload_node),
]


# =============================================================================
# CONDITIONAL ROUTING
# =============================================================================

def route_after_node(state: EDAState) -> Literal["continue", "error"]:
    """
    Conditional router: check if error occurred, route accordingly.

    Returns:
        "error" if state has error, "continue" otherwise
    """
    if state.get("error"):
        return "error"
    return "continue"


# =============================================================================
# GRAPH BUILDER
# =============================================================================

def build_eda_graph() -> StateGraph:
    """
    Build the LangGraph workflow for an EDA run.

    Returns:
        Uncompiled StateGraph
    """
    workflow = StateGraph(EDAState)

    for name, node in PIPELINE:
        workflow.add_node(name, node)
    workflow.add_node("handle_error", handle_error_node)

    workflow.add_edge(START, PIPELINE[0][0])

    names = [name for name, _ in PIPELINE]
    for name, next_name in zip(names, names[1:] + [END]):
        workflow.add_conditional_edges(
            name,
            route_after_node,
            {
                "continue": next_name,
                "error": "handle_error",
            },
        )

    # handle_error → END (terminal node)
    workflow.add_edge("handle_error", END)

    return workflow


def compile_eda_graph():
    """
    Build and compile the EDA graph.

    Returns:
        Compiled graph ready for .invoke() or .stream()
    """
    return build_eda_graph().compile()


# =============================================================================
# GRAPH EXECUTION
# =============================================================================

def run_eda(
    data: Any,
    date_column: str | None = None,
    value_column: str | None = None,
    forecast_periods: Any = None,
    config: EDAConfig | None = None,
    progress_callback: Callable[[dict], None] | None = None,
) -> dict:
    """
    Run the complete EDA workflow.

    Args:
        data: Table, DataFrame or list of records
        date_column: Optional date column (auto-detected when omitted)
        value_column: Optional value column (first numeric when omitted)
        forecast_periods: Optional forecast horizon in days
        config: Optional EDAConfig
        progress_callback: Optional callback for progress updates

    Returns:
        Final EDAState dict with ui_payload containing results or error

    Example:
        result = run_eda(df, forecast_periods=14)
        payload = result["ui_payload"]
        if payload["is_error"]:
            show_error(payload["error_message"])
    """
    initial_state = create_initial_state(
        raw_data=data,
        date_column=date_column,
        value_column=value_column,
        forecast_periods=forecast_periods,
        config=config,
        progress_callback=progress_callback,
    )

    graph = compile_eda_graph()
    return graph.invoke(initial_state)


def stream_eda(
    data: Any,
    date_column: str | None = None,
    value_column: str | None = None,
    forecast_periods: Any = None,
    config: EDAConfig | None = None,
    progress_callback: Callable[[dict], None] | None = None,
) -> Iterator[tuple[str, dict]]:
    """
    Stream the EDA workflow, yielding state after each node.

    Yields:
        Tuple of (node_name, state_snapshot) after each node execution
    """
    initial_state = create_initial_state(
        raw_data=data,
        date_column=date_column,
        value_column=value_column,
        forecast_periods=forecast_periods,
        config=config,
        progress_callback=progress_callback,
    )

    graph = compile_eda_graph()
    accumulated_state = dict(initial_state)

    for event in graph.stream(initial_state):
        # event maps node name -> state update
        for node_name, state_update in event.items():
            accumulated_state.update(state_update or {})
            yield node_name, accumulated_state
