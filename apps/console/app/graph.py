# apps/console/app/graph.py

from langgraph.graph import END, StateGraph

from .nodes import check_auth, load_data, should_load
from .state import GuardState

workflow = StateGraph(GuardState)

workflow.add_node("check_auth", check_auth)
workflow.add_node("load_data", load_data)

workflow.set_entry_point("check_auth")

# Redirects stop the page before any data is requested.
workflow.add_conditional_edges(
    "check_auth",
    should_load,
    {"load": "load_data", "end": END},
)
workflow.add_edge("load_data", END)

guard = workflow.compile()
