# medscan/agent/graph.py
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import START, END, StateGraph

from medscan.agent.nodes import ScanNodes, route_after_infer
from medscan.agent.state import ScanState


def build_scan_graph(nodes: ScanNodes):
    builder = StateGraph(ScanState)

    builder.add_node("infer", nodes.infer)
    builder.add_node("normalize", nodes.normalize)
    builder.add_node("check_interactions", nodes.interactions)
    builder.add_node("schedule_reminder", nodes.reminder)

    builder.add_edge(START, "infer")
    builder.add_conditional_edges("infer", route_after_infer, {
        "normalize": "normalize",
        "failed": END,
    })
    # node names must not collide with state keys
    # records must exist before interactions/reminders look at them
    builder.add_edge("normalize", "check_interactions")
    builder.add_edge("check_interactions", "schedule_reminder")
    builder.add_edge("schedule_reminder", END)

    return builder.compile(checkpointer=MemorySaver())


def scan_config(scan_id: str):
    return {"configurable": {"thread_id": scan_id}}
