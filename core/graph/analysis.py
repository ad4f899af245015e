"""Graph statistics and visualization."""

from collections import Counter
from typing import Any, Dict, List

import graphviz
import networkx as nx

from core.ir.models import WorkflowGraph

# Node colors by category in rendered diagrams
CATEGORY_COLORS = {
    "llm": "lightblue",
    "prompt": "lightyellow",
    "chain": "lightgreen",
    "memory": "plum",
    "tool": "lightsalmon",
}


def complexity_tier(graph: WorkflowGraph) -> str:
    """Advisory size tier from node plus connection count."""
    size = len(graph.nodes) + len(graph.connections)
    if size > 10:
        return "complex"
    if size > 5:
        return "medium"
    return "simple"


def to_networkx(graph: WorkflowGraph) -> nx.DiGraph:
    """Convert to a NetworkX graph. Dangling connections are skipped."""
    nx_graph = nx.DiGraph()
    for node in graph.nodes:
        nx_graph.add_node(node.id, type=node.type, label=node.display_name, category=node.category)
    for connection in graph.connections:
        if connection.source in nx_graph and connection.target in nx_graph:
            nx_graph.add_edge(connection.source, connection.target, id=connection.id)
    return nx_graph


def critical_path(graph: WorkflowGraph) -> List[str]:
    """Longest dependency chain, empty when the graph is cyclic."""
    nx_graph = to_networkx(graph)
    if not nx.is_directed_acyclic_graph(nx_graph):
        return []
    return list(nx.dag_longest_path(nx_graph))


def analyze(graph: WorkflowGraph) -> Dict[str, Any]:
    nx_graph = to_networkx(graph)
    connected = {c.source for c in graph.connections} | {c.target for c in graph.connections}
    path = critical_path(graph)
    return {
        "node_count": len(graph.nodes),
        "connection_count": len(graph.connections),
        "complexity": complexity_tier(graph),
        "entry_points": [n.id for n in graph.entry_nodes()],
        "exit_points": [n.id for n in graph.exit_nodes()],
        "isolated_nodes": [n.id for n in graph.nodes if n.id not in connected],
        "categories": dict(sorted(Counter(n.category or "uncategorized" for n in graph.nodes).items())),
        "components": nx.number_weakly_connected_components(nx_graph) if graph.nodes else 0,
        "critical_path": path,
        "max_depth": max(len(path) - 1, 0),
    }


def to_dot(graph: WorkflowGraph) -> str:
    """Graphviz DOT source."""
    dot = graphviz.Digraph(graph.name)
    dot.attr(rankdir="LR")

    for node in graph.nodes:
        color = CATEGORY_COLORS.get(node.category, "lightgrey")
        dot.node(node.id, label=f"{node.display_name}\n({node.type})", shape="box", fillcolor=color, style="filled")

    for connection in graph.connections:
        dot.edge(connection.source, connection.target, label=connection.input_name)

    return dot.source


def to_mermaid(graph: WorkflowGraph) -> str:
    """Mermaid flowchart."""
    lines = ["graph LR"]

    for node in graph.nodes:
        label = node.display_name.replace('"', "'")
        lines.append(f'    {node.id}["{label}"]')

    for connection in graph.connections:
        lines.append(f"    {connection.source} -->|{connection.input_name}| {connection.target}")

    return "\n".join(lines)
