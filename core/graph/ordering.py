"""Execution order of workflow nodes."""

from collections import defaultdict, deque
from typing import Dict, List

import structlog

from core.graph.validator import find_cycles
from core.ir.errors import ConversionError, CyclicDependencyError
from core.ir.models import Node, WorkflowGraph

logger = structlog.get_logger(__name__)


def _raise_cycle(graph: WorkflowGraph) -> None:
    cycles = find_cycles(graph)
    if cycles:
        members, connection_ids = cycles[0]
        raise CyclicDependencyError(members, connection_ids)
    raise ConversionError("Graph could not be ordered")


class ExecutionOrderResolver:
    """Linearizes nodes so every connection source precedes its target.

    ``depth_first`` (the default) visits entry nodes in array order, then
    every remaining node in array order, pulling in each node's upstream
    sources before the node itself. Independent nodes therefore keep their
    original array order, which downstream fragment ordering relies on for
    reproducible output.

    ``kahn`` is an in-degree topological sort seeded in array order.
    """

    STRATEGIES = ("depth_first", "kahn")

    def __init__(self, strategy: str = "depth_first"):
        if strategy not in self.STRATEGIES:
            raise ConversionError(f"Unknown ordering strategy '{strategy}'")
        self.strategy = strategy

    def order(self, graph: WorkflowGraph) -> List[Node]:
        if self.strategy == "kahn":
            ordered = self._kahn(graph)
        else:
            ordered = self._depth_first(graph)
        logger.debug("execution_order_resolved", strategy=self.strategy, order=[n.id for n in ordered])
        return ordered

    def _depth_first(self, graph: WorkflowGraph) -> List[Node]:
        nodes: Dict[str, Node] = {}
        for node in graph.nodes:
            nodes.setdefault(node.id, node)

        sources: Dict[str, List[str]] = defaultdict(list)
        for connection in graph.connections:
            sources[connection.target].append(connection.source)

        visited = set()
        on_path = set()
        ordered: List[Node] = []

        def visit(root: str) -> None:
            if root in visited:
                return
            visited.add(root)
            on_path.add(root)
            stack = [(root, iter(sources.get(root, ())))]
            while stack:
                node_id, pending = stack[-1]
                advanced = False
                for source in pending:
                    if source in on_path:
                        _raise_cycle(graph)
                    if source not in visited:
                        visited.add(source)
                        on_path.add(source)
                        stack.append((source, iter(sources.get(source, ()))))
                        advanced = True
                        break
                if advanced:
                    continue
                stack.pop()
                on_path.discard(node_id)
                if node_id in nodes:
                    ordered.append(nodes[node_id])

        targets = set(sources)
        for node in graph.nodes:
            if node.id not in targets:
                visit(node.id)
        for node in graph.nodes:
            visit(node.id)

        return ordered

    def _kahn(self, graph: WorkflowGraph) -> List[Node]:
        nodes: Dict[str, Node] = {}
        for node in graph.nodes:
            nodes.setdefault(node.id, node)

        in_degree: Dict[str, int] = {node_id: 0 for node_id in nodes}
        successors: Dict[str, List[str]] = defaultdict(list)
        for connection in graph.connections:
            if connection.source in nodes and connection.target in nodes:
                successors[connection.source].append(connection.target)
                in_degree[connection.target] += 1

        queue = deque(node_id for node_id in nodes if in_degree[node_id] == 0)
        ordered: List[Node] = []
        while queue:
            node_id = queue.popleft()
            ordered.append(nodes[node_id])
            for successor in successors[node_id]:
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    queue.append(successor)

        if len(ordered) < len(nodes):
            _raise_cycle(graph)
        return ordered


def order(graph: WorkflowGraph, strategy: str = "depth_first") -> List[Node]:
    return ExecutionOrderResolver(strategy).order(graph)
