"""Structural and parameter validation of workflow graphs."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import structlog

from core.ir.errors import CyclicDependencyError, ParameterValidationError, ValidationError
from core.ir.models import Node, ParamValue, ValueKind, WorkflowGraph

logger = structlog.get_logger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


def find_cycles(graph: WorkflowGraph) -> List[Tuple[List[str], List[str]]]:
    """Every distinct cycle as ``(node ids in cycle order, connection ids)``.

    Iterative three-color DFS over an arena of node indexes. Connections
    with an unknown endpoint are ignored here; they are reported as dangling.
    """
    index: Dict[str, int] = {}
    for position, node in enumerate(graph.nodes):
        index.setdefault(node.id, position)
    ids = [node.id for node in graph.nodes]

    adjacency: List[List[Tuple[int, str]]] = [[] for _ in ids]
    for connection in graph.connections:
        if connection.source in index and connection.target in index:
            adjacency[index[connection.source]].append((index[connection.target], connection.id))

    color = [WHITE] * len(ids)
    cycles: List[Tuple[List[str], List[str]]] = []
    seen = set()

    for start in range(len(ids)):
        if color[start] != WHITE:
            continue
        color[start] = GRAY
        path = [start]
        path_edges: List[str] = []
        cursors = [0]

        while path:
            current = path[-1]
            cursor = cursors[-1]
            if cursor < len(adjacency[current]):
                cursors[-1] += 1
                neighbor, connection_id = adjacency[current][cursor]
                if color[neighbor] == WHITE:
                    color[neighbor] = GRAY
                    path.append(neighbor)
                    path_edges.append(connection_id)
                    cursors.append(0)
                elif color[neighbor] == GRAY:
                    at = path.index(neighbor)
                    members = [ids[i] for i in path[at:]]
                    key = frozenset(members)
                    if key not in seen:
                        seen.add(key)
                        cycles.append((members, path_edges[at:] + [connection_id]))
            else:
                color[current] = BLACK
                path.pop()
                cursors.pop()
                if path:
                    path_edges.pop()

    return cycles


def value_conforms(value: ParamValue, kind: ValueKind) -> bool:
    """Loose kind check. Numbers and booleans written as strings are accepted."""
    if kind is ValueKind.NUMBER:
        return value.as_number() is not None
    if kind is ValueKind.BOOLEAN:
        return value.as_bool() is not None
    if kind is ValueKind.STRING:
        return value.kind in (ValueKind.STRING, ValueKind.NUMBER, ValueKind.BOOLEAN)
    return value.kind is kind


@dataclass
class ValidationReport:
    """Outcome of validating one graph.

    ``errors`` are structural and block ordering. ``parameter_errors`` are
    advisory; affected nodes still get a placeholder during generation.
    """
    errors: List[ValidationError] = field(default_factory=list)
    parameter_errors: List[ParameterValidationError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def cycles(self) -> List[CyclicDependencyError]:
        return [e for e in self.errors if isinstance(e, CyclicDependencyError)]

    def parameter_errors_for(self, node_id: str) -> List[ParameterValidationError]:
        return [e for e in self.parameter_errors if node_id in e.node_ids]

    def raise_for_structure(self) -> None:
        if not self.errors:
            return
        if len(self.errors) == 1:
            raise self.errors[0]
        raise ValidationError.aggregate(self.errors)

    def summary(self) -> Dict[str, int]:
        return {
            "errors": len(self.errors),
            "parameter_errors": len(self.parameter_errors),
            "warnings": len(self.warnings),
        }


class GraphValidator:
    """Runs every check and collects the findings instead of stopping early."""

    def __init__(self, registry=None):
        self.registry = registry

    def validate(self, graph: WorkflowGraph) -> ValidationReport:
        report = ValidationReport()

        self._check_nodes(graph, report)
        self._check_connections(graph, report)
        for members, connection_ids in find_cycles(graph):
            report.errors.append(CyclicDependencyError(members, connection_ids))
        for node in graph.nodes:
            report.parameter_errors.extend(self.check_parameters(node))
        self._check_isolated(graph, report)

        logger.info(
            "graph_validated",
            nodes=len(graph.nodes),
            connections=len(graph.connections),
            **report.summary(),
        )
        return report

    def _check_nodes(self, graph: WorkflowGraph, report: ValidationReport) -> None:
        if not graph.nodes:
            report.errors.append(ValidationError("Workflow graph has no nodes"))
            return

        counts = Counter(graph.node_ids())
        duplicates = [node_id for node_id, count in counts.items() if count > 1]
        if duplicates:
            report.errors.append(
                ValidationError(f"Duplicate node ids: {', '.join(duplicates)}", node_ids=duplicates)
            )

    def _check_connections(self, graph: WorkflowGraph, report: ValidationReport) -> None:
        known = set(graph.node_ids())
        for connection in graph.connections:
            missing = [end for end in (connection.source, connection.target) if end not in known]
            if missing:
                report.errors.append(
                    ValidationError(
                        f"dangling edge: connection '{connection.id}' references unknown node "
                        f"{', '.join(repr(m) for m in missing)}",
                        node_ids=missing,
                        connection_ids=(connection.id,),
                    )
                )

    def check_parameters(self, node: Node) -> List[ParameterValidationError]:
        errors: List[ParameterValidationError] = []
        checked = set()

        converter = self.registry.get(node.type) if self.registry is not None else None
        if converter is not None:
            for spec in converter.parameter_specs():
                checked.add(spec.name)
                value = node.param(spec.name)
                if value.is_missing:
                    if spec.required:
                        errors.append(ParameterValidationError(node.id, spec.name, "is required"))
                    continue
                if spec.kind is not None and not value_conforms(value, spec.kind):
                    errors.append(
                        ParameterValidationError(
                            node.id,
                            spec.name,
                            f"expected {spec.kind.value}, got {value.kind.value}",
                            expected=spec.kind.value,
                        )
                    )

        for parameter in node.parameters.values():
            if parameter.name in checked or parameter.is_credential:
                continue
            if parameter.required and parameter.value.is_missing:
                errors.append(ParameterValidationError(node.id, parameter.name, "is required"))

        return errors

    def _check_isolated(self, graph: WorkflowGraph, report: ValidationReport) -> None:
        if len(graph.nodes) < 2:
            return
        connected = set()
        for connection in graph.connections:
            connected.add(connection.source)
            connected.add(connection.target)
        for node in graph.nodes:
            if node.id not in connected:
                report.warnings.append(f"Node '{node.id}' ({node.type}) is not connected to any other node")


def missing_parameters(node: Node, report: Optional[ValidationReport]) -> List[str]:
    """Names of required parameters the report flags as missing on ``node``."""
    if report is None:
        return []
    return [
        error.parameter for error in report.parameter_errors_for(node.id)
        if error.reason == "is required"
    ]
