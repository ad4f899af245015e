"""Graph validation, ordering and analysis."""

from core.graph.validator import GraphValidator, ValidationReport, find_cycles
from core.graph.ordering import ExecutionOrderResolver, order
from core.graph.analysis import analyze, complexity_tier, critical_path, to_dot, to_mermaid

__all__ = [
    'GraphValidator',
    'ValidationReport',
    'find_cycles',
    'ExecutionOrderResolver',
    'order',
    'analyze',
    'complexity_tier',
    'critical_path',
    'to_dot',
    'to_mermaid',
]
