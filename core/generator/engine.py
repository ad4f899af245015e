# core/generator/engine.py
"""Main code generation engine: workflow graph in, generated project out."""

from pathlib import Path
from typing import Optional, Union

import structlog

from converters import create_default_registry
from core.graph.ordering import ExecutionOrderResolver
from core.graph.validator import GraphValidator, ValidationReport
from core.ir.loader import load_file
from core.ir.models import ConversionResult, GenerationContext, WorkflowGraph

from .dispatch import FragmentDispatcher
from .files import FileAssembler
from .fragments import FragmentAssembler
from .observability import langfuse_fragments
from .registry import ConverterRegistry

logger = structlog.get_logger(__name__)


class CodeGenerator:
    """Generate a LangChain.js project from a workflow graph.

    ``convert`` is a pure function of its inputs. Structural problems
    (dangling edges, cycles, duplicate ids) raise; everything else degrades
    into warnings or per-file errors on the returned result.
    """

    def __init__(self, registry: Optional[ConverterRegistry] = None, strategy: str = "depth_first"):
        self.registry = registry if registry is not None else create_default_registry()
        self.resolver = ExecutionOrderResolver(strategy)

    def validate(self, graph: WorkflowGraph) -> ValidationReport:
        return GraphValidator(self.registry).validate(graph)

    def convert(self, graph: WorkflowGraph, context: Optional[GenerationContext] = None) -> ConversionResult:
        """Convert ``graph`` into in-memory files."""
        context = context or GenerationContext()
        logger.info(
            "conversion_started",
            workflow=graph.name,
            nodes=len(graph.nodes),
            connections=len(graph.connections),
            module_format=context.module_format,
        )

        report = self.validate(graph)
        report.raise_for_structure()

        ordered = self.resolver.order(graph)
        variables = graph.variable_names()
        bound_graph = WorkflowGraph(
            nodes=[graph.bind(node, variables) for node in graph.nodes],
            connections=list(graph.connections),
            metadata=dict(graph.metadata),
        )
        by_id = {node.id: node for node in bound_graph.nodes}
        bound = [by_id[node.id] for node in ordered]

        dispatched = FragmentDispatcher(self.registry, report).dispatch(bound, context)
        assembled = FragmentAssembler().assemble(
            (dispatched.fragments[node.id] for node in bound),
            preamble=langfuse_fragments(context),
        )

        warnings = list(report.warnings) + dispatched.warnings
        result = FileAssembler().emit(
            bound_graph,
            context,
            assembled,
            warnings=warnings,
            converted=dispatched.converted,
            unsupported=dispatched.unsupported,
        )
        result.metadata["workflow"] = graph.name
        result.metadata["execution_order"] = [node.id for node in ordered]
        result.metadata["validation"] = report.summary()

        logger.info(
            "conversion_completed",
            workflow=graph.name,
            files=len(result.files),
            warnings=len(result.warnings),
            errors=len(result.errors),
        )
        return result

    def convert_file(self, file_path: Union[str, Path], context: Optional[GenerationContext] = None) -> ConversionResult:
        """Load a workflow document and convert it."""
        return self.convert(load_file(file_path), context)
