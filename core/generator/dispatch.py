"""Per-node converter dispatch with placeholder fallback."""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

import structlog

from core.graph.validator import ValidationReport, missing_parameters
from core.ir.models import CodeFragment, FragmentMetadata, FragmentType, GenerationContext, Node

logger = structlog.get_logger(__name__)


@dataclass
class DispatchResult:
    """Fragments per node, in execution order, plus degradation warnings."""
    fragments: Dict[str, List[CodeFragment]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    converted: List[str] = field(default_factory=list)
    unsupported: List[str] = field(default_factory=list)


def placeholder_fragment(node: Node, reason: str) -> CodeFragment:
    """Single declaration comment standing in for a node that could not be converted."""
    return CodeFragment(
        id=f"{node.id}_placeholder",
        type=FragmentType.DECLARATION,
        content=f"// TODO: {reason} for node '{node.display_name}' ({node.id})",
        metadata=FragmentMetadata(
            node_id=node.id,
            category=node.category,
            description=f"Placeholder for {node.type or 'untyped'} node",
        ),
    )


class FragmentDispatcher:
    """Sends each node to its converter.

    Nothing a single node does can abort the run: unknown types, rejected
    nodes, missing required parameters and converter exceptions all become
    a placeholder fragment plus a warning.
    """

    def __init__(self, registry, report: Optional[ValidationReport] = None):
        self.registry = registry
        self.report = report

    def dispatch(self, nodes: Sequence[Node], context: GenerationContext) -> DispatchResult:
        result = DispatchResult()
        for node in nodes:
            result.fragments[node.id] = self._convert_node(node, context, result)
        logger.info(
            "nodes_dispatched",
            converted=len(result.converted),
            unsupported=len(result.unsupported),
            warnings=len(result.warnings),
        )
        return result

    def _degrade(self, node: Node, reason: str, warning: str, result: DispatchResult) -> List[CodeFragment]:
        result.warnings.append(warning)
        if node.type not in result.unsupported:
            result.unsupported.append(node.type)
        logger.warning("node_placeholder", node_id=node.id, node_type=node.type, reason=reason)
        return [placeholder_fragment(node, reason)]

    def _convert_node(self, node: Node, context: GenerationContext, result: DispatchResult) -> List[CodeFragment]:
        converter = self.registry.get(node.type)
        if converter is None:
            return self._degrade(
                node,
                f"Unsupported node type '{node.type}'",
                f"Unsupported node type '{node.type}' for node '{node.id}' ({node.display_name})",
                result,
            )

        # aliased nodes reach the converter under their registered type
        canonical = self.registry.canonical_type(node.type)
        if canonical and canonical != node.type:
            node = replace(node, type=canonical)

        if not converter.can_convert(node):
            return self._degrade(
                node,
                f"Converter for '{node.type}' cannot convert this node",
                f"Converter for '{node.type}' rejected node '{node.id}'",
                result,
            )

        missing = missing_parameters(node, self.report)
        if missing:
            return self._degrade(
                node,
                f"Missing required parameters ({', '.join(missing)})",
                f"Node '{node.id}' is missing required parameters: {', '.join(missing)}",
                result,
            )

        try:
            fragments = list(converter.convert(node, context))
        except Exception as e:
            logger.exception("converter_failed", node_id=node.id, node_type=node.type)
            return self._degrade(
                node,
                f"Conversion failed for '{node.type}'",
                f"Converter for '{node.type}' failed on node '{node.id}': {e}",
                result,
            )

        if converter.is_deprecated():
            replacement = converter.replacement_type()
            hint = f", use '{replacement}' instead" if replacement else ""
            result.warnings.append(f"Node type '{node.type}' is deprecated{hint}")

        if not fragments:
            result.warnings.append(f"Converter for '{node.type}' produced no code for node '{node.id}'")

        if node.type not in result.converted:
            result.converted.append(node.type)
        return fragments
