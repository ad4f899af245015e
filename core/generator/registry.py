"""Registry mapping node types to converters."""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

import structlog

from converters.base import NodeConverter
from core.ir.errors import ConversionError
from core.ir.models import GenerationContext, Node

logger = structlog.get_logger(__name__)


class ConverterRegistry:
    """Node type (or alias) to converter instance.

    Registries are plain objects built by their owner; nothing here is
    process-wide, so independent conversions never share one by accident.
    """

    def __init__(self, converters: Iterable[NodeConverter] = ()):
        self._converters: Dict[str, NodeConverter] = {}
        self._aliases: Dict[str, str] = {}
        for converter in converters:
            self.register(converter)

    def register(self, converter: NodeConverter) -> None:
        node_type = converter.node_type
        if not node_type:
            raise ConversionError(f"Converter {type(converter).__name__} declares no node type")
        if node_type in self._converters:
            raise ConversionError(f"Converter for type '{node_type}' is already registered")

        self._converters[node_type] = converter
        for alias in converter.aliases:
            if alias not in self._converters and alias not in self._aliases:
                self._aliases[alias] = node_type
        logger.debug("converter_registered", node_type=node_type, category=converter.category)

    def register_alias(self, alias: str, target_type: str) -> None:
        if target_type not in self._converters:
            raise ConversionError(f"Target type '{target_type}' is not registered")
        if alias in self._converters:
            raise ConversionError(f"Alias '{alias}' collides with a registered type")
        self._aliases[alias] = target_type

    def unregister(self, node_type: str) -> bool:
        if node_type not in self._converters:
            return False
        del self._converters[node_type]
        self._aliases = {a: t for a, t in self._aliases.items() if t != node_type}
        return True

    def get(self, node_type: str) -> Optional[NodeConverter]:
        converter = self._converters.get(node_type)
        if converter is not None:
            return converter
        target = self._aliases.get(node_type)
        return self._converters.get(target) if target else None

    def canonical_type(self, node_type: str) -> Optional[str]:
        """Registered type ``node_type`` resolves to, following aliases."""
        if node_type in self._converters:
            return node_type
        target = self._aliases.get(node_type)
        return target if target in self._converters else None

    def has(self, node_type: str) -> bool:
        return self.get(node_type) is not None

    def __contains__(self, node_type: str) -> bool:
        return self.has(node_type)

    def __len__(self) -> int:
        return len(self._converters)

    def registered_types(self) -> List[str]:
        return sorted(self._converters)

    def aliases(self) -> Dict[str, str]:
        return dict(sorted(self._aliases.items()))

    def by_category(self, category: str) -> List[NodeConverter]:
        return [
            self._converters[t] for t in sorted(self._converters)
            if self._converters[t].category == category
        ]

    def all_dependencies(self, nodes: Iterable[Node], context: Optional[GenerationContext] = None) -> List[str]:
        dependencies = set()
        for node in nodes:
            converter = self.get(node.type)
            if converter is not None:
                dependencies.update(converter.get_dependencies(node, context))
        return sorted(dependencies)

    def validate_nodes(self, nodes: Iterable[Node]) -> Dict[str, List[str]]:
        """Split node types into supported and unsupported, sorted and unique."""
        supported = set()
        unsupported = set()
        for node in nodes:
            (supported if self.has(node.type) else unsupported).add(node.type)
        return {"supported": sorted(supported), "unsupported": sorted(unsupported)}

    def statistics(self) -> Dict[str, Any]:
        categories: Dict[str, int] = defaultdict(int)
        for converter in self._converters.values():
            categories[converter.category or "uncategorized"] += 1
        return {
            "total_converters": len(self._converters),
            "total_aliases": len(self._aliases),
            "categories": dict(sorted(categories.items())),
            "deprecated": sorted(t for t, c in self._converters.items() if c.is_deprecated()),
        }
