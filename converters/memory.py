"""Conversation memory converters."""

from typing import Any, Dict, List, Sequence

from converters.base import BaseConverter, ParameterSpec
from core.ir.models import CodeFragment, FragmentType, GenerationContext, Node, ValueKind


class BaseMemoryConverter(BaseConverter):
    category = "memory"
    variable_suffix = "memory"
    package = "langchain/memory"
    string_options: Sequence[str] = ("memoryKey", "inputKey", "outputKey", "humanPrefix", "aiPrefix")

    def get_dependencies(self, node=None, context=None) -> List[str]:
        return ["langchain"]

    def memory_options(self, node: Node) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            name: node.param(name).as_str() for name in self.string_options
        }
        options["returnMessages"] = node.param("returnMessages").as_bool()
        return options

    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        return [
            self.import_fragment(node),
            self.fragment(
                node,
                FragmentType.DECLARATION,
                self.constructor(node, self.memory_options(node)),
                exports=[self.variable_name(node)],
            ),
        ]


class BufferMemoryConverter(BaseMemoryConverter):
    node_type = "bufferMemory"
    class_name = "BufferMemory"


class BufferWindowMemoryConverter(BaseMemoryConverter):
    node_type = "bufferWindowMemory"
    class_name = "BufferWindowMemory"

    def parameter_specs(self) -> Sequence[ParameterSpec]:
        return (ParameterSpec("k", ValueKind.NUMBER),)

    def memory_options(self, node: Node) -> Dict[str, Any]:
        options = super().memory_options(node)
        options["k"] = node.param("k").as_number(5)
        return options
