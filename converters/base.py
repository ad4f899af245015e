"""Node converter base classes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.naming import env_name, quote, ts_key, ts_value
from core.ir.models import (
    CodeFragment,
    FragmentMetadata,
    FragmentType,
    GenerationContext,
    Node,
    ValueKind,
)


@dataclass(frozen=True)
class ParameterSpec:
    """Parameter a converter needs from its node."""
    name: str
    kind: Optional[ValueKind] = None
    required: bool = False
    description: str = ""


class NodeConverter(ABC):
    """Translates one node type into code fragments.

    Converters are stateless: everything they need arrives through the node
    (with its resolved variable and input bindings) and the generation
    context.
    """

    node_type: str = ""
    category: str = ""
    aliases: Tuple[str, ...] = ()
    deprecated: bool = False
    replacement: Optional[str] = None

    def can_convert(self, node: Node) -> bool:
        return node.type == self.node_type or node.type in self.aliases

    @abstractmethod
    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        """Produce the fragments for ``node``, in intra-node order."""
        pass

    def get_dependencies(self, node: Optional[Node] = None, context: Optional[GenerationContext] = None) -> List[str]:
        return []

    def parameter_specs(self) -> Sequence[ParameterSpec]:
        return ()

    def required_parameters(self) -> List[ParameterSpec]:
        return [spec for spec in self.parameter_specs() if spec.required]

    def is_deprecated(self) -> bool:
        return self.deprecated

    def replacement_type(self) -> Optional[str]:
        return self.replacement


class BaseConverter(NodeConverter):
    """Helpers shared by the built-in converters."""

    package: str = ""
    class_name: str = ""
    variable_suffix: str = ""

    def fragment(
        self,
        node: Node,
        kind: FragmentType,
        content: str,
        dependencies: Sequence[str] = (),
        exports: Sequence[str] = (),
        is_async: bool = False,
    ) -> CodeFragment:
        return CodeFragment(
            id=f"{node.id}_{kind.value}",
            type=kind,
            content=content,
            dependencies=tuple(dependencies),
            metadata=FragmentMetadata(
                node_id=node.id,
                category=self.category or node.category,
                is_async=is_async,
                exports=tuple(exports),
                description=f"Generated code for {self.node_type}",
            ),
        )

    def import_statement(self, package: str, names: Sequence[str], default: bool = False) -> str:
        if default:
            return f"import {names[0]} from {quote(package)};"
        return f"import {{ {', '.join(names)} }} from {quote(package)};"

    def import_fragment(self, node: Node, names: Optional[Sequence[str]] = None) -> CodeFragment:
        return self.fragment(
            node,
            FragmentType.IMPORT,
            self.import_statement(self.package, names or [self.class_name]),
            dependencies=self.get_dependencies(node),
        )

    def variable_name(self, node: Node) -> str:
        return node.variable or f"{node.id}_{self.variable_suffix or self.category}"

    def credential_expression(self, node: Node) -> Optional[str]:
        """``process.env.X`` for the node's first credential parameter."""
        credentials = node.credential_parameters()
        if not credentials:
            return None
        return f"process.env.{env_name(credentials[0].name)}"

    def options_object(self, options: Dict[str, Any], indent: str = "  ") -> str:
        """Multi-line object literal. Values are TypeScript literals unless
        wrapped in ``Expr``."""
        entries = []
        for key, value in options.items():
            if value is None:
                continue
            rendered = value.code if isinstance(value, Expr) else ts_value(value)
            entries.append(f"{indent}{ts_key(key)}: {rendered}")
        if not entries:
            return "{}"
        return "{\n" + ",\n".join(entries) + "\n}"

    def constructor(self, node: Node, options: Dict[str, Any]) -> str:
        body = self.options_object(options)
        if body == "{}":
            return f"const {self.variable_name(node)} = new {self.class_name}();"
        return f"const {self.variable_name(node)} = new {self.class_name}({body});"


@dataclass(frozen=True)
class Expr:
    """Raw TypeScript expression placed into an options object unquoted."""
    code: str
