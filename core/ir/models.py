"""Intermediate representation of a workflow graph and of generated code."""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ValueKind(str, Enum):
    """Kind tag for a parameter value."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    MISSING = "missing"


@dataclass(frozen=True)
class ParamValue:
    """Tagged parameter value.

    Workflow parameters are loosely typed, so every value carries an explicit
    kind and absent values are represented by ``ValueKind.MISSING`` instead of
    ``None`` leaking into converters.
    """
    kind: ValueKind
    raw: Any = None

    @classmethod
    def of(cls, raw: Any) -> "ParamValue":
        if isinstance(raw, ParamValue):
            return raw
        if raw is None:
            return cls(ValueKind.MISSING)
        # bool is a subclass of int, check it first
        if isinstance(raw, bool):
            return cls(ValueKind.BOOLEAN, raw)
        if isinstance(raw, (int, float)):
            return cls(ValueKind.NUMBER, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        if isinstance(raw, Mapping):
            return cls(ValueKind.OBJECT, dict(raw))
        if isinstance(raw, (list, tuple)):
            return cls(ValueKind.ARRAY, list(raw))
        return cls(ValueKind.STRING, str(raw))

    @classmethod
    def missing(cls) -> "ParamValue":
        return cls(ValueKind.MISSING)

    @property
    def is_missing(self) -> bool:
        return self.kind is ValueKind.MISSING

    def or_default(self, default: Any = None) -> Any:
        """Return the raw value, or ``default`` when missing."""
        return default if self.is_missing else self.raw

    def as_str(self, default: Optional[str] = None) -> Optional[str]:
        if self.is_missing:
            return default
        if self.kind in (ValueKind.OBJECT, ValueKind.ARRAY):
            return default
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.raw else "false"
        return str(self.raw)

    def as_number(self, default: Optional[float] = None) -> Optional[float]:
        if self.kind is ValueKind.NUMBER:
            return self.raw
        if self.kind is ValueKind.STRING:
            try:
                number = float(self.raw)
            except ValueError:
                return default
            return int(number) if number.is_integer() else number
        return default

    def as_bool(self, default: Optional[bool] = None) -> Optional[bool]:
        if self.kind is ValueKind.BOOLEAN:
            return self.raw
        if self.kind is ValueKind.STRING and self.raw.lower() in ("true", "false"):
            return self.raw.lower() == "true"
        return default


CREDENTIAL_TYPES = frozenset({"credential", "password"})


@dataclass(frozen=True)
class Parameter:
    """Named node parameter with its declared type."""
    name: str
    value: ParamValue = field(default_factory=ParamValue.missing)
    type: str = "string"
    required: bool = False
    description: str = ""

    @property
    def is_credential(self) -> bool:
        return self.type in CREDENTIAL_TYPES


@dataclass(frozen=True)
class Node:
    """Workflow node.

    ``variable`` and ``inputs`` are bindings resolved by the generator before
    the node reaches a converter: the node's unique identifier in generated
    code, and the upstream variables wired into each input handle.
    """
    id: str
    type: str
    label: str = ""
    category: str = ""
    parameters: Mapping[str, Parameter] = field(default_factory=dict)
    position: Tuple[float, float] = (0.0, 0.0)
    variable: str = ""
    inputs: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.label or self.type or self.id

    def param(self, name: str) -> ParamValue:
        parameter = self.parameters.get(name)
        return parameter.value if parameter is not None else ParamValue.missing()

    def value(self, name: str, default: Any = None) -> Any:
        return self.param(name).or_default(default)

    def input(self, name: str) -> Optional[str]:
        """First upstream variable bound to input ``name``."""
        bound = self.inputs.get(name, ())
        return bound[0] if bound else None

    def credential_parameters(self) -> List[Parameter]:
        return [p for p in self.parameters.values() if p.is_credential]


@dataclass(frozen=True)
class Connection:
    """Directed edge: ``source`` output feeds ``target`` input."""
    id: str
    source: str
    target: str
    source_handle: str = ""
    target_handle: str = ""

    @property
    def input_name(self) -> str:
        """Bare input name of the target handle.

        Flowise handles look like ``<target>-input-<name>-<Type>``.
        """
        handle = self.target_handle
        marker = f"{self.target}-input-"
        if handle.startswith(marker):
            return handle[len(marker):].split("-", 1)[0]
        return handle or "input"


_IDENTIFIER_RE = re.compile(r"[^a-zA-Z0-9]+")

# Bindings of the generated module itself
GENERATED_NAMES = frozenset({
    "main", "config", "environment", "result", "input", "options", "output",
    "error", "langfuse", "langfuseconfig", "trace", "totext", "process",
    "module", "require", "exports", "console",
})

# ECMAScript and TypeScript reserved words, including strict mode ones
KEYWORDS = frozenset({
    "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "import", "in", "instanceof", "new",
    "null", "return", "super", "switch", "this", "throw", "true", "try",
    "typeof", "var", "void", "while", "with", "yield", "let", "static",
    "implements", "interface", "package", "private", "protected", "public",
    "await", "async", "arguments", "eval", "undefined", "nan", "infinity",
    "as", "any", "boolean", "number", "string", "symbol", "type", "declare",
    "namespace", "readonly", "unknown", "never", "object", "bigint",
})

RESERVED_NAMES = GENERATED_NAMES | KEYWORDS


def make_identifier(text: str) -> str:
    """Lower snake identifier derived from a node label."""
    name = _IDENTIFIER_RE.sub("_", text.lower()).strip("_")
    if not name:
        name = "node"
    if name[0].isdigit():
        name = f"n_{name}"
    return name


@dataclass
class WorkflowGraph:
    """Nodes plus the connections between them."""
    nodes: List[Node] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return str(self.metadata.get("name") or "workflow")

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def incoming(self, node_id: str) -> List[Connection]:
        return [c for c in self.connections if c.target == node_id]

    def outgoing(self, node_id: str) -> List[Connection]:
        return [c for c in self.connections if c.source == node_id]

    def entry_nodes(self) -> List[Node]:
        targets = {c.target for c in self.connections}
        return [node for node in self.nodes if node.id not in targets]

    def exit_nodes(self) -> List[Node]:
        sources = {c.source for c in self.connections}
        return [node for node in self.nodes if node.id not in sources]

    def variable_names(self) -> Dict[str, str]:
        """Unique code identifier per node id.

        Assigned in node array order, so the same graph always yields the
        same names. Collisions get ``_2``, ``_3``... suffixes.
        """
        names: Dict[str, str] = {}
        taken = set(RESERVED_NAMES)
        for node in self.nodes:
            base = make_identifier(node.display_name)
            candidate = base
            counter = 2
            while candidate in taken:
                candidate = f"{base}_{counter}"
                counter += 1
            taken.add(candidate)
            names[node.id] = candidate
        return names

    def bind(self, node: Node, variables: Mapping[str, str]) -> Node:
        """Copy of ``node`` with its variable and input bindings resolved."""
        inputs: Dict[str, List[str]] = {}
        for connection in self.incoming(node.id):
            source_var = variables.get(connection.source)
            if source_var is None:
                continue
            bound = inputs.setdefault(connection.input_name, [])
            if source_var not in bound:
                bound.append(source_var)
        return replace(
            node,
            variable=variables.get(node.id, make_identifier(node.display_name)),
            inputs={name: tuple(values) for name, values in inputs.items()},
        )


class CodeStyle(BaseModel):
    """Formatting options for generated code."""
    model_config = ConfigDict(frozen=True)

    indent_size: int = Field(default=2, ge=0, le=8)
    use_spaces: bool = True
    semicolons: bool = True
    single_quotes: bool = True
    trailing_commas: bool = True

    @property
    def indent(self) -> str:
        return " " * self.indent_size if self.use_spaces else "\t"

    @property
    def quote(self) -> str:
        return "'" if self.single_quotes else '"'


class GenerationContext(BaseModel):
    """Configuration for a single conversion run."""
    model_config = ConfigDict(frozen=True)

    project_name: str = "generated-workflow"
    output_path: str = "./output"
    module_format: str = Field(default="esm", pattern="^(esm|cjs)$")
    code_style: CodeStyle = Field(default_factory=CodeStyle)
    environment: Dict[str, str] = Field(default_factory=dict)
    include_langfuse: bool = False
    include_tests: bool = False
    include_docs: bool = False
    include_comments: bool = True


class FragmentType(str, Enum):
    """Category of a code fragment, in file order."""
    IMPORT = "import"
    DECLARATION = "declaration"
    INITIALIZATION = "initialization"
    EXECUTION = "execution"
    EXPORT = "export"


@dataclass(frozen=True)
class FragmentMetadata:
    node_id: Optional[str] = None
    order: int = 0
    category: str = ""
    is_async: bool = False
    exports: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class CodeFragment:
    """Minimal unit of generated code."""
    id: str
    type: FragmentType
    content: str
    dependencies: Tuple[str, ...] = ()
    language: str = "typescript"
    metadata: FragmentMetadata = field(default_factory=FragmentMetadata)

    @property
    def order(self) -> int:
        return self.metadata.order

    @property
    def node_id(self) -> Optional[str]:
        return self.metadata.node_id

    def with_order(self, order: int) -> "CodeFragment":
        return replace(self, metadata=replace(self.metadata, order=order))


@dataclass(frozen=True)
class GeneratedFile:
    """One output artifact."""
    path: str
    content: str
    type: str
    exports: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "type": self.type,
            "size": self.size,
            "exports": list(self.exports),
            "dependencies": list(self.dependencies),
        }


@dataclass
class ConversionResult:
    """Everything produced by one conversion run."""
    files: List[GeneratedFile] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors

    def file(self, path: str) -> Optional[GeneratedFile]:
        for generated in self.files:
            if generated.path == path:
                return generated
        return None

    def paths(self) -> List[str]:
        return [generated.path for generated in self.files]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [generated.to_dict() for generated in self.files],
            "dependencies": dict(self.dependencies),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "metadata": dict(self.metadata),
        }


def collect_exports(fragments: Iterable[CodeFragment]) -> Tuple[str, ...]:
    """Exported names declared by ``fragments``, first occurrence wins."""
    seen: List[str] = []
    for fragment in fragments:
        for name in fragment.metadata.exports:
            if name not in seen:
                seen.append(name)
    return tuple(seen)
