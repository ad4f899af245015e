"""Load workflow graphs from JSON or YAML documents.

Two document shapes are understood:

* the plain IR form, ``{"nodes": [{"id", "type", "parameters", ...}],
  "connections": [...]}``
* Flowise chatflow exports, where node details live under ``data`` and
  connections are listed as ``edges``.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

import structlog
import yaml

from core.ir.errors import ValidationError
from core.ir.models import Connection, Node, Parameter, ParamValue, WorkflowGraph

logger = structlog.get_logger(__name__)

# Flowise category labels collapsed to coarse tags
CATEGORY_ALIASES = {
    "chat models": "llm",
    "llms": "llm",
    "memory": "memory",
    "tools": "tool",
    "chains": "chain",
    "prompts": "prompt",
    "agents": "agent",
    "embeddings": "embeddings",
    "vector stores": "vectorstore",
    "document loaders": "document_loader",
    "text splitters": "text_splitter",
    "output parsers": "output_parser",
    "retrievers": "retriever",
    "cache": "cache",
}

_DESCRIPTOR_KEYS = {"name", "value", "type", "required", "description", "default"}


def normalize_category(category: str) -> str:
    key = (category or "").strip().lower()
    return CATEGORY_ALIASES.get(key, key.replace(" ", "_"))


def _is_anchor_reference(value: Any) -> bool:
    """Flowise stores connected inputs as ``{{nodeId.data.instance}}``."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped.startswith("{{") and stripped.endswith("}}")
    if isinstance(value, list) and value:
        return all(_is_anchor_reference(item) for item in value)
    return False


def _coordinate(raw: Any) -> float:
    # Layout only; unreadable coordinates fall back to the origin
    if isinstance(raw, bool):
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def _position(raw: Any) -> Tuple[float, float]:
    if isinstance(raw, Mapping):
        return _coordinate(raw.get("x")), _coordinate(raw.get("y"))
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return _coordinate(raw[0]), _coordinate(raw[1])
    return 0.0, 0.0


def _parameter_from_descriptor(name: str, data: Mapping[str, Any]) -> Parameter:
    value = data.get("value", data.get("default"))
    return Parameter(
        name=name,
        value=ParamValue.of(value),
        type=str(data.get("type", "string")),
        required=bool(data.get("required", False)),
        description=str(data.get("description", "")),
    )


def _parse_ir_parameters(raw: Any, node_id: str) -> Dict[str, Parameter]:
    parameters: Dict[str, Parameter] = {}
    if raw is None:
        return parameters

    if isinstance(raw, list):
        for index, item in enumerate(raw):
            if not isinstance(item, Mapping) or "name" not in item:
                raise ValidationError(
                    f"Parameter #{index} of node '{node_id}' must be a mapping with a name",
                    node_ids=(node_id,),
                )
            parameters[str(item["name"])] = _parameter_from_descriptor(str(item["name"]), item)
        return parameters

    if not isinstance(raw, Mapping):
        raise ValidationError(f"Parameters of node '{node_id}' must be a list or mapping", node_ids=(node_id,))

    for name, value in raw.items():
        if isinstance(value, Mapping) and "value" in value and set(value) <= _DESCRIPTOR_KEYS:
            parameters[str(name)] = _parameter_from_descriptor(str(name), value)
        else:
            parameters[str(name)] = Parameter(name=str(name), value=ParamValue.of(value))
    return parameters


def _parse_flowise_parameters(data: Mapping[str, Any]) -> Dict[str, Parameter]:
    inputs = data.get("inputs") or {}
    parameters: Dict[str, Parameter] = {}

    for spec in data.get("inputParams") or []:
        name = spec.get("name")
        if not name:
            continue
        param_type = str(spec.get("type", "string"))
        value = inputs.get(name)
        if value is None or value == "":
            value = spec.get("default")
        if param_type == "credential":
            credential_names = spec.get("credentialNames") or []
            if credential_names:
                name = f"{credential_names[0]}Key"
            value = data.get("credential", value)
        if value == "" or _is_anchor_reference(value):
            value = None
        parameters[name] = Parameter(
            name=name,
            value=ParamValue.of(value),
            type=param_type,
            required=not spec.get("optional", False) and param_type != "credential",
            description=str(spec.get("description", spec.get("label", ""))),
        )

    # Values set on the node without a matching inputParams entry
    for name, value in inputs.items():
        if name in parameters or value in (None, "") or _is_anchor_reference(value):
            continue
        parameters[name] = Parameter(name=name, value=ParamValue.of(value))

    return parameters


def parse_node(raw: Mapping[str, Any], index: int) -> Node:
    """Build a node from either document form."""
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Node #{index} must be a mapping")

    data = raw.get("data")
    if isinstance(data, Mapping):
        node_id = str(raw.get("id") or data.get("id") or "")
        if not node_id:
            raise ValidationError(f"Node #{index} has no id")
        return Node(
            id=node_id,
            type=str(data.get("name") or data.get("type") or ""),
            label=str(data.get("label", "")),
            category=normalize_category(str(data.get("category", ""))),
            parameters=_parse_flowise_parameters(data),
            position=_position(raw.get("position")),
        )

    node_id = str(raw.get("id") or "")
    if not node_id:
        raise ValidationError(f"Node #{index} has no id")
    return Node(
        id=node_id,
        type=str(raw.get("type", "")),
        label=str(raw.get("label", "")),
        category=normalize_category(str(raw.get("category", ""))),
        parameters=_parse_ir_parameters(raw.get("parameters"), node_id),
        position=_position(raw.get("position")),
    )


def parse_connection(raw: Mapping[str, Any], index: int) -> Connection:
    if not isinstance(raw, Mapping) or "source" not in raw or "target" not in raw:
        raise ValidationError(f"Connection #{index} needs a source and a target")

    source = str(raw["source"])
    target = str(raw["target"])
    return Connection(
        id=str(raw.get("id") or f"{source}->{target}#{index}"),
        source=source,
        target=target,
        source_handle=str(raw.get("sourceHandle", raw.get("source_handle")) or ""),
        target_handle=str(raw.get("targetHandle", raw.get("target_handle")) or ""),
    )


def load_graph(data: Mapping[str, Any]) -> WorkflowGraph:
    """Build a ``WorkflowGraph`` from a parsed document."""
    if not isinstance(data, Mapping):
        raise ValidationError("Workflow document must be a mapping")

    raw_nodes = data.get("nodes") or []
    raw_connections = data.get("connections")
    if raw_connections is None:
        raw_connections = data.get("edges") or []
    if not isinstance(raw_nodes, list) or not isinstance(raw_connections, list):
        raise ValidationError("'nodes' and 'connections'/'edges' must be lists")

    nodes: List[Node] = [parse_node(raw, i) for i, raw in enumerate(raw_nodes)]
    connections = [parse_connection(raw, i) for i, raw in enumerate(raw_connections)]

    metadata = dict(data.get("metadata") or {})
    for key in ("name", "version", "description"):
        if key in data and key not in metadata:
            metadata[key] = data[key]

    logger.info("workflow_loaded", nodes=len(nodes), connections=len(connections), name=metadata.get("name"))
    return WorkflowGraph(nodes=nodes, connections=connections, metadata=metadata)


def load_string(text: str) -> WorkflowGraph:
    """Parse JSON or YAML text. YAML is a superset of JSON, so one parser suffices."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid workflow document: {e}") from e
    return load_graph(data)


def load_file(file_path: Union[str, Path]) -> WorkflowGraph:
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {file_path}")

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {file_path}: {e}") from e
        graph = load_graph(data)
    else:
        graph = load_string(text)

    graph.metadata.setdefault("name", file_path.stem)
    return graph
