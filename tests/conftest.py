"""
Pytest configuration and fixtures for the flowgen project.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from converters import create_default_registry
from core.ir.loader import load_graph
from core.ir.models import Connection, GenerationContext, Node, Parameter, ParamValue, WorkflowGraph


def make_node(node_id, node_type, category="", label="", **params):
    """Build a node whose parameters are given as plain keyword values."""
    return Node(
        id=node_id,
        type=node_type,
        label=label,
        category=category,
        parameters={name: Parameter(name=name, value=ParamValue.of(value)) for name, value in params.items()},
    )


def connect(source, target, input_name="", index=0):
    handle = f"{target}-input-{input_name}-Any" if input_name else ""
    return Connection(id=f"{source}->{target}#{index}", source=source, target=target, target_handle=handle)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def node_factory():
    """``make_node`` as a fixture."""
    return make_node


@pytest.fixture
def connection_factory():
    """``connect`` as a fixture."""
    return connect


@pytest.fixture
def context():
    """Default generation context."""
    return GenerationContext(project_name="test-project")


@pytest.fixture
def registry():
    """Fresh registry with the built-in converters."""
    return create_default_registry()


@pytest.fixture
def chain_document():
    """IR document: chat model + prompt feeding an LLM chain."""
    return {
        "name": "qa-chain",
        "description": "Answers questions",
        "nodes": [
            {
                "id": "model",
                "type": "chatOpenAI",
                "category": "llm",
                "label": "Chat Model",
                "parameters": {
                    "modelName": "gpt-4",
                    "temperature": 0.2,
                    "openAIApiKey": {"value": None, "type": "credential"},
                },
            },
            {
                "id": "prompt",
                "type": "promptTemplate",
                "category": "prompt",
                "label": "Prompt",
                "parameters": {"template": "Answer the question: {input}"},
            },
            {
                "id": "chain",
                "type": "llmChain",
                "category": "chain",
                "label": "Chain",
            },
        ],
        "connections": [
            {"source": "model", "target": "chain", "targetHandle": "chain-input-model-BaseLanguageModel"},
            {"source": "prompt", "target": "chain", "targetHandle": "chain-input-prompt-BasePromptTemplate"},
        ],
    }


@pytest.fixture
def chain_graph(chain_document):
    return load_graph(chain_document)


@pytest.fixture
def flowise_document():
    """Flowise chatflow export with the same shape as ``chain_document``."""
    return {
        "nodes": [
            {
                "id": "chatOpenAI_0",
                "position": {"x": 100, "y": 200},
                "data": {
                    "id": "chatOpenAI_0",
                    "name": "chatOpenAI",
                    "label": "ChatOpenAI",
                    "category": "Chat Models",
                    "credential": "cred-123",
                    "inputParams": [
                        {"label": "Connect Credential", "name": "credential", "type": "credential",
                         "credentialNames": ["openAIApi"]},
                        {"label": "Model Name", "name": "modelName", "type": "options", "default": "gpt-3.5-turbo"},
                        {"label": "Temperature", "name": "temperature", "type": "number", "default": 0.9,
                         "optional": True},
                    ],
                    "inputs": {"modelName": "gpt-4", "temperature": ""},
                },
            },
            {
                "id": "promptTemplate_0",
                "data": {
                    "name": "promptTemplate",
                    "label": "Prompt Template",
                    "category": "Prompts",
                    "inputParams": [
                        {"label": "Template", "name": "template", "type": "string"},
                    ],
                    "inputs": {"template": "Answer the question: {input}"},
                },
            },
            {
                "id": "llmChain_0",
                "data": {
                    "name": "llmChain",
                    "label": "LLM Chain",
                    "category": "Chains",
                    "inputParams": [
                        {"label": "Chain Name", "name": "chainName", "type": "string", "optional": True},
                    ],
                    "inputs": {
                        "model": "{{chatOpenAI_0.data.instance}}",
                        "prompt": "{{promptTemplate_0.data.instance}}",
                    },
                },
            },
        ],
        "edges": [
            {
                "id": "e1",
                "source": "chatOpenAI_0",
                "target": "llmChain_0",
                "sourceHandle": "chatOpenAI_0-output-chatOpenAI-ChatOpenAI",
                "targetHandle": "llmChain_0-input-model-BaseLanguageModel",
            },
            {
                "id": "e2",
                "source": "promptTemplate_0",
                "target": "llmChain_0",
                "sourceHandle": "promptTemplate_0-output-promptTemplate-PromptTemplate",
                "targetHandle": "llmChain_0-input-prompt-BasePromptTemplate",
            },
        ],
    }


@pytest.fixture
def independent_graph():
    """Three unconnected nodes of known types."""
    return WorkflowGraph(
        nodes=[
            make_node("memory", "bufferMemory", "memory", "Memory"),
            make_node("llm", "openAI", "llm", "Completion"),
            make_node("calc", "calculator", "tool", "Calculator"),
        ],
        metadata={"name": "independent"},
    )
