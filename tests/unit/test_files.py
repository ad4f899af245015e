"""
Tests for the generated project files.
"""

import json

import pytest

from core.generator.files import (
    DEFAULT_DEPENDENCIES,
    FALLBACK_VERSION,
    FileAssembler,
    sanitize_comment,
    ts_type,
)
from core.generator.fragments import FragmentAssembler
from core.ir.models import CodeFragment, FragmentType, GenerationContext, Node, Parameter, ParamValue, WorkflowGraph


@pytest.fixture
def assembler():
    return FileAssembler()


def emit(assembler, graph, context, fragments=()):
    return assembler.emit(graph, context, FragmentAssembler().assemble([list(fragments)]))


@pytest.mark.parametrize("value,expected", [
    ("x", "string"),
    (1, "number"),
    (True, "boolean"),
    ({"a": 1}, "Record<string, unknown>"),
    ([], "unknown[]"),
    ([1, 2], "number[]"),
    ([1, "a"], "Array<number | string>"),
    (None, "unknown"),
])
def test_ts_type(value, expected):
    assert ts_type(value) == expected


def test_sanitize_comment():
    assert sanitize_comment("ends */ here\n  and\tthere") == "ends *\\/ here and there"


class TestFileAssembler:
    """Test cases for FileAssembler."""

    def test_default_artifacts(self, assembler, chain_graph, context):
        result = emit(assembler, chain_graph, context)

        assert [f.path for f in result.files] == [
            "src/index.ts",
            "src/types.ts",
            "src/config.ts",
            "package.json",
            "tsconfig.json",
            ".env.example",
        ]
        assert result.errors == []

    def test_optional_artifacts(self, assembler, chain_graph):
        context = GenerationContext(include_tests=True, include_docs=True)
        paths = [f.path for f in emit(assembler, chain_graph, context).files]
        assert paths[-2:] == ["src/__tests__/index.test.ts", "README.md"]

    def test_dependencies_always_include_defaults(self, assembler, chain_graph, context):
        fragments = [CodeFragment("x", FragmentType.IMPORT, "import { X } from 'x-lib';", dependencies=("x-lib",))]
        result = emit(assembler, chain_graph, context, fragments)

        for name, version in DEFAULT_DEPENDENCIES.items():
            assert result.dependencies[name] == version
        assert result.dependencies["x-lib"] == FALLBACK_VERSION
        assert list(result.dependencies) == sorted(result.dependencies)

    def test_manifest(self, assembler, chain_graph, context):
        result = emit(assembler, chain_graph, context)
        manifest = json.loads(result.file("package.json").content)

        assert manifest["name"] == "test-project"
        assert manifest["type"] == "module"
        assert manifest["description"] == "Answers questions"
        assert manifest["engines"] == {"node": ">=18.0.0"}
        assert "jest" not in manifest["devDependencies"]
        assert "jest" not in manifest

    def test_manifest_with_tests_in_commonjs(self, assembler, chain_graph):
        context = GenerationContext(module_format="cjs", include_tests=True)
        manifest = json.loads(emit(assembler, chain_graph, context).file("package.json").content)

        assert manifest["type"] == "commonjs"
        assert manifest["scripts"]["test"] == "jest"
        assert manifest["jest"]["preset"] == "ts-jest"
        assert "ts-jest" in manifest["devDependencies"]

    def test_tsconfig(self, assembler, chain_graph, context):
        esm = json.loads(emit(assembler, chain_graph, context).file("tsconfig.json").content)
        cjs = json.loads(emit(assembler, chain_graph, GenerationContext(module_format="cjs")).file("tsconfig.json").content)

        assert esm["compilerOptions"]["module"] == "NodeNext"
        assert cjs["compilerOptions"]["module"] == "CommonJS"

    def test_env_file(self, assembler, chain_graph, context):
        env = emit(assembler, chain_graph, context).file(".env.example").content
        assert "OPEN_AI_API_KEY=sk-..." in env
        assert "(required)" in env
        assert env.rstrip().endswith("NODE_ENV=development")

    def test_env_variables_are_deduplicated(self, assembler):
        credential = {"openAIApiKey": Parameter("openAIApiKey", type="credential")}
        graph = WorkflowGraph(nodes=[
            Node(id="a", type="openAI", parameters=credential),
            Node(id="b", type="chatOpenAI", parameters=credential),
        ])
        context = GenerationContext(include_langfuse=True, environment={"apiUrl": "http://localhost"})
        names = [v["name"] for v in assembler.env_variables(graph, context)]

        assert names == [
            "OPEN_AI_API_KEY",
            "LANGFUSE_PUBLIC_KEY",
            "LANGFUSE_SECRET_KEY",
            "LANGFUSE_BASE_URL",
            "LANGFUSE_ENABLED",
            "API_URL",
            "NODE_ENV",
        ]

    def test_app_config(self, assembler, chain_graph, independent_graph, context):
        config = assembler.app_config(chain_graph, context)
        assert config["app"] == {"name": "test-project", "version": "1.0.0"}
        assert config["llm"] == {"modelName": "gpt-4", "temperature": 0.2, "maxTokens": None}
        assert "memory" not in config

        config = assembler.app_config(independent_graph, context)
        assert config["llm"]["modelName"] == "gpt-3.5-turbo"
        assert config["memory"] == {"type": "bufferMemory", "memoryKey": "chat_history"}

    def test_interfaces_for_object_parameters(self, assembler):
        node = Node(
            id="api",
            type="requestsGet",
            variable="fetcher",
            parameters={"headers": Parameter("headers", ParamValue.of({"Accept": "json", "x-retry": 3}))},
        )
        interfaces = assembler.interfaces(WorkflowGraph(nodes=[node]))

        assert interfaces[0] == {
            "name": "FetcherHeaders",
            "fields": [
                {"name": "Accept", "optional": False, "type": "string"},
                {"name": "'x-retry'", "optional": False, "type": "number"},
            ],
        }
        assert [i["name"] for i in interfaces[1:]] == ["AppConfig", "ChatMessage", "ProcessingResult"]

    def test_types_file_exports(self, assembler, chain_graph, context):
        types = emit(assembler, chain_graph, context).file("src/types.ts")
        assert types.exports == ("AppConfig", "ChatMessage", "ProcessingResult")
        assert "export interface ChatMessage {\n  role: 'system' | 'human' | 'ai';" in types.content

    def test_config_file(self, assembler, chain_graph):
        context = GenerationContext(module_format="cjs", include_langfuse=True)
        config = emit(assembler, chain_graph, context).file("src/config.ts")

        assert "import type { AppConfig } from './types';" in config.content
        assert "modelName: 'gpt-4'," in config.content
        assert config.exports == ("config", "environment", "langfuseConfig")

    def test_comments_flag_strips_generated_comments(self, assembler, chain_graph):
        result = emit(assembler, chain_graph, GenerationContext(include_comments=False, include_tests=True))

        for path in ("src/index.ts", "src/types.ts", "src/config.ts", "src/__tests__/index.test.ts"):
            content = result.file(path).content
            assert "Generated by flowgen" not in content, path
            assert "/**" not in content, path
        assert "// CLI entry point" not in result.file("src/index.ts").content

    def test_comments_are_emitted_by_default(self, assembler, chain_graph, context):
        index = emit(assembler, chain_graph, context).file("src/index.ts").content
        assert index.startswith("/**")
        assert "// CLI entry point" in index

    def test_failed_file_is_reported_and_skipped(self, assembler, chain_graph, context, monkeypatch):
        def broken(*args, **kwargs):
            raise ValueError("no types today")

        monkeypatch.setattr(FileAssembler, "types_file", broken)
        result = emit(assembler, chain_graph, context)

        assert result.errors == ["Failed to generate src/types.ts: no types today"]
        assert result.file("src/types.ts") is None
        assert result.file("src/index.ts") is not None
        assert not result.success

    def test_metadata(self, assembler, chain_graph, context):
        metadata = emit(assembler, chain_graph, context).metadata
        assert metadata["node_count"] == 3
        assert metadata["connection_count"] == 2
        assert metadata["complexity"] == "simple"
        assert metadata["features"] == {"langfuse": False, "tests": False, "docs": False}
