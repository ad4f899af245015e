"""Turns assembled fragments into the generated project's files."""

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from core.graph.analysis import complexity_tier
from core.ir.errors import ConversionError
from core.ir.models import (
    ConversionResult,
    FragmentType,
    GeneratedFile,
    GenerationContext,
    Node,
    ParamValue,
    ValueKind,
    WorkflowGraph,
)
from core.naming import env_name, pascal_case, ts_key

from .formatter import CodeFormatter
from .fragments import AssembledFragments
from .imports import ImportConsolidator
from .observability import LANGFUSE_PACKAGE, langfuse_env_vars, module_path
from .templates import TemplateRenderer

logger = structlog.get_logger(__name__)

MAIN_PATH = "src/index.ts"
TYPES_PATH = "src/types.ts"
CONFIG_PATH = "src/config.ts"
MANIFEST_PATH = "package.json"
TSCONFIG_PATH = "tsconfig.json"
ENV_PATH = ".env.example"
TEST_PATH = "src/__tests__/index.test.ts"
README_PATH = "README.md"

# Always present in the manifest
DEFAULT_DEPENDENCIES = {
    "dotenv": "^16.4.5",
    "langchain": "^0.2.17",
    "@langchain/core": "^0.2.30",
}

PACKAGE_VERSIONS = {
    "@langchain/openai": "^0.2.7",
    "@langchain/anthropic": "^0.2.0",
    "@langchain/community": "^0.3.48",
    "@langchain/cohere": "^0.2.1",
    "faiss-node": "^0.5.1",
    "hnswlib-node": "^3.0.0",
    "chromadb": "^1.8.1",
    LANGFUSE_PACKAGE: "^3.0.0",
}
FALLBACK_VERSION = "^1.0.0"

DEV_DEPENDENCIES = {
    "typescript": "^5.5.4",
    "tsx": "^4.16.5",
    "@types/node": "^20.14.15",
}
TEST_DEV_DEPENDENCIES = {
    "jest": "^29.7.0",
    "ts-jest": "^29.2.4",
    "@types/jest": "^29.5.12",
}

CREDENTIAL_EXAMPLES = {
    "openAIApiKey": "sk-...",
    "azureOpenAIApiKey": "your-azure-openai-key",
    "anthropicApiKey": "sk-ant-...",
    "pineconeApiKey": "your-pinecone-api-key",
    "serpApiKey": "your-serpapi-key",
}
DEFAULT_CREDENTIAL_EXAMPLE = "your-api-key-here"

_TS_TYPES = {
    ValueKind.STRING: "string",
    ValueKind.NUMBER: "number",
    ValueKind.BOOLEAN: "boolean",
    ValueKind.OBJECT: "Record<string, unknown>",
    ValueKind.ARRAY: "unknown[]",
    ValueKind.MISSING: "unknown",
}

FIXED_INTERFACES = [
    {
        "name": "AppConfig",
        "fields": [
            {"name": "app", "optional": False, "type": "{ name: string; version: string }"},
            {"name": "llm", "optional": True, "type": "{ modelName: string; temperature: number; maxTokens?: number }"},
            {"name": "memory", "optional": True, "type": "{ type: string; memoryKey: string }"},
        ],
    },
    {
        "name": "ChatMessage",
        "fields": [
            {"name": "role", "optional": False, "type": "'system' | 'human' | 'ai'"},
            {"name": "content", "optional": False, "type": "string"},
        ],
    },
    {
        "name": "ProcessingResult",
        "fields": [
            {"name": "output", "optional": False, "type": "string"},
            {"name": "metadata", "optional": True, "type": "Record<string, unknown>"},
        ],
    },
]


def ts_type(value: Any) -> str:
    """TypeScript type for a JSON-like value."""
    param = value if isinstance(value, ParamValue) else ParamValue.of(value)
    if param.kind is ValueKind.ARRAY and param.raw:
        element_types = sorted({ts_type(item) for item in param.raw})
        if len(element_types) == 1:
            return f"{element_types[0]}[]"
        return f"Array<{' | '.join(element_types)}>"
    return _TS_TYPES[param.kind]


def sanitize_comment(text: str) -> str:
    """Keep text from closing a block comment early."""
    return " ".join(str(text).split()).replace("*/", "*\\/")


class FileAssembler:
    """Builds every artifact of the generated project.

    A fresh renderer, import consolidator and formatter are created for each
    ``emit`` call. A file that fails to build is recorded in
    ``ConversionResult.errors`` and left out; the remaining files are still
    produced.
    """

    def emit(
        self,
        graph: WorkflowGraph,
        context: GenerationContext,
        assembled: AssembledFragments,
        warnings: Sequence[str] = (),
        converted: Sequence[str] = (),
        unsupported: Sequence[str] = (),
    ) -> ConversionResult:
        quote_char = context.code_style.quote
        self.renderer = TemplateRenderer(quote_char=quote_char, include_comments=context.include_comments)
        self.consolidator = ImportConsolidator(context.module_format, quote_char)
        self.formatter = CodeFormatter(context.code_style)

        result = ConversionResult(warnings=list(warnings))
        result.dependencies = self.collect_dependencies(assembled, context)

        builders: List[Tuple[str, Callable[[], GeneratedFile]]] = [
            (MAIN_PATH, lambda: self.main_file(graph, context, assembled)),
            (TYPES_PATH, lambda: self.types_file(graph, context)),
            (CONFIG_PATH, lambda: self.config_file(graph, context)),
            (MANIFEST_PATH, lambda: self.manifest_file(graph, context, result.dependencies)),
            (TSCONFIG_PATH, lambda: self.tsconfig_file(context)),
            (ENV_PATH, lambda: self.env_file(graph, context)),
        ]
        if context.include_tests:
            builders.append((TEST_PATH, lambda: self.test_file(graph, context, assembled)))
        if context.include_docs:
            builders.append((README_PATH, lambda: self.readme_file(graph, context, result.warnings)))

        for path, build in builders:
            try:
                result.files.append(build())
            except (ConversionError, ValueError, TypeError) as e:
                logger.error("file_generation_failed", path=path, error=str(e))
                result.errors.append(f"Failed to generate {path}: {e}")

        result.metadata = {
            "project_name": context.project_name,
            "module_format": context.module_format,
            "node_count": len(graph.nodes),
            "connection_count": len(graph.connections),
            "complexity": complexity_tier(graph),
            "fragment_count": len(assembled.all()),
            "features": {
                "langfuse": context.include_langfuse,
                "tests": context.include_tests,
                "docs": context.include_docs,
            },
            "converted": list(converted),
            "unsupported": list(unsupported),
        }
        logger.info(
            "files_emitted",
            files=len(result.files),
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result

    def collect_dependencies(self, assembled: AssembledFragments, context: GenerationContext) -> Dict[str, str]:
        """Union of fragment dependencies with the pinned defaults."""
        names = set(DEFAULT_DEPENDENCIES) | set(assembled.dependencies())
        if context.include_langfuse:
            names.add(LANGFUSE_PACKAGE)
        return {
            name: DEFAULT_DEPENDENCIES.get(name) or PACKAGE_VERSIONS.get(name, FALLBACK_VERSION)
            for name in sorted(names)
        }

    def _format(self, code: str) -> str:
        return self.formatter.format(code)

    # =========================================================================
    # TypeScript sources
    # =========================================================================

    def main_file(self, graph: WorkflowGraph, context: GenerationContext, assembled: AssembledFragments) -> GeneratedFile:
        q = context.code_style.quote
        imports = self.consolidator.consolidate(
            [f"import {q}dotenv/config{q};"] + assembled.contents(FragmentType.IMPORT)
        )
        main_function = self.renderer.render(
            "main_function",
            graph_name=graph.name,
            langfuse=context.include_langfuse,
            initializations=assembled.contents(FragmentType.INITIALIZATION),
            executions=assembled.contents(FragmentType.EXECUTION),
        )
        content = self.renderer.render(
            "main_file",
            description=sanitize_comment(
                graph.metadata.get("description") or f"Generated from the {graph.name} workflow"
            ),
            imports=imports,
            declarations=assembled.contents(FragmentType.DECLARATION),
            main_function=main_function,
            module_format=context.module_format,
            exports=assembled.contents(FragmentType.EXPORT),
        )
        return GeneratedFile(
            path=MAIN_PATH,
            content=self._format(content),
            type="main",
            exports=("main",) + tuple(n for n in assembled.exports() if n != "main"),
            dependencies=tuple(assembled.dependencies()),
        )

    def interfaces(self, graph: WorkflowGraph) -> List[Dict[str, Any]]:
        """One interface per object-valued parameter, then the fixed app interfaces."""
        interfaces = []
        taken = {interface["name"] for interface in FIXED_INTERFACES}
        for node in graph.nodes:
            for parameter in node.parameters.values():
                if parameter.value.kind is not ValueKind.OBJECT or not parameter.value.raw:
                    continue
                name = pascal_case(f"{node.variable or node.display_name} {parameter.name}")
                if not name or name in taken:
                    continue
                taken.add(name)
                interfaces.append({
                    "name": name,
                    "fields": [
                        {"name": ts_key(str(key)), "optional": value is None, "type": ts_type(value)}
                        for key, value in parameter.value.raw.items()
                    ],
                })
        return interfaces + FIXED_INTERFACES

    def types_file(self, graph: WorkflowGraph, context: GenerationContext) -> GeneratedFile:
        interfaces = self.interfaces(graph)
        content = self.renderer.render("types_file", project_name=context.project_name, interfaces=interfaces)
        return GeneratedFile(
            path=TYPES_PATH,
            content=self._format(content),
            type="types",
            exports=tuple(interface["name"] for interface in interfaces),
        )

    def app_config(self, graph: WorkflowGraph, context: GenerationContext) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "app": {
                "name": context.project_name,
                "version": str(graph.metadata.get("version") or "1.0.0"),
            },
        }
        llm = _first_in_category(graph, "llm")
        if llm is not None:
            config["llm"] = {
                "modelName": llm.param("modelName").as_str() or llm.param("model").as_str() or "gpt-3.5-turbo",
                "temperature": llm.param("temperature").as_number(0.7),
                "maxTokens": llm.param("maxTokens").as_number(),
            }
        memory = _first_in_category(graph, "memory")
        if memory is not None:
            config["memory"] = {
                "type": memory.type,
                "memoryKey": memory.param("memoryKey").as_str("chat_history"),
            }
        return config

    def config_file(self, graph: WorkflowGraph, context: GenerationContext) -> GeneratedFile:
        content = self.renderer.render(
            "config_file",
            project_name=context.project_name,
            types_import=module_path("types", context),
            config=self.app_config(graph, context),
            langfuse=context.include_langfuse,
            environment=dict(context.environment),
        )
        exports = ("config", "environment")
        if context.include_langfuse:
            exports += ("langfuseConfig",)
        return GeneratedFile(path=CONFIG_PATH, content=self._format(content), type="config", exports=exports)

    def test_file(self, graph: WorkflowGraph, context: GenerationContext, assembled: AssembledFragments) -> GeneratedFile:
        index_import = "../index.js" if context.module_format == "esm" else "../index"
        content = self.renderer.render(
            "main_test",
            project_name=context.project_name,
            index_import=index_import,
            graph_name=graph.name,
            langfuse=context.include_langfuse,
            has_execution=bool(assembled.contents(FragmentType.EXECUTION)),
        )
        return GeneratedFile(path=TEST_PATH, content=self._format(content), type="test")

    # =========================================================================
    # Project files
    # =========================================================================

    def manifest(self, graph: WorkflowGraph, context: GenerationContext, dependencies: Dict[str, str]) -> Dict[str, Any]:
        dev_dependencies = dict(DEV_DEPENDENCIES)
        if context.include_tests:
            dev_dependencies.update(TEST_DEV_DEPENDENCIES)

        manifest: Dict[str, Any] = {
            "name": context.project_name,
            "version": "1.0.0",
            "description": graph.metadata.get("description") or "Generated LangChain application",
            "type": "module" if context.module_format == "esm" else "commonjs",
            "main": "dist/index.js",
            "scripts": {
                "build": "tsc",
                "start": "node dist/index.js",
                "dev": "tsx src/index.ts",
                "type-check": "tsc --noEmit",
                "test": "jest" if context.include_tests else 'echo "No tests specified" && exit 0',
            },
            "dependencies": dict(dependencies),
            "devDependencies": dict(sorted(dev_dependencies.items())),
            "engines": {"node": ">=18.0.0"},
        }
        if context.include_tests:
            manifest["jest"] = {"preset": "ts-jest", "testEnvironment": "node"}
        return manifest

    def manifest_file(self, graph: WorkflowGraph, context: GenerationContext, dependencies: Dict[str, str]) -> GeneratedFile:
        content = json.dumps(self.manifest(graph, context, dependencies), indent=2, ensure_ascii=False) + "\n"
        return GeneratedFile(
            path=MANIFEST_PATH,
            content=content,
            type="manifest",
            dependencies=tuple(dependencies),
        )

    def tsconfig_file(self, context: GenerationContext) -> GeneratedFile:
        esm = context.module_format == "esm"
        tsconfig = {
            "compilerOptions": {
                "target": "ES2022",
                "module": "NodeNext" if esm else "CommonJS",
                "moduleResolution": "NodeNext" if esm else "Node",
                "outDir": "dist",
                "rootDir": "src",
                "strict": True,
                "esModuleInterop": True,
                "skipLibCheck": True,
                "resolveJsonModule": True,
            },
            "include": ["src"],
            "exclude": ["node_modules", "dist", "src/__tests__"],
        }
        return GeneratedFile(path=TSCONFIG_PATH, content=json.dumps(tsconfig, indent=2) + "\n", type="config")

    def env_variables(self, graph: WorkflowGraph, context: GenerationContext) -> List[Dict[str, Any]]:
        """Credential parameters first, then Langfuse, custom and runtime settings."""
        variables: Dict[str, Dict[str, Any]] = {}
        for node in graph.nodes:
            for parameter in node.credential_parameters():
                name = env_name(parameter.name)
                if name in variables:
                    continue
                variables[name] = {
                    "name": name,
                    "description": sanitize_comment(parameter.description or f"{parameter.name} for {node.display_name}"),
                    "example": CREDENTIAL_EXAMPLES.get(parameter.name, DEFAULT_CREDENTIAL_EXAMPLE),
                    "required": True,
                }
        if context.include_langfuse:
            for variable in langfuse_env_vars():
                variables.setdefault(variable["name"], variable)
        for key, value in sorted(context.environment.items()):
            name = env_name(key)
            variables.setdefault(name, {"name": name, "description": key, "example": value, "required": False})
        variables.setdefault("NODE_ENV", {
            "name": "NODE_ENV",
            "description": "Runtime environment",
            "example": "development",
            "required": False,
        })
        return list(variables.values())

    def env_file(self, graph: WorkflowGraph, context: GenerationContext) -> GeneratedFile:
        content = self.renderer.render("env_file", variables=self.env_variables(graph, context))
        return GeneratedFile(path=ENV_PATH, content=content, type="env")

    def readme_file(self, graph: WorkflowGraph, context: GenerationContext, warnings: Sequence[str]) -> GeneratedFile:
        content = self.renderer.render(
            "readme",
            project_name=context.project_name,
            description=graph.metadata.get("description") or f"Generated from the {graph.name} workflow.",
            nodes=graph.nodes,
            complexity=complexity_tier(graph),
            variables=self.env_variables(graph, context),
            warnings=list(warnings),
        )
        return GeneratedFile(path=README_PATH, content=content, type="docs")


def _first_in_category(graph: WorkflowGraph, category: str) -> Optional[Node]:
    for node in graph.nodes:
        if node.category == category:
            return node
    return None
