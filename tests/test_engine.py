"""
End-to-end tests for CodeGenerator.

Each test converts a whole workflow graph and checks properties of the
generated project rather than individual helpers.
"""

import json
import re

import pytest

from core.generator.engine import CodeGenerator
from core.generator.imports import consolidate
from core.ir.errors import CyclicDependencyError, ValidationError
from core.ir.models import GenerationContext, WorkflowGraph

MAIN = "src/index.ts"


@pytest.fixture
def generator():
    return CodeGenerator()


def main_source(result):
    return result.file(MAIN).content


def import_lines(source):
    return [line for line in source.splitlines() if line.startswith("import ")]


# ============================================================================
# CORE PROPERTIES
# ============================================================================

class TestConversionProperties:
    """Properties every conversion must hold."""

    def test_conversion_is_deterministic(self, generator, chain_graph, context):
        first = generator.convert(chain_graph, context)
        second = CodeGenerator().convert(chain_graph, context)

        assert [(f.path, f.content) for f in first.files] == [(f.path, f.content) for f in second.files]
        assert first.dependencies == second.dependencies
        assert first.warnings == second.warnings

    def test_declarations_follow_execution_order(self, generator, chain_graph, context):
        source = main_source(generator.convert(chain_graph, context))

        model = source.index("const chat_model = new ChatOpenAI(")
        prompt = source.index("const prompt = PromptTemplate.fromTemplate(")
        chain = source.index("const chain = new LLMChain(")
        assert model < prompt < chain

    def test_cycle_is_rejected(self, generator, node_factory, connection_factory, context):
        graph = WorkflowGraph(
            nodes=[node_factory("A", "llmChain"), node_factory("B", "llmChain")],
            connections=[connection_factory("A", "B"), connection_factory("B", "A")],
        )
        with pytest.raises(CyclicDependencyError) as excinfo:
            generator.convert(graph, context)
        assert set(excinfo.value.node_ids) == {"A", "B"}

    def test_dangling_connection_is_rejected(self, generator, node_factory, connection_factory, context):
        graph = WorkflowGraph(
            nodes=[node_factory("a", "calculator")],
            connections=[connection_factory("a", "ghost")],
        )
        with pytest.raises(ValidationError) as excinfo:
            generator.convert(graph, context)
        assert "ghost" in excinfo.value.node_ids

    def test_unsupported_node_degrades_to_placeholder(self, generator, chain_document, context):
        chain_document["nodes"].append({"id": "store", "type": "pinecone", "label": "Vectors"})
        from core.ir.loader import load_graph

        result = generator.convert(load_graph(chain_document), context)

        assert result.errors == []
        assert result.success
        assert "// TODO: Unsupported node type 'pinecone' for node 'Vectors' (store)" in main_source(result)
        assert any("pinecone" in warning for warning in result.warnings)
        assert result.metadata["unsupported"] == ["pinecone"]

    def test_imports_are_consolidated(self, generator, chain_graph, context):
        lines = import_lines(main_source(generator.convert(chain_graph, context)))
        sources = [re.search(r"'([^']+)'", line).group(1) for line in lines]

        assert len(sources) == len(set(sources))
        block = consolidate(lines)
        assert consolidate([block]) == block

    def test_dependency_union(self, generator, chain_graph, context):
        result = generator.convert(chain_graph, context)

        assert result.dependencies == {
            "@langchain/core": "^0.2.30",
            "@langchain/openai": "^0.2.7",
            "dotenv": "^16.4.5",
            "langchain": "^0.2.17",
        }
        manifest = json.loads(result.file("package.json").content)
        assert manifest["dependencies"] == result.dependencies

    def test_independent_nodes_keep_array_order(self, generator, independent_graph, context):
        result = generator.convert(independent_graph, context)
        source = main_source(result)

        assert result.metadata["execution_order"] == ["memory", "llm", "calc"]
        assert source.index("const memory = new BufferMemory();") < source.index("const completion = new OpenAI(")
        assert "    const calculator = new Calculator();" in source


# ============================================================================
# GENERATED MAIN MODULE
# ============================================================================

class TestMainModule:
    """Shape of src/index.ts."""

    def test_import_block(self, generator, chain_graph, context):
        source = main_source(generator.convert(chain_graph, context))
        assert (
            "import 'dotenv/config';\n"
            "\n"
            "import { PromptTemplate } from '@langchain/core/prompts';\n"
            "import { ChatOpenAI } from '@langchain/openai';\n"
            "import { LLMChain } from 'langchain/chains';\n"
        ) in source

    def test_chain_runs_inside_main(self, generator, chain_graph, context):
        source = main_source(generator.convert(chain_graph, context))

        assert "export async function main(input: string, options: Record<string, unknown> = {}): Promise<string> {" in source
        assert "    result = await chain.invoke({ input: input, ...options });" in source
        assert source.rstrip().endswith("export { chain };")

    def test_credentials_come_from_the_environment(self, generator, chain_graph, context):
        source = main_source(generator.convert(chain_graph, context))
        assert "openAIApiKey: process.env.OPEN_AI_API_KEY," in source

    def test_exports(self, generator, chain_graph, context):
        main = generator.convert(chain_graph, context).file(MAIN)
        assert main.exports[0] == "main"
        assert set(main.exports) == {"main", "chat_model", "prompt", "chain"}

    def test_esm_entry_point(self, generator, chain_graph, context):
        source = main_source(generator.convert(chain_graph, context))
        assert "if (import.meta.url === `file://${process.argv[1]}`) {" in source

    def test_commonjs(self, generator, chain_graph):
        result = generator.convert(chain_graph, GenerationContext(module_format="cjs"))
        source = main_source(result)

        assert "require('dotenv/config');" in source
        assert "const { ChatOpenAI } = require('@langchain/openai');" in source
        assert "if (require.main === module) {" in source
        assert import_lines(source) == []

    def test_double_quotes_without_semicolons(self, generator, chain_graph):
        context = GenerationContext(code_style={"single_quotes": False, "semicolons": False})
        source = main_source(generator.convert(chain_graph, context))

        assert 'import { ChatOpenAI } from "@langchain/openai"\n' in source
        assert "modelName: \"gpt-4\"," in source


# ============================================================================
# OPTIONAL FEATURES
# ============================================================================

class TestFeatures:
    """Langfuse, tests and docs."""

    def test_langfuse(self, generator, chain_graph):
        result = generator.convert(chain_graph, GenerationContext(include_langfuse=True))
        source = main_source(result)

        assert "import { Langfuse } from 'langfuse';" in source
        assert "import { langfuseConfig } from './config.js';" in source
        assert "const langfuse = new Langfuse(langfuseConfig);" in source
        # the client is declared before any node
        assert source.index("const langfuse = new Langfuse") < source.index("const chat_model")
        assert "const trace = langfuse.trace({" in source
        assert "export const langfuseConfig = {" in result.file("src/config.ts").content
        assert "LANGFUSE_PUBLIC_KEY=pk-lf-..." in result.file(".env.example").content
        assert result.dependencies["langfuse"] == "^3.0.0"

    def test_without_langfuse(self, generator, chain_graph, context):
        result = generator.convert(chain_graph, context)
        assert "langfuse" not in main_source(result)
        assert "langfuse" not in result.dependencies

    def test_tests_and_docs(self, generator, chain_graph):
        context = GenerationContext(project_name="qa", include_tests=True, include_docs=True)
        result = generator.convert(chain_graph, context)

        test_file = result.file("src/__tests__/index.test.ts").content
        assert "import { main } from '../index.js';" in test_file
        assert "test('processes basic input', async () => {" in test_file

        readme = result.file("README.md").content
        assert readme.startswith("# qa\n")
        assert "| Chat Model | `chatOpenAI` | llm |" in readme
        assert "- `OPEN_AI_API_KEY`:" in readme

    def test_tests_without_execution(self, generator, independent_graph):
        result = generator.convert(independent_graph, GenerationContext(include_tests=True))
        test_file = result.file("src/__tests__/index.test.ts").content
        assert "exports a main function" in test_file
        assert "processes basic input" not in test_file


# ============================================================================
# INPUT FORMS AND METADATA
# ============================================================================

class TestInputs:
    """Flowise exports and files."""

    def test_flowise_and_ir_forms_generate_the_same_calls(self, generator, flowise_document, context):
        from core.ir.loader import load_graph

        source = main_source(generator.convert(load_graph(flowise_document), context))
        assert "new ChatOpenAI({" in source
        assert "modelName: 'gpt-4'," in source
        assert "temperature: 0.9," in source
        assert "PromptTemplate.fromTemplate(`Answer the question: {input}`)" in source
        assert "result = await llm_chain.invoke(" in source

    def test_convert_file(self, generator, tmp_path, chain_document, context):
        path = tmp_path / "qa.json"
        path.write_text(json.dumps(chain_document))

        result = generator.convert_file(path, context)

        assert result.metadata["workflow"] == "qa-chain"
        assert result.metadata["execution_order"] == ["model", "prompt", "chain"]
        assert result.metadata["validation"] == {"errors": 0, "parameter_errors": 0, "warnings": 0}

    def test_kahn_strategy(self, chain_graph, context):
        result = CodeGenerator(strategy="kahn").convert(chain_graph, context)
        assert result.metadata["execution_order"] == ["model", "prompt", "chain"]
