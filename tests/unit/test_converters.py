"""
Tests for the built-in node converters and the converter registry.
"""

import pytest

from converters import BUILTIN_CONVERTERS, create_default_registry
from converters.base import BaseConverter, Expr, NodeConverter
from converters.chain import BaseChainConverter, LLMChainConverter
from converters.llm import ChatOpenAIConverter, OllamaConverter
from converters.memory import BufferWindowMemoryConverter
from converters.prompt import BasePromptConverter, ChatPromptTemplateConverter, PromptTemplateConverter
from converters.tool import CalculatorConverter, SerpAPIConverter
from core.generator.registry import ConverterRegistry
from core.ir.errors import ConversionError
from core.ir.models import FragmentType, Node, Parameter, ParamValue


def bound(node, variable, **inputs):
    """Copy of ``node`` as the engine hands it to a converter."""
    return Node(
        id=node.id,
        type=node.type,
        label=node.label,
        category=node.category,
        parameters=node.parameters,
        variable=variable,
        inputs={name: (value,) for name, value in inputs.items()},
    )


class DummyConverter(BaseConverter):
    node_type = "dummy"
    category = "test"
    package = "dummy-pkg"
    class_name = "Dummy"

    def convert(self, node, context):
        return [self.import_fragment(node)]


# ============================================================================
# BASE CONVERTER TESTS
# ============================================================================

class TestBaseConverter:
    """Test cases for shared converter helpers."""

    def test_options_object_skips_none_and_keeps_expressions(self):
        body = DummyConverter().options_object({"a": 1, "b": None, "c": Expr("process.env.X"), "d": "it's"})
        assert body == "{\n  a: 1,\n  c: process.env.X,\n  d: 'it\\'s'\n}"

    def test_constructor_without_options(self, node_factory):
        node = bound(node_factory("n", "dummy"), "thing")
        assert DummyConverter().constructor(node, {"x": None}) == "const thing = new Dummy();"

    def test_fragment_ids_and_metadata(self, node_factory, context):
        fragment = DummyConverter().convert(bound(node_factory("n", "dummy"), "thing"), context)[0]
        assert fragment.id == "n_import"
        assert fragment.type is FragmentType.IMPORT
        assert fragment.content == "import { Dummy } from 'dummy-pkg';"
        assert fragment.metadata.node_id == "n"
        assert fragment.metadata.category == "test"

    def test_variable_name_fallback(self, node_factory):
        assert DummyConverter().variable_name(node_factory("n", "dummy")) == "n_test"

    def test_credential_expression(self):
        node = Node(id="n", type="dummy", parameters={"openAIApiKey": Parameter("openAIApiKey", type="credential")})
        assert DummyConverter().credential_expression(node) == "process.env.OPEN_AI_API_KEY"

    def test_abstract_convert(self):
        with pytest.raises(TypeError):
            NodeConverter()

    @pytest.mark.parametrize("family", [BaseChainConverter, BasePromptConverter])
    def test_family_bases_are_abstract(self, family):
        with pytest.raises(TypeError):
            family()


# ============================================================================
# LLM CONVERTER TESTS
# ============================================================================

class TestLLMConverters:
    """Test cases for model converters."""

    def test_chat_openai(self, chain_graph, context):
        node = bound(chain_graph.get_node("model"), "chat_model")
        fragments = ChatOpenAIConverter().convert(node, context)

        assert [f.type for f in fragments] == [FragmentType.IMPORT, FragmentType.DECLARATION]
        assert fragments[0].content == "import { ChatOpenAI } from '@langchain/openai';"
        assert fragments[0].dependencies == ("@langchain/openai", "@langchain/core")
        assert fragments[1].content == (
            "const chat_model = new ChatOpenAI({\n"
            "  modelName: 'gpt-4',\n"
            "  temperature: 0.2,\n"
            "  openAIApiKey: process.env.OPEN_AI_API_KEY\n"
            "});"
        )
        assert fragments[1].metadata.exports == ("chat_model",)

    def test_default_temperature(self, node_factory, context):
        node = bound(node_factory("m", "chatOpenAI"), "model")
        declaration = ChatOpenAIConverter().convert(node, context)[1].content
        assert "temperature: 0.7" in declaration
        assert "modelName" not in declaration

    def test_ollama(self, node_factory, context):
        node = bound(node_factory("m", "ollama", modelName="llama3"), "local")
        fragments = OllamaConverter().convert(node, context)

        assert "model: 'llama3'" in fragments[1].content
        assert "baseUrl: 'http://localhost:11434'" in fragments[1].content
        assert "temperature" not in fragments[1].content
        assert fragments[0].dependencies == ("@langchain/community", "@langchain/core")

    def test_alias_accepted(self, node_factory):
        registry = create_default_registry()
        assert registry.get("chatAnthropic").node_type == "anthropic"
        assert registry.get("chatAnthropic").can_convert(node_factory("a", "chatAnthropic"))


# ============================================================================
# PROMPT, CHAIN, MEMORY AND TOOL TESTS
# ============================================================================

class TestPromptConverters:
    """Test cases for prompt converters."""

    def test_prompt_template_uses_template_literal(self, node_factory, context):
        node = bound(node_factory("p", "promptTemplate", template="Say `hi` to ${name}\n{input}"), "prompt")
        declaration = PromptTemplateConverter().convert(node, context)[1].content
        assert declaration == "const prompt = PromptTemplate.fromTemplate(`Say \\`hi\\` to \\${name}\n{input}`);"

    def test_template_is_required(self):
        assert [spec.name for spec in PromptTemplateConverter().required_parameters()] == ["template"]

    def test_chat_prompt(self, node_factory, context):
        node = bound(node_factory("p", "chatPromptTemplate", systemMessagePrompt="Be brief."), "chat_prompt")
        declaration = ChatPromptTemplateConverter().convert(node, context)[1].content
        assert declaration == (
            "const chat_prompt = ChatPromptTemplate.fromMessages([\n"
            "  ['system', `Be brief.`],\n"
            "  ['human', `{input}`]\n"
            "]);"
        )


class TestChainConverters:
    """Test cases for chain converters."""

    def test_llm_chain(self, node_factory, context):
        node = bound(node_factory("c", "llmChain"), "chain", model="chat_model", prompt="prompt")
        fragments = LLMChainConverter().convert(node, context)

        assert [f.type for f in fragments] == [
            FragmentType.IMPORT,
            FragmentType.DECLARATION,
            FragmentType.EXECUTION,
            FragmentType.EXPORT,
        ]
        assert fragments[1].content == (
            "const chain = new LLMChain({\n"
            "  llm: chat_model,\n"
            "  prompt: prompt\n"
            "});"
        )
        assert fragments[2].content == "result = await chain.invoke({ input: input, ...options });"
        assert fragments[2].metadata.is_async
        assert fragments[3].content == "export { chain };"

    def test_llm_chain_without_model(self, node_factory, context):
        node = bound(node_factory("c", "llmChain"), "chain", prompt="prompt")
        with pytest.raises(ConversionError, match="no connected language model"):
            LLMChainConverter().convert(node, context)

    def test_llm_chain_without_prompt(self, node_factory, context):
        node = bound(node_factory("c", "llmChain"), "chain", model="llm")
        with pytest.raises(ConversionError, match="no connected prompt"):
            LLMChainConverter().convert(node, context)


class TestMemoryAndTools:
    """Test cases for memory and tool converters."""

    def test_buffer_window_memory(self, node_factory, context):
        node = bound(node_factory("m", "bufferWindowMemory", memoryKey="history"), "memory")
        declaration = BufferWindowMemoryConverter().convert(node, context)[1].content
        assert declaration == (
            "const memory = new BufferWindowMemory({\n"
            "  memoryKey: 'history',\n"
            "  k: 5\n"
            "});"
        )

    def test_calculator_is_an_initialization(self, node_factory, context):
        fragments = CalculatorConverter().convert(bound(node_factory("t", "calculator"), "calculator"), context)
        assert fragments[1].type is FragmentType.INITIALIZATION
        assert fragments[1].content == "const calculator = new Calculator();"

    def test_serpapi_with_credential_and_options(self, context):
        node = Node(
            id="s",
            type="serpAPI",
            variable="search",
            parameters={
                "serpApiKey": Parameter("serpApiKey", type="credential"),
                "hl": Parameter("hl", ParamValue.of("en")),
            },
        )
        content = SerpAPIConverter().convert(node, context)[1].content
        assert content == "const search = new SerpAPI(process.env.SERP_API_KEY, {\n  hl: 'en'\n});"

    def test_serpapi_bare(self, node_factory, context):
        content = SerpAPIConverter().convert(bound(node_factory("s", "serpAPI"), "search"), context)[1].content
        assert content == "const search = new SerpAPI();"


# ============================================================================
# REGISTRY TESTS
# ============================================================================

class TestConverterRegistry:
    """Test cases for ConverterRegistry."""

    def test_default_registry_holds_every_builtin(self, registry):
        assert len(registry) == len(BUILTIN_CONVERTERS)
        assert "llmChain" in registry
        assert registry.registered_types() == sorted(registry.registered_types())

    def test_registries_are_independent(self):
        first = create_default_registry()
        second = create_default_registry()
        first.unregister("llmChain")
        assert "llmChain" not in first
        assert "llmChain" in second

    def test_duplicate_registration(self, registry):
        with pytest.raises(ConversionError, match="already registered"):
            registry.register(LLMChainConverter())

    def test_converter_without_type(self):
        class Nameless(DummyConverter):
            node_type = ""

        with pytest.raises(ConversionError):
            ConverterRegistry([Nameless()])

    def test_register_alias(self):
        registry = ConverterRegistry([DummyConverter()])
        registry.register_alias("legacyDummy", "dummy")

        assert registry.get("legacyDummy").node_type == "dummy"
        assert registry.canonical_type("legacyDummy") == "dummy"
        assert registry.aliases() == {"legacyDummy": "dummy"}
        with pytest.raises(ConversionError):
            registry.register_alias("x", "missing")
        with pytest.raises(ConversionError):
            registry.register_alias("dummy", "dummy")

    def test_unregister_drops_aliases(self, registry):
        assert registry.unregister("anthropic")
        assert registry.get("chatAnthropic") is None
        assert not registry.unregister("anthropic")

    def test_by_category(self, registry):
        memory_types = [c.node_type for c in registry.by_category("memory")]
        assert memory_types == ["bufferMemory", "bufferWindowMemory"]

    def test_all_dependencies(self, registry, chain_graph):
        assert registry.all_dependencies(chain_graph.nodes) == ["@langchain/core", "@langchain/openai", "langchain"]

    def test_validate_nodes(self, registry, node_factory):
        nodes = [node_factory("a", "llmChain"), node_factory("b", "pinecone"), node_factory("c", "pinecone")]
        assert registry.validate_nodes(nodes) == {"supported": ["llmChain"], "unsupported": ["pinecone"]}

    def test_statistics(self, registry):
        stats = registry.statistics()
        assert stats["total_converters"] == len(BUILTIN_CONVERTERS)
        assert stats["categories"]["llm"] == 7
        assert stats["deprecated"] == []
