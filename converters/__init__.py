"""Built-in node converters."""

from converters.base import NodeConverter, BaseConverter, ParameterSpec, Expr
from converters.llm import (
    OpenAIConverter,
    ChatOpenAIConverter,
    AnthropicConverter,
    AzureOpenAIConverter,
    OllamaConverter,
    HuggingFaceConverter,
    CohereConverter,
)
from converters.prompt import PromptTemplateConverter, ChatPromptTemplateConverter
from converters.chain import LLMChainConverter, ConversationChainConverter
from converters.memory import BufferMemoryConverter, BufferWindowMemoryConverter
from converters.tool import CalculatorConverter, SerpAPIConverter

BUILTIN_CONVERTERS = (
    OpenAIConverter,
    ChatOpenAIConverter,
    AnthropicConverter,
    AzureOpenAIConverter,
    OllamaConverter,
    HuggingFaceConverter,
    CohereConverter,
    PromptTemplateConverter,
    ChatPromptTemplateConverter,
    LLMChainConverter,
    ConversationChainConverter,
    BufferMemoryConverter,
    BufferWindowMemoryConverter,
    CalculatorConverter,
    SerpAPIConverter,
)


def create_default_registry():
    """Fresh registry holding every built-in converter."""
    from core.generator.registry import ConverterRegistry

    return ConverterRegistry(converter_cls() for converter_cls in BUILTIN_CONVERTERS)


__all__ = [
    'NodeConverter',
    'BaseConverter',
    'ParameterSpec',
    'Expr',
    'BUILTIN_CONVERTERS',
    'create_default_registry',
]
