"""Language model converters (completion and chat models)."""

from typing import Any, Dict, List, Optional, Sequence

from converters.base import BaseConverter, Expr, ParameterSpec
from core.ir.models import CodeFragment, FragmentType, GenerationContext, Node, ValueKind


class BaseLLMConverter(BaseConverter):
    """Emits ``const x = new Model({...})`` at module level."""

    category = "llm"
    variable_suffix = "llm"
    dependencies: Sequence[str] = ()
    model_key = "modelName"
    credential_key = "apiKey"
    default_temperature: Optional[float] = 0.7

    def parameter_specs(self) -> Sequence[ParameterSpec]:
        return (
            ParameterSpec("modelName", ValueKind.STRING),
            ParameterSpec("temperature", ValueKind.NUMBER),
            ParameterSpec("maxTokens", ValueKind.NUMBER),
        )

    def get_dependencies(self, node=None, context=None) -> List[str]:
        return list(self.dependencies) or [self.package, "@langchain/core"]

    def model_options(self, node: Node) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            self.model_key: node.param("modelName").as_str(),
            "temperature": node.param("temperature").as_number(self.default_temperature),
            "maxTokens": node.param("maxTokens").as_number(),
        }
        options.update(self.extra_options(node))
        credential = self.credential_expression(node)
        if credential:
            options[self.credential_key] = Expr(credential)
        return options

    def extra_options(self, node: Node) -> Dict[str, Any]:
        return {}

    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        variable = self.variable_name(node)
        return [
            self.import_fragment(node),
            self.fragment(
                node,
                FragmentType.DECLARATION,
                self.constructor(node, self.model_options(node)),
                exports=[variable],
            ),
        ]


class OpenAIConverter(BaseLLMConverter):
    node_type = "openAI"
    package = "@langchain/openai"
    class_name = "OpenAI"
    credential_key = "openAIApiKey"


class ChatOpenAIConverter(BaseLLMConverter):
    node_type = "chatOpenAI"
    package = "@langchain/openai"
    class_name = "ChatOpenAI"
    credential_key = "openAIApiKey"

    def extra_options(self, node: Node) -> Dict[str, Any]:
        return {
            "streaming": node.param("streaming").as_bool(),
            "topP": node.param("topP").as_number(),
            "frequencyPenalty": node.param("frequencyPenalty").as_number(),
            "presencePenalty": node.param("presencePenalty").as_number(),
            "timeout": node.param("timeout").as_number(),
        }


class AnthropicConverter(BaseLLMConverter):
    node_type = "anthropic"
    aliases = ("chatAnthropic",)
    package = "@langchain/anthropic"
    class_name = "ChatAnthropic"
    credential_key = "anthropicApiKey"

    def extra_options(self, node: Node) -> Dict[str, Any]:
        return {
            "topP": node.param("topP").as_number(),
            "topK": node.param("topK").as_number(),
            "streaming": node.param("streaming").as_bool(),
        }


class AzureOpenAIConverter(BaseLLMConverter):
    node_type = "azureOpenAI"
    aliases = ("azureChatOpenAI",)
    package = "@langchain/openai"
    class_name = "AzureOpenAI"
    credential_key = "azureOpenAIApiKey"

    def extra_options(self, node: Node) -> Dict[str, Any]:
        return {
            "azureOpenAIApiInstanceName": node.param("azureOpenAIApiInstanceName").as_str(),
            "azureOpenAIApiDeploymentName": node.param("azureOpenAIApiDeploymentName").as_str(),
            "azureOpenAIApiVersion": node.param("azureOpenAIApiVersion").as_str(),
        }


class OllamaConverter(BaseLLMConverter):
    node_type = "ollama"
    aliases = ("chatOllama",)
    package = "@langchain/community/llms/ollama"
    class_name = "Ollama"
    dependencies = ("@langchain/community", "@langchain/core")
    model_key = "model"
    default_temperature = None

    def extra_options(self, node: Node) -> Dict[str, Any]:
        return {
            "baseUrl": node.param("baseUrl").as_str("http://localhost:11434"),
            "topP": node.param("topP").as_number(),
        }


class HuggingFaceConverter(BaseLLMConverter):
    node_type = "huggingFace"
    aliases = ("huggingFaceInference_LLMs",)
    package = "@langchain/community/llms/hf"
    class_name = "HuggingFaceInference"
    dependencies = ("@langchain/community", "@langchain/core")
    model_key = "model"


class CohereConverter(BaseLLMConverter):
    node_type = "cohere"
    package = "@langchain/cohere"
    class_name = "Cohere"
    model_key = "model"
