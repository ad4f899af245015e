"""Prompt template converters."""

from abc import abstractmethod
from typing import List, Sequence

from converters.base import BaseConverter, ParameterSpec
from core.naming import template_literal
from core.ir.models import CodeFragment, FragmentType, GenerationContext, Node, ValueKind


class BasePromptConverter(BaseConverter):
    category = "prompt"
    variable_suffix = "prompt"
    package = "@langchain/core/prompts"

    def get_dependencies(self, node=None, context=None) -> List[str]:
        return ["@langchain/core"]

    @abstractmethod
    def declaration(self, node: Node) -> str:
        """Statement declaring the prompt variable."""
        pass

    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        return [
            self.import_fragment(node),
            self.fragment(
                node,
                FragmentType.DECLARATION,
                self.declaration(node),
                exports=[self.variable_name(node)],
            ),
        ]


class PromptTemplateConverter(BasePromptConverter):
    node_type = "promptTemplate"
    class_name = "PromptTemplate"

    def parameter_specs(self) -> Sequence[ParameterSpec]:
        return (ParameterSpec("template", ValueKind.STRING, required=True),)

    def declaration(self, node: Node) -> str:
        template = node.param("template").as_str("{input}")
        return f"const {self.variable_name(node)} = PromptTemplate.fromTemplate({template_literal(template)});"


class ChatPromptTemplateConverter(BasePromptConverter):
    node_type = "chatPromptTemplate"
    class_name = "ChatPromptTemplate"

    def parameter_specs(self) -> Sequence[ParameterSpec]:
        return (
            ParameterSpec("systemMessagePrompt", ValueKind.STRING),
            ParameterSpec("humanMessagePrompt", ValueKind.STRING),
        )

    def declaration(self, node: Node) -> str:
        system = node.param("systemMessagePrompt").as_str() or node.param("systemMessage").as_str()
        human = (
            node.param("humanMessagePrompt").as_str()
            or node.param("humanMessage").as_str()
            or "{input}"
        )
        messages = []
        if system:
            messages.append(f"  ['system', {template_literal(system)}]")
        messages.append(f"  ['human', {template_literal(human)}]")
        body = ",\n".join(messages)
        return f"const {self.variable_name(node)} = ChatPromptTemplate.fromMessages([\n{body}\n]);"
