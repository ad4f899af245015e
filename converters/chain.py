"""Chain converters.

A chain is declared at module level from its bound upstream variables and
invoked from ``main``; the last chain to run provides the result.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

from converters.base import BaseConverter, Expr
from core.ir.errors import ConversionError
from core.ir.models import CodeFragment, FragmentType, GenerationContext, Node

LLM_INPUTS = ("model", "llm", "languageModel")


class BaseChainConverter(BaseConverter):
    category = "chain"
    variable_suffix = "chain"
    package = "langchain/chains"
    input_key = "input"

    def get_dependencies(self, node=None, context=None) -> List[str]:
        return ["langchain", "@langchain/core"]

    def bound_llm(self, node: Node) -> str:
        for name in LLM_INPUTS:
            variable = node.input(name)
            if variable:
                return variable
        raise ConversionError(
            f"{self.class_name} '{node.display_name}' has no connected language model",
            node_ids=(node.id,),
        )

    @abstractmethod
    def chain_options(self, node: Node) -> Dict[str, Any]:
        """Constructor options for the chain."""
        pass

    def execution(self, node: Node) -> str:
        variable = self.variable_name(node)
        return f"result = await {variable}.invoke({{ {self.input_key}: input, ...options }});"

    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        variable = self.variable_name(node)
        return [
            self.import_fragment(node),
            self.fragment(
                node,
                FragmentType.DECLARATION,
                self.constructor(node, self.chain_options(node)),
                exports=[variable],
            ),
            self.fragment(node, FragmentType.EXECUTION, self.execution(node), is_async=True),
            self.fragment(node, FragmentType.EXPORT, f"export {{ {variable} }};", exports=[variable]),
        ]


class LLMChainConverter(BaseChainConverter):
    node_type = "llmChain"
    class_name = "LLMChain"

    def chain_options(self, node: Node) -> Dict[str, Any]:
        prompt = node.input("prompt")
        if prompt is None:
            raise ConversionError(
                f"LLMChain '{node.display_name}' has no connected prompt",
                node_ids=(node.id,),
            )
        options: Dict[str, Any] = {
            "llm": Expr(self.bound_llm(node)),
            "prompt": Expr(prompt),
        }
        memory = node.input("memory")
        if memory:
            options["memory"] = Expr(memory)
        options["outputKey"] = node.param("outputKey").as_str()
        options["verbose"] = node.param("verbose").as_bool()
        return options


class ConversationChainConverter(BaseChainConverter):
    node_type = "conversationChain"
    class_name = "ConversationChain"

    def chain_options(self, node: Node) -> Dict[str, Any]:
        options: Dict[str, Any] = {"llm": Expr(self.bound_llm(node))}
        memory: Optional[str] = node.input("memory")
        if memory:
            options["memory"] = Expr(memory)
        prompt = node.input("chatPromptTemplate") or node.input("prompt")
        if prompt:
            options["prompt"] = Expr(prompt)
        options["verbose"] = node.param("verbose").as_bool()
        return options
