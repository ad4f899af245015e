"""Tool converters. Tools are created inside ``main`` as initializations."""

from typing import List

from converters.base import BaseConverter
from core.ir.models import CodeFragment, FragmentType, GenerationContext, Node


class BaseToolConverter(BaseConverter):
    category = "tool"
    variable_suffix = "tool"

    def get_dependencies(self, node=None, context=None) -> List[str]:
        return ["@langchain/community"]

    def initialization(self, node: Node) -> str:
        return f"const {self.variable_name(node)} = new {self.class_name}();"

    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        return [
            self.import_fragment(node),
            self.fragment(node, FragmentType.INITIALIZATION, self.initialization(node)),
        ]


class CalculatorConverter(BaseToolConverter):
    node_type = "calculator"
    package = "@langchain/community/tools/calculator"
    class_name = "Calculator"


class SerpAPIConverter(BaseToolConverter):
    node_type = "serpAPI"
    package = "@langchain/community/tools/serpapi"
    class_name = "SerpAPI"

    def initialization(self, node: Node) -> str:
        params = {
            "location": node.param("location").as_str(),
            "hl": node.param("hl").as_str(),
            "gl": node.param("gl").as_str(),
        }
        credential = self.credential_expression(node)
        args = [credential or "undefined"]
        if any(value is not None for value in params.values()):
            args.append(self.options_object(params))
        elif credential is None:
            args = []
        return f"const {self.variable_name(node)} = new SerpAPI({', '.join(args)});"
