import sys
import os
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../../")))

from core.config import get_settings
from core.generator.engine import CodeGenerator
from core.ir.loader import load_file
from core.logging import configure_logging

WORKFLOWS = Path(__file__).parent.parent / "workflows"


def generate(workflow_name: str, **overrides):
    """Convert one sample workflow and print what would be written."""
    graph = load_file(WORKFLOWS / workflow_name)
    context = get_settings().generation_context(project_name=graph.name, **overrides)

    generator = CodeGenerator()
    report = generator.validate(graph)
    print(f"Validated {graph.name}: {report.summary()}")

    result = generator.convert(graph, context)
    for generated in result.files:
        print(f"  {generated.path:<32} {generated.size:>6} bytes")
    for warning in result.warnings:
        print(f"  warning: {warning}")
    return result


def main():
    configure_logging("INFO")

    print("=== Simple QA chain ===")
    result = generate("qa_chain.json", include_tests=True)
    print()
    print(result.file("src/index.ts").content)

    # Unsupported node types become placeholders instead of failing the run
    print("=== Support bot (CommonJS, Langfuse) ===")
    generate("support_bot.yaml", module_format="cjs", include_langfuse=True, include_docs=True)


if __name__ == "__main__":
    main()
