"""Langfuse tracing for generated projects.

When ``include_langfuse`` is set the main module gets a client built from
``langfuseConfig`` in the config module, and ``main()`` opens a trace per
call (see the ``main_function`` template).
"""

from typing import Dict, List

from core.ir.models import CodeFragment, FragmentMetadata, FragmentType, GenerationContext

LANGFUSE_PACKAGE = "langfuse"

LANGFUSE_ENV_VARS = (
    ("LANGFUSE_PUBLIC_KEY", "Langfuse public key", "pk-lf-..."),
    ("LANGFUSE_SECRET_KEY", "Langfuse secret key", "sk-lf-..."),
    ("LANGFUSE_BASE_URL", "Langfuse host", "https://cloud.langfuse.com"),
    ("LANGFUSE_ENABLED", "Set to false to disable tracing", "true"),
)


def module_path(name: str, context: GenerationContext) -> str:
    """Relative import path of a sibling module in the generated ``src`` dir."""
    return f"./{name}.js" if context.module_format == "esm" else f"./{name}"


def langfuse_fragments(context: GenerationContext) -> List[CodeFragment]:
    """Graph-level fragments that set up the Langfuse client, or nothing."""
    if not context.include_langfuse:
        return []

    q = context.code_style.quote
    metadata = FragmentMetadata(category="observability", description="Langfuse client")
    return [
        CodeFragment(
            id="langfuse_import",
            type=FragmentType.IMPORT,
            content=(
                f"import {{ Langfuse }} from {q}langfuse{q};\n"
                f"import {{ langfuseConfig }} from {q}{module_path('config', context)}{q};"
            ),
            dependencies=(LANGFUSE_PACKAGE,),
            metadata=metadata,
        ),
        CodeFragment(
            id="langfuse_declaration",
            type=FragmentType.DECLARATION,
            content="const langfuse = new Langfuse(langfuseConfig);",
            metadata=metadata,
        ),
    ]


def langfuse_env_vars() -> List[Dict[str, object]]:
    return [
        {"name": name, "description": description, "example": example, "required": False}
        for name, description, example in LANGFUSE_ENV_VARS
    ]
