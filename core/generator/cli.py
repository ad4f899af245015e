# core/generator/cli.py
"""CLI commands for workflow-to-code generation."""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from core.config import get_features, get_settings
from core.graph.analysis import analyze, to_dot, to_mermaid
from core.ir.errors import ConversionError
from core.ir.loader import load_file
from core.logging import configure_logging
from core.naming import kebab_case

from .engine import CodeGenerator


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--log-format', type=click.Choice(['console', 'json']), default=None, help='Log output format')
@click.pass_context
def generate(ctx, verbose: bool, log_format: Optional[str]):
    """Generate LangChain.js projects from workflow definitions."""
    ctx.ensure_object(dict)
    settings = get_settings()

    ctx.obj['verbose'] = verbose
    ctx.obj['settings'] = settings

    configure_logging(
        level='INFO' if verbose else settings.log_level,
        log_format=log_format or settings.log_format,
    )

    if verbose:
        enabled = get_features().enabled()
        click.echo(f"⚙️  Features enabled by default: {', '.join(enabled) or 'none'}")


def _load(workflow_file: Path):
    try:
        return load_file(workflow_file)
    except ConversionError as e:
        click.echo(f"❌ Could not load {workflow_file}: {e}", err=True)
        sys.exit(1)


@generate.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(file_okay=False, path_type=Path),
              help='Output directory (default: ./<project-name>)')
@click.option('--project-name', type=str, help='Name of the generated package')
@click.option('--langfuse', is_flag=True, help='Add Langfuse tracing')
@click.option('--tests', is_flag=True, help='Generate test scaffolding')
@click.option('--docs', is_flag=True, help='Generate a README')
@click.option('--module-format', type=click.Choice(['esm', 'cjs']), default=None, help='Module system of the output')
@click.option('--force', '-f', is_flag=True, help='Write into an existing non-empty directory')
@click.option('--dry-run', is_flag=True, help='List the files without writing them')
@click.pass_context
def convert(ctx, workflow_file: Path, output: Optional[Path], project_name: Optional[str],
            langfuse: bool, tests: bool, docs: bool,
            module_format: Optional[str], force: bool, dry_run: bool):
    """Convert a workflow file into a TypeScript project."""
    settings = ctx.obj['settings']
    verbose = ctx.obj['verbose']

    click.echo(f"📖 Loading workflow: {workflow_file}")
    graph = _load(workflow_file)

    context = settings.generation_context(
        project_name=project_name or (kebab_case(graph.name) or None if settings.project_name == 'generated-workflow' else None),
        module_format=module_format,
        include_langfuse=langfuse or None,
        include_tests=tests or None,
        include_docs=docs or None,
    )
    output = output or Path(settings.output_dir) / context.project_name
    context = context.model_copy(update={'output_path': str(output)})

    try:
        generator = CodeGenerator(strategy=settings.ordering_strategy)
        result = generator.convert(graph, context)
    except ConversionError as e:
        click.echo(f"❌ Conversion failed: {e}", err=True)
        sys.exit(1)

    metadata = result.metadata
    click.echo(f"✅ Converted {metadata['node_count']} nodes, {metadata['connection_count']} connections "
               f"({metadata['complexity']})")

    if result.warnings:
        click.echo(f"⚠️  {len(result.warnings)} warnings:")
        for warning in result.warnings:
            click.echo(f"   • {warning}")

    if dry_run:
        click.echo(f"📝 Would write {len(result.files)} files to {output}:")
        for generated in result.files:
            click.echo(f"   • {generated.path} ({generated.size} bytes)")
    else:
        if output.exists() and any(output.iterdir()) and not force:
            click.echo(f"❌ Output directory {output} is not empty. Use --force to overwrite.", err=True)
            sys.exit(1)

        click.echo(f"🏗️  Writing project to: {output}")
        for generated in result.files:
            target = output / generated.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.content, encoding='utf-8')
            if verbose:
                click.echo(f"   📄 {generated.path}")

    if result.errors:
        click.echo(f"❌ {len(result.errors)} files could not be generated:")
        for error in result.errors:
            click.echo(f"   • {error}")
        sys.exit(1)

    if not dry_run:
        click.echo("\n🎉 Done! Next steps:")
        click.echo(f"   1. cd {output}")
        click.echo("   2. npm install")
        click.echo("   3. cp .env.example .env")
        click.echo("   4. npm run dev")


@generate.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@click.pass_context
def validate(ctx, workflow_file: Path, as_json: bool):
    """Validate a workflow file without generating code."""
    graph = _load(workflow_file)
    generator = CodeGenerator()
    report = generator.validate(graph)
    support = generator.registry.validate_nodes(graph.nodes)

    if as_json:
        click.echo(json.dumps({
            'valid': report.is_valid,
            'errors': [e.to_dict() for e in report.errors],
            'parameter_errors': [e.to_dict() for e in report.parameter_errors],
            'warnings': report.warnings,
            'unsupported': support['unsupported'],
        }, indent=2))
    else:
        click.echo(f"🔍 Validating workflow: {graph.name}")
        click.echo(f"   🔧 Nodes: {len(graph.nodes)}")
        click.echo(f"   🔗 Connections: {len(graph.connections)}")

        for error in report.errors:
            click.echo(f"❌ {error}")
        for error in report.parameter_errors:
            click.echo(f"⚠️  {error}")
        for warning in report.warnings:
            click.echo(f"⚠️  {warning}")
        if support['unsupported']:
            click.echo(f"⚠️  Unsupported node types (placeholders will be generated): "
                       f"{', '.join(sorted(set(support['unsupported'])))}")

        if report.is_valid:
            click.echo("✅ Workflow is valid")

    if not report.is_valid:
        sys.exit(1)


@generate.command()
@click.option('--category', '-c', type=str, help='Only show converters in this category')
def converters(category: Optional[str]):
    """List the registered node converters."""
    registry = CodeGenerator().registry
    aliases = registry.aliases()

    node_types = registry.registered_types()
    if category:
        node_types = [c.node_type for c in registry.by_category(category)]

    if not node_types:
        click.echo("No converters found")
        return

    click.echo(f"🔌 {len(node_types)} converters:")
    for node_type in node_types:
        converter = registry.get(node_type)
        names = [alias for alias, target in aliases.items() if target == node_type]
        line = f"   • {node_type} [{converter.category}]"
        if names:
            line += f" (aliases: {', '.join(sorted(names))})"
        if converter.is_deprecated():
            line += " ⚠️ deprecated"
        click.echo(line)

    stats = registry.statistics()
    click.echo(f"\n📊 {stats['total_converters']} converters, {stats['total_aliases']} aliases")


@generate.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--format', 'output_format', type=click.Choice(['dot', 'mermaid', 'json']), default='mermaid',
              help='Output format')
def graph(workflow_file: Path, output_format: str):
    """Print the workflow graph as DOT, Mermaid or an analysis summary."""
    workflow = _load(workflow_file)

    if output_format == 'dot':
        click.echo(to_dot(workflow))
    elif output_format == 'mermaid':
        click.echo(to_mermaid(workflow))
    else:
        click.echo(json.dumps(analyze(workflow), indent=2))
