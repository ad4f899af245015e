# core/generator/__init__.py
"""Workflow-to-code generation pipeline."""

from .registry import ConverterRegistry
from .dispatch import DispatchResult, FragmentDispatcher, placeholder_fragment
from .fragments import AssembledFragments, FragmentAssembler
from .imports import ImportConsolidator, consolidate
from .templates import TemplateRenderer
from .formatter import CodeFormatter, format_code
from .files import FileAssembler
from .engine import CodeGenerator

__all__ = [
    'ConverterRegistry',
    'DispatchResult',
    'FragmentDispatcher',
    'placeholder_fragment',
    'AssembledFragments',
    'FragmentAssembler',
    'ImportConsolidator',
    'consolidate',
    'TemplateRenderer',
    'CodeFormatter',
    'format_code',
    'FileAssembler',
    'CodeGenerator',
]
