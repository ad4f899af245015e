"""Workflow intermediate representation."""

from core.ir.errors import (
    ConversionError,
    ValidationError,
    CyclicDependencyError,
    ParameterValidationError,
)
from core.ir.models import (
    ValueKind,
    ParamValue,
    Parameter,
    Node,
    Connection,
    WorkflowGraph,
    CodeStyle,
    GenerationContext,
    FragmentType,
    FragmentMetadata,
    CodeFragment,
    GeneratedFile,
    ConversionResult,
)
from core.ir.loader import load_graph, load_string, load_file

__all__ = [
    # Errors
    'ConversionError',
    'ValidationError',
    'CyclicDependencyError',
    'ParameterValidationError',

    # Models
    'ValueKind',
    'ParamValue',
    'Parameter',
    'Node',
    'Connection',
    'WorkflowGraph',
    'CodeStyle',
    'GenerationContext',
    'FragmentType',
    'FragmentMetadata',
    'CodeFragment',
    'GeneratedFile',
    'ConversionResult',

    # Loading
    'load_graph',
    'load_string',
    'load_file',
]
