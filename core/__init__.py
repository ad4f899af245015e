"""Flowise workflow to LangChain.js code generation core."""

__version__ = "1.0.0"
