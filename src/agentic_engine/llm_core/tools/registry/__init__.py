"""Tool registry and catalog rendering."""

from .registry import ToolRegistry, DEFAULT_PREAMBLE, TOOL_INSTRUCTIONS

__all__ = ["ToolRegistry", "DEFAULT_PREAMBLE", "TOOL_INSTRUCTIONS"]
