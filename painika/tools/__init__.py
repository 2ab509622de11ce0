"""Tools for the coding assistant."""

from painika.tools.base import ToolDefinition
from painika.tools.registry import ToolRegistry, create_default_registry

__all__ = ["ToolDefinition", "ToolRegistry", "create_default_registry"]
