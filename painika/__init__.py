"""Painika - conversational coding assistant with local tool execution."""

__version__ = "0.1.0"
