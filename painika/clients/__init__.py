"""Clients for remote model services."""

from painika.clients.groq import GroqClient, GroqConfig

__all__ = ["GroqClient", "GroqConfig"]
