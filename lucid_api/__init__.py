"""Lucid API: shopping search and assistant chat gateway over LLM providers."""

__version__ = "1.0.0"
