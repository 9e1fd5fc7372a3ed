"""
LLM integration for Labwise.
"""

from .client import LLMClient, get_client, set_client

__all__ = ["LLMClient", "get_client", "set_client"]
