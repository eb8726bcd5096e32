"""Connector do Chatwoot: webhook (guards) e cliente REST."""

from .client import ChatwootClient, create_chatwoot_client

__all__ = ["ChatwootClient", "create_chatwoot_client"]
