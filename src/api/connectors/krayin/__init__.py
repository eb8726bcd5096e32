"""Connector do CRM Krayin."""

from .client import KrayinClient, create_krayin_client

__all__ = ["KrayinClient", "create_krayin_client"]
