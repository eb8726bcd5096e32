"""Cliente REST do CRM Krayin.

Endpoints:
    POST /api/leads
    GET  /api/leads/{id}
    PUT  /api/leads/{id}          (lead_pipeline_stage_id)
    POST /api/activities          (lead_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from api.connectors.http_base import HttpClient, HttpClientConfig

if TYPE_CHECKING:
    import httpx

    from config.settings.krayin import KrayinSettings

logger = logging.getLogger(__name__)


def _unwrap(body: dict[str, Any]) -> dict[str, Any]:
    """Krayin responde {"data": {...}}; aceita também o objeto direto."""
    data = body.get("data")
    return data if isinstance(data, dict) else body


class KrayinClient:
    """Implementa CrmClientProtocol sobre HttpClient."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def create_lead(self, data: dict[str, Any]) -> dict[str, Any]:
        lead = _unwrap(await self._http.request("POST", "/api/leads", json=data))
        logger.info("krayin_lead_created", extra={"lead_id": lead.get("id")})
        return lead

    async def get_lead(self, lead_id: int) -> dict[str, Any]:
        return _unwrap(await self._http.request("GET", f"/api/leads/{lead_id}"))

    async def update_lead_stage(self, lead_id: int, stage_id: int) -> dict[str, Any]:
        lead = _unwrap(
            await self._http.request(
                "PUT",
                f"/api/leads/{lead_id}",
                json={"lead_pipeline_stage_id": stage_id},
            )
        )
        logger.info(
            "krayin_lead_stage_updated",
            extra={"lead_id": lead_id, "stage_id": stage_id},
        )
        return lead

    async def create_activity(self, lead_id: int, data: dict[str, Any]) -> dict[str, Any]:
        activity = _unwrap(
            await self._http.request(
                "POST", "/api/activities", json={**data, "lead_id": lead_id}
            )
        )
        logger.info(
            "krayin_activity_created",
            extra={"lead_id": lead_id, "activity_id": activity.get("id")},
        )
        return activity


def create_krayin_client(
    settings: KrayinSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> KrayinClient:
    """Factory com headers de autenticação da API."""
    config = HttpClientConfig(
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
        max_retries=settings.max_retries,
        default_headers={
            "Authorization": f"Bearer {settings.api_token}",
            "Accept": "application/json",
        },
    )
    return KrayinClient(HttpClient(config, service="krayin", transport=transport))
