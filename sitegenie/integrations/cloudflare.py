"""Cloudflare API integration for DNS zone setup."""

import logging
from typing import Any, Optional

import httpx

from sitegenie.exceptions import RegistrarError

logger = logging.getLogger(__name__)

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"


class CloudflareClient:
    """Minimal Cloudflare client: creates the zone for a new domain.

    Usage::

        cf = CloudflareClient(api_token="...", account_id="...")
        zone = await cf.add_zone("hydroponicshub.com")
    """

    def __init__(
        self,
        api_token: str,
        account_id: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_token = api_token
        self._account_id = account_id
        self._timeout = timeout
        self._transport = transport

    async def add_zone(self, domain: str) -> dict[str, Any]:
        """Create a full DNS zone for ``domain`` and return its id and nameservers."""
        payload: dict[str, Any] = {"name": domain, "type": "full"}
        if self._account_id:
            payload["account"] = {"id": self._account_id}
        headers = {"Authorization": f"Bearer {self._api_token}"}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                response = await client.post(
                    f"{CLOUDFLARE_API_BASE}/zones", json=payload, headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise RegistrarError(f"Cloudflare zone creation failed for {domain}: {exc}") from exc
        except ValueError as exc:
            raise RegistrarError(f"Cloudflare returned invalid JSON: {exc}") from exc

        if not data.get("success"):
            errors = "; ".join(str(e.get("message", e)) for e in data.get("errors", []))
            raise RegistrarError(f"Cloudflare rejected zone {domain}: {errors or 'unknown error'}")

        zone = data.get("result", {}) or {}
        logger.info("Cloudflare zone created for %s (id=%s)", domain, zone.get("id"))
        return {
            "id": zone.get("id"),
            "name": zone.get("name", domain),
            "name_servers": zone.get("name_servers", []),
        }
