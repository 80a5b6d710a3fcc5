"""Namecheap XML API integration for domain availability and registration."""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Optional

import httpx

from sitegenie.exceptions import RegistrarError
from sitegenie.utils.validators import split_domain

logger = logging.getLogger(__name__)

NC_XML_NS = "{http://api.namecheap.com/xml.response}"
NAMECHEAP_API_URL = "https://api.namecheap.com/xml.response"
NAMECHEAP_SANDBOX_URL = "https://api.sandbox.namecheap.com/xml.response"

DEFAULT_NAMESERVERS = ("ns1.cloudflare.com", "ns2.cloudflare.com")


class NamecheapClient:
    """Async client for the Namecheap ``domains.check`` / ``domains.create`` commands.

    Usage::

        nc = NamecheapClient(api_user="me", api_key="...", username="me", client_ip="1.2.3.4")
        available = await nc.check_availability(["hydroponicshub.com"])
        result = await nc.register_domain("hydroponicshub.com")
    """

    def __init__(
        self,
        api_user: str,
        api_key: str,
        username: str = "",
        client_ip: str = "",
        sandbox: bool = False,
        timeout: float = 30.0,
        registrant: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_user = api_user
        self._api_key = api_key
        self._username = username or api_user
        self._client_ip = client_ip
        self._url = NAMECHEAP_SANDBOX_URL if sandbox else NAMECHEAP_API_URL
        self._timeout = timeout
        self._registrant = registrant or {}
        self._transport = transport

    def _base_params(self, command: str) -> dict[str, str]:
        return {
            "ApiUser": self._api_user,
            "ApiKey": self._api_key,
            "UserName": self._username,
            "ClientIp": self._client_ip,
            "Command": command,
        }

    async def _call(self, params: dict[str, Any]) -> ET.Element:
        """Issue one API command and return the parsed XML root."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                response = await client.get(self._url, params=params)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RegistrarError(f"Namecheap request failed: {exc}") from exc

        try:
            root = ET.fromstring(response.text)
        except ET.ParseError as exc:
            raise RegistrarError(f"Namecheap returned invalid XML: {exc}") from exc

        errors = root.findall(f".//{NC_XML_NS}Errors/{NC_XML_NS}Error")
        if errors:
            messages = [
                f"{e.attrib.get('Number', '?')}:{(e.text or '').strip()}" for e in errors
            ]
            raise RegistrarError("; ".join(messages))
        return root

    async def check_availability(self, domains: list[str]) -> dict[str, bool]:
        """Return ``{domain: available}`` for every domain checked."""
        params = self._base_params("namecheap.domains.check")
        params["DomainList"] = ",".join(domains)
        root = await self._call(params)

        availability: dict[str, bool] = {}
        for elem in root.findall(f".//{NC_XML_NS}DomainCheckResult"):
            domain = elem.attrib.get("Domain", "").lower()
            availability[domain] = elem.attrib.get("Available", "false").lower() == "true"
        logger.info(
            "Namecheap check: %d of %d available",
            sum(availability.values()), len(availability),
        )
        return availability

    async def register_domain(
        self,
        domain: str,
        years: int = 1,
        nameservers: tuple[str, ...] = DEFAULT_NAMESERVERS,
    ) -> dict[str, Any]:
        """Register ``domain``.

        Returns:
            Dict with success, domain and cost (``ChargedAmount``) keys.
        """
        name, tld = split_domain(domain)
        params = self._base_params("namecheap.domains.create")
        params.update({
            "DomainName": f"{name}.{tld}",
            "Years": str(years),
            "Nameservers": ",".join(nameservers),
        })
        for role in ("Registrant", "Tech", "Admin", "AuxBilling"):
            for key, value in self._registrant.items():
                params[f"{role}{key}"] = value

        root = await self._call(params)
        result = root.find(f".//{NC_XML_NS}DomainCreateResult")
        if result is None:
            return {"success": False, "domain": domain, "error": "No DomainCreateResult in response"}
        registered = result.attrib.get("Registered", "false").lower() == "true"
        cost = result.attrib.get("ChargedAmount")
        return {
            "success": registered,
            "domain": domain,
            "cost": float(cost) if cost else None,
            "error": None if registered else "Registration was not confirmed",
        }
