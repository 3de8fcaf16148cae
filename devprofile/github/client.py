"""Async GitHub REST client built on httpx."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from devprofile.core.config_service import GitHubSettings
from devprofile.errors import HostingAPIError

logger = logging.getLogger("devprofile.github.client")

JSON_ACCEPT = "application/vnd.github.v3+json"
RAW_ACCEPT = "application/vnd.github.v3.raw"


class GitHubClient:
    """Thin wrapper over ``httpx.AsyncClient`` with GitHub auth and accept headers.

    ``get`` returns the response whatever its status so callers can decide
    between failing and degrading; ``get_json`` raises HostingAPIError on
    any non-success status. Transport failures always raise HostingAPIError
    with status 0. Use as an async context manager.
    """

    def __init__(
        self,
        settings: Optional[GitHubSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or GitHubSettings()
        headers = {
            "Accept": JSON_ACCEPT,
            "User-Agent": self.settings.user_agent,
        }
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        self._client = httpx.AsyncClient(
            base_url=self.settings.api_url,
            headers=headers,
            timeout=self.settings.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        raw: bool = False,
    ) -> httpx.Response:
        headers = {"Accept": RAW_ACCEPT} if raw else None
        try:
            return await self._client.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise HostingAPIError(
                0, endpoint=path, message=f"GitHub request failed: {e}"
            ) from e

    async def get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = await self.get(path, params=params)
        if not response.is_success:
            logger.warning("GET %s failed: HTTP %d", path, response.status_code)
            raise HostingAPIError(response.status_code, endpoint=path)
        return response.json()
