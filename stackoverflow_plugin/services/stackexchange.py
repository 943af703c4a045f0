"""Stack Exchange search API client."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from stackoverflow_plugin.config import PluginSettings
from stackoverflow_plugin.domain.models import Post, SearchResponse
from stackoverflow_plugin.logging import logger
from stackoverflow_plugin.services.exceptions import SearchFailed


class StackExchangeClient:
    """Calls ``/search`` with fixed paging and sort order and decodes the items."""

    def __init__(self, http_client: httpx.AsyncClient, settings: PluginSettings) -> None:
        self._client = http_client
        self._settings = settings

    @property
    def search_url(self) -> str:
        return f"{str(self._settings.api_base_url).rstrip('/')}/search"

    def build_params(self, term: str) -> dict[str, Any]:
        return {
            "access_token": self._settings.access_token.get_secret_value(),
            "key": self._settings.app_key,
            "page": 1,
            "pagesize": self._settings.page_size,
            "order": "desc",
            "sort": "activity",
            "site": self._settings.site,
            "intitle": f'"{term}"',
        }

    async def search_posts(self, term: str) -> list[Post]:
        term = term.strip()
        if not term:
            raise SearchFailed("Search term must not be empty.")

        try:
            response = await self._client.get(
                self.search_url,
                params=self.build_params(term),
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SearchFailed(
                f"Search request timed out after {self._settings.request_timeout_seconds}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:500] if exc.response is not None else str(exc)
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise SearchFailed(f"Search request failed ({status_code}): {detail}") from exc
        except httpx.RequestError as exc:
            raise SearchFailed(f"Search request failed: {exc}") from exc

        try:
            payload = SearchResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise SearchFailed(f"Search response could not be decoded: {exc}") from exc

        if payload.quota_remaining is not None:
            logger.debug("search_quota", quota_remaining=payload.quota_remaining)
        return payload.items


__all__ = ["StackExchangeClient"]
