"""Raindrop.io bookmark collections."""

from typing import Any

import structlog

from portfolio_gateway.http import ResilientHttpClient
from portfolio_gateway.integrations.errors import IntegrationResponseError
from portfolio_gateway.settings import AppSettings


logger = structlog.get_logger()

DEPENDENCY_NAME = "raindrop"

DEFAULT_PAGE_SIZE = 50


class RaindropClient:
    """Read collections and bookmarks with a caller-supplied access token.

    Obtaining the token is the caller's concern; this client only sends it.
    """

    def __init__(
        self,
        settings: AppSettings,
        http_client: ResilientHttpClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings holding the API base URL.
            http_client: Optional pre-built client, mainly for tests.
        """
        self._http = http_client or ResilientHttpClient(
            settings.http_client_settings(
                DEPENDENCY_NAME, base_url=settings.raindrop_base_url
            )
        )
        self._log = logger.bind(component="integrations", dependency=DEPENDENCY_NAME)

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    async def get_collections(self, access_token: str) -> list[dict[str, Any]]:
        """List the user's root collections.

        Raises:
            ValueError: If the token is blank.
            HttpClientError: If the API call fails.
            IntegrationResponseError: If the reply has no items list.
        """
        response = await self._http.get(
            "/rest/v1/collections", headers=_auth_headers(access_token)
        )
        return _items(response.data, response.correlation_id)

    async def get_bookmarks(
        self,
        access_token: str,
        collection_id: int | str,
        page: int = 0,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """List one page of bookmarks in a collection.

        Args:
            access_token: OAuth access token for the user.
            collection_id: Collection to read.
            page: Zero-based page number.
            per_page: Page size.

        Returns:
            Bookmark records for the page.

        Raises:
            ValueError: If the token is blank.
            HttpClientError: If the API call fails.
            IntegrationResponseError: If the reply has no items list.
        """
        response = await self._http.get(
            f"/rest/v1/raindrops/{collection_id}",
            headers=_auth_headers(access_token),
            params={"perpage": per_page, "page": page},
        )
        items = _items(response.data, response.correlation_id)
        self._log.debug(
            "bookmarks_fetched",
            correlation_id=response.correlation_id,
            collection_id=collection_id,
            page=page,
            count=len(items),
        )
        return items


def _auth_headers(access_token: str) -> dict[str, str]:
    if not access_token or not access_token.strip():
        msg = "access_token is required"
        raise ValueError(msg)
    return {"Authorization": f"Bearer {access_token}"}


def _items(data: Any, correlation_id: str) -> list[dict[str, Any]]:
    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise IntegrationResponseError(
            DEPENDENCY_NAME,
            "Raindrop response has no items list",
            correlation_id=correlation_id,
        )
    return items
