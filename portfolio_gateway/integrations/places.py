"""Google Places details lookup."""

from typing import Any

import structlog

from portfolio_gateway.http import ResilientHttpClient
from portfolio_gateway.integrations.errors import (
    IntegrationConfigError,
    IntegrationResponseError,
)
from portfolio_gateway.settings import AppSettings


logger = structlog.get_logger()

DEPENDENCY_NAME = "google-places"


class PlacesClient:
    """Fetch place details from the Google Places API."""

    def __init__(
        self,
        settings: AppSettings,
        http_client: ResilientHttpClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings holding the API key and base URL.
            http_client: Optional pre-built client, mainly for tests.

        Raises:
            IntegrationConfigError: If no API key is configured.
        """
        if not settings.google_maps_api_key:
            raise IntegrationConfigError(DEPENDENCY_NAME, "GOOGLE_MAPS_API_KEY")

        self._api_key = settings.google_maps_api_key
        self._http = http_client or ResilientHttpClient(
            settings.http_client_settings(
                DEPENDENCY_NAME, base_url=settings.google_places_base_url
            )
        )
        self._log = logger.bind(component="integrations", dependency=DEPENDENCY_NAME)

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    async def place_details(self, place_id: str) -> dict[str, Any]:
        """Fetch the details payload for one place.

        The key travels as a query parameter; request logs show it redacted.

        Args:
            place_id: Google place identifier.

        Returns:
            The API payload, including its ``status`` field.

        Raises:
            ValueError: If place_id is blank.
            HttpClientError: If the API call fails.
            IntegrationResponseError: If the reply is not a details payload.
        """
        if not place_id or not place_id.strip():
            msg = "place_id is required"
            raise ValueError(msg)

        response = await self._http.get(
            "/details/json",
            params={"place_id": place_id, "key": self._api_key},
        )
        if not isinstance(response.data, dict) or "status" not in response.data:
            raise IntegrationResponseError(
                DEPENDENCY_NAME,
                "Places API returned an unexpected payload",
                correlation_id=response.correlation_id,
            )

        status = response.data["status"]
        if status != "OK":
            self._log.info(
                "place_lookup_not_ok",
                correlation_id=response.correlation_id,
                status=status,
            )
        return response.data
