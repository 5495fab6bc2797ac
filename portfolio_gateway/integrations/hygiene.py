"""UK Food Standards Agency hygiene ratings lookup."""

import re
from difflib import SequenceMatcher
from typing import Any

import structlog

from portfolio_gateway.http import ResilientHttpClient
from portfolio_gateway.integrations.errors import IntegrationResponseError
from portfolio_gateway.settings import AppSettings


logger = structlog.get_logger()

DEPENDENCY_NAME = "fsa"

FSA_HEADERS = {"x-api-version": "2", "accept": "application/json"}

# Minimum similarity for a fuzzy match to count
DEFAULT_MATCH_THRESHOLD = 0.6

_MATCH_FIELDS = ("BusinessName", "AddressLine1", "PostCode")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _normalize(value: str) -> str:
    return _NON_ALNUM.sub(" ", value.lower()).strip()


def match_score(establishment: dict[str, Any], name: str, address: str) -> float:
    """Score how well an establishment matches a name and address.

    Compares the query against the business name, first address line and
    post code, keeping the best of the combined and name-only similarity.

    Args:
        establishment: Establishment record from the API.
        name: Business name searched for.
        address: Address searched for.

    Returns:
        Similarity in [0, 1].
    """
    query = _normalize(f"{name} {address}")
    candidate = _normalize(
        " ".join(str(establishment.get(key) or "") for key in _MATCH_FIELDS)
    )
    combined = SequenceMatcher(None, query, candidate).ratio()
    name_only = SequenceMatcher(
        None, _normalize(name), _normalize(str(establishment.get("BusinessName") or ""))
    ).ratio()
    return max(combined, name_only)


class HygieneRatingsClient:
    """Search the FSA ratings API for food business hygiene scores."""

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
                DEPENDENCY_NAME,
                base_url=settings.fsa_base_url,
                default_headers=FSA_HEADERS,
            )
        )
        self._log = logger.bind(component="integrations", dependency=DEPENDENCY_NAME)

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    async def search_establishments(
        self, name: str, address: str
    ) -> list[dict[str, Any]]:
        """List establishments matching a name and address.

        Raises:
            ValueError: If name or address is blank.
            HttpClientError: If the API call fails.
            IntegrationResponseError: If the reply has no establishment list.
        """
        if not name or not address:
            msg = "name and address are required"
            raise ValueError(msg)

        response = await self._http.get(
            "/Establishments",
            params={"name": name, "address": address},
        )
        data = response.data if isinstance(response.data, dict) else {}
        establishments = data.get("establishments")
        if not isinstance(establishments, list):
            raise IntegrationResponseError(
                DEPENDENCY_NAME,
                "FSA response has no establishments list",
                correlation_id=response.correlation_id,
            )
        return establishments

    async def find_best_match(
        self,
        name: str,
        address: str,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
    ) -> dict[str, Any] | None:
        """Return the establishment that best matches, if any is close enough.

        Args:
            name: Business name.
            address: Business address.
            threshold: Minimum similarity to accept.

        Returns:
            Best matching establishment, or None.
        """
        establishments = await self.search_establishments(name, address)
        if not establishments:
            return None

        scored = [(match_score(item, name, address), item) for item in establishments]
        best_score, best = max(scored, key=lambda pair: pair[0])
        self._log.debug(
            "hygiene_match",
            candidates=len(establishments),
            best_score=round(best_score, 3),
        )
        return best if best_score >= threshold else None
