"""OpenAI chat completions client for text analysis."""

from typing import Any

import structlog

from portfolio_gateway.http import ResilientHttpClient
from portfolio_gateway.integrations.errors import (
    IntegrationConfigError,
    IntegrationResponseError,
)
from portfolio_gateway.settings import AppSettings


logger = structlog.get_logger()

DEPENDENCY_NAME = "openai"

SYSTEM_PROMPT = (
    "You are a helpful assistant that provides structured analysis of text. "
    "Focus on key themes, sentiment, and main points."
)
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 500


class TextAnalysisClient:
    """Analyze free text with an OpenAI chat model."""

    def __init__(
        self,
        settings: AppSettings,
        http_client: ResilientHttpClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings holding the API key and model.
            http_client: Optional pre-built client, mainly for tests.

        Raises:
            IntegrationConfigError: If no API key is configured.
        """
        if not settings.openai_api_key:
            raise IntegrationConfigError(DEPENDENCY_NAME, "OPENAI_API_KEY")

        self._model = settings.openai_model
        self._http = http_client or ResilientHttpClient(
            settings.http_client_settings(
                DEPENDENCY_NAME,
                base_url=settings.openai_base_url,
                default_headers={
                    "Authorization": f"Bearer {settings.openai_api_key}",
                    "Content-Type": "application/json",
                },
            )
        )
        self._log = logger.bind(component="integrations", dependency=DEPENDENCY_NAME)

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    def build_payload(self, text: str) -> dict[str, Any]:
        """Build the chat completion request body."""
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": DEFAULT_TEMPERATURE,
            "max_tokens": DEFAULT_MAX_TOKENS,
        }

    async def analyze_text(self, text: str) -> str:
        """Return the model's analysis of ``text``.

        Raises:
            ValueError: If the text is blank.
            HttpClientError: If the API call fails.
            IntegrationResponseError: If the reply holds no message.
        """
        if not text or not text.strip():
            msg = "text must not be empty"
            raise ValueError(msg)

        response = await self._http.post("/chat/completions", self.build_payload(text))

        data = response.data if isinstance(response.data, dict) else {}
        choices = data.get("choices") or []
        content = None
        if choices:
            content = (choices[0].get("message") or {}).get("content")
        if not content:
            raise IntegrationResponseError(
                DEPENDENCY_NAME,
                "Chat completion returned no message content",
                correlation_id=response.correlation_id,
            )

        self._log.debug(
            "text_analysis_complete",
            correlation_id=response.correlation_id,
            input_chars=len(text),
            output_chars=len(content),
        )
        return str(content)
