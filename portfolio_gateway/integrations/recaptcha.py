"""Google reCAPTCHA token verification."""

import structlog
from pydantic import BaseModel, ConfigDict, Field

from portfolio_gateway.http import ResilientHttpClient
from portfolio_gateway.integrations.errors import (
    IntegrationConfigError,
    IntegrationResponseError,
)
from portfolio_gateway.settings import AppSettings


logger = structlog.get_logger()

DEPENDENCY_NAME = "recaptcha"


class RecaptchaResult(BaseModel):
    """Verification verdict returned by the siteverify endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    success: bool
    error_codes: list[str] = Field(default_factory=list, alias="error-codes")
    hostname: str | None = None
    challenge_ts: str | None = None
    score: float | None = None
    action: str | None = None


class RecaptchaVerifier:
    """Verify reCAPTCHA tokens submitted with public forms."""

    def __init__(
        self,
        settings: AppSettings,
        http_client: ResilientHttpClient | None = None,
    ) -> None:
        """Initialize the verifier.

        Args:
            settings: Application settings holding the secret and verify URL.
            http_client: Optional pre-built client, mainly for tests.

        Raises:
            IntegrationConfigError: If no secret key is configured.
        """
        if not settings.recaptcha_secret_key:
            raise IntegrationConfigError(DEPENDENCY_NAME, "RECAPTCHA_SECRET_KEY")

        self._secret = settings.recaptcha_secret_key
        self._verify_url = settings.recaptcha_verify_url
        self._http = http_client or ResilientHttpClient(
            settings.http_client_settings(DEPENDENCY_NAME)
        )
        self._log = logger.bind(component="integrations", dependency=DEPENDENCY_NAME)

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    async def verify(self, token: str, remote_ip: str | None = None) -> RecaptchaResult:
        """Verify a token with Google.

        Args:
            token: Token produced by the reCAPTCHA widget.
            remote_ip: Submitting user's IP address, if known.

        Returns:
            RecaptchaResult; ``success`` is False for blank tokens without
            calling Google.

        Raises:
            HttpClientError: If the verify endpoint call fails.
            IntegrationResponseError: If the reply is not a verdict.
        """
        if not token or not token.strip():
            return RecaptchaResult(
                success=False, error_codes=["missing-input-response"]
            )

        params = {"secret": self._secret, "response": token}
        if remote_ip:
            params["remoteip"] = remote_ip

        response = await self._http.post(self._verify_url, params=params)
        if not isinstance(response.data, dict) or "success" not in response.data:
            raise IntegrationResponseError(
                DEPENDENCY_NAME,
                "reCAPTCHA verify endpoint returned an unexpected payload",
                correlation_id=response.correlation_id,
            )

        result = RecaptchaResult.model_validate(response.data)
        if not result.success:
            self._log.info(
                "captcha_rejected",
                correlation_id=response.correlation_id,
                error_codes=result.error_codes,
            )
        return result
