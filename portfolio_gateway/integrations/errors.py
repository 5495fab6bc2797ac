"""Domain-specific error types for third-party integrations."""

from portfolio_gateway.observability.errors import AppError, ErrorType


class IntegrationConfigError(AppError):
    """A required credential or setting for an integration is missing."""

    def __init__(self, dependency: str, setting: str) -> None:
        super().__init__(
            f"{dependency} integration is not configured: {setting} is missing",
            code="INTEGRATION_NOT_CONFIGURED",
            type=ErrorType.DEPENDENCY,
        )
        self.dependency = dependency
        self.setting = setting


class IntegrationResponseError(AppError):
    """A dependency answered successfully but with an unusable payload.

    Attributes:
        dependency: Dependency name of the integration.
        correlation_id: Correlation id of the call that returned the payload.
    """

    def __init__(
        self, dependency: str, message: str, correlation_id: str | None = None
    ) -> None:
        super().__init__(
            message,
            code="INTEGRATION_BAD_RESPONSE",
            type=ErrorType.DEPENDENCY,
            is_retryable=True,
        )
        self.dependency = dependency
        self.correlation_id = correlation_id
