"""Error taxonomy and mapping to caller-facing responses.

Maps exceptions raised by integrations and the HTTP client to a
machine-readable classification. Extend by adding entries to
``ERROR_TAXONOMY``, not by special-casing call sites.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from portfolio_gateway.http.errors import HttpClientError


class ErrorType(str, Enum):
    """Broad category of a failure."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


STATUS_BY_TYPE: dict[ErrorType, int] = {
    ErrorType.VALIDATION: 400,
    ErrorType.AUTHENTICATION: 401,
    ErrorType.AUTHORIZATION: 403,
    ErrorType.NOT_FOUND: 404,
    ErrorType.RATE_LIMIT: 429,
    ErrorType.DEPENDENCY: 502,
    ErrorType.INTERNAL: 500,
}

DEFAULT_ERROR_CODE = "UNEXPECTED_ERROR"
DEPENDENCY_REQUEST_FAILED = "DEPENDENCY_REQUEST_FAILED"


class ErrorClassification(BaseModel):
    """Machine-readable description of a failure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: str = Field(min_length=1)
    status: int = Field(ge=400, le=599)
    type: ErrorType
    error_class: str
    is_user_facing: bool = False
    is_recoverable: bool = False


class ErrorResponse(BaseModel):
    """Status and body to return to a caller for a failure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: int
    body: dict[str, str]
    classification: ErrorClassification


class AppError(Exception):
    """Base exception for application errors with an explicit code.

    Attributes:
        code: Stable machine-readable code, looked up in ERROR_TAXONOMY.
        type: Fallback category when the code is not in the taxonomy.
        status: Optional explicit HTTP status.
        is_user_safe: Whether the message may be shown to end users.
        is_retryable: Whether the caller may retry.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        code: str = DEFAULT_ERROR_CODE,
        type: ErrorType = ErrorType.INTERNAL,  # noqa: A002
        status: int | None = None,
        is_user_safe: bool = False,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type
        self.status = status
        self.is_user_safe = is_user_safe
        self.is_retryable = is_retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "code": self.code,
            "type": self.type.value,
            "message": self.message,
            "status": self.status,
        }


ERROR_TAXONOMY: dict[str, ErrorClassification] = {
    DEPENDENCY_REQUEST_FAILED: ErrorClassification(
        code=DEPENDENCY_REQUEST_FAILED,
        type=ErrorType.DEPENDENCY,
        status=502,
        error_class="dependency",
        is_user_facing=False,
        is_recoverable=True,
    ),
    "INTEGRATION_NOT_CONFIGURED": ErrorClassification(
        code="INTEGRATION_NOT_CONFIGURED",
        type=ErrorType.DEPENDENCY,
        status=501,
        error_class="dependency",
        is_user_facing=True,
        is_recoverable=False,
    ),
    "INTEGRATION_BAD_RESPONSE": ErrorClassification(
        code="INTEGRATION_BAD_RESPONSE",
        type=ErrorType.DEPENDENCY,
        status=502,
        error_class="dependency",
        is_user_facing=False,
        is_recoverable=True,
    ),
    "CAPTCHA_VERIFICATION_FAILED": ErrorClassification(
        code="CAPTCHA_VERIFICATION_FAILED",
        type=ErrorType.VALIDATION,
        status=400,
        error_class="validation",
        is_user_facing=True,
        is_recoverable=True,
    ),
    "HYGIENE_SCORE_NOT_FOUND": ErrorClassification(
        code="HYGIENE_SCORE_NOT_FOUND",
        type=ErrorType.NOT_FOUND,
        status=404,
        error_class="not_found",
        is_user_facing=True,
        is_recoverable=True,
    ),
}


def classify_error(
    error: BaseException | None,
    default_code: str = DEFAULT_ERROR_CODE,
    default_type: ErrorType = ErrorType.INTERNAL,
) -> ErrorClassification:
    """Classify an exception.

    Args:
        error: The exception to classify.
        default_code: Code used when the error carries none.
        default_type: Type used when the error carries none.

    Returns:
        Classification for logging and response mapping.
    """
    if isinstance(error, HttpClientError):
        base = ERROR_TAXONOMY[DEPENDENCY_REQUEST_FAILED]
        return base.model_copy(update={"is_recoverable": error.is_recoverable})

    if isinstance(error, AppError):
        taxonomy = ERROR_TAXONOMY.get(error.code)
        if taxonomy is not None:
            return taxonomy
        return ErrorClassification(
            code=error.code,
            type=error.type,
            status=error.status or STATUS_BY_TYPE[error.type],
            error_class=error.type.value,
            is_user_facing=error.is_user_safe,
            is_recoverable=error.is_retryable,
        )

    taxonomy = ERROR_TAXONOMY.get(default_code)
    if taxonomy is not None:
        return taxonomy
    return ErrorClassification(
        code=default_code,
        type=default_type,
        status=STATUS_BY_TYPE[default_type],
        error_class=default_type.value,
    )


def map_error_to_response(
    error: BaseException | None,
    default_message: str = "Internal Server Error",
) -> ErrorResponse:
    """Map an exception to the status and body returned to callers.

    Messages of errors that are not user facing are replaced by the
    default message.

    Args:
        error: The exception to map.
        default_message: Message shown for internal failures.

    Returns:
        ErrorResponse with status, body and classification.
    """
    classification = classify_error(error)
    message = str(error) if classification.is_user_facing and error else ""
    body = {"error": message or default_message, "code": classification.code}

    correlation_id = getattr(error, "correlation_id", None)
    if correlation_id:
        body["correlation_id"] = correlation_id

    return ErrorResponse(
        status=classification.status,
        body=body,
        classification=classification,
    )
