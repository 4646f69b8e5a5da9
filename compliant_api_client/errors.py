"""Error type raised by every stage of the compliant request pipeline."""

from typing import Any

from .models import ErrorCode, ErrorKind

HTTP_STATUS_TO_ERROR_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_PARAMS,
    401: ErrorCode.NOT_AUTHENTICATED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMITED,
    500: ErrorCode.SERVER_ERROR,
}

DEFAULT_ERROR_MESSAGES: dict[int, str] = {
    400: "Bad request: The request was invalid",
    401: "Authentication required: Please log in",
    403: "Access denied: You do not have permission for this action",
    404: "Not found: The requested resource does not exist",
    422: "Validation failed: Please check your input",
    429: "Rate limit exceeded: Please try again later",
    500: "Server error: Something went wrong on our end",
}


class ApiError(Exception):
    """
    A failed API call.

    Attributes:
        message: Human-readable description, safe to show to users
        code: Machine-checkable error code from the envelope contract
        data: Optional error payload (e.g. ``{"validation_errors": {...}}``)
        kind: Pipeline stage that detected the failure
        status: HTTP status when the failure came from a response
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.SERVER_ERROR,
        data: Any | None = None,
        *,
        kind: ErrorKind = ErrorKind.API,
        status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)
        self.data = data
        self.kind = kind
        self.status = status

    def __repr__(self) -> str:
        return f"ApiError(code={self.code.value!r}, kind={self.kind.value!r}, message={self.message!r})"

    def is_type(self, code: ErrorCode | str) -> bool:
        """Check whether this error carries the given code."""
        return self.code == ErrorCode(code)

    @property
    def is_timeout(self) -> bool:
        return self.kind == ErrorKind.TIMEOUT

    @property
    def validation_errors(self) -> dict[str, str] | None:
        """Field -> message map for validation failures, for form display."""
        if self.code != ErrorCode.VALIDATION_ERROR or not isinstance(self.data, dict):
            return None
        return self.data.get("validation_errors")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "message": self.message,
            "code": self.code.value,
            "kind": self.kind.value,
        }
        if self.status is not None:
            payload["status"] = self.status
        if self.data is not None:
            payload["data"] = self.data
        return payload


def configuration_error(message: str) -> ApiError:
    """Error for caller mistakes detected before any I/O."""
    return ApiError(message, ErrorCode.INVALID_PARAMS, kind=ErrorKind.CONFIGURATION)


def structural_error(message: str, data: Any | None = None) -> ApiError:
    """Error for responses that break the envelope contract."""
    return ApiError(message, ErrorCode.SERVER_ERROR, data, kind=ErrorKind.STRUCTURAL)
