"""Standard error codes for the rental booking core.

Every failure a core operation can report is a BookingError carrying one of
these codes. The API layer maps codes to HTTP status codes.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error taxonomy shared by services and the REST API."""

    INVALID_INPUT = "ERR_INVALID_INPUT"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT = "ERR_CONFLICT"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    INVALID_SIGNATURE = "ERR_INVALID_SIGNATURE"
    INVALID_STATE_TRANSITION = "ERR_INVALID_STATE_TRANSITION"
    INTERNAL_FAILURE = "ERR_INTERNAL_FAILURE"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_INPUT: "The request contains invalid or missing fields",
    ErrorCode.NOT_FOUND: "The requested resource was not found",
    ErrorCode.CONFLICT: "The property is not available for the selected dates",
    ErrorCode.UNAUTHORIZED: "You are not authorized to act on this booking",
    ErrorCode.INVALID_SIGNATURE: "Payment signature verification failed",
    ErrorCode.INVALID_STATE_TRANSITION: "The booking cannot move to the requested state",
    ErrorCode.INTERNAL_FAILURE: "The booking could not be saved",
}

# Recovery suggestions for API clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_INPUT: "Check the request fields and try again",
    ErrorCode.NOT_FOUND: "Verify the identifier and try again",
    ErrorCode.CONFLICT: "Choose different dates or another property",
    ErrorCode.UNAUTHORIZED: "Only the booking owner or an admin can do this",
    ErrorCode.INVALID_SIGNATURE: "Retry the payment confirmation from the checkout page",
    ErrorCode.INVALID_STATE_TRANSITION: "Fetch the booking to see its current status",
    ErrorCode.INTERNAL_FAILURE: "Try again later; no changes were made",
}


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: dict[str, str] | None = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: dict[str, str] | None = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by booking, payment and lifecycle operations."""

    def __init__(
        self,
        code: ErrorCode,
        details: dict[str, str] | None = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse body."""
        return ErrorResponse.from_code(self.code, self.details)
