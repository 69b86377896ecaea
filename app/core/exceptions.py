from fastapi import HTTPException
from app.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


class InvalidAmountError(AppException):
    """A payment change that would push an invoice outside 0 <= paid <= total."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(400, message, ErrorCode.INVALID_AMOUNT, details)


class GatewayError(AppException):
    """A payment provider refused or failed a request (502 unless the caller's fault)."""

    def __init__(self, provider: str, message: str | None = None, status_code: int = 502):
        super().__init__(
            status_code,
            message or f"{provider} request failed",
            ErrorCode.GATEWAY_ERROR,
            {"provider": provider},
        )
        self.provider = provider
