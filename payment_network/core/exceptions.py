"""
Custom exception hierarchy for the payment gateway integration.

All application-level exceptions inherit from AppException so they can be
caught by a single global handler.
"""


class AppException(Exception):
    """Base for all app exceptions."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: dict | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(AppException):
    """Raised when the client is missing something it cannot infer (e.g. redirectURL)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            message=message,
            details=details,
        )


class GatewayError(AppException):
    """Base for failures talking to, or hearing back from, the payment gateway."""

    def __init__(
        self,
        message: str,
        error_code: str = "GATEWAY_ERROR",
        status_code: int = 502,
        details: dict | None = None,
    ):
        super().__init__(
            status_code=status_code,
            error_code=error_code,
            message=message,
            details=details,
        )


class TransportError(GatewayError):
    """Raised when the direct API POST cannot complete (network, timeout, HTTP status)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message,
            error_code="GATEWAY_TRANSPORT_ERROR",
            details=details,
        )


class ProtocolError(GatewayError):
    """Raised when a gateway response is malformed or cannot be parsed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message,
            error_code="GATEWAY_PROTOCOL_ERROR",
            details=details,
        )


class SignatureError(GatewayError):
    """
    Raised when a response signature is missing or does not match.

    The message shown to the cardholder stays vague; error_code tells
    SIGNATURE_MISSING and SIGNATURE_MISMATCH apart for the logs.
    """

    def __init__(self, message: str, error_code: str, details: dict | None = None):
        super().__init__(
            message,
            error_code=error_code,
            status_code=400,
            details=details,
        )


class GatewayDeclineError(GatewayError):
    """Raised for a correctly signed response reporting a non-success outcome."""

    def __init__(self, message: str, response_code: int, details: dict | None = None):
        self.response_code = response_code
        super().__init__(
            message,
            error_code="PAYMENT_DECLINED",
            status_code=402,
            details={"response_code": response_code, **(details or {})},
        )
