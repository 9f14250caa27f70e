from __future__ import annotations


class AppError(Exception):
    """Base error for expected failures."""

    def __init__(self, message: str, *, http_status: int = 400):
        super().__init__(message)
        self.message = message
        self.http_status = http_status


class ConfigError(AppError):
    def __init__(self, message: str):
        super().__init__(message, http_status=500)


class BadRequestError(AppError):
    def __init__(self, message: str = "bad request"):
        super().__init__(message, http_status=400)


class NotFoundError(AppError):
    def __init__(self, message: str = "not found"):
        super().__init__(message, http_status=404)


class UpstreamError(AppError):
    def __init__(self, message: str = "error querying Sierra API"):
        super().__init__(message, http_status=502)


class UpstreamAuthError(AppError):
    def __init__(self, message: str = "Token is out of date, or is refreshing. Try request again."):
        super().__init__(message, http_status=503)


# ----------------------------
# Token lifecycle
# ----------------------------


class TokenUnavailableError(AppError):
    """The last token acquisition failed; no usable token is stored."""

    def __init__(self, message: str = "Token Error, token creation failed."):
        super().__init__(message, http_status=503)


class TokenTimeoutError(AppError):
    """No token became available within the wait budget."""

    def __init__(self, message: str = "Token Error, token not yet created."):
        super().__init__(message, http_status=503)


class TokenAcquisitionError(Exception):
    """Base for failures talking to the authorization endpoint.

    These never reach request handlers; the refresher logs them and retries.
    """


class TransportError(TokenAcquisitionError):
    pass


class AuthenticationError(TokenAcquisitionError):
    def __init__(self, status_code: int):
        super().__init__(
            f"unable to authenticate to token generator status={status_code}; "
            "client key, client secret, or API URL might be incorrect"
        )
        self.status_code = status_code


class DecodeError(TokenAcquisitionError):
    pass


class TTLTooShortError(TokenAcquisitionError):
    def __init__(self, ttl: int, minimum: float):
        super().__init__(f"token is set for too small a time ttl={ttl} minimum={minimum}")
        self.ttl = ttl
        self.minimum = minimum
