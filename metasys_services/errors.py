"""Client error types for Metasys server interactions."""

from __future__ import annotations


class MetasysClientError(Exception):
    """Base error for Metasys client failures."""


class MetasysTimeout(MetasysClientError):
    """Timeout while communicating with the server."""


class MetasysConnectionError(MetasysClientError):
    """Network connection to the server failed."""


class MetasysHttpError(MetasysClientError):
    """Non-success HTTP response from the server."""

    def __init__(self, status: int, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class MetasysAuthError(MetasysHttpError):
    """Login or token refresh was rejected by the server."""


class MetasysParsingError(MetasysClientError):
    """Response body could not be parsed as JSON."""

    def __init__(self, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body


class MetasysTokenError(MetasysClientError):
    """Login or refresh response did not carry a usable access token."""

    def __init__(self, message: str, response: object = None) -> None:
        super().__init__(message)
        self.response = response


class MetasysGuidError(MetasysClientError):
    """Identifier lookup returned a value that is not a valid identifier."""

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message)
        self.value = value


class MetasysPropertyError(MetasysClientError):
    """Property read response is missing the expected field."""

    def __init__(self, message: str, response: object = None) -> None:
        super().__init__(message)
        self.response = response
