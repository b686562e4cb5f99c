"""Failure types raised by the model-backed flows."""


class AdvisorError(Exception):
    error_code = "SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(AdvisorError):
    """Required credential is missing."""

    error_code = "CONFIG_ERROR"


class UpstreamTransportError(AdvisorError):
    """Network failure or non-2xx reply from the model endpoint."""

    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class UpstreamContentError(AdvisorError):
    """Model withheld its answer or returned no candidates."""

    error_code = "UPSTREAM_NO_CONTENT"

    def __init__(self, message: str, block_reason: str | None = None):
        super().__init__(message)
        self.block_reason = block_reason

    @property
    def blocked(self) -> bool:
        return bool(self.block_reason)


class ResponseParseError(AdvisorError):
    """Generated text held no recoverable JSON."""

    error_code = "PARSE_ERROR"


class EmptyResultError(AdvisorError):
    """JSON parsed but no record passed validation."""

    error_code = "EMPTY_RESULT"
