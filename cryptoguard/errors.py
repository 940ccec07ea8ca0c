class CryptoGuardError(Exception):
    """Base class for every error raised by the scanner."""


class InvalidInputError(CryptoGuardError, ValueError):
    pass


class UpstreamTransportError(CryptoGuardError):
    """HTTP or network failure talking to an external data source."""

    def __init__(self, message: str, source: str = "", status_code: int | None = None):
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class RateLimitError(UpstreamTransportError):
    """The explorer answered with its "Max rate limit reached" sentinel. Transient."""


class FetchError(UpstreamTransportError):
    """Every retrieval path for a web page failed."""


class ParseError(CryptoGuardError):
    """Malformed upstream payload. Always absorbed where it is raised."""


class ScanStageError(CryptoGuardError):
    """A primary-path stage failed; the scan is aborted."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        super().__init__(f"{stage} failed: {error_message(cause)}")


def error_message(error: object) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, str):
        return error
    msg = getattr(error, "message", None)
    if msg is not None:
        return str(msg)
    return "An unknown error occurred"


def is_rate_limited(error: BaseException | None) -> bool:
    while error is not None:
        if isinstance(error, RateLimitError):
            return True
        error = error.__cause__
    return False
