"""Exception types raised while talking to Gerrit servers."""

from typing import Optional


class GerritError(Exception):
    """Base class for fatal errors raised while fetching Gerrit data."""


class TransportError(GerritError):
    """Network failure or non-2xx HTTP response."""

    def __init__(self, url: str, status_code: Optional[int] = None, body: str = '', reason: str = ''):
        self.url = url
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"Gerrit returned HTTP {status_code} for {url}"
            if body:
                message += f": {body}"
        else:
            message = f"GET {url} failed: {reason}"
        super().__init__(message)


class ProtocolError(GerritError):
    """Response that violates the Gerrit REST conventions."""

    def __init__(self, url: str, start: int, detail: str):
        self.url = url
        self.start = start
        self.detail = detail
        super().__init__(f"{detail} ({url}, start={start})")


class HostFetchError(GerritError):
    """A per-host fetch failed; carries the alias of the offending host."""

    def __init__(self, alias: str, cause: BaseException):
        self.alias = alias
        self.cause = cause
        super().__init__(f"{alias}: {cause}")


class TimestampParseError(ValueError):
    """Raised for strings that are not Gerrit timestamps."""


class UnknownHostError(ValueError):
    """Raised for host tokens that are neither URLs nor known aliases."""


class UnknownThemeError(ValueError):
    """Raised for SVG theme names that are not in the theme table."""
