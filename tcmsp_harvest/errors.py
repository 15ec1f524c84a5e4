from typing import Optional


class TcmspError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(TcmspError, ValueError):
    """A run was started without a usable configuration (e.g. no token)."""


class TransportError(TcmspError):
    """An HTTP request failed or returned a non-success status."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else "network error"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(f"{detail} ({url})")


class ExtractionError(TcmspError):
    """An embedded data block could not be located or parsed."""


class DownloadError(TcmspError):
    """A structure file could not be downloaded or written."""


class ConversionError(TcmspError):
    """A structure file could not be read or converted."""
