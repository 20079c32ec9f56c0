"""Custom exception hierarchy for pyyoda."""

from __future__ import annotations


class YodaError(Exception):
    """Base exception for all pyyoda errors."""


class YodaConfigError(YodaError):
    """Invalid or missing configuration."""


class YodaBusError(YodaError):
    """Message bus failure (not connected, publish rejected, bad payload)."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class YodaTransportError(YodaError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class YodaApiError(YodaError):
    """Cloud API answered with a payload we cannot use."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class SounderError(YodaError):
    """WAV player failed to load, prepare, or start a sound."""

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        self.filename = filename
        super().__init__(message)


class LightError(YodaError):
    """LED frame could not be written to the device."""
