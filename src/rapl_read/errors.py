"""Exception hierarchy shared by discovery, sampling, and CPU identification."""

from __future__ import annotations

__all__ = [
    "CounterReadError",
    "DiscoveryError",
    "DiscoveryLimitExceeded",
    "DomainDiscoveryError",
    "RaplError",
    "TopologyError",
    "UnsupportedCPUError",
]


class RaplError(RuntimeError):
    """Base class for RAPL reader errors."""


class UnsupportedCPUError(RaplError):
    """Raised when the processor is not a RAPL-capable Intel family 6 part."""

    def __init__(
        self,
        message: str,
        *,
        vendor: str | None = None,
        family: int | None = None,
    ) -> None:
        super().__init__(message)
        self.vendor = vendor
        self.family = family


class DiscoveryError(RaplError):
    """Base class for fatal failures while discovering topology or domains."""


class TopologyError(DiscoveryError):
    """Raised when logical CPU to package mapping cannot be established."""


class DiscoveryLimitExceeded(DiscoveryError):
    """Raised when discovery finds more packages than the configured bound."""


class DomainDiscoveryError(DiscoveryError):
    """Raised when a package's mandatory root domain cannot be read."""


class CounterReadError(RaplError):
    """Raised when an individual energy counter cannot be read."""
