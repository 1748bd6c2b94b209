"""Protocols describing the subset of psutil used by the topology report."""

from __future__ import annotations

from typing import Protocol


class PsutilProtocol(Protocol):
    """Subset of psutil APIs used by :mod:`rapl_read.report`."""

    def cpu_count(self, logical: bool = True) -> int | None:
        """Return the number of logical or physical CPUs."""
