"""Single-shot energy counter sampling against a domain catalog."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Final

from rapl_read.catalog import Catalog
from rapl_read.errors import CounterReadError

LOGGER = logging.getLogger(__name__)

MICROJOULES_PER_JOULE: Final[float] = 1_000_000.0

Clock = Callable[[], float]
CounterReader = Callable[[Path], int]


@dataclass(slots=True, frozen=True)
class Sample:
    """Energy readings for every present domain of one catalog.

    Attributes:
        catalog: Catalog the readings were taken against.
        timestamp_ms: Wall-clock milliseconds since the epoch, captured once
            before any counter was read.
        values_j: Energy in joules per present domain, in catalog order;
            ``NaN`` marks a failed read.
        failures: Human-readable descriptions of failed reads.
    """

    catalog: Catalog
    timestamp_ms: int
    values_j: tuple[float, ...]
    failures: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        """Return ``True`` when every counter was read successfully."""

        return not self.failures


def microjoules_to_joules(value_uj: int | float) -> float:
    """Convert a raw powercap reading from microjoules to joules."""

    return value_uj / MICROJOULES_PER_JOULE


def read_counter_uj(path: Path) -> int:
    """Return the integer energy counter stored in ``path``.

    Args:
        path: Sysfs ``energy_uj`` file.

    Returns:
        Raw accumulator value in microjoules.

    Raises:
        CounterReadError: If the file is missing, unreadable, or non-numeric.
    """

    try:
        text = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as exc:
        raise CounterReadError(f"Missing RAPL counter: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise CounterReadError(f"Failed to read RAPL counter: {path}") from exc

    try:
        return int(text, 10)
    except ValueError as exc:
        raise CounterReadError(
            f"Invalid integer in RAPL counter {path}: {text!r}"
        ) from exc


def _now_ms(clock: Clock) -> int:
    return int(clock() * 1000)


def sample(
    catalog: Catalog,
    *,
    clock: Clock = time.time,
    reader: CounterReader = read_counter_uj,
) -> Sample:
    """Read every present domain of ``catalog`` once.

    A failed domain does not abort the sample: the failure is logged, recorded
    on :attr:`Sample.failures`, and its value becomes ``NaN`` so the row stays
    aligned with the header.

    Args:
        catalog: Catalog produced by :func:`rapl_read.catalog.build_catalog`.
        clock: Source of epoch seconds.
        reader: Counter reader returning microjoules.

    Returns:
        The populated :class:`Sample`.
    """

    timestamp_ms = _now_ms(clock)
    values: list[float] = []
    failures: list[str] = []

    for package_id, domain in catalog.columns():
        try:
            raw = reader(domain.source)
        except CounterReadError as exc:
            LOGGER.warning(
                "Failed to read RAPL domain",
                extra={
                    "package": package_id,
                    "domain": domain.name,
                    "path": str(domain.source),
                    "error": str(exc),
                },
            )
            failures.append(f"p{package_id} {domain.name}: {exc}")
            values.append(math.nan)
            continue
        values.append(microjoules_to_joules(raw))

    return Sample(
        catalog=catalog,
        timestamp_ms=timestamp_ms,
        values_j=tuple(values),
        failures=tuple(failures),
    )


__all__ = [
    "MICROJOULES_PER_JOULE",
    "Sample",
    "microjoules_to_joules",
    "read_counter_uj",
    "sample",
]
