"""Logical CPU to physical package discovery.

Topology is returned as a value and threaded into the catalog builder; nothing
here keeps process-wide state between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from rapl_read.config import DEFAULT_MAX_CPUS, DEFAULT_MAX_PACKAGES
from rapl_read.errors import DiscoveryLimitExceeded, TopologyError

LOGGER = logging.getLogger(__name__)

DEFAULT_CPU_ROOT = Path("/sys/devices/system/cpu")
PACKAGE_ID_FILE = Path("topology") / "physical_package_id"


@dataclass(slots=True, frozen=True)
class Topology:
    """Result of logical CPU enumeration.

    Attributes:
        package_ids: Distinct package identifiers in ascending order.
        total_cpus: Number of contiguous logical CPUs found from ``cpu0``.
        first_cpu: Package identifier mapped to the first logical CPU seen on
            it.
        cpu_packages: Package identifier for each logical CPU index.
    """

    package_ids: tuple[int, ...]
    total_cpus: int
    first_cpu: Mapping[int, int] = field(default_factory=dict)
    cpu_packages: tuple[int, ...] = ()

    @property
    def total_packages(self) -> int:
        """Return the number of distinct packages."""

        return len(self.package_ids)

    def package_of(self, cpu: int) -> int | None:
        """Return the package hosting logical CPU ``cpu`` if it was enumerated."""

        if 0 <= cpu < len(self.cpu_packages):
            return self.cpu_packages[cpu]
        return None

    def require_packages(self) -> tuple[int, ...]:
        """Return the package identifiers, failing when none were discovered.

        Raises:
            TopologyError: If enumeration found no logical CPUs.
        """

        if not self.package_ids:
            raise TopologyError(
                "No CPU packages discovered; cpu0 exposes no physical_package_id"
            )
        return self.package_ids


def _read_package_id(path: Path) -> int | None:
    """Return the package id stored in ``path`` or ``None`` when it is absent.

    Raises:
        TopologyError: If the file exists but cannot be parsed.
    """

    try:
        text = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise TopologyError(f"Failed to read topology file: {path}") from exc

    try:
        value = int(text, 10)
    except ValueError as exc:
        raise TopologyError(f"Invalid package id in {path}: {text!r}") from exc

    if value < 0:
        raise TopologyError(f"Negative package id in {path}: {value}")
    return value


def discover_topology(
    cpu_root: Path = DEFAULT_CPU_ROOT,
    *,
    max_cpus: int = DEFAULT_MAX_CPUS,
    max_packages: int = DEFAULT_MAX_PACKAGES,
) -> Topology:
    """Enumerate logical CPUs and the packages they belong to.

    Enumeration starts at ``cpu0`` and stops at the first index without a
    ``physical_package_id`` file, so an offline CPU ends the walk. Reaching
    ``max_cpus`` stops the walk at the bound; a warning is logged only when a
    CPU beyond the bound exists.

    Args:
        cpu_root: Directory containing ``cpu<n>`` entries.
        max_cpus: Maximum number of logical CPUs to probe.
        max_packages: Maximum number of distinct packages tolerated.

    Returns:
        The discovered :class:`Topology`. It is empty when ``cpu0`` has no
        mapping; use :meth:`Topology.require_packages` to treat that as fatal.

    Raises:
        DiscoveryLimitExceeded: If more than ``max_packages`` packages exist.
        TopologyError: If a topology file holds malformed content.
    """

    first_cpu: dict[int, int] = {}
    cpu_packages: list[int] = []

    cpu = 0
    while cpu < max_cpus:
        package = _read_package_id(cpu_root / f"cpu{cpu}" / PACKAGE_ID_FILE)
        if package is None:
            break
        cpu_packages.append(package)
        if package not in first_cpu:
            if len(first_cpu) >= max_packages:
                raise DiscoveryLimitExceeded(
                    f"Discovered more than {max_packages} CPU packages "
                    f"(package {package} on cpu{cpu})"
                )
            first_cpu[package] = cpu
        cpu += 1
    else:
        if (cpu_root / f"cpu{max_cpus}" / PACKAGE_ID_FILE).exists():
            LOGGER.warning(
                "Logical CPU enumeration truncated at configured bound",
                extra={"max_cpus": max_cpus},
            )

    LOGGER.debug(
        "Topology discovered",
        extra={"total_cpus": cpu, "total_packages": len(first_cpu)},
    )
    return Topology(
        package_ids=tuple(sorted(first_cpu)),
        total_cpus=cpu,
        first_cpu=MappingProxyType(first_cpu),
        cpu_packages=tuple(cpu_packages),
    )


__all__ = ["DEFAULT_CPU_ROOT", "Topology", "discover_topology"]
