"""Informational processor and topology report."""

from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import cast

from rapl_read._psutil_protocols import PsutilProtocol
from rapl_read.cpuinfo import CpuIdentity, describe_cpu
from rapl_read.errors import UnsupportedCPUError
from rapl_read.topology import Topology

LOGGER = logging.getLogger(__name__)

_PSUTIL_MODULE: ModuleType = importlib.import_module("psutil")

CPUS_PER_LINE = 8


def _default_psutil() -> PsutilProtocol:
    """Return the psutil module cast to the internal protocol."""

    return cast(PsutilProtocol, _PSUTIL_MODULE)


def _render_cpu_map(topology: Topology) -> list[str]:
    lines: list[str] = []
    entries = [
        f"{cpu} ({package})" for cpu, package in enumerate(topology.cpu_packages)
    ]
    for start in range(0, len(entries), CPUS_PER_LINE):
        lines.append("\t" + ", ".join(entries[start : start + CPUS_PER_LINE]))
    return lines


def render_report(
    cpu: CpuIdentity | UnsupportedCPUError | None,
    topology: Topology,
    *,
    psutil_module: PsutilProtocol | None = None,
) -> str:
    """Render the human-readable CPU and topology report.

    Args:
        cpu: Result of :func:`rapl_read.cpuinfo.inspect_cpu`.
        topology: Discovered logical CPU topology.
        psutil_module: Injected psutil-compatible module used to cross-check
            the number of online CPUs.

    Returns:
        Multi-line report text terminated by a newline.
    """

    psutil_impl = psutil_module or _default_psutil()
    lines = [describe_cpu(cpu), ""]
    lines.extend(_render_cpu_map(topology))
    lines.append(
        f"\tDetected {topology.total_cpus} cores in "
        f"{topology.total_packages} packages"
    )

    online = psutil_impl.cpu_count(logical=True)
    if online is not None:
        lines.append(f"\tOperating system reports {online} logical CPUs")
        if online != topology.total_cpus:
            LOGGER.warning(
                "Contiguous CPU enumeration differs from OS logical CPU count",
                extra={"enumerated": topology.total_cpus, "online": online},
            )
            lines.append(
                "\tWarning: enumerated CPU count differs; "
                "some logical CPUs may be offline"
            )

    return "\n".join(lines) + "\n"


__all__ = ["render_report"]
