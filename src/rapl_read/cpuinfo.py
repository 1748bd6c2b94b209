"""Processor identification from ``/proc/cpuinfo`` for informational output."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Final, Mapping

from rapl_read.errors import UnsupportedCPUError

LOGGER = logging.getLogger(__name__)

DEFAULT_CPUINFO_PATH = Path("/proc/cpuinfo")
INTEL_VENDOR: Final[str] = "GenuineIntel"
SUPPORTED_FAMILY: Final[int] = 6

# Family 6 model numbers with RAPL support.
MICROARCHITECTURES: Mapping[int, str] = MappingProxyType(
    {
        42: "Sandybridge",
        45: "Sandybridge-EP",
        58: "Ivybridge",
        62: "Ivybridge-EP",
        60: "Haswell",
        69: "Haswell",
        70: "Haswell",
        63: "Haswell-EP",
        61: "Broadwell",
        71: "Broadwell",
        79: "Broadwell-EP",
        86: "Broadwell-DE",
        78: "Skylake",
        94: "Skylake",
        85: "Skylake-X",
        142: "Kaby Lake",
        158: "Kaby Lake",
        87: "Knight's Landing",
        133: "Knight's Mill",
        92: "Atom",
        95: "Atom",
        122: "Atom",
        134: "Atom",
        150: "Atom",
        156: "Atom",
        102: "Cannon Lake",
        106: "Ice Lake-SP",
        108: "Ice Lake-D",
        125: "Ice Lake",
        126: "Ice Lake",
        140: "Tiger Lake",
        141: "Tiger Lake",
        165: "Comet Lake",
        166: "Comet Lake",
        167: "Rocket Lake",
        151: "Alder Lake",
        154: "Alder Lake",
        170: "Meteor Lake",
        183: "Raptor Lake",
        186: "Raptor Lake",
        191: "Raptor Lake",
        143: "Sapphire Rapids",
        207: "Emerald Rapids",
    }
)


@dataclass(slots=True, frozen=True)
class CpuIdentity:
    """Vendor, family, and model reported by the first CPU in ``cpuinfo``."""

    vendor: str
    family: int
    model: int

    @property
    def microarchitecture(self) -> str | None:
        """Return the human-readable microarchitecture, if the model is known."""

        return MICROARCHITECTURES.get(self.model)

    @property
    def supported(self) -> bool:
        """Return ``True`` when the model appears in the known table."""

        return self.model in MICROARCHITECTURES


def _parse_fields(lines: list[str]) -> dict[str, str]:
    wanted = {"vendor_id", "cpu family", "model"}
    fields: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key in wanted and key not in fields:
            fields[key] = value.strip()
        if len(fields) == len(wanted):
            break
    return fields


def identify_cpu(cpuinfo_path: Path = DEFAULT_CPUINFO_PATH) -> CpuIdentity | None:
    """Identify the processor from a ``cpuinfo`` style pseudo-file.

    Only the first occurrence of each field is used, so later logical CPUs
    are ignored.

    Args:
        cpuinfo_path: Path to the ``key : value`` descriptor file.

    Returns:
        The :class:`CpuIdentity`, or ``None`` when the file is unreadable or
        lacks a vendor, family, or model entry.

    Raises:
        UnsupportedCPUError: If the vendor is not Intel or the family is not 6.
    """

    try:
        lines = cpuinfo_path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.debug(
            "cpuinfo unavailable",
            extra={"path": str(cpuinfo_path), "error": str(exc)},
        )
        return None

    fields = _parse_fields(lines)

    vendor = fields.get("vendor_id")
    if vendor is not None and vendor != INTEL_VENDOR:
        raise UnsupportedCPUError(f"{vendor} not an Intel chip", vendor=vendor)

    try:
        family = int(fields["cpu family"])
        model = int(fields["model"])
    except (KeyError, ValueError):
        return None
    if vendor is None:
        return None

    if family != SUPPORTED_FAMILY:
        raise UnsupportedCPUError(
            f"Wrong CPU family {family}", vendor=vendor, family=family
        )

    return CpuIdentity(vendor=vendor, family=family, model=model)


def describe_cpu(result: CpuIdentity | UnsupportedCPUError | None) -> str:
    """Render the processor line of the informational report."""

    if result is None:
        return "Unable to identify processor"
    if isinstance(result, UnsupportedCPUError):
        return str(result)
    name = result.microarchitecture
    if name is None:
        return f"Unsupported model {result.model}"
    return f"Found {name} Processor type"


def inspect_cpu(
    cpuinfo_path: Path = DEFAULT_CPUINFO_PATH,
) -> CpuIdentity | UnsupportedCPUError | None:
    """Identify the processor, returning an unsupported verdict instead of raising."""

    try:
        return identify_cpu(cpuinfo_path)
    except UnsupportedCPUError as exc:
        LOGGER.debug("Processor not supported", extra={"reason": str(exc)})
        return exc


__all__ = [
    "CpuIdentity",
    "DEFAULT_CPUINFO_PATH",
    "MICROARCHITECTURES",
    "describe_cpu",
    "identify_cpu",
    "inspect_cpu",
]
