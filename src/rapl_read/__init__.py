"""rapl-read - single-shot Intel RAPL energy counters as CSV telemetry."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "Catalog",
    "CpuIdentity",
    "Sample",
    "TelemetryTable",
    "Topology",
    "build_catalog",
    "discover_topology",
    "emit_header",
    "identify_cpu",
    "sample",
]

if TYPE_CHECKING:
    from .catalog import Catalog, build_catalog
    from .cpuinfo import CpuIdentity, identify_cpu
    from .csv_output import TelemetryTable, emit_header
    from .sampler import Sample, sample
    from .topology import Topology, discover_topology


def __getattr__(name: str) -> Any:
    """Lazily import submodules so the CLI does not pay for unused ones."""

    module_map = {
        "Catalog": "catalog",
        "build_catalog": "catalog",
        "CpuIdentity": "cpuinfo",
        "identify_cpu": "cpuinfo",
        "TelemetryTable": "csv_output",
        "emit_header": "csv_output",
        "Sample": "sampler",
        "sample": "sampler",
        "Topology": "topology",
        "discover_topology": "topology",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
