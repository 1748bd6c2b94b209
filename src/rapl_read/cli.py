"""Command-line entry point: emit RAPL energy counters as CSV."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rapl_read.catalog import build_catalog
from rapl_read.config import resolve_discovery_limits
from rapl_read.cpuinfo import CpuIdentity, inspect_cpu
from rapl_read.csv_output import TelemetryTable
from rapl_read.errors import DiscoveryError, UnsupportedCPUError
from rapl_read.logging_pipeline import (
    configure_structured_logging,
    detach_queue_handlers,
    shutdown_listeners,
)
from rapl_read.report import render_report
from rapl_read.sampler import sample
from rapl_read.settings import RaplReadSettings, get_settings
from rapl_read.topology import Topology, discover_topology

LOGGER = logging.getLogger("rapl_read.cli")

REMEDIATION = (
    "Unable to read RAPL counters.\n"
    "* Verify you have an Intel Sandybridge or newer processor\n"
    "* You may need to run as root or have read access to the powercap "
    "energy_uj files\n"
    "* Make sure the intel_rapl kernel module (intel_rapl_common/intel_rapl_msr) "
    "is loaded\n"
)


def build_parser(settings: RaplReadSettings) -> argparse.ArgumentParser:
    """Create the argument parser, seeding path defaults from ``settings``.

    Returns:
        Configured :class:`argparse.ArgumentParser` instance.
    """

    parser = argparse.ArgumentParser(
        prog="rapl-read",
        description="Read Intel RAPL energy counters from the powercap sysfs "
        "interface and print them as CSV.",
    )
    parser.add_argument(
        "-c",
        "--core",
        type=int,
        default=0,
        help="Logical CPU whose package the reading is attributed to (default: 0).",
    )
    parser.add_argument(
        "-s",
        "--sysfs",
        action="store_true",
        help="Force sysfs sampling mode; with -v also print a sample row.",
    )
    parser.add_argument(
        "-i",
        "--info",
        action="store_true",
        help="Show CPU and package topology information.",
    )
    parser.add_argument(
        "-v",
        "--variables",
        action="store_true",
        help="Show the available data as a CSV header line.",
    )
    parser.add_argument(
        "--powercap-root",
        type=Path,
        default=settings.powercap_root,
        help=f"Base path for RAPL zones (default: {settings.powercap_root})",
    )
    parser.add_argument(
        "--cpu-root",
        type=Path,
        default=settings.cpu_root,
        help=f"Base path for CPU topology (default: {settings.cpu_root})",
    )
    parser.add_argument(
        "--cpuinfo",
        type=Path,
        default=settings.cpuinfo_path,
        help=f"Processor descriptor file (default: {settings.cpuinfo_path})",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Diagnostic verbosity on stderr (default: %(default)s).",
    )
    return parser


def _attribute_core(topology: Topology, core: int) -> None:
    package = topology.package_of(core)
    if package is None:
        LOGGER.warning(
            "Requested core not present in topology",
            extra={"core": core, "total_cpus": topology.total_cpus},
        )
        return
    LOGGER.info(
        "Attributing reading to package", extra={"core": core, "package": package}
    )


def _log_cpu(cpu: CpuIdentity | UnsupportedCPUError | None) -> None:
    if isinstance(cpu, CpuIdentity) and not cpu.supported:
        LOGGER.warning("Unrecognised processor model", extra={"model": cpu.model})
    elif isinstance(cpu, UnsupportedCPUError):
        LOGGER.warning("Processor not supported", extra={"reason": str(cpu)})


def _run(args: argparse.Namespace, settings: RaplReadSettings) -> int:
    limits = resolve_discovery_limits(settings)
    cpu = inspect_cpu(args.cpuinfo)
    topology = discover_topology(
        args.cpu_root, max_cpus=limits.max_cpus, max_packages=limits.max_packages
    )

    if args.info:
        sys.stdout.write(render_report(cpu, topology))
        return 0

    _log_cpu(cpu)
    package_ids = topology.require_packages()
    _attribute_core(topology, args.core)

    catalog = build_catalog(
        package_ids, args.powercap_root, max_packages=limits.max_packages
    )
    table = TelemetryTable(catalog)

    if args.variables:
        sys.stdout.write(table.header())
        if not args.sysfs:
            return 0

    reading = sample(table.catalog)
    sys.stdout.write(table.row(reading))
    if not reading.complete:
        LOGGER.warning(
            "Sample incomplete; failed domains reported as nan",
            extra={"failures": list(reading.failures)},
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``rapl-read`` and ``python -m rapl_read``.

    Args:
        argv: Optional argument list override.

    Returns:
        Exit status code (``0`` for success, ``1`` when counters are
        unavailable).
    """

    settings = get_settings()
    parser = build_parser(settings)
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    package_logger = logging.getLogger("rapl_read")
    level = logging.getLevelNamesMapping().get(args.log_level, logging.WARNING)
    listener = configure_structured_logging(package_logger, level=level)
    try:
        return _run(args, settings)
    except DiscoveryError as exc:
        LOGGER.error("RAPL discovery failed", extra={"error": str(exc)})
        sys.stderr.write(f"\t{exc}\n")
        sys.stderr.write(REMEDIATION)
        return 1
    finally:
        shutdown_listeners([listener])
        detach_queue_handlers(package_logger)


if __name__ == "__main__":
    raise SystemExit(main())
