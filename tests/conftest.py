"""Pytest configuration and fake sysfs fixtures."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)


CpuTreeFactory = Callable[[Sequence[int]], Path]


def write_cpu_tree(root: Path, packages: Sequence[int]) -> Path:
    """Create ``cpu<n>/topology/physical_package_id`` files under ``root``."""

    for cpu, package in enumerate(packages):
        topology_dir = root / f"cpu{cpu}" / "topology"
        topology_dir.mkdir(parents=True, exist_ok=True)
        (topology_dir / "physical_package_id").write_text(
            f"{package}\n", encoding="utf-8"
        )
    return root


def write_package_zone(
    root: Path,
    package_id: int,
    *,
    name: str | None = None,
    energy_uj: int = 0,
    subdomains: Mapping[int, tuple[str, int]] | None = None,
) -> Path:
    """Create an ``intel-rapl:<id>`` zone with optional sub-zones.

    ``subdomains`` maps the sub-zone suffix ``k`` (as in ``intel-rapl:id:k``)
    to ``(name, energy_uj)``.
    """

    zone = root / f"intel-rapl:{package_id}"
    zone.mkdir(parents=True, exist_ok=True)
    (zone / "name").write_text(
        f"{name if name is not None else f'package-{package_id}'}\n",
        encoding="utf-8",
    )
    (zone / "energy_uj").write_text(f"{energy_uj}\n", encoding="utf-8")
    for suffix, (sub_name, sub_energy) in (subdomains or {}).items():
        sub_zone = zone / f"intel-rapl:{package_id}:{suffix}"
        sub_zone.mkdir()
        (sub_zone / "name").write_text(f"{sub_name}\n", encoding="utf-8")
        (sub_zone / "energy_uj").write_text(f"{sub_energy}\n", encoding="utf-8")
    return zone


@pytest.fixture
def cpu_tree(tmp_path: Path) -> CpuTreeFactory:
    """Return a factory building a fake ``/sys/devices/system/cpu`` tree."""

    def _build(packages: Sequence[int]) -> Path:
        return write_cpu_tree(tmp_path / "cpu", packages)

    return _build


@pytest.fixture
def powercap_root(tmp_path: Path) -> Path:
    """Return an empty fake ``/sys/class/powercap/intel-rapl`` directory."""

    root = tmp_path / "intel-rapl"
    root.mkdir()
    return root
