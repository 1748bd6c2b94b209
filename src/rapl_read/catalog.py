"""Per-package RAPL domain discovery over the powercap sysfs tree.

Layout probed for package ``j``::

    <root>/intel-rapl:j/{name,energy_uj}                 domain 0 (required)
    <root>/intel-rapl:j/intel-rapl:j:k/{name,energy_uj}  domains 1..4 (optional)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from rapl_read.config import DEFAULT_MAX_PACKAGES
from rapl_read.errors import DiscoveryLimitExceeded, DomainDiscoveryError

LOGGER = logging.getLogger(__name__)

DEFAULT_POWERCAP_ROOT = Path("/sys/class/powercap/intel-rapl")
NAME_FILE = "name"
ENERGY_FILE = "energy_uj"
NUM_DOMAINS = 5


@dataclass(slots=True, frozen=True)
class Domain:
    """A single energy accounting point under a package."""

    index: int
    name: str
    source: Path
    present: bool = True


@dataclass(slots=True, frozen=True)
class PackageDomains:
    """All domain slots probed for one package, in index order."""

    package_id: int
    domains: tuple[Domain, ...]

    @property
    def root(self) -> Domain:
        """Return the mandatory package-level domain."""

        return self.domains[0]

    @property
    def present_domains(self) -> tuple[Domain, ...]:
        """Return only the domains backed by a readable name file."""

        return tuple(domain for domain in self.domains if domain.present)


@dataclass(slots=True, frozen=True)
class Catalog:
    """Immutable, ordered view of every package and its domains.

    Both the header emitter and the sampler traverse :meth:`columns`, which is
    the only place the column order is defined.
    """

    packages: tuple[PackageDomains, ...]

    @property
    def package_ids(self) -> tuple[int, ...]:
        """Return the package identifiers in catalog order."""

        return tuple(package.package_id for package in self.packages)

    @property
    def column_count(self) -> int:
        """Return the number of present domains across all packages."""

        return sum(len(package.present_domains) for package in self.packages)

    def columns(self) -> Iterator[tuple[int, Domain]]:
        """Yield ``(package_id, domain)`` for every present domain in order."""

        for package in self.packages:
            for domain in package.present_domains:
                yield package.package_id, domain


def _read_domain_name(path: Path) -> str | None:
    """Return the first whitespace-delimited token of a ``name`` file.

    Returns:
        The domain name, or ``None`` when the file is missing, unreadable, or
        empty.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.debug(
            "RAPL name file unavailable",
            extra={"path": str(path), "error": str(exc)},
        )
        return None

    tokens = text.split()
    return tokens[0] if tokens else None


def package_zone(powercap_root: Path, package_id: int) -> Path:
    """Return the powercap zone directory for ``package_id``."""

    return powercap_root / f"intel-rapl:{package_id}"


def subdomain_zone(powercap_root: Path, package_id: int, index: int) -> Path:
    """Return the zone directory backing domain slot ``index`` (1-based)."""

    return package_zone(powercap_root, package_id) / (
        f"intel-rapl:{package_id}:{index - 1}"
    )


def _discover_package(powercap_root: Path, package_id: int) -> PackageDomains:
    root_dir = package_zone(powercap_root, package_id)
    root_name = _read_domain_name(root_dir / NAME_FILE)
    if root_name is None:
        raise DomainDiscoveryError(
            f"Could not open {root_dir / NAME_FILE} for package {package_id}"
        )

    domains = [Domain(index=0, name=root_name, source=root_dir / ENERGY_FILE)]

    for index in range(1, NUM_DOMAINS):
        zone = subdomain_zone(powercap_root, package_id, index)
        name = _read_domain_name(zone / NAME_FILE)
        if name is None:
            domains.append(
                Domain(index=index, name="", source=zone / ENERGY_FILE, present=False)
            )
            continue
        domains.append(Domain(index=index, name=name, source=zone / ENERGY_FILE))

    return PackageDomains(package_id=package_id, domains=tuple(domains))


def build_catalog(
    package_ids: Iterable[int],
    powercap_root: Path = DEFAULT_POWERCAP_ROOT,
    *,
    max_packages: int = DEFAULT_MAX_PACKAGES,
) -> Catalog:
    """Probe every package's powercap zones and build the domain catalog.

    Args:
        package_ids: Package identifiers, typically ``Topology.package_ids``.
        powercap_root: Directory containing the ``intel-rapl:<n>`` zones.
        max_packages: Maximum number of packages accepted.

    Returns:
        The immutable :class:`Catalog`, packages ordered by ascending id.

    Raises:
        DomainDiscoveryError: If no packages are given or any package lacks a
            readable root ``name`` file. No partial catalog is returned.
        DiscoveryLimitExceeded: If more than ``max_packages`` ids are given.
        ValueError: If ``package_ids`` contains duplicates.
    """

    ids = list(package_ids)
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate package ids: {ids}")
    if not ids:
        raise DomainDiscoveryError("No packages to build a RAPL catalog for")
    if len(ids) > max_packages:
        raise DiscoveryLimitExceeded(
            f"{len(ids)} packages exceed the configured bound of {max_packages}"
        )

    packages = tuple(
        _discover_package(powercap_root, package_id) for package_id in sorted(ids)
    )
    catalog = Catalog(packages=packages)
    LOGGER.debug(
        "RAPL catalog built",
        extra={"packages": len(packages), "columns": catalog.column_count},
    )
    return catalog


__all__ = [
    "Catalog",
    "DEFAULT_POWERCAP_ROOT",
    "Domain",
    "NUM_DOMAINS",
    "PackageDomains",
    "build_catalog",
]
