"""CSV rendering for RAPL catalogs and samples.

Every package contributes a ``p<id> time`` column followed by one column per
present domain. The sample's single timestamp is repeated in each package's
time column so header and data rows always have the same width.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from rapl_read.catalog import Catalog
from rapl_read.sampler import Sample

__all__ = ["TelemetryTable", "emit_header", "format_row", "header_columns"]


def _render_line(fields: Iterable[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(list(fields))
    return buffer.getvalue()


def header_columns(catalog: Catalog) -> list[str]:
    """Return the header labels for ``catalog`` in column order."""

    columns: list[str] = []
    for package in catalog.packages:
        columns.append(f"p{package.package_id} time")
        columns.extend(
            f"p{package.package_id} {domain.name}"
            for domain in package.present_domains
        )
    return columns


def emit_header(catalog: Catalog) -> str:
    """Render the CSV header line for ``catalog``, newline terminated."""

    return _render_line(header_columns(catalog))


def _format_joules(value: float) -> str:
    return f"{value:f}"


def _row_fields(sample: Sample) -> list[str]:
    values: Sequence[float] = sample.values_j
    if len(values) != sample.catalog.column_count:
        raise ValueError(
            f"Sample carries {len(values)} values but its catalog has "
            f"{sample.catalog.column_count} present domains"
        )

    timestamp = str(sample.timestamp_ms)
    fields: list[str] = []
    offset = 0
    for package in sample.catalog.packages:
        width = len(package.present_domains)
        fields.append(timestamp)
        fields.extend(
            _format_joules(value) for value in values[offset : offset + width]
        )
        offset += width
    return fields


def format_row(sample: Sample) -> str:
    """Render ``sample`` as one CSV data line, newline terminated.

    Values use six decimal places; failed reads render as ``nan``.
    """

    return _render_line(_row_fields(sample))


@dataclass(slots=True, frozen=True)
class TelemetryTable:
    """Bind header and row rendering to a single catalog instance."""

    catalog: Catalog

    @property
    def width(self) -> int:
        """Return the number of CSV columns per line."""

        return len(self.catalog.packages) + self.catalog.column_count

    def header(self) -> str:
        """Return the header line for the bound catalog."""

        return emit_header(self.catalog)

    def row(self, sample: Sample) -> str:
        """Return the data line for ``sample``.

        Raises:
            ValueError: If ``sample`` was taken against a different catalog.
        """

        if sample.catalog is not self.catalog:
            raise ValueError("Sample was not read against this table's catalog")
        return format_row(sample)
