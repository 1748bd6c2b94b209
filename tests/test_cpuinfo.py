"""Tests for processor identification."""

from __future__ import annotations

from pathlib import Path

import pytest

from rapl_read.cpuinfo import CpuIdentity, describe_cpu, identify_cpu, inspect_cpu
from rapl_read.errors import UnsupportedCPUError

INTEL_CPUINFO = """\
processor\t: 0
vendor_id\t: GenuineIntel
cpu family\t: 6
model\t\t: 85
model name\t: Intel(R) Xeon(R) Gold 6130 CPU @ 2.10GHz
stepping\t: 4

processor\t: 1
vendor_id\t: GenuineIntel
cpu family\t: 6
model\t\t: 42
model name\t: Intel(R) Xeon(R) Gold 6130 CPU @ 2.10GHz
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "cpuinfo"
    path.write_text(text, encoding="utf-8")
    return path


def test_identify_cpu_uses_first_processor(tmp_path: Path) -> None:
    """The first occurrence of each field wins and ``model name`` is ignored."""

    identity = identify_cpu(_write(tmp_path, INTEL_CPUINFO))

    assert identity == CpuIdentity(vendor="GenuineIntel", family=6, model=85)
    assert identity.microarchitecture == "Skylake-X"
    assert identity.supported is True
    assert describe_cpu(identity) == "Found Skylake-X Processor type"


def test_identify_cpu_model_name_before_model(tmp_path: Path) -> None:
    """A ``model name`` line preceding ``model`` does not shadow it."""

    text = (
        "vendor_id : GenuineIntel\n"
        "model name : Intel(R) Core(TM) i7-4770\n"
        "cpu family : 6\n"
        "model : 60\n"
    )
    identity = identify_cpu(_write(tmp_path, text))
    assert identity is not None
    assert identity.model == 60
    assert identity.microarchitecture == "Haswell"


def test_identify_cpu_unknown_model_is_reported(tmp_path: Path) -> None:
    """Unknown models are identified but flagged unsupported."""

    text = "vendor_id : GenuineIntel\ncpu family : 6\nmodel : 1\n"
    identity = identify_cpu(_write(tmp_path, text))

    assert identity is not None
    assert identity.supported is False
    assert identity.microarchitecture is None
    assert describe_cpu(identity) == "Unsupported model 1"


def test_identify_cpu_rejects_other_vendor(tmp_path: Path) -> None:
    """Non-Intel vendors raise UnsupportedCPUError."""

    text = "vendor_id : AuthenticAMD\ncpu family : 23\nmodel : 49\n"
    with pytest.raises(UnsupportedCPUError, match="not an Intel chip") as excinfo:
        identify_cpu(_write(tmp_path, text))
    assert excinfo.value.vendor == "AuthenticAMD"


def test_inspect_cpu_returns_unsupported_without_raising(tmp_path: Path) -> None:
    """The informational lookup hands back the error instead of raising."""

    text = "vendor_id : AuthenticAMD\ncpu family : 23\nmodel : 49\n"
    result = inspect_cpu(_write(tmp_path, text))

    assert isinstance(result, UnsupportedCPUError)
    assert describe_cpu(result) == "AuthenticAMD not an Intel chip"


def test_identify_cpu_rejects_wrong_family(tmp_path: Path) -> None:
    """Intel parts outside family 6 are unsupported."""

    text = "vendor_id : GenuineIntel\ncpu family : 15\nmodel : 6\n"
    with pytest.raises(UnsupportedCPUError, match="Wrong CPU family 15"):
        identify_cpu(_write(tmp_path, text))


def test_identify_cpu_missing_file(tmp_path: Path) -> None:
    """An unreadable descriptor yields ``None``."""

    assert identify_cpu(tmp_path / "absent") is None
    assert describe_cpu(None) == "Unable to identify processor"


def test_identify_cpu_incomplete_descriptor(tmp_path: Path) -> None:
    """Missing fields yield ``None`` rather than a partial identity."""

    assert identify_cpu(_write(tmp_path, "vendor_id : GenuineIntel\n")) is None


def test_identify_cpu_undecodable_descriptor(tmp_path: Path) -> None:
    """Non UTF-8 bytes in the descriptor are treated as unreadable."""

    path = tmp_path / "cpuinfo"
    path.write_bytes(b"vendor_id : \xff\xfe\n")
    assert identify_cpu(path) is None
