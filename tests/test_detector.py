"""
Pruebas del detector: extracción de versión y comportamiento con
herramientas ausentes, antiguas o con salida no interpretable.
"""
from __future__ import annotations

import logging

import pytest

from lmsetup.bootstrap import Detector, ToolRequirement, Unparsable, Version, parse_version
from lmsetup.install.cuda import CUDA_REQUIREMENT

NVCC_OUTPUT = """\
nvcc: NVIDIA (R) Cuda compiler driver
Copyright (c) 2005-2023 NVIDIA Corporation
Built on Tue_Jul_11_02:20:44_PDT_2023
Cuda compilation tools, release 12.1, V12.1.105
Build cuda_12.1.r12.1/compiler.32688072_0
"""


# ════════════════════════════════════════════════════════════════════════════
# parse_version
# ════════════════════════════════════════════════════════════════════════════
@pytest.mark.parametrize(
    "output, major",
    [
        ("Cuda compilation tools, release 11.2, V11.2.67", 11),
        ("release 8.0", 8),
        ("release 12.1", 12),
        ("Cuda compilation tools, RELEASE 10.1, V10.1.243", 10),
        (NVCC_OUTPUT, 12),
    ],
)
def test_major_is_integer_before_first_dot_after_release(output: str, major: int) -> None:
    version = parse_version(output, CUDA_REQUIREMENT)
    assert isinstance(version, Version)
    assert version.major == major


@pytest.mark.parametrize(
    "output",
    [
        "nvcc: NVIDIA (R) Cuda compiler driver",
        "Cuda compilation tools, V12.1.105",
        "release 12",
        "",
    ],
)
def test_unparsable_is_an_explicit_variant(output: str) -> None:
    version = parse_version(output, CUDA_REQUIREMENT)
    assert isinstance(version, Unparsable)
    assert version.output == output


def test_custom_keyword_for_llama_server() -> None:
    req = ToolRequirement("llama-server", 1, r"version:\s*(\d+)", keyword="version")
    version = parse_version("version: 4589 (6e84b0ab)\nbuilt with cc (Debian 12.2.0)", req)
    assert version == Version(4589, "version: 4589 (6e84b0ab)")


# ════════════════════════════════════════════════════════════════════════════
# ToolRequirement: invariantes
# ════════════════════════════════════════════════════════════════════════════
@pytest.mark.parametrize("min_major", [0, -3, True, 8.5])
def test_min_major_must_be_positive_int(min_major) -> None:
    with pytest.raises(ValueError):
        ToolRequirement("nvcc", min_major, r"release\s+(\d+)\.")


@pytest.mark.parametrize("pattern", [r"release\s+\d+", r"(\d+)\.(\d+)", r"release ("])
def test_pattern_must_capture_exactly_one_group(pattern: str) -> None:
    with pytest.raises(ValueError):
        ToolRequirement("nvcc", 8, pattern)


# ════════════════════════════════════════════════════════════════════════════
# Detector
# ════════════════════════════════════════════════════════════════════════════
def test_absent_tool_spawns_no_process(runner) -> None:
    assert Detector(runner).detect(CUDA_REQUIREMENT) is None
    assert runner.which_calls == ["nvcc"]
    assert runner.calls == []


def test_present_tool_meets_minimum(runner) -> None:
    runner.tools["nvcc"] = "/usr/bin/nvcc"
    runner.outputs[("/usr/bin/nvcc", "--version")] = (NVCC_OUTPUT, "")

    found = Detector(runner).detect(CUDA_REQUIREMENT)

    assert found is not None
    assert found.path == "/usr/bin/nvcc"
    assert found.version.major == 12
    assert found.meets_minimum
    assert runner.calls == [("/usr/bin/nvcc", "--version")]


def test_old_version_only_warns(runner, caplog) -> None:
    runner.tools["nvcc"] = "/usr/bin/nvcc"
    runner.outputs[("/usr/bin/nvcc",)] = ("Cuda compilation tools, release 7.5, V7.5.17", "")

    with caplog.at_level(logging.WARNING):
        found = Detector(runner).detect(CUDA_REQUIREMENT)

    assert found is not None and not found.meets_minimum
    assert found.version.major == 7
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_unparsable_version_is_accepted_with_warning(runner, caplog) -> None:
    runner.tools["nvcc"] = "/usr/bin/nvcc"
    runner.outputs[("/usr/bin/nvcc",)] = ("nvcc: NVIDIA (R) Cuda compiler driver", "")

    with caplog.at_level(logging.WARNING):
        found = Detector(runner).detect(CUDA_REQUIREMENT)

    assert found is not None and found.meets_minimum
    assert isinstance(found.version, Unparsable)
    assert "No se pudo interpretar" in caplog.text


def test_version_printed_on_stderr(runner) -> None:
    req = ToolRequirement("llama-server", 1, r"version:\s*(\d+)", keyword="version")
    runner.tools["llama-server"] = "/opt/llama/bin/llama-server"
    runner.outputs[("/opt/llama/bin/llama-server",)] = ("", "version: 4589 (6e84b0ab)\n")

    found = Detector(runner).detect(req)
    assert found is not None and found.version.major == 4589
