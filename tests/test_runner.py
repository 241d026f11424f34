"""
Pruebas del `CommandRunner` real con scripts diminutos en `tmp_path`.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from lmsetup.bootstrap import CommandRunner, ExternalCommandFailed


def _script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(0o755)
    return path


# ════════════════════════════════════════════════════════════════════════════
# which
# ════════════════════════════════════════════════════════════════════════════
def test_extra_paths_are_searched_before_path(tmp_path, monkeypatch) -> None:
    system = _script(tmp_path / "usr" / "bin" / "llama-server", "exit 0")
    built = _script(tmp_path / "llama.cpp" / "build" / "bin" / "llama-server", "exit 0")
    monkeypatch.setenv("PATH", str(system.parent))

    runner = CommandRunner()

    assert runner.which("llama-server") == str(system)
    assert runner.which("llama-server", [built.parent]) == str(built)


def test_extra_paths_fall_back_to_path(tmp_path, monkeypatch) -> None:
    system = _script(tmp_path / "usr" / "bin" / "nvcc", "exit 0")
    monkeypatch.setenv("PATH", str(system.parent))

    assert CommandRunner().which("nvcc", [tmp_path / "empty"]) == str(system)


def test_empty_path_does_not_search_cwd(tmp_path, monkeypatch) -> None:
    _script(tmp_path / "nvcc", "exit 0")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PATH", "")

    assert CommandRunner().which("nvcc", [tmp_path / "empty"]) is None


# ════════════════════════════════════════════════════════════════════════════
# run
# ════════════════════════════════════════════════════════════════════════════
def test_run_captures_output_and_cwd(tmp_path) -> None:
    tool = _script(tmp_path / "bin" / "tool", 'echo "release 12.1"; echo "aviso" >&2; pwd')
    work = tmp_path / "work"
    work.mkdir()

    result = CommandRunner().run([tool, "--version"], cwd=work)

    assert result.ok
    assert result.args == (str(tool), "--version")
    out = result.stdout.splitlines()
    assert out[0] == "release 12.1"
    assert Path(out[1]).resolve() == work.resolve()
    assert result.stderr.strip() == "aviso"


def test_non_zero_exit_raises_with_stderr_tail(tmp_path) -> None:
    tool = _script(tmp_path / "fail", 'echo "primera" >&2; echo "E: paquete no encontrado" >&2; exit 100')

    with pytest.raises(ExternalCommandFailed) as exc:
        CommandRunner().run([tool])

    assert exc.value.returncode == 100
    assert exc.value.cmd == (str(tool),)
    assert "E: paquete no encontrado" in str(exc.value)
    assert "primera" not in str(exc.value)


def test_non_zero_exit_without_check(tmp_path) -> None:
    tool = _script(tmp_path / "fail", "exit 3")
    result = CommandRunner().run([tool], check=False)
    assert result.returncode == 3
    assert not result.ok


def test_missing_executable_maps_to_127(tmp_path) -> None:
    with pytest.raises(ExternalCommandFailed) as exc:
        CommandRunner().run([tmp_path / "does-not-exist"])

    assert exc.value.returncode == 127
    assert "PATH" in exc.value.hint
