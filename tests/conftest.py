"""
Fixtures compartidas por toda la suite PyTest.

Objetivo → correr los tests **sin** apt, git, cmake ni nvcc reales:
`FakeRunner` simula el PATH y la salida de cada comando, y registra
todas las invocaciones para poder inspeccionarlas.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest

from lmsetup.bootstrap import CommandResult, CommandRunner, ExternalCommandFailed
from lmsetup.config import SetupConfig

_CONFIG_VARS = (
    "LLAMA_CPP_ROOT", "LLAMA_CPP_REPO", "CUDA_ARCHS", "LMSETUP_PROFILE", "BUILD_JOBS",
    "LMSETUP_SUDO", "LLAMA_SERVER_BIN", "MODEL", "MODEL_ALIAS", "N_GPU_LAYERS", "CTX_SIZE",
    "THREADS", "HOST", "PORT", "CHAT_TEMPLATE_FILE", "API_KEY", "SERVER_URL",
    "WORKSPACE_ROOT", "AGENT_MAX_TURNS", "REQUEST_TIMEOUT",
)


def _strip_sudo(args: tuple[str, ...]) -> tuple[str, ...]:
    return args[1:] if args and args[0] == "sudo" else args


# ════════════════════════════════════════════════════════════════════════════
# Runner falso
# ════════════════════════════════════════════════════════════════════════════
class FakeRunner(CommandRunner):
    """
    * `tools`    → ejecutables "instalados" (nombre → ruta).
    * `outputs`  → prefijo de comando → (stdout, stderr).
    * `failures` → prefijo de comando → código de salida ≠ 0.
    * `effects`  → prefijo de comando → callback ejecutado tras el comando
                   (p. ej. "instalar" `nvcc` tras `apt-get install`).

    Los prefijos se comparan sin el `sudo` inicial.
    """

    def __init__(self) -> None:
        self.tools: dict[str, str] = {}
        self.outputs: dict[tuple[str, ...], tuple[str, str]] = {}
        self.failures: dict[tuple[str, ...], int] = {}
        self.effects: dict[tuple[str, ...], Callable[[], None]] = {}
        self.calls: list[tuple[str, ...]] = []
        self.cwds: list[str | None] = []
        self.which_calls: list[str] = []
        self.search_paths: dict[str, tuple[str, ...]] = {}

    def _lookup(self, table: dict, args: tuple[str, ...]):
        bare = _strip_sudo(args)
        for prefix, value in table.items():
            if bare[: len(prefix)] == prefix:
                return value
        return None

    def which(self, name: str, extra_paths: Iterable[str | Path] = ()) -> str | None:
        self.which_calls.append(name)
        self.search_paths[name] = tuple(str(p) for p in extra_paths)
        return self.tools.get(name)

    def run(self, cmd, *, cwd=None, capture=True, check=True) -> CommandResult:
        args = tuple(str(c) for c in cmd)
        self.calls.append(args)
        self.cwds.append(str(cwd) if cwd else None)

        rc = self._lookup(self.failures, args) or 0
        stdout, stderr = self._lookup(self.outputs, args) or ("", "")
        result = CommandResult(args, rc, stdout, stderr)
        if rc == 0:
            effect = self._lookup(self.effects, args)
            if effect:
                effect()
        if check and rc != 0:
            raise ExternalCommandFailed(args, rc)
        return result

    def ran(self, *prefix: str) -> bool:
        return any(_strip_sudo(c)[: len(prefix)] == prefix for c in self.calls)


# ════════════════════════════════════════════════════════════════════════════
# Fixtures
# ════════════════════════════════════════════════════════════════════════════
@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch):
    """Ninguna variable de entorno del desarrollador debe filtrarse a los tests."""
    for var in _CONFIG_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def profile(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".bashrc"


@pytest.fixture
def setup_cfg(tmp_path: Path, profile: Path) -> SetupConfig:
    return SetupConfig(
        llama_cpp_root=tmp_path / "src" / "llama.cpp",
        repo_url="https://github.com/ggml-org/llama.cpp.git",
        profile=profile,
        cuda_archs="61",
        jobs=4,
        sudo=True,
    )
