# lmsetup/config.py

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

DEFAULT_REPO = "https://github.com/ggml-org/llama.cpp.git"
DEFAULT_MODEL = "~/Downloads/qwen2.5-coder-7b-instruct-q5_k_m.gguf"
DEFAULT_ALIAS = "qwen2.5-coder-7b"


# --- Funciones de ayuda ---
def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None: return default
    try: return int(raw)
    except (TypeError, ValueError): return default

def _getenv_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None: return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

def _getenv_path(name: str, default: str) -> Path:
    return Path(os.getenv(name) or default).expanduser()

def _running_as_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid and geteuid() == 0)

def _is_executable_file(p: Path) -> bool:
    return p.is_file() and os.access(p, os.X_OK)

def _iter_unique(items: Iterable[Path]) -> Iterable[Path]:
    seen: set[str] = set()
    for it in items:
        key = str(it)
        if key not in seen:
            seen.add(key)
            yield it


@dataclass(slots=True)
class SetupConfig:
    # --- Rutas ---
    llama_cpp_root: Path = field(default_factory=lambda: _getenv_path("LLAMA_CPP_ROOT", "~/src/llama.cpp"))
    repo_url: str = field(default_factory=lambda: os.getenv("LLAMA_CPP_REPO", DEFAULT_REPO))
    profile: Path = field(default_factory=lambda: _getenv_path("LMSETUP_PROFILE", "~/.bashrc"))

    # --- Build ---
    # GTX 1070 (Pascal) → compute capability 6.1 → "61"
    cuda_archs: str = field(default_factory=lambda: os.getenv("CUDA_ARCHS", "61"))
    jobs: int = field(default_factory=lambda: _getenv_int("BUILD_JOBS", os.cpu_count() or 1))
    sudo: bool = field(default_factory=lambda: _getenv_bool("LMSETUP_SUDO", not _running_as_root()))

    @property
    def bin_dir(self) -> Path:
        return self.llama_cpp_root / "build" / "bin"


@dataclass(slots=True)
class ServerConfig:
    # --- Parámetros del Servidor ---
    llama_server_bin: str | None = field(default_factory=lambda: os.getenv("LLAMA_SERVER_BIN"))
    llama_cpp_root: Path = field(default_factory=lambda: _getenv_path("LLAMA_CPP_ROOT", "~/src/llama.cpp"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _getenv_int("PORT", 8080))
    api_key: str | None = field(default_factory=lambda: os.getenv("API_KEY") or None)

    # --- Parámetros del Modelo (Llama) ---
    model: Path = field(default_factory=lambda: _getenv_path("MODEL", DEFAULT_MODEL))
    alias: str = field(default_factory=lambda: os.getenv("MODEL_ALIAS", DEFAULT_ALIAS))
    n_gpu_layers: int = field(default_factory=lambda: _getenv_int("N_GPU_LAYERS", 29))
    ctx_size: int = field(default_factory=lambda: _getenv_int("CTX_SIZE", 4096))
    threads: int = field(default_factory=lambda: _getenv_int("THREADS", 8))
    chat_template_file: str | None = field(default_factory=lambda: os.getenv("CHAT_TEMPLATE_FILE") or None)

    def resolve_server_bin(self) -> str:
        """
        Busca `llama-server` y devuelve una ruta absoluta.
        Orden de búsqueda:
        1. Ruta explícita (--server-bin / LLAMA_SERVER_BIN).
        2. En el PATH del sistema.
        3. En `$LLAMA_CPP_ROOT/build/bin`.
        """
        candidates: list[Path] = []
        if self.llama_server_bin:
            p = Path(self.llama_server_bin).expanduser()
            candidates.append(p / "llama-server" if p.is_dir() else p)
        if which := shutil.which("llama-server"):
            candidates.append(Path(which))
        candidates.append(self.llama_cpp_root.expanduser() / "build" / "bin" / "llama-server")

        for path in _iter_unique(candidates):
            if _is_executable_file(path):
                return str(path.resolve())

        raise FileNotFoundError(
            "No se encontró `llama-server`. Compílalo con `lmsetup install llama` "
            "o indica la ruta con --server-bin / LLAMA_SERVER_BIN."
        )

    def __repr__(self) -> str:
        tpl = f", template='{self.chat_template_file}'" if self.chat_template_file else ""
        return (
            f"<ServerConfig model='{self.model}', alias='{self.alias}', host='{self.host}:{self.port}', "
            f"gpu_layers={self.n_gpu_layers}, ctx={self.ctx_size}, threads={self.threads}{tpl}>"
        )


@dataclass(slots=True)
class AgentConfig:
    server_url: str = field(default_factory=lambda: os.getenv("SERVER_URL", "http://127.0.0.1:8080"))
    model: str = field(default_factory=lambda: os.getenv("MODEL_ALIAS", DEFAULT_ALIAS))
    api_key: str | None = field(default_factory=lambda: os.getenv("API_KEY") or None)
    workspace_root: Path = field(default_factory=lambda: _getenv_path("WORKSPACE_ROOT", "~/ai_workspace"))
    max_turns: int = field(default_factory=lambda: _getenv_int("AGENT_MAX_TURNS", 20))
    timeout: int = field(default_factory=lambda: _getenv_int("REQUEST_TIMEOUT", 300))

    @property
    def completions_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/v1/chat/completions"
