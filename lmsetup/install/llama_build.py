# lmsetup/install/llama_build.py
from __future__ import annotations

import logging

from ..bootstrap import (
    Bootstrapper,
    CommandRunner,
    EnvBlock,
    EnvWriter,
    Export,
    InstallResult,
    PackageInstaller,
    SourceBuildInstaller,
    ToolRequirement,
)
from ..config import SetupConfig

logger = logging.getLogger("lmsetup.llama")

BUILD_PACKAGES = ("build-essential", "cmake", "git", "pkg-config")

ENV_MARKER = "# >>> llama.cpp environment (added by lmsetup) >>>"
ENV_MARKER_END = "# <<< llama.cpp environment <<<"


def llama_requirement(cfg: SetupConfig) -> ToolRequirement:
    # `llama-server --version` → "version: 4589 (6e84b0ab)" por stderr
    return ToolRequirement(
        name="llama-server",
        min_major=1,
        pattern=r"version:\s*(\d+)",
        keyword="version",
        search_paths=(str(cfg.bin_dir),),
    )


def cmake_flags(cfg: SetupConfig, *, cuda: bool = True) -> list[str]:
    flags = [
        "-DLLAMA_CURL=OFF",
        f"-DGGML_CUDA={'ON' if cuda else 'OFF'}",
        "-DCMAKE_BUILD_TYPE=Release",
    ]
    if cuda and cfg.cuda_archs:
        flags.append(f"-DCMAKE_CUDA_ARCHITECTURES={cfg.cuda_archs}")
    return flags


def llama_env_block(cfg: SetupConfig) -> EnvBlock:
    return EnvBlock(
        marker=ENV_MARKER,
        end_marker=ENV_MARKER_END,
        exports=(
            Export("LLAMA_CPP_ROOT", str(cfg.llama_cpp_root)),
            Export("PATH", "$LLAMA_CPP_ROOT/build/bin:$PATH"),
            Export("LD_LIBRARY_PATH", "$LLAMA_CPP_ROOT/build:${LD_LIBRARY_PATH:-}"),
            Export(
                "LLAMA_CPP_LIB_DIR",
                "$LLAMA_CPP_ROOT/build",
                comment="Directorio de librerías para bindings Rust/Python",
            ),
        ),
    )


def build_llama_cpp(
    cfg: SetupConfig | None = None,
    *,
    cuda: bool = True,
    force: bool = False,
    runner: CommandRunner | None = None,
) -> InstallResult:
    """
    Clona el último tag estable de llama.cpp y lo compila con CMake (Release).

    Idempotente: si `llama-server` ya se encuentra (PATH o `build/bin`), no
    recompila salvo que se pase ``force=True``.

    Args:
        cfg: configuración (rutas, arquitecturas CUDA, hilos).
        cuda: compilar con `GGML_CUDA=ON`.
        force: recompilar aunque el binario exista (actualiza al último tag).
        runner: ejecutor de procesos (inyectable para tests).
    """
    cfg = cfg or SetupConfig()
    runner = runner or CommandRunner()

    build_tools = PackageInstaller(BUILD_PACKAGES, sudo=cfg.sudo)
    installer = SourceBuildInstaller(
        cfg.repo_url,
        cfg.llama_cpp_root,
        cmake_flags(cfg, cuda=cuda),
        jobs=cfg.jobs,
        prerequisites=build_tools,
    )

    def _preflight() -> None:
        build_tools.ensure_available(runner)
        if not cuda:
            return
        if runner.which("nvcc"):
            logger.info("CUDA toolkit detectado; se compila con GGML_CUDA=ON (arch=%s).", cfg.cuda_archs)
        else:
            logger.warning("'nvcc' (CUDA toolkit) no está en el PATH.")
            logger.warning("llama.cpp con -DGGML_CUDA=ON necesita el CUDA toolkit de NVIDIA.")
            logger.warning("Si CMake falla, ejecuta `lmsetup install cuda` y vuelve a intentarlo.")

    return Bootstrapper(
        llama_requirement(cfg),
        installer,
        llama_env_block(cfg),
        runner=runner,
        env_writer=EnvWriter(cfg.profile, logger),
        preflight=_preflight,
        log=logger,
    ).run(force=force)


def llama_summary(cfg: SetupConfig, *, cuda: bool = True) -> str:
    backend = "CUDA (GGML_CUDA=ON)" if cuda else "CPU"
    return f"""
======================================================================
llama.cpp clonado y compilado con {backend} en Release.

Repo:        {cfg.llama_cpp_root}
Binarios:    {cfg.bin_dir}
Librerías:   {cfg.llama_cpp_root / "build"} (libllama.*)

Variables de entorno añadidas a: {cfg.profile}

Para usarlas en la shell actual:

  source "{cfg.profile}"

Después, por ejemplo:

  llama-server -h
  lmsetup serve

Los bindings Rust/Python pueden usar LLAMA_CPP_ROOT, LLAMA_CPP_LIB_DIR
y PATH / LD_LIBRARY_PATH apuntando a la build.
======================================================================
"""
