# lmsetup/install/cuda.py
"""
Instalación del CUDA toolkit en Debian (apt) con una versión que soporte
la GeForce GTX 1070 Mobile (Pascal, sm_61), más las variables de entorno
para futuras builds (llama.cpp, bindings Rust/Python).

No instala el driver de NVIDIA.
"""
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
    ToolRequirement,
    Version,
)
from ..bootstrap.osinfo import log_os_info
from ..config import SetupConfig

logger = logging.getLogger("lmsetup.cuda")

PASCAL_MIN_CUDA = 8
CUDA_PACKAGES = ("nvidia-cuda-toolkit",)
CUDA_HOME = "/usr"

CUDA_REQUIREMENT = ToolRequirement(
    name="nvcc",
    min_major=PASCAL_MIN_CUDA,
    pattern=r"release\s+(\d+)\.",
    keyword="release",
)

ENV_MARKER = "# >>> CUDA environment (added by lmsetup) >>>"
ENV_MARKER_END = "# <<< CUDA environment <<<"


def cuda_env_block(cfg: SetupConfig) -> EnvBlock:
    return EnvBlock(
        marker=ENV_MARKER,
        end_marker=ENV_MARKER_END,
        exports=(
            Export("CUDA_HOME", CUDA_HOME, comment="Ruta base de binarios y librerías CUDA en Debian"),
            Export("PATH", "$CUDA_HOME/bin:$PATH"),
            Export(
                "LD_LIBRARY_PATH",
                "/usr/lib/x86_64-linux-gnu:$CUDA_HOME/lib:$CUDA_HOME/lib64:${LD_LIBRARY_PATH:-}",
            ),
            Export(
                "LLAMA_CUDA_ARCHS",
                cfg.cuda_archs,
                comment=f"Para builds de llama.cpp (p. ej. GTX 1070, Pascal, sm_{cfg.cuda_archs})",
            ),
        ),
    )


class CudaToolkitInstaller(PackageInstaller):
    def __init__(self, *, sudo: bool = True) -> None:
        super().__init__(CUDA_PACKAGES, sudo=sudo)

    def install(self, runner: CommandRunner, log: logging.Logger | None = None) -> None:
        log = log or logger
        log.info("NOTA: este instalador NO instala el driver de NVIDIA.")
        log.info("      En Debian suele venir del paquete 'nvidia-driver' (non-free / non-free-firmware).")
        super().install(runner, log)


def install_cuda(cfg: SetupConfig | None = None, *, runner: CommandRunner | None = None) -> InstallResult:
    """Detecta `nvcc`; si falta lo instala vía apt y añade el bloque de entorno."""
    cfg = cfg or SetupConfig()
    runner = runner or CommandRunner()
    installer = CudaToolkitInstaller(sudo=cfg.sudo)

    def _preflight() -> None:
        installer.ensure_available(runner)
        log_os_info(logger, expected_id="debian")

    result = Bootstrapper(
        CUDA_REQUIREMENT,
        installer,
        cuda_env_block(cfg),
        runner=runner,
        env_writer=EnvWriter(cfg.profile, logger),
        preflight=_preflight,
        log=logger,
    ).run()

    version = getattr(result, "version", None)
    if isinstance(version, Version):
        if version.major < PASCAL_MIN_CUDA:
            logger.warning(
                "CUDA %s < %s: el soporte de Pascal (GTX 1070) empieza en CUDA 8. "
                "Considera actualizar a CUDA 11 o 12.",
                version.major,
                PASCAL_MIN_CUDA,
            )
        else:
            logger.info("CUDA %s soporta la GeForce GTX 1070 Mobile (Pascal, sm_61).", version.major)
    return result


def cuda_summary(cfg: SetupConfig, runner: CommandRunner | None = None) -> str:
    runner = runner or CommandRunner()
    nvcc = runner.which("nvcc")
    release = "desconocida"
    if nvcc:
        res = runner.run([nvcc, "--version"], check=False)
        lines = [ln.strip() for ln in res.stdout.splitlines() if "release" in ln.lower()]
        if lines:
            release = lines[0]

    return f"""
======================================================================
Instalación del CUDA toolkit terminada.

nvcc:          {nvcc or "no encontrado en el PATH"}
versión nvcc:  {release}

Variables de entorno añadidas a: {cfg.profile}

Para usarlas en la shell actual:

  source "{cfg.profile}"

Notas:
- La GeForce GTX 1070 Mobile es Pascal (compute capability 6.1, sm_61).
- Pascal está soportada a partir de CUDA 8.
- Para compilar llama.cpp con CUDA para esta GPU:
    -DCMAKE_CUDA_ARCHITECTURES={cfg.cuda_archs}

Siguiente paso: `lmsetup install llama`
======================================================================
"""
