"""
LMSetup – bootstrap de un entorno LLM local
===========================================

Paquete raíz. Instala el CUDA toolkit, compila llama.cpp, lanza
`llama-server` y lo prueba con una petición *tool-calling*.

Mantiene metadatos de la distribución y expone la configuración sin
cargar toda la aplicación.
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

# ---------------------------------------------------------------------------#
# Metadatos
# ---------------------------------------------------------------------------#
try:
    __version__: str = _pkg_version(__name__)
except PackageNotFoundError:  # running from source tree
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------------#
# API pública mínima
# ---------------------------------------------------------------------------#
from .config import AgentConfig, ServerConfig, SetupConfig  # noqa: E402


def run_cli() -> None:
    """
    Punto de entrada “amigable” para lanzar la CLI desde código:

    ```python
    import lmsetup
    lmsetup.run_cli()
    ```
    """
    # Importación diferida para no forzar Typer si sólo se usa la config.
    from .cli import cli  # noqa: E402

    cli()


__all__ = [
    "__version__",
    "AgentConfig",
    "ServerConfig",
    "SetupConfig",
    "run_cli",
]
