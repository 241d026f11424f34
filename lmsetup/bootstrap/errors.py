# lmsetup/bootstrap/errors.py
from __future__ import annotations

from typing import Sequence


class BootstrapError(RuntimeError):
    """Error fatal: aborta la ejecución. `hint` es el consejo de remediación."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class PlatformUnsupported(BootstrapError):
    """Falta el gestor de paquetes (o la plataforma no está soportada)."""


class ToolStillAbsent(BootstrapError):
    """La verificación posterior a la instalación no encontró la herramienta."""


class ProfileWriteFailed(BootstrapError):
    """El bloque de entorno no aparece en el perfil tras escribirlo."""


class ExternalCommandFailed(BootstrapError):
    def __init__(
        self,
        cmd: Sequence[str],
        returncode: int,
        hint: str | None = None,
        detail: str = "",
    ) -> None:
        self.cmd = tuple(cmd)
        self.returncode = returncode
        msg = f"`{' '.join(self.cmd)}` devolvió código {returncode}."
        if detail:
            msg = f"{msg} {detail}"
        super().__init__(msg, hint)
