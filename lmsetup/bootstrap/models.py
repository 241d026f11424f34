# lmsetup/bootstrap/models.py
"""
Tipos de datos del *bootstrapper*.

Todos son transitorios: se construyen y consumen dentro de una sola
ejecución. El único estado persistente es el bloque que se añade al
fichero de perfil del usuario.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

_SHELL_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ──────────────────────────────────────────────────────────────────────────────
# Requisitos de herramienta
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class ToolRequirement:
    """
    Describe una herramienta externa y la versión mínima aceptada.

    * `pattern` debe tener **exactamente un** grupo de captura numérico.
    * `keyword` selecciona la línea de la salida donde buscar la versión
      (p. ej. ``release`` para `nvcc`, ``version`` para llama.cpp).
    * `search_paths` se consultan antes que el `PATH` del sistema.
    """

    name: str
    min_major: int
    pattern: str
    keyword: str = "release"
    version_args: tuple[str, ...] = ("--version",)
    search_paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("ToolRequirement necesita un nombre de ejecutable.")
        if isinstance(self.min_major, bool) or not isinstance(self.min_major, int) or self.min_major < 1:
            raise ValueError(f"min_major debe ser un entero positivo (recibido: {self.min_major!r}).")
        try:
            groups = re.compile(self.pattern).groups
        except re.error as exc:
            raise ValueError(f"Patrón de versión inválido {self.pattern!r}: {exc}") from exc
        if groups != 1:
            raise ValueError(
                f"El patrón de versión debe capturar exactamente un grupo ({groups} en {self.pattern!r})."
            )


# ──────────────────────────────────────────────────────────────────────────────
# Bloque de entorno
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Export:
    key: str
    value: str
    comment: str | None = None

    def __post_init__(self) -> None:
        if not _SHELL_IDENT.match(self.key):
            raise ValueError(f"Nombre de variable inválido para export: {self.key!r}")
        if '"' in self.value or "\n" in self.value:
            raise ValueError(f"El valor de {self.key} no puede contener comillas dobles ni saltos de línea.")
        if self.comment is not None and "\n" in self.comment:
            raise ValueError("Los comentarios deben ocupar una sola línea.")

    def render(self) -> list[str]:
        lines = [f"# {self.comment}"] if self.comment else []
        lines.append(f'export {self.key}="{self.value}"')
        return lines


@dataclass(frozen=True, slots=True)
class EnvBlock:
    """Bloque `export` delimitado por dos comentarios centinela."""

    marker: str
    end_marker: str
    exports: tuple[Export, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        for m in (self.marker, self.end_marker):
            if not m.startswith("#") or "\n" in m:
                raise ValueError(f"Los marcadores deben ser comentarios de una línea: {m!r}")
        if self.marker == self.end_marker:
            raise ValueError("El marcador de apertura y el de cierre deben ser distintos.")
        if not self.exports:
            raise ValueError("Un EnvBlock necesita al menos un export.")

    def render(self) -> str:
        """Texto exacto que se añade al perfil (incluye la línea en blanco inicial)."""
        lines = ["", self.marker]
        for exp in self.exports:
            lines.extend(exp.render())
        lines.append(self.end_marker)
        return "\n".join(lines) + "\n"


# ──────────────────────────────────────────────────────────────────────────────
# Versión detectada
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Version:
    major: int
    line: str

    def __str__(self) -> str:
        return str(self.major)


@dataclass(frozen=True, slots=True)
class Unparsable:
    output: str

    def __str__(self) -> str:
        return "desconocida"


VersionInfo = Union[Version, Unparsable]


@dataclass(frozen=True, slots=True)
class Detection:
    path: str
    version: VersionInfo
    meets_minimum: bool = True


# ──────────────────────────────────────────────────────────────────────────────
# Resultado de instalación
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Skipped:
    version: VersionInfo


@dataclass(frozen=True, slots=True)
class Installed:
    version: VersionInfo


@dataclass(frozen=True, slots=True)
class Failed:
    reason: str
    hint: str | None = None


InstallResult = Union[Skipped, Installed, Failed]


# ──────────────────────────────────────────────────────────────────────────────
# Resultado de un proceso externo
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0
