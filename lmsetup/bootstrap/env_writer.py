# lmsetup/bootstrap/env_writer.py
from __future__ import annotations

import logging
from pathlib import Path

from .errors import ProfileWriteFailed
from .models import EnvBlock

logger = logging.getLogger(__name__)

_PROFILE_HINT = "Comprueba que {path} sea un fichero normal con permisos de lectura y escritura."


class EnvWriter:
    """
    Añade bloques `export` al perfil del shell (``~/.bashrc`` por defecto).

    Sólo añade: nunca reescribe ni borra un bloque existente. Si el marcador
    de apertura ya está en el fichero, `write()` no hace nada.

    El perfil se trata como bytes: un `.bashrc` con texto en latin-1 (o
    cualquier otra codificación) no impide encontrar el marcador.
    """

    def __init__(self, profile: str | Path, log: logging.Logger | None = None) -> None:
        self.profile = Path(profile).expanduser()
        self.log = log or logger

    def _fail(self, action: str, exc: OSError) -> ProfileWriteFailed:
        return ProfileWriteFailed(
            f"No se pudo {action} {self.profile}: {exc.strerror or exc}",
            hint=_PROFILE_HINT.format(path=self.profile),
        )

    def _read(self) -> bytes:
        try:
            return self.profile.read_bytes()
        except FileNotFoundError:
            return b""
        except OSError as exc:
            raise self._fail("leer", exc) from exc

    def has_block(self, block: EnvBlock) -> bool:
        return block.marker.encode("utf-8") in self._read()

    def write(self, block: EnvBlock) -> bool:
        """Devuelve `True` si se añadió el bloque, `False` si ya existía."""
        if self.has_block(block):
            self.log.info("El bloque de entorno ya está en %s; no se añade.", self.profile)
            return False

        self.log.info("Añadiendo bloque de entorno a %s…", self.profile)
        try:
            self.profile.parent.mkdir(parents=True, exist_ok=True)
            with open(self.profile, "ab") as fh:
                fh.write(block.render().encode("utf-8"))
        except OSError as exc:
            raise self._fail("escribir en", exc) from exc

        count = self._read().count(block.marker.encode("utf-8"))
        if count != 1:
            raise ProfileWriteFailed(
                f"Tras escribir, el marcador aparece {count} veces en {self.profile}.",
                hint="Revisa el espacio en disco y los permisos del fichero de perfil.",
            )
        return True
