# lmsetup/bootstrap/detector.py
"""
Detector de herramientas
========================

Comprueba si un ejecutable está disponible y, en ese caso, extrae su
versión *major* con el patrón de la `ToolRequirement`.

Una versión que no se puede interpretar **no** bloquea la ejecución:
se registra un aviso y la herramienta se considera presente.
"""
from __future__ import annotations

import logging
import re

from .models import Detection, ToolRequirement, Unparsable, Version, VersionInfo
from .runner import CommandRunner

logger = logging.getLogger(__name__)


def parse_version(output: str, requirement: ToolRequirement) -> VersionInfo:
    """
    Busca la primera línea que contenga `keyword` y aplica el patrón.

    >>> req = ToolRequirement("nvcc", 8, r"release\\s+(\\d+)\\.")
    >>> parse_version("Cuda compilation tools, release 11.2, V11.2.67", req).major
    11
    """
    keyword = requirement.keyword.lower()
    rx = re.compile(requirement.pattern, re.IGNORECASE)
    for line in output.splitlines():
        if keyword not in line.lower():
            continue
        m = rx.search(line)
        if m:
            return Version(int(m.group(1)), line.strip())
        break
    return Unparsable(output)


class Detector:
    def __init__(self, runner: CommandRunner, log: logging.Logger | None = None) -> None:
        self.runner = runner
        self.log = log or logger

    def detect(self, requirement: ToolRequirement) -> Detection | None:
        """Devuelve `None` si el ejecutable no se resuelve (sin lanzar ningún proceso)."""
        path = self.runner.which(requirement.name, requirement.search_paths)
        if not path:
            self.log.info("'%s' no encontrado.", requirement.name)
            return None

        self.log.info("'%s' detectado en %s; consultando versión…", requirement.name, path)
        result = self.runner.run([path, *requirement.version_args], check=False)
        # llama.cpp imprime la versión por stderr
        version = parse_version(f"{result.stdout}\n{result.stderr}", requirement)

        if isinstance(version, Unparsable):
            self.log.warning(
                "No se pudo interpretar la versión de '%s'; se acepta tal cual.", requirement.name
            )
            return Detection(path, version, meets_minimum=True)

        self.log.info("Versión major de '%s': %s", requirement.name, version.major)
        if version.major < requirement.min_major:
            self.log.warning(
                "'%s' tiene versión %s < %s (mínimo recomendado).",
                requirement.name,
                version.major,
                requirement.min_major,
            )
            return Detection(path, version, meets_minimum=False)
        return Detection(path, version, meets_minimum=True)
