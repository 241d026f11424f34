# lmsetup/bootstrap/pipeline.py
"""
Flujo de una ejecución:

    Start → Detect ─┬─ presente → Done (Skipped)
                    └─ ausente  → Install → Detect ─┬─ presente → WriteEnv → Done (Installed)
                                                    └─ ausente  → Fail

Sin reintentos: cualquier error termina la ejecución en `Failed`.
"""
from __future__ import annotations

import logging
from typing import Callable

from .detector import Detector
from .env_writer import EnvWriter
from .errors import BootstrapError, ToolStillAbsent
from .installer import Installer
from .models import EnvBlock, Failed, InstallResult, Installed, Skipped, ToolRequirement
from .runner import CommandRunner

logger = logging.getLogger(__name__)


class Bootstrapper:
    def __init__(
        self,
        requirement: ToolRequirement,
        installer: Installer,
        env_block: EnvBlock,
        *,
        runner: CommandRunner,
        env_writer: EnvWriter,
        preflight: Callable[[], None] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.requirement = requirement
        self.installer = installer
        self.env_block = env_block
        self.runner = runner
        self.env_writer = env_writer
        self.preflight = preflight
        self.log = log or logger
        self.detector = Detector(runner, self.log)

    def run(self, *, force: bool = False) -> InstallResult:
        try:
            return self._run(force)
        except BootstrapError as exc:
            self.log.error("%s", exc)
            if exc.hint:
                self.log.error("Sugerencia: %s", exc.hint)
            return Failed(str(exc), exc.hint)

    def _run(self, force: bool) -> InstallResult:
        name = self.requirement.name
        if self.preflight is not None:
            self.preflight()

        if force:
            self.log.info("Modo --force: se reinstala '%s' aunque ya exista.", name)
        else:
            found = self.detector.detect(self.requirement)
            if found is not None:
                self.log.info("'%s' ya instalado; no hace falta instalar nada.", name)
                return Skipped(found.version)

        self.installer.install(self.runner, self.log)

        found = self.detector.detect(self.requirement)
        if found is None:
            raise ToolStillAbsent(
                f"'{name}' sigue sin encontrarse tras la instalación.",
                hint=f"Añade el directorio de '{name}' al PATH manualmente o instálalo desde los paquetes oficiales.",
            )

        self.env_writer.write(self.env_block)
        return Installed(found.version)
