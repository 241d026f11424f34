# lmsetup/bootstrap/installer.py
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from .errors import BootstrapError, PlatformUnsupported
from .runner import CommandRunner

logger = logging.getLogger(__name__)


class Installer(ABC):
    """Interfaz mínima: `install()` o lanza un `BootstrapError`."""

    @abstractmethod
    def install(self, runner: CommandRunner, log: logging.Logger | None = None) -> None:
        ...


class PackageInstaller(Installer):
    """Instala paquetes del sistema con `apt-get` (o el gestor que se indique)."""

    def __init__(
        self,
        packages: Sequence[str],
        *,
        manager: str = "apt-get",
        sudo: bool = True,
    ) -> None:
        if not packages:
            raise ValueError("PackageInstaller necesita al menos un paquete.")
        self.packages = list(packages)
        self.manager = manager
        self.sudo = sudo

    def ensure_available(self, runner: CommandRunner) -> str:
        path = runner.which(self.manager)
        if not path:
            raise PlatformUnsupported(
                f"No se encontró '{self.manager}'; se esperaba un sistema basado en apt (Debian/Ubuntu).",
                hint="Ejecuta el instalador en Debian/Ubuntu o instala los paquetes a mano: "
                + " ".join(self.packages),
            )
        return path

    def install(self, runner: CommandRunner, log: logging.Logger | None = None) -> None:
        log = log or logger
        self.ensure_available(runner)
        prefix = ["sudo"] if self.sudo else []

        log.info("Actualizando índices de paquetes (%s update)…", self.manager)
        runner.run([*prefix, self.manager, "update"], capture=False)

        log.info("Instalando vía %s: %s", self.manager, " ".join(self.packages))
        runner.run([*prefix, self.manager, "install", "-y", *self.packages], capture=False)


class SourceBuildInstaller(Installer):
    """
    Clona (o actualiza) un repositorio, hace *checkout* del tag más reciente
    y compila con CMake.

    Args:
        repo_url: URL del repositorio git.
        checkout_dir: carpeta del *checkout* (se clona si no existe).
        cmake_flags: flags de configuración (`-DGGML_CUDA=ON`, …).
        build_dir: subcarpeta de build dentro del *checkout*.
        jobs: hilos de compilación. Por defecto: `os.cpu_count()`.
        prerequisites: instalador previo (herramientas de compilación).
    """

    def __init__(
        self,
        repo_url: str,
        checkout_dir: str | Path,
        cmake_flags: Sequence[str] = (),
        *,
        build_dir: str = "build",
        jobs: int | None = None,
        prerequisites: Installer | None = None,
    ) -> None:
        self.repo_url = repo_url
        self.checkout_dir = Path(checkout_dir).expanduser()
        self.cmake_flags = list(cmake_flags)
        self.build_dir = build_dir
        self.jobs = jobs or os.cpu_count() or 1
        self.prerequisites = prerequisites

    @property
    def bin_dir(self) -> Path:
        return self.checkout_dir / self.build_dir / "bin"

    def install(self, runner: CommandRunner, log: logging.Logger | None = None) -> None:
        log = log or logger
        if self.prerequisites is not None:
            self.prerequisites.install(runner, log)

        self.sync_checkout(runner, log)
        self.checkout_latest_tag(runner, log)
        self.build(runner, log)

    # ── 1) Clonar o actualizar
    def sync_checkout(self, runner: CommandRunner, log: logging.Logger) -> None:
        repo = self.checkout_dir
        log.info("Preparando el directorio %s", repo)
        if (repo / ".git").is_dir():
            log.info("Repo existente; descargando cambios y tags…")
            runner.run(["git", "-C", str(repo), "fetch", "--all", "--tags"], capture=False)
        elif repo.exists():
            raise BootstrapError(
                f"'{repo}' existe pero no es un repo git (falta .git).",
                hint="Elimina la carpeta o apunta LLAMA_CPP_ROOT a otro directorio.",
            )
        else:
            log.info("Clonando %s…", self.repo_url)
            repo.parent.mkdir(parents=True, exist_ok=True)
            runner.run(["git", "clone", self.repo_url, str(repo)], capture=False)

    # ── 2) Elegir el tag más reciente
    def checkout_latest_tag(self, runner: CommandRunner, log: logging.Logger) -> str | None:
        log.info("Buscando el tag estable más reciente…")
        res = runner.run(["git", "tag", "--sort=-creatordate"], cwd=self.checkout_dir, check=False)
        tags = [t.strip() for t in res.stdout.splitlines() if t.strip()] if res.ok else []
        if not tags:
            log.info("No hay tags; se queda en la rama por defecto (master/main).")
            return None

        latest = tags[0]
        log.info("Checkout del tag %s", latest)
        runner.run(["git", "checkout", latest], cwd=self.checkout_dir, capture=False)
        return latest

    # ── 3) Configurar y compilar
    def build(self, runner: CommandRunner, log: logging.Logger) -> None:
        log.info("Configurando CMake (%s)…", " ".join(self.cmake_flags) or "sin flags")
        runner.run(
            ["cmake", "-B", self.build_dir, *self.cmake_flags],
            cwd=self.checkout_dir,
            capture=False,
        )
        log.info("Compilando (hilos=%s); esto puede tardar…", self.jobs)
        runner.run(
            ["cmake", "--build", self.build_dir, "--config", "Release", "--", f"-j{self.jobs}"],
            cwd=self.checkout_dir,
            capture=False,
        )
        log.info("Build terminada. Binarios en %s", self.bin_dir)
