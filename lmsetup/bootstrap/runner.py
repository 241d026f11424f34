# lmsetup/bootstrap/runner.py
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Sequence

from .errors import ExternalCommandFailed
from .models import CommandResult

logger = logging.getLogger(__name__)


class CommandRunner:
    """
    Único punto donde se lanzan procesos externos.

    Las llamadas son síncronas y sin *timeout*: un `apt-get install` o una
    compilación bloquean hasta terminar. Con ``capture=False`` la salida va
    directa a la terminal (útil para builds largas) y el resultado llega
    con `stdout`/`stderr` vacíos.
    """

    def which(self, name: str, extra_paths: Iterable[str | Path] = ()) -> str | None:
        dirs = [str(p) for p in extra_paths]
        if dirs:
            # sin entradas vacías: una vacía equivale al directorio actual
            system = [d for d in os.environ.get("PATH", "").split(os.pathsep) if d]
            return shutil.which(name, path=os.pathsep.join([*dirs, *system]))
        return shutil.which(name)

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: str | Path | None = None,
        capture: bool = True,
        check: bool = True,
    ) -> CommandResult:
        args = tuple(str(c) for c in cmd)
        logger.debug("exec → %s (cwd=%s)", " ".join(args), cwd or ".")
        try:
            proc = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                capture_output=capture,
                text=True,
                errors="replace",
                check=False,
            )
        except FileNotFoundError as exc:
            raise ExternalCommandFailed(
                args, 127, hint=f"Instala '{args[0]}' o revisa tu PATH.", detail=str(exc)
            ) from exc

        result = CommandResult(args, proc.returncode, proc.stdout or "", proc.stderr or "")
        if check and not result.ok:
            tail = result.stderr.strip().splitlines()[-1:] if capture else []
            raise ExternalCommandFailed(args, result.returncode, detail=" ".join(tail))
        return result
