# lmsetup/bootstrap/osinfo.py
from __future__ import annotations

import logging
import shlex
from pathlib import Path

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")


def read_os_release(path: str | Path = OS_RELEASE) -> dict[str, str]:
    """Lee un fichero `KEY=value` estilo os-release. Devuelve `{}` si no existe."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        return {}

    data: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        data[key.strip()] = parts[0] if parts else ""
    return data


def log_os_info(
    log: logging.Logger | None = None,
    *,
    expected_id: str | None = None,
    path: str | Path = OS_RELEASE,
) -> str:
    """Registra el SO detectado (informativo, nunca fatal) y devuelve su `ID`."""
    log = log or logger
    info = read_os_release(path)
    if not info:
        log.warning("%s no encontrado; se asume un sistema tipo Debian.", path)
        return "unknown"

    os_id = info.get("ID", "unknown")
    log.info("SO detectado: ID=%s, PRETTY_NAME=%s", os_id, info.get("PRETTY_NAME", "unknown"))
    if expected_id and os_id != expected_id:
        log.warning("El ID del SO es '%s', no '%s'. Se continúa igualmente.", os_id, expected_id)
    return os_id
