# lmsetup/server/launcher.py
from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..config import ServerConfig

logger = logging.getLogger(__name__)


def build_server_command(cfg: ServerConfig, server_bin: str | None = None) -> list[str]:
    """Línea de comandos de `llama-server` para la configuración dada."""
    cmd = [
        server_bin or cfg.resolve_server_bin(),
        "-m", str(cfg.model),
        "--alias", cfg.alias,
        "-ngl", str(cfg.n_gpu_layers),
        "-c", str(cfg.ctx_size),
        "-t", str(cfg.threads),
        "--host", cfg.host,
        "--port", str(cfg.port),
    ]
    if cfg.chat_template_file:
        cmd += ["--jinja", "--chat-template-file", str(Path(cfg.chat_template_file).expanduser())]
    if cfg.api_key:
        cmd += ["--api-key", cfg.api_key]
    return cmd


def launch(cfg: ServerConfig) -> int:
    """
    Lanza `llama-server` en primer plano (hereda stdout/stderr).

    Lanza `FileNotFoundError` si falta el binario, el modelo o la plantilla.
    """
    server_bin = cfg.resolve_server_bin()
    model = Path(cfg.model).expanduser()
    if not model.is_file():
        raise FileNotFoundError(f"Modelo no encontrado en {model}")
    if cfg.chat_template_file and not Path(cfg.chat_template_file).expanduser().is_file():
        raise FileNotFoundError(f"Plantilla de chat no encontrada en {cfg.chat_template_file}")

    cmd = build_server_command(cfg, server_bin)
    shown = ["***" if prev == "--api-key" else c for prev, c in zip(["", *cmd], cmd)]
    logger.info("spawn → %s", " ".join(shown))
    proc = subprocess.run(cmd, cwd=str(Path(server_bin).parent), check=False)
    return proc.returncode
