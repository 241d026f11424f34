# lmsetup/agent/tools.py
"""
Herramientas del agente, limitadas a un directorio *workspace*.

El modelo pide herramientas emitiendo JSON puro:

    {"tool": "list_dir",   "path": "src"}
    {"tool": "read_file",  "path": "src/main.rs"}
    {"tool": "write_file", "path": "notes.txt", "content": "..."}

Las rutas son siempre relativas al *workspace*; se rechazan rutas
absolutas y componentes `..`.
"""
from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class ListDir(BaseModel):
    tool: Literal["list_dir"]
    path: str


class ReadFile(BaseModel):
    tool: Literal["read_file"]
    path: str


class WriteFile(BaseModel):
    tool: Literal["write_file"]
    path: str
    content: str


ToolCall = Annotated[Union[ListDir, ReadFile, WriteFile], Field(discriminator="tool")]
_TOOL_CALL = TypeAdapter(ToolCall)


def extract_json_from_markdown(reply: str) -> str:
    """Quita las vallas ```json … ``` (o ``` … ```) que algunos modelos añaden."""
    trimmed = reply.strip()
    if trimmed.startswith("```json"):
        inner = trimmed[len("```json"):]
    elif trimmed.startswith("```"):
        inner = trimmed[3:]
        # token de lenguaje opcional hasta el primer salto de línea
        if "\n" in inner:
            inner = inner[inner.index("\n"):]
    else:
        return trimmed
    return inner.strip().rstrip("`").strip()


def parse_tool_call(reply: str) -> Optional[ToolCall]:
    """Devuelve la llamada a herramienta o `None` si la respuesta es texto normal."""
    try:
        return _TOOL_CALL.validate_json(extract_json_from_markdown(reply))
    except ValidationError:
        return None


class Workspace:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()

    def resolve(self, rel: str) -> Path:
        """Convierte `rel` en una ruta dentro del workspace o lanza `ValueError`."""
        p = PurePath(rel)
        if p.is_absolute():
            raise ValueError(f"La ruta debe ser relativa al workspace: {rel}")
        if ".." in p.parts:
            raise ValueError(f"La ruta no puede contener componentes '..': {rel}")
        target = (self.root / p).resolve()
        # un symlink dentro del workspace no puede apuntar fuera de él
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"La ruta sale del workspace: {rel}")
        return target

    def list_dir(self, rel: str) -> list[Dict[str, Any]]:
        target = self.resolve(rel)
        return [
            {"name": entry.name, "is_dir": entry.is_dir(), "is_file": entry.is_file()}
            for entry in sorted(target.iterdir(), key=lambda e: e.name)
        ]

    def read_file(self, rel: str) -> Dict[str, Any]:
        return {"content": self.resolve(rel).read_text(encoding="utf-8")}

    def write_file(self, rel: str, content: str) -> Dict[str, Any]:
        target = self.resolve(rel)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return {"written": True}

    def execute(self, call: ToolCall) -> Dict[str, Any]:
        """Ejecuta `call` y devuelve `{"status": "ok", ...}` o `{"status": "error", ...}`."""
        logger.info("Herramienta %s → %s", call.tool, call.path)
        try:
            if isinstance(call, ListDir):
                result: Any = self.list_dir(call.path)
            elif isinstance(call, ReadFile):
                result = self.read_file(call.path)
            else:
                result = self.write_file(call.path, call.content)
        except (ValueError, OSError, UnicodeDecodeError) as exc:
            return {"status": "error", "message": str(exc)}
        return {"status": "ok", "result": result}
