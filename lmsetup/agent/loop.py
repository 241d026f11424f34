# lmsetup/agent/loop.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

import requests

from ..config import AgentConfig
from ..server.probe import auth_headers
from .tools import Workspace, parse_tool_call

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a coding agent operating inside a local filesystem workspace.

Workspace root (you MUST NOT leave this directory): `{root}`.

You cannot run shell commands or access the real OS directly.
Instead, you use the following TOOLS by emitting **pure JSON** (no surrounding text):

1) List directory contents:
   {{"tool": "list_dir", "path": "relative/path"}}

2) Read a file as UTF-8 text:
   {{"tool": "read_file", "path": "relative/path"}}

3) Write (create/overwrite) a file with UTF-8 content:
   {{"tool": "write_file", "path": "relative/path", "content": "..."}}

Rules:
- `path` is ALWAYS RELATIVE to the workspace root `{root}`.
- NEVER include `..` in paths.
- When you want to use a tool, respond with ONLY the JSON object, nothing else.
- I (the system) will reply with a tool result in the form:
  TOOL_RESULT: <json>

  where the JSON has the shape:
    {{"status":"ok","result":{{...}}}} or
    {{"status":"error","message":"..."}}

- After seeing a TOOL_RESULT, you may call another tool (again, with pure JSON),
  or continue with normal reasoning and natural-language explanation.

- When you are FINISHED with the task, respond with a normal natural-language answer,
  describing what you did and showing the important code snippets.
"""


class Agent:
    """Bucle *tool-calling* contra el endpoint `/v1/chat/completions` local."""

    def __init__(self, cfg: AgentConfig, workspace: Workspace | None = None) -> None:
        self.cfg = cfg
        self.workspace = workspace or Workspace(cfg.workspace_root)
        self.session = requests.Session()
        self.messages: List[Dict[str, str]] = []

    def call_llm(self) -> str:
        body = {"model": self.cfg.model, "messages": self.messages, "stream": False}
        resp = self.session.post(
            self.cfg.completions_url,
            headers=auth_headers(self.cfg.api_key),
            json=body,
            timeout=self.cfg.timeout,
        )
        if not resp.ok:
            raise RuntimeError(f"LLM error {resp.status_code}: {resp.text}")

        choices = resp.json().get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    def run(self, task: str) -> str:
        """Ejecuta la tarea y devuelve la respuesta final (texto) del modelo."""
        self.messages = [
            {"role": "system", "content": SYSTEM_PROMPT.format(root=self.workspace.root)},
            {"role": "user", "content": task},
        ]
        logger.info("Workspace: %s", self.workspace.root)
        logger.info("Tarea inicial: %s", task)

        for turn in range(self.cfg.max_turns):
            reply = self.call_llm()
            logger.debug("[turno %s] respuesta cruda:\n%s", turn, reply)

            call = parse_tool_call(reply)
            if call is None:
                return reply

            result: Dict[str, Any] = self.workspace.execute(call)
            self.messages.append({"role": "assistant", "content": reply})
            self.messages.append({"role": "user", "content": f"TOOL_RESULT: {json.dumps(result)}"})

        raise RuntimeError(f"El modelo excedió el número máximo de turnos ({self.cfg.max_turns}).")
