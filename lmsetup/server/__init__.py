# lmsetup/server/__init__.py
from __future__ import annotations

from .launcher import build_server_command, launch
from .probe import build_tool_call_request, extract_tool_calls, send_probe

__all__ = [
    "build_server_command",
    "build_tool_call_request",
    "extract_tool_calls",
    "launch",
    "send_probe",
]
