from __future__ import annotations

from .loop import Agent
from .tools import Workspace, extract_json_from_markdown, parse_tool_call

__all__ = ["Agent", "Workspace", "extract_json_from_markdown", "parse_tool_call"]
