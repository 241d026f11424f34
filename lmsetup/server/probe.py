# lmsetup/server/probe.py
"""
Petición de prueba *tool-calling* contra `llama-server`.

Envía una única petición `/v1/chat/completions` (esquema OpenAI) con una
herramienta de ejemplo (`get_weather`) para comprobar que la plantilla de
chat del servidor produce llamadas a herramientas.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

import requests
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SYSTEM_RULES = (
    "Tool Use Rules: Prefer calling a tool when the user asks for live or external data. "
    "If you call a tool, return ONLY the JSON call. "
    "After tool results are provided, summarize for the user."
)
SAMPLE_QUESTION = "What is the weather in Boston right now?"


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant", "tool"]
    content: str


class FunctionSchema(BaseModel):
    name: str
    description: str
    parameters: Dict[str, Any]


class ToolSpec(BaseModel):
    type: Literal["function"] = "function"
    function: FunctionSchema


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    tools: List[ToolSpec] = Field(default_factory=list)
    tool_choice: str = "auto"
    parallel_tool_calls: bool = False
    stream: Optional[bool] = None


WEATHER_TOOL = ToolSpec(
    function=FunctionSchema(
        name="get_weather",
        description="Get current weather for a city",
        parameters={
            "type": "object",
            "properties": {
                "location": {"type": "string", "description": "City, State or City, Country"},
                "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
            },
            "required": ["location"],
        },
    )
)


def build_tool_call_request(model: str, question: str = SAMPLE_QUESTION) -> ChatCompletionRequest:
    return ChatCompletionRequest(
        model=model,
        messages=[
            ChatMessage(role="system", content=SYSTEM_RULES),
            ChatMessage(role="user", content=question),
        ],
        tools=[WEATHER_TOOL],
    )


def auth_headers(api_key: str | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def send_probe(
    url: str,
    payload: ChatCompletionRequest,
    *,
    api_key: str | None = None,
    timeout: int = 300,
) -> dict[str, Any]:
    """POST a `url` y devuelve el JSON. Lanza `requests.HTTPError` en códigos 4xx/5xx."""
    logger.info("POST %s (model=%s, tools=%s)", url, payload.model, [t.function.name for t in payload.tools])
    resp = requests.post(
        url,
        headers=auth_headers(api_key),
        json=payload.model_dump(exclude_none=True),
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json()


def extract_tool_calls(response: dict[str, Any]) -> list[dict[str, Any]]:
    """Llamadas a herramientas de la primera `choice` (lista vacía si no hay)."""
    choices = response.get("choices") or []
    if not choices:
        return []
    message = choices[0].get("message") or {}
    return list(message.get("tool_calls") or [])
