"""
Client for an OpenAI-compatible chat-completions gateway, plus the
structured-extraction chain used to recover a JSON object from whatever the
model sends back.

Extraction tries, in order: the forced tool call's argument bundle, a
```json fenced block, any fenced block, the whole body, and finally the
first ``{...}`` span. Each strategy returns a dict or ``NOT_APPLICABLE``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from config import Settings

logger = logging.getLogger("placement-grading.llm")

RATE_LIMIT_STATUSES = (429, 402)


class LLMUnavailable(Exception):
    pass


class LLMRateLimited(LLMUnavailable):
    pass


class LLMMalformed(Exception):
    pass


@dataclass(frozen=True)
class ToolSchema:
    name: str
    description: str
    parameters: Dict[str, Any]

    def as_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def as_choice(self) -> Dict[str, Any]:
        return {"type": "function", "function": {"name": self.name}}


@dataclass(frozen=True)
class LLMReply:
    tool_arguments: Union[str, Dict[str, Any], None] = None
    content: Optional[str] = None


class LLMClient:
    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._model = model
        if client is None:
            self._client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(
            settings.llm_gateway_url,
            settings.llm_api_key,
            settings.llm_model,
            timeout=settings.llm_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def complete(
        self, messages: List[Dict[str, str]], tool: ToolSchema | None = None
    ) -> LLMReply:
        if not self.configured:
            raise LLMUnavailable("LLM_API_KEY not configured")

        payload: Dict[str, Any] = {"model": self._model, "messages": messages}
        if tool is not None:
            payload["tools"] = [tool.as_tool()]
            payload["tool_choice"] = tool.as_choice()

        try:
            response = await self._client.post(
                self._url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.TimeoutException as exc:
            raise LLMUnavailable("language model gateway timed out") from exc
        except httpx.HTTPError as exc:
            raise LLMUnavailable(f"language model gateway unreachable: {exc}") from exc

        if response.status_code in RATE_LIMIT_STATUSES:
            logger.warning("LLM gateway capacity exhausted (status %s)", response.status_code)
            raise LLMRateLimited(f"gateway returned {response.status_code}")
        if response.is_error:
            logger.error("LLM gateway error %s: %s", response.status_code, response.text[:500])
            raise LLMUnavailable(f"gateway returned {response.status_code}")

        try:
            data = response.json()
            message = data["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMMalformed("gateway returned an unexpected payload") from exc

        if not isinstance(message, dict):
            raise LLMMalformed("gateway returned a message that is not an object")

        return LLMReply(tool_arguments=_tool_arguments(message), content=_text(message.get("content")))

    async def structured(
        self, messages: List[Dict[str, str]], tool: ToolSchema | None = None
    ) -> Dict[str, Any]:
        return extract_structured(await self.complete(messages, tool))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _tool_arguments(message: Dict[str, Any]) -> Union[str, Dict[str, Any], None]:
    tool_calls = message.get("tool_calls")
    if not isinstance(tool_calls, list) or not tool_calls or not isinstance(tool_calls[0], dict):
        return None
    function = tool_calls[0].get("function")
    if not isinstance(function, dict):
        return None
    arguments = function.get("arguments")
    # some gateways hand back the arguments already decoded
    return arguments if isinstance(arguments, (str, dict)) else None


def _text(content: Any) -> Optional[str]:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # content parts: [{"type": "text", "text": "..."}, ...]
        parts = [p.get("text") for p in content if isinstance(p, dict)]
        return "".join(p for p in parts if isinstance(p, str)) or None
    return None


# --- Structured extraction --------------------------------------------------------


class _NotApplicable:
    def __repr__(self) -> str:
        return "NOT_APPLICABLE"


NOT_APPLICABLE = _NotApplicable()

Extracted = Union[Dict[str, Any], _NotApplicable]

_JSON_FENCE_RE = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)```", re.DOTALL)


def _as_object(text: Any) -> Extracted:
    if not isinstance(text, str) or not text.strip():
        return NOT_APPLICABLE
    try:
        parsed = json.loads(text.strip())
    except ValueError:
        return NOT_APPLICABLE
    return parsed if isinstance(parsed, dict) else NOT_APPLICABLE


def from_tool_arguments(reply: LLMReply) -> Extracted:
    if isinstance(reply.tool_arguments, dict):
        return reply.tool_arguments
    return _as_object(reply.tool_arguments)


def from_json_fence(reply: LLMReply) -> Extracted:
    if not isinstance(reply.content, str):
        return NOT_APPLICABLE
    m = _JSON_FENCE_RE.search(reply.content)
    return _as_object(m.group(1)) if m else NOT_APPLICABLE


def from_any_fence(reply: LLMReply) -> Extracted:
    if not isinstance(reply.content, str):
        return NOT_APPLICABLE
    for m in _ANY_FENCE_RE.finditer(reply.content):
        parsed = _as_object(m.group(1))
        if parsed is not NOT_APPLICABLE:
            return parsed
    return NOT_APPLICABLE


def from_whole_body(reply: LLMReply) -> Extracted:
    return _as_object(reply.content)


def from_first_object(reply: LLMReply) -> Extracted:
    text = reply.content if isinstance(reply.content, str) else ""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end <= start:
        return NOT_APPLICABLE
    return _as_object(text[start : end + 1])


STRATEGIES: List[Callable[[LLMReply], Extracted]] = [
    from_tool_arguments,
    from_json_fence,
    from_any_fence,
    from_whole_body,
    from_first_object,
]


def extract_structured(
    reply: LLMReply, strategies: Optional[List[Callable[[LLMReply], Extracted]]] = None
) -> Dict[str, Any]:
    for strategy in strategies or STRATEGIES:
        result = strategy(reply)
        if result is not NOT_APPLICABLE:
            return result
    raise LLMMalformed("no structured data found in model response")
