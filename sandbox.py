"""
Protocol adapter for a Piston-compatible code execution service.

A compile error or a crash in the submitted program is not a client failure:
it comes back inside ``ExecutionResult`` as a status plus stderr. Only an
unreachable sandbox, or one answering with a non-success HTTP status, raises
``ExecutionUnavailable``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config import Settings
from errors import ExecutionUnavailable, UnsupportedLanguage
from schemas.execution import ExecutionResult, ExecutionStatus

logger = logging.getLogger("placement-grading.sandbox")


@dataclass(frozen=True)
class RuntimeSpec:
    runtime: str
    file_name: str


# internal language id -> sandbox runtime + source file naming convention
LANGUAGES: Dict[str, RuntimeSpec] = {
    "javascript": RuntimeSpec("javascript", "index.js"),
    "typescript": RuntimeSpec("typescript", "index.ts"),
    "python": RuntimeSpec("python", "main.py"),
    "java": RuntimeSpec("java", "Main.java"),
    "cpp": RuntimeSpec("c++", "main.cpp"),
    "c": RuntimeSpec("c", "main.c"),
}

_REJECTED_STATUSES = {"OL", "EL", "XX"}


class SandboxExecutionClient:
    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
        fallback_language: str = "",
    ) -> None:
        self._url = url
        self._fallback = fallback_language.strip().lower()
        if self._fallback and self._fallback not in LANGUAGES:
            raise ValueError(f"fallback language {fallback_language!r} is not in the runtime table")
        if client is None:
            self._client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "SandboxExecutionClient":
        return cls(
            settings.sandbox_url,
            timeout=settings.sandbox_timeout_seconds,
            fallback_language=settings.sandbox_fallback_language,
        )

    def resolve(self, language: str) -> RuntimeSpec:
        key = (language or "").strip().lower()
        if key in LANGUAGES:
            return LANGUAGES[key]
        if self._fallback:
            logger.warning("unknown language %r, running as %s", language, self._fallback)
            return LANGUAGES[self._fallback]
        raise UnsupportedLanguage(language)

    async def execute(self, code: str, language: str, stdin: str = "") -> ExecutionResult:
        rt = self.resolve(language)
        payload: Dict[str, Any] = {
            "language": rt.runtime,
            "version": "*",
            "files": [{"name": rt.file_name, "content": code}],
        }
        if stdin:
            payload["stdin"] = stdin

        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.TimeoutException:
            logger.warning("sandbox call timed out (%s)", rt.runtime)
            return ExecutionResult(language=rt.runtime, status=ExecutionStatus.timeout)
        except httpx.HTTPError as exc:
            raise ExecutionUnavailable(f"sandbox unreachable: {exc}") from exc

        if response.is_error:
            logger.error("sandbox error %s: %s", response.status_code, response.text[:500])
            raise ExecutionUnavailable(f"sandbox returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ExecutionUnavailable("sandbox returned a non-JSON payload") from exc
        if not isinstance(data, dict):
            raise ExecutionUnavailable("sandbox returned an unexpected payload")
        return _to_result(data, rt)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _to_result(data: Dict[str, Any], rt: RuntimeSpec) -> ExecutionResult:
    run = data.get("run") or {}
    compile_stage = data.get("compile") or {}
    if not isinstance(run, dict) or not isinstance(compile_stage, dict):
        raise ExecutionUnavailable("sandbox returned an unexpected payload")
    language = str(data.get("language") or rt.runtime)
    version = str(data.get("version") or "")

    if compile_stage and _failed(compile_stage):
        return ExecutionResult(
            stdout=_text(compile_stage.get("stdout")),
            stderr=_text(compile_stage.get("stderr")) or _text(compile_stage.get("output")),
            language=language,
            version=version,
            status=ExecutionStatus.compile_error,
            exit_code=_code(compile_stage.get("code")),
        )

    stdout = run.get("stdout")
    stdout = _text(stdout) if stdout is not None else _text(run.get("output"))
    return ExecutionResult(
        stdout=stdout,
        stderr=_text(run.get("stderr")),
        language=language,
        version=version,
        status=_run_status(run),
        exit_code=_code(run.get("code")),
    )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _code(value: Any) -> Optional[int]:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _failed(stage: Dict[str, Any]) -> bool:
    return stage.get("code") not in (0, None) or bool(stage.get("signal")) or bool(stage.get("status"))


def _run_status(run: Dict[str, Any]) -> ExecutionStatus:
    status: Optional[str] = run.get("status")
    if status == "TO":
        return ExecutionStatus.timeout
    if status in _REJECTED_STATUSES:
        return ExecutionStatus.rejected
    # older sandboxes only report the kill signal at the time limit
    if status is None and run.get("signal") == "SIGKILL" and run.get("code") is None:
        return ExecutionStatus.timeout
    if status or run.get("signal") or run.get("code") not in (0, None):
        return ExecutionStatus.runtime_error
    return ExecutionStatus.success
