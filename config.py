from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel

_BASE = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Settings(BaseModel):
    # Language-model gateway (OpenAI-compatible chat completions)
    llm_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    llm_api_key: str = ""
    llm_model: str = "google/gemini-2.5-flash"
    llm_timeout_seconds: float = 30.0

    # Piston-compatible execution sandbox
    sandbox_url: str = "https://emkc.org/api/v2/piston/execute"
    sandbox_timeout_seconds: float = 15.0
    # Empty -> unknown languages are rejected
    sandbox_fallback_language: str = ""

    catalog_dir: Path = _BASE / "data"

    execution_mode: Literal["single", "per_case"] = "single"
    parallel_evaluation: bool = False

    # Output matching policy
    strict_output_match: bool = False
    float_abs_tol: float = 1e-6
    float_rel_tol: float = 1e-9

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        catalog_dir: Optional[str] = os.getenv("CATALOG_DIR")
        return cls(
            llm_gateway_url=os.getenv("LLM_GATEWAY_URL", defaults.llm_gateway_url),
            llm_api_key=os.getenv("LLM_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", defaults.llm_model),
            llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", defaults.llm_timeout_seconds),
            sandbox_url=os.getenv("SANDBOX_URL", defaults.sandbox_url),
            sandbox_timeout_seconds=_env_float(
                "SANDBOX_TIMEOUT_SECONDS", defaults.sandbox_timeout_seconds
            ),
            sandbox_fallback_language=os.getenv("SANDBOX_FALLBACK_LANGUAGE", ""),
            catalog_dir=Path(catalog_dir) if catalog_dir else defaults.catalog_dir,
            execution_mode=os.getenv("EXECUTION_MODE", defaults.execution_mode),
            parallel_evaluation=_env_bool("PARALLEL_EVALUATION"),
            strict_output_match=_env_bool("STRICT_OUTPUT_MATCH"),
            float_abs_tol=_env_float("FLOAT_ABS_TOL", defaults.float_abs_tol),
            float_rel_tol=_env_float("FLOAT_REL_TOL", defaults.float_rel_tol),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
