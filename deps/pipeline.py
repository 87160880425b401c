from __future__ import annotations

from functools import lru_cache

from catalog import ChallengeCatalog, load_catalog_config
from config import get_settings
from db import SessionLocal
from evaluator import QualitativeEvaluator
from grading import GradingOrchestrator
from llm import LLMClient
from progress import SqlProgressSink
from reconciler import ReconcilePolicy
from sandbox import SandboxExecutionClient


@lru_cache(maxsize=1)
def get_catalog() -> ChallengeCatalog:
    settings = get_settings()
    return ChallengeCatalog(
        load_catalog_config(settings.catalog_dir),
        get_llm(),
        data_dir=settings.catalog_dir,
    )


@lru_cache(maxsize=1)
def get_llm() -> LLMClient:
    return LLMClient.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_sandbox() -> SandboxExecutionClient:
    return SandboxExecutionClient.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_evaluator() -> QualitativeEvaluator:
    return QualitativeEvaluator(get_llm())


@lru_cache(maxsize=1)
def get_orchestrator() -> GradingOrchestrator:
    """
    One shared orchestrator: it holds only clients and configuration, no
    per-submission state, so concurrent requests need no locking.
    """
    settings = get_settings()
    return GradingOrchestrator(
        get_catalog(),
        get_sandbox(),
        get_evaluator(),
        SqlProgressSink(SessionLocal),
        mode=settings.execution_mode,
        parallel_evaluation=settings.parallel_evaluation,
        policy=ReconcilePolicy(
            abs_tol=settings.float_abs_tol,
            rel_tol=settings.float_rel_tol,
            strict_boundaries=settings.strict_output_match,
        ),
    )


async def close_clients() -> None:
    """Close the HTTP clients built so far and forget every cached instance."""
    if get_llm.cache_info().currsize:
        await get_llm().aclose()
    if get_sandbox.cache_info().currsize:
        await get_sandbox().aclose()
    for cached in (get_orchestrator, get_evaluator, get_catalog, get_sandbox, get_llm):
        cached.cache_clear()
