from __future__ import annotations

import logging
from typing import NoReturn, Union

from fastapi import APIRouter, Depends, HTTPException

from deps.pipeline import get_evaluator, get_orchestrator
from errors import (
    EmptySubmission,
    EvaluationMalformed,
    EvaluationUnavailable,
    ExecutionTimeout,
    ExecutionUnavailable,
    UnsupportedLanguage,
)
from evaluator import QualitativeEvaluator
from grading import GradingOrchestrator
from schemas.challenges import Challenge
from schemas.grading import (
    EvaluateCodeRequest,
    GradeRequest,
    GradingResult,
    QualitativeAssessment,
    RunCodeRequest,
    RunCodeResponse,
)

logger = logging.getLogger("placement-grading.api")

router = APIRouter(tags=["coding"])

EXECUTION_FAILED_MSG = "Could not run your code, try again."
EXECUTION_TIMEOUT_MSG = "Your code took too long to run, try again."
REVIEW_UNAVAILABLE_MSG = "Code review is unavailable right now, try again later."


def _resolve_challenge(
    req: Union[RunCodeRequest, GradeRequest], orchestrator: GradingOrchestrator
) -> Challenge:
    if req.challenge is not None:
        return req.challenge
    c = orchestrator.catalog.get_static(req.challenge_id)
    if not c:
        raise HTTPException(status_code=404, detail="challenge not found")
    return c


def _raise_for(exc: Exception) -> NoReturn:
    # never a partial score: a failed execution is reported as a failed run
    if isinstance(exc, (EmptySubmission, UnsupportedLanguage)):
        raise HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ExecutionTimeout):
        raise HTTPException(status_code=504, detail=EXECUTION_TIMEOUT_MSG)
    logger.error("execution failed: %s", exc)
    raise HTTPException(status_code=502, detail=EXECUTION_FAILED_MSG)


@router.post("/run-code", response_model=RunCodeResponse)
async def run_code(req: RunCodeRequest, orchestrator: GradingOrchestrator = Depends(get_orchestrator)):
    challenge = _resolve_challenge(req, orchestrator)
    try:
        execution, verdicts = await orchestrator.run_tests(challenge, req.code, req.language)
    except (EmptySubmission, UnsupportedLanguage, ExecutionUnavailable) as e:
        _raise_for(e)

    return {
        "ok": True,
        "challenge_id": challenge.id,
        "verdicts": verdicts,
        "all_passed": all(v.passed for v in verdicts),
        "output": execution.stdout,
        "stderr": execution.stderr,
        "status": execution.status.value,
        "language": execution.language,
        "version": execution.version,
    }


@router.post("/grade", response_model=GradingResult)
async def grade(req: GradeRequest, orchestrator: GradingOrchestrator = Depends(get_orchestrator)):
    challenge = _resolve_challenge(req, orchestrator)
    try:
        return await orchestrator.grade(challenge, req.code, req.language, evaluate=req.evaluate)
    except (EmptySubmission, UnsupportedLanguage, ExecutionUnavailable) as e:
        _raise_for(e)


@router.post("/evaluate-code", response_model=QualitativeAssessment)
async def evaluate_code(
    req: EvaluateCodeRequest, evaluator: QualitativeEvaluator = Depends(get_evaluator)
):
    if not req.code.strip():
        raise HTTPException(status_code=400, detail=str(EmptySubmission()))
    try:
        return await evaluator.evaluate(req.code, req.question, req.language)
    except (EvaluationUnavailable, EvaluationMalformed) as e:
        logger.warning("code review failed: %s", e)
        raise HTTPException(status_code=503, detail=REVIEW_UNAVAILABLE_MSG)
