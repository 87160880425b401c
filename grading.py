"""
Grading pipeline for one coding submission.

    FETCHING -> EXECUTING -> VERIFYING -> (EVALUATING) -> ASSEMBLED

Execution is mandatory: sandbox failures reach the caller and nothing is
recorded. The qualitative review is best-effort and simply left out when the
language model is unavailable or answers with junk. Progress is written only
for fully assembled results, so a cancelled run never leaves a record.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import List, Literal, Optional, Protocol, Tuple

from catalog import ChallengeCatalog
from errors import (
    CatalogDefinitionError,
    EmptySubmission,
    EvaluationMalformed,
    EvaluationUnavailable,
    ExecutionTimeout,
)
from evaluator import QualitativeEvaluator
from reconciler import ReconcilePolicy, verify
from sandbox import SandboxExecutionClient
from schemas.challenges import Challenge, Difficulty
from schemas.execution import ExecutionResult, ExecutionStatus
from schemas.grading import GradingResult, QualitativeAssessment, TestVerdict
from schemas.progress import ProgressEntry

logger = logging.getLogger("placement-grading.grading")

ExecutionMode = Literal["single", "per_case"]


class GradingStage(str, Enum):
    fetching = "fetching"
    executing = "executing"
    verifying = "verifying"
    evaluating = "evaluating"
    assembled = "assembled"


class ProgressSink(Protocol):
    def record(self, entry: ProgressEntry) -> None: ...


class GradingOrchestrator:
    def __init__(
        self,
        catalog: ChallengeCatalog,
        sandbox: SandboxExecutionClient,
        evaluator: Optional[QualitativeEvaluator] = None,
        sink: Optional[ProgressSink] = None,
        *,
        mode: ExecutionMode = "single",
        parallel_evaluation: bool = False,
        policy: Optional[ReconcilePolicy] = None,
    ) -> None:
        if mode not in ("single", "per_case"):
            raise ValueError(f"unknown execution mode: {mode!r}")
        self.catalog = catalog
        self._sandbox = sandbox
        self._evaluator = evaluator
        self._sink = sink
        self._mode = mode
        self._parallel = parallel_evaluation
        self._policy = policy

    async def fetch(self, difficulty: Difficulty | str) -> Challenge:
        _log_stage("-", GradingStage.fetching)
        return await self.catalog.get_challenge(difficulty)

    async def run_tests(
        self, challenge: Challenge, code: str, language: str
    ) -> Tuple[ExecutionResult, List[TestVerdict]]:
        """Execute and verify only; no review and no progress record."""
        _require_code(code)
        results = await self._execute(challenge, code, language)
        return _merge(results), self._verify(challenge, results)

    async def grade(
        self, challenge: Challenge, code: str, language: str, *, evaluate: bool = True
    ) -> GradingResult:
        _require_code(code)

        review: Optional[asyncio.Task] = None
        if evaluate and self._evaluator is not None and self._parallel:
            review = asyncio.create_task(self._evaluate(challenge, code, language))

        try:
            results = await self._execute(challenge, code, language)
        except BaseException:
            if review is not None:
                review.cancel()
            raise

        verdicts = self._verify(challenge, results)

        assessment: Optional[QualitativeAssessment] = None
        if review is not None:
            assessment = await review
        elif evaluate and self._evaluator is not None:
            assessment = await self._evaluate(challenge, code, language)

        passed = sum(1 for v in verdicts if v.passed)
        result = GradingResult(
            challenge_id=challenge.id,
            language=language,
            difficulty=challenge.difficulty,
            verdicts=verdicts,
            all_passed=passed == len(verdicts),
            passed_count=passed,
            total=len(verdicts),
            assessment=assessment,
            execution=_merge(results),
        )
        _log_stage(challenge.id, GradingStage.assembled)
        logger.info(
            "graded %s (%s): %d/%d passed, review=%s",
            challenge.id,
            language,
            passed,
            len(verdicts),
            "yes" if assessment else "no",
        )

        await self._record(challenge, result)
        return result

    # --- Stages -------------------------------------------------------------------

    async def _execute(self, challenge: Challenge, code: str, language: str) -> List[ExecutionResult]:
        _log_stage(challenge.id, GradingStage.executing)
        if self._mode == "single":
            results = [await self._sandbox.execute(code, language)]
        else:
            results = []
            for case in challenge.test_cases:
                results.append(await self._sandbox.execute(code, language, stdin=json.dumps(case.input)))

        if any(r.status == ExecutionStatus.timeout for r in results):
            raise ExecutionTimeout("your code did not finish within the time limit")
        return results

    def _verify(self, challenge: Challenge, results: List[ExecutionResult]) -> List[TestVerdict]:
        _log_stage(challenge.id, GradingStage.verifying)
        if not challenge.test_cases:
            raise CatalogDefinitionError(f"challenge {challenge.id} has no test cases")
        verdicts: List[TestVerdict] = []
        for idx, case in enumerate(challenge.test_cases):
            # single mode: one run is checked against every case
            out = results[idx if len(results) > 1 else 0].stdout
            verdicts.append(
                TestVerdict(
                    test_case=idx + 1,
                    input=case.input,
                    expected_output=case.output,
                    passed=verify(out, case.expected, self._policy),
                    actual_output=out.strip(),
                )
            )
        return verdicts

    async def _evaluate(self, challenge: Challenge, code: str, language: str) -> Optional[QualitativeAssessment]:
        _log_stage(challenge.id, GradingStage.evaluating)
        try:
            return await self._evaluator.evaluate(code, challenge.statement, language)
        except (EvaluationUnavailable, EvaluationMalformed) as exc:
            logger.warning("skipping code review for %s: %s", challenge.id, exc)
            return None

    async def _record(self, challenge: Challenge, result: GradingResult) -> None:
        if self._sink is None:
            return
        score = result.assessment.correctness if result.assessment else result.pass_percentage
        entry = ProgressEntry(
            activity_type="coding_test",
            language=result.language,
            difficulty=result.difficulty.value,
            score=score,
            activity_data={
                "question": challenge.title,
                "challenge_id": challenge.id,
                "passed": result.passed_count,
                "total": result.total,
                "reviewed": result.assessment is not None,
            },
        )
        try:
            await asyncio.to_thread(self._sink.record, entry)
        except Exception:
            # recording is fire-and-forget; the grade stands
            logger.exception("failed to record progress for %s", challenge.id)


def _require_code(code: str) -> None:
    if not code or not code.strip():
        raise EmptySubmission()


def _merge(results: List[ExecutionResult]) -> ExecutionResult:
    if len(results) == 1:
        return results[0]
    worst = next((r for r in results if r.status != ExecutionStatus.success), results[-1])
    return ExecutionResult(
        stdout="\n".join(r.stdout for r in results),
        stderr="\n".join(r.stderr for r in results if r.stderr),
        language=results[0].language,
        version=results[0].version,
        status=worst.status,
        exit_code=worst.exit_code,
    )


def _log_stage(challenge_id: str, stage: GradingStage) -> None:
    logger.debug("%s -> %s", challenge_id, stage.value)
