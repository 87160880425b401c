"""In-memory stand-ins for the sandbox, the reviewer and the progress store."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence

from catalog import CatalogConfig
from errors import EvaluationMalformed
from schemas.aptitude import AptitudeQuestion
from schemas.challenges import Challenge, Difficulty
from schemas.execution import ExecutionResult, ExecutionStatus
from schemas.grading import QualitativeAssessment
from schemas.progress import ProgressEntry


def make_challenge(
    *expected: Any, difficulty: Difficulty = Difficulty.easy, challenge_id: str = "fixture"
) -> Challenge:
    return Challenge(
        id=challenge_id,
        title=f"Fixture {challenge_id}",
        difficulty=difficulty,
        description="Return the answer for n.",
        test_cases=[{"input": {"n": i}, "output": out} for i, out in enumerate(expected)],
        time_complexity="O(1)",
        space_complexity="O(1)",
    )


def tiny_config() -> CatalogConfig:
    return CatalogConfig(
        coding={
            Difficulty.easy: [make_challenge(1, challenge_id="easy-a")],
            Difficulty.medium: [
                make_challenge([0, 1], difficulty=Difficulty.medium, challenge_id="medium-a"),
                make_challenge(True, difficulty=Difficulty.medium, challenge_id="medium-b"),
            ],
        },
        aptitude={
            Difficulty.medium: [
                AptitudeQuestion(question="1 + 1?", options=["A: 1", "B: 2"], correct_answer="B"),
                AptitudeQuestion(question="2 + 2?", options=["A: 4", "B: 5"], correct_answer="A"),
            ]
        },
    )


class FakeSandbox:
    def __init__(
        self,
        stdout: str = "",
        *,
        status: ExecutionStatus = ExecutionStatus.success,
        outputs: Optional[Sequence[str]] = None,
        error: Optional[Exception] = None,
        block: bool = False,
    ) -> None:
        self.stdout = stdout
        self.status = status
        self.outputs = list(outputs) if outputs is not None else None
        self.error = error
        self.block = block
        self.calls: List[tuple[str, str, str]] = []

    async def execute(self, code: str, language: str, stdin: str = "") -> ExecutionResult:
        self.calls.append((code, language, stdin))
        if self.block:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        out = self.outputs[len(self.calls) - 1] if self.outputs is not None else self.stdout
        return ExecutionResult(stdout=out, language=language, version="1.0.0", status=self.status)


class FakeEvaluator:
    def __init__(self, assessment: Optional[QualitativeAssessment] = None, error: Optional[Exception] = None):
        self.assessment = assessment
        self.error = error
        self.calls = 0

    async def evaluate(self, code: str, problem_statement: str, language: str) -> QualitativeAssessment:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.assessment is None:
            raise EvaluationMalformed("no assessment configured")
        return self.assessment


class ListSink:
    def __init__(self, fail: bool = False) -> None:
        self.entries: List[ProgressEntry] = []
        self.fail = fail

    def record(self, entry: ProgressEntry) -> None:
        if self.fail:
            raise RuntimeError("progress store is down")
        self.entries.append(entry)


def good_review(correctness: int = 90) -> QualitativeAssessment:
    return QualitativeAssessment(
        correctness=correctness,
        code_quality=80,
        time_complexity="O(n)",
        space_complexity="O(1)",
        feedback="Clean and idiomatic.",
        interview_ready=True,
    )
