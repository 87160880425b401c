# grading/schemas/grading.py
from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from schemas.challenges import Challenge, Difficulty
from schemas.execution import ExecutionResult

# ---------- Verdicts / assessment ----------


class TestVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)
    __test__ = False

    test_case: int  # 1-based ordinal
    input: Any
    expected_output: Any
    passed: bool
    actual_output: Optional[str] = None


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("score must be numeric")
    if isinstance(value, str):
        value = float(value.strip().rstrip("%"))
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError("score must be numeric")
    return max(0, min(100, int(round(value))))


class QualitativeAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    correctness: int = Field(ge=0, le=100)
    code_quality: int = Field(
        ge=0, le=100, validation_alias=AliasChoices("code_quality", "codeQuality")
    )
    time_complexity: str = Field(
        default="", validation_alias=AliasChoices("time_complexity", "timeComplexity")
    )
    space_complexity: str = Field(
        default="", validation_alias=AliasChoices("space_complexity", "spaceComplexity")
    )
    feedback: str = ""
    interview_ready: bool = Field(
        default=False, validation_alias=AliasChoices("interview_ready", "interviewReady")
    )

    @field_validator("correctness", "code_quality", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return _clamp_score(value)


class GradingResult(BaseModel):
    """Immutable once assembled; handed to the progress sink and the caller."""

    model_config = ConfigDict(frozen=True)

    challenge_id: str
    language: str
    difficulty: Difficulty
    verdicts: List[TestVerdict]
    all_passed: bool
    passed_count: int
    total: int
    assessment: Optional[QualitativeAssessment] = None
    execution: Optional[ExecutionResult] = None
    graded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def pass_percentage(self) -> int:
        return int(round(100 * self.passed_count / self.total)) if self.total else 0


# ---------- Requests / responses ----------


class _SubmissionBase(BaseModel):
    code: str
    language: str = "javascript"
    challenge: Optional[Challenge] = None
    challenge_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("challenge_id", "challengeId")
    )

    @model_validator(mode="after")
    def _needs_challenge(self):
        if self.challenge is None and not self.challenge_id:
            raise ValueError("either challenge or challenge_id is required")
        return self


class RunCodeRequest(_SubmissionBase):
    pass


class GradeRequest(_SubmissionBase):
    evaluate: bool = True


class RunCodeResponse(BaseModel):
    ok: bool
    challenge_id: str
    verdicts: List[TestVerdict]
    all_passed: bool
    output: str = ""
    stderr: str = ""
    status: str = ""
    language: str = ""
    version: str = ""


class EvaluateCodeRequest(BaseModel):
    code: str
    question: str
    language: str = "javascript"
