# grading/schemas/challenges.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from values import Value, to_value


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


_RANK = {Difficulty.easy: 0, Difficulty.medium: 1, Difficulty.hard: 2}


class Example(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: str
    output: str
    explanation: str = ""


class TestCase(BaseModel):
    """
    One hidden test: named input parameters and the expected output.
    Both must fit the closed value model (numbers, booleans, strings, arrays).
    """

    model_config = ConfigDict(frozen=True)
    __test__ = False  # not a pytest class

    input: Dict[str, Any] = Field(default_factory=dict)
    output: Any

    @field_validator("input")
    @classmethod
    def _check_input(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        for param in value.values():
            to_value(param)
        return value

    @field_validator("output")
    @classmethod
    def _check_output(cls, value: Any) -> Any:
        to_value(value)
        return value

    @property
    def expected(self) -> Value:
        return to_value(self.output)


class Challenge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"gen-{uuid4().hex[:12]}")
    title: str
    difficulty: Difficulty
    description: str
    examples: List[Example] = Field(default_factory=list)
    test_cases: List[TestCase] = Field(
        min_length=1, validation_alias=AliasChoices("test_cases", "testCases")
    )
    time_complexity: str = Field(
        default="", validation_alias=AliasChoices("time_complexity", "timeComplexity")
    )
    space_complexity: str = Field(
        default="", validation_alias=AliasChoices("space_complexity", "spaceComplexity")
    )

    @property
    def statement(self) -> str:
        return self.description


class ChallengeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    difficulty: Difficulty


class ChallengeRequest(BaseModel):
    difficulty: Difficulty = Difficulty.medium
