# grading/schemas/aptitude.py
from __future__ import annotations

from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schemas.challenges import Difficulty


class AptitudeQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    options: List[str] = Field(min_length=2)
    correct_answer: str = Field(validation_alias=AliasChoices("correct_answer", "correctAnswer"))
    explanation: str = ""
    category: str = ""


class AptitudeRequest(BaseModel):
    difficulty: Difficulty = Difficulty.medium
    count: int = Field(default=10, ge=1, le=50)


class AptitudeResponse(BaseModel):
    questions: List[AptitudeQuestion]
