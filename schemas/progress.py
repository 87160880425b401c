from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProgressEntry(BaseModel):
    """What the pipeline hands to the progress sink after a graded submission."""

    activity_type: str = "coding_test"
    language: str
    difficulty: str
    score: int = Field(ge=0, le=100)
    activity_data: dict[str, Any] = Field(default_factory=dict)


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    created_at: datetime | None
    activity_type: str
    language: str | None = None
    difficulty: str | None = None
    score: int
    # usually excluded in list views
    activity_data: dict[str, Any] | None = None
