# grading/schemas/execution.py
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ExecutionStatus(str, Enum):
    success = "success"
    runtime_error = "runtime_error"
    compile_error = "compile_error"
    timeout = "timeout"
    rejected = "rejected"


class ExecutionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    stdout: str = ""
    stderr: str = ""
    # what the sandbox actually resolved, e.g. "python" / "3.10.0"
    language: str = ""
    version: str = ""
    status: ExecutionStatus = ExecutionStatus.success
    exit_code: Optional[int] = None
