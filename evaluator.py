from __future__ import annotations

import logging

from pydantic import ValidationError

from errors import EvaluationMalformed, EvaluationUnavailable
from llm import LLMClient, LLMMalformed, LLMRateLimited, LLMUnavailable, ToolSchema
from schemas.grading import QualitativeAssessment

logger = logging.getLogger("placement-grading.evaluator")

_SYSTEM_PROMPT = (
    "You are a senior software engineer reviewing a candidate's solution in a placement "
    "interview. Judge correctness against the problem, code quality and readability, and "
    "infer the time and space complexity of the code as written. Be concise and concrete."
)

EVALUATE_CODE_TOOL = ToolSchema(
    name="evaluate_code",
    description="Return a structured review of the submitted solution",
    parameters={
        "type": "object",
        "properties": {
            "correctness": {"type": "number", "description": "0-100 confidence the code is correct"},
            "codeQuality": {"type": "number", "description": "0-100 code quality score"},
            "timeComplexity": {"type": "string"},
            "spaceComplexity": {"type": "string"},
            "feedback": {"type": "string"},
            "interviewReady": {
                "type": "boolean",
                "description": "Would this pass a live technical interview",
            },
        },
        "required": [
            "correctness",
            "codeQuality",
            "timeComplexity",
            "spaceComplexity",
            "feedback",
            "interviewReady",
        ],
        "additionalProperties": False,
    },
)


class QualitativeEvaluator:
    """
    Asks the language model for a review of the code. One attempt only:
    the orchestrator treats this stage as optional, so failures surface
    immediately as EvaluationUnavailable / EvaluationMalformed.
    """

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def evaluate(self, code: str, problem_statement: str, language: str) -> QualitativeAssessment:
        messages = [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Problem:\n{problem_statement}\n\n"
                    f"Language: {language}\n\n"
                    f"Solution:\n```{language}\n{code}\n```"
                ),
            },
        ]
        try:
            data = await self._llm.structured(messages, EVALUATE_CODE_TOOL)
        except LLMRateLimited as exc:
            raise EvaluationUnavailable("code review is rate limited, try again later") from exc
        except LLMUnavailable as exc:
            raise EvaluationUnavailable(str(exc)) from exc
        except LLMMalformed as exc:
            raise EvaluationMalformed(str(exc)) from exc

        try:
            return QualitativeAssessment.model_validate(data)
        except ValidationError as exc:
            logger.warning("discarding malformed code review: %s", exc.errors()[:3])
            raise EvaluationMalformed("code review did not match the expected shape") from exc
