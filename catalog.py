# grading/catalog.py

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from errors import CatalogDefinitionError, CatalogUnavailable
from llm import LLMClient, LLMMalformed, LLMRateLimited, LLMUnavailable, ToolSchema
from schemas.aptitude import AptitudeQuestion
from schemas.challenges import Challenge, Difficulty

logger = logging.getLogger("placement-grading.catalog")


class CatalogConfig(BaseModel):
    """Static fallback sets, keyed by difficulty tier."""

    coding: Dict[Difficulty, List[Challenge]] = Field(default_factory=dict)
    aptitude: Dict[Difficulty, List[AptitudeQuestion]] = Field(default_factory=dict)

    def challenge_count(self) -> int:
        return sum(len(v) for v in self.coding.values())


# --- Loading from the data directory ----------------------------------------------


def _iter_jsonl(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        for idx, line in enumerate(f, 1):
            s = line.strip()
            if not s or s.startswith("#") or s.startswith("//"):
                continue
            try:
                yield json.loads(s)
            except json.JSONDecodeError:
                logger.warning("skipping malformed row %s:%d", p.name, idx)


def _iter_json(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("skipping unreadable catalog file %s", p.name)
            return
    if not isinstance(data, list):
        logger.warning("skipping catalog file %s: top level is not a list", p.name)
        return
    yield from data


def _iter_records(directory: Path) -> Iterable[tuple[Path, Dict[str, Any]]]:
    if not directory.exists():
        return
    for p in sorted(directory.rglob("*")):
        if not p.is_file():
            continue
        suf = p.suffix.lower()
        if suf == ".jsonl":
            source = _iter_jsonl(p)
        elif suf == ".json":
            source = _iter_json(p)
        else:
            continue
        for raw in source:
            if isinstance(raw, dict):
                yield p, raw


def load_catalog_config(data_dir: Path) -> CatalogConfig:
    coding: Dict[Difficulty, List[Challenge]] = {}
    for p, raw in _iter_records(data_dir / "challenges"):
        try:
            challenge = Challenge.model_validate(raw)
        except ValidationError as exc:
            # a challenge we cannot grade is a catalog bug, not something to paper over
            raise CatalogDefinitionError(
                f"invalid challenge {raw.get('id') or raw.get('title')!r} in {p.name}: {exc}"
            ) from exc
        coding.setdefault(challenge.difficulty, []).append(challenge)

    aptitude: Dict[Difficulty, List[AptitudeQuestion]] = {}
    for p, raw in _iter_records(data_dir / "aptitude"):
        try:
            tier = Difficulty(raw.get("difficulty") or p.stem)
            question = AptitudeQuestion.model_validate(raw)
        except (ValueError, ValidationError):
            logger.warning("skipping invalid aptitude question in %s", p.name)
            continue
        aptitude.setdefault(tier, []).append(question)

    for tier in Difficulty:
        if len(coding.get(tier, [])) < 2:
            logger.warning("static catalog has fewer than two %s challenges", tier.value)
    return CatalogConfig(coding=coding, aptitude=aptitude)


# --- Generation schemas -----------------------------------------------------------

CODING_CHALLENGE_TOOL = ToolSchema(
    name="generate_coding_challenge",
    description="Generate one coding interview problem with hidden test cases",
    parameters={
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "description": {"type": "string"},
            "examples": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "input": {"type": "string"},
                        "output": {"type": "string"},
                        "explanation": {"type": "string"},
                    },
                    "required": ["input", "output", "explanation"],
                },
            },
            "testCases": {
                "type": "array",
                "minItems": 1,
                "items": {
                    "type": "object",
                    "properties": {
                        "input": {"type": "object"},
                        "output": {"description": "number, boolean, string or array"},
                    },
                    "required": ["input", "output"],
                },
            },
            "timeComplexity": {"type": "string"},
            "spaceComplexity": {"type": "string"},
        },
        "required": ["title", "description", "examples", "testCases", "timeComplexity", "spaceComplexity"],
    },
)

APTITUDE_TOOL = ToolSchema(
    name="generate_aptitude_questions",
    description="Generate aptitude test questions",
    parameters={
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {"type": "string"},
                        "options": {"type": "array", "items": {"type": "string"}},
                        "correctAnswer": {"type": "string"},
                        "explanation": {"type": "string"},
                        "category": {"type": "string"},
                    },
                    "required": ["question", "options", "correctAnswer", "explanation", "category"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["questions"],
        "additionalProperties": False,
    },
)


# --- Catalog ----------------------------------------------------------------------


class ChallengeCatalog:
    """
    Supplies coding challenges and aptitude questions.

    Generation through the language model is tried first; any failure falls
    back to the static sets in ``CatalogConfig``. Callers never see a
    generation failure.
    """

    def __init__(
        self,
        config: CatalogConfig,
        llm: Optional[LLMClient] = None,
        *,
        rng: Optional[random.Random] = None,
        data_dir: Optional[Path] = None,
    ) -> None:
        self._config = config
        self._llm = llm
        self._rng = rng or random.Random()
        self._data_dir = data_dir

    @property
    def config(self) -> CatalogConfig:
        return self._config

    # Coding challenges

    async def get_challenge(self, difficulty: Difficulty | str) -> Challenge:
        tier = _coerce(difficulty)
        try:
            return await self._generate_challenge(tier)
        except CatalogUnavailable as exc:
            logger.info("using static %s challenge: %s", tier.value, exc)
        return self.static_challenge(tier)

    def static_challenge(self, difficulty: Difficulty) -> Challenge:
        return self._rng.choice(_tier(self._config.coding, difficulty, "coding"))

    def get_static(self, challenge_id: str) -> Optional[Challenge]:
        for challenges in self._config.coding.values():
            for c in challenges:
                if c.id == challenge_id:
                    return c
        return None

    async def _generate_challenge(self, tier: Difficulty) -> Challenge:
        messages = [
            {
                "role": "system",
                "content": (
                    "You write coding interview problems for placement preparation. Test case "
                    "inputs are objects of named parameters; outputs are numbers, booleans, "
                    "strings or (nested) arrays of those."
                ),
            },
            {
                "role": "user",
                "content": f"Generate one {tier.value} difficulty problem with at least three test cases.",
            },
        ]
        data = await self._structured(messages, CODING_CHALLENGE_TOOL)
        data.pop("id", None)
        try:
            return Challenge.model_validate({**data, "difficulty": tier})
        except ValidationError as exc:
            raise CatalogUnavailable(f"generated challenge rejected: {exc.error_count()} errors") from exc

    # Aptitude questions

    async def get_aptitude_questions(self, difficulty: Difficulty | str, count: int) -> List[AptitudeQuestion]:
        tier = _coerce(difficulty)
        messages = [
            {
                "role": "system",
                "content": "You are an aptitude test generator for placement preparation. Generate multiple-choice questions.",
            },
            {
                "role": "user",
                "content": (
                    f"Generate {count} {tier.value} difficulty aptitude questions covering Logical "
                    "Reasoning, Quantitative Aptitude, Verbal Ability, and Data Interpretation."
                ),
            },
        ]
        try:
            data = await self._structured(messages, APTITUDE_TOOL)
            raw = data.get("questions")
            if not isinstance(raw, list):
                raise CatalogUnavailable("generated questions are not a list")
            questions = [AptitudeQuestion.model_validate(q) for q in raw]
            if not questions:
                raise CatalogUnavailable("no questions generated")
            return questions
        except (CatalogUnavailable, ValidationError) as exc:
            logger.info("using static %s aptitude questions: %s", tier.value, exc)
        return self.static_aptitude(tier, count)

    def static_aptitude(self, difficulty: Difficulty, count: int) -> List[AptitudeQuestion]:
        """Cycle the tier by index so any count can be served; duplicates are expected."""
        pool = _tier(self._config.aptitude, difficulty, "aptitude")
        return [pool[i % len(pool)] for i in range(count)]

    # Admin

    def reload(self) -> int:
        if self._data_dir is None:
            return self._config.challenge_count()
        self._config = load_catalog_config(self._data_dir)
        return self._config.challenge_count()

    async def _structured(self, messages: List[Dict[str, str]], tool: ToolSchema) -> Dict[str, Any]:
        if self._llm is None or not self._llm.configured:
            raise CatalogUnavailable("language model not configured")
        try:
            return await self._llm.structured(messages, tool)
        except LLMRateLimited as exc:
            raise CatalogUnavailable("rate limited or out of credits") from exc
        except (LLMUnavailable, LLMMalformed) as exc:
            raise CatalogUnavailable(str(exc)) from exc


def _coerce(difficulty: Difficulty | str) -> Difficulty:
    if isinstance(difficulty, Difficulty):
        return difficulty
    try:
        return Difficulty(difficulty)
    except ValueError:
        return Difficulty.medium


def _tier(pool: Dict[Difficulty, List[Any]], difficulty: Difficulty, kind: str) -> List[Any]:
    entries = pool.get(difficulty) or pool.get(Difficulty.medium)
    if not entries:
        raise CatalogDefinitionError(f"static {kind} catalog has no {difficulty.value} entries")
    return entries
