import asyncio
import json
import random
from pathlib import Path

import httpx
import pytest

from catalog import ChallengeCatalog, load_catalog_config
from errors import CatalogDefinitionError
from llm import LLMClient
from schemas.challenges import Difficulty
from tests.fakes import tiny_config

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

GENERATED = {
    "title": "Sum of Digits",
    "description": "Return the sum of the digits of n.",
    "examples": [{"input": "n = 123", "output": "6", "explanation": "1 + 2 + 3"}],
    "testCases": [{"input": {"n": 123}, "output": 6}, {"input": {"n": 9}, "output": 9}],
    "timeComplexity": "O(log n)",
    "spaceComplexity": "O(1)",
}


def _llm(handler) -> LLMClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMClient("https://gateway.test/chat", "secret", "m", client=http_client)


def _tool_reply(arguments: dict):
    call = {"function": {"name": "x", "arguments": json.dumps(arguments)}}
    return lambda request: httpx.Response(200, json={"choices": [{"message": {"tool_calls": [call]}}]})


def test_shipped_catalog_has_two_challenges_per_tier():
    cfg = load_catalog_config(DATA_DIR)
    for tier in Difficulty:
        assert len(cfg.coding[tier]) >= 2
        assert all(c.test_cases for c in cfg.coding[tier])
        assert len(cfg.aptitude[tier]) >= 2


def test_fallback_without_language_model_is_deterministic():
    picks = [
        asyncio.run(ChallengeCatalog(tiny_config(), rng=random.Random(7)).get_challenge("medium")).id
        for _ in range(3)
    ]
    assert len(set(picks)) == 1
    assert picks[0] in {"medium-a", "medium-b"}


@pytest.mark.parametrize("status", [429, 402, 500])
def test_generation_failure_falls_back_to_static(status):
    catalog = ChallengeCatalog(
        tiny_config(), _llm(lambda request: httpx.Response(status)), rng=random.Random(1)
    )
    challenge = asyncio.run(catalog.get_challenge(Difficulty.medium))
    assert challenge.difficulty == Difficulty.medium
    assert len(challenge.test_cases) >= 1
    assert challenge.id.startswith("medium-")


def test_generated_challenge_is_used_when_valid():
    catalog = ChallengeCatalog(tiny_config(), _llm(_tool_reply(GENERATED)))
    challenge = asyncio.run(catalog.get_challenge("hard"))
    assert challenge.title == "Sum of Digits"
    assert challenge.difficulty == Difficulty.hard
    assert challenge.id.startswith("gen-")
    assert [tc.output for tc in challenge.test_cases] == [6, 9]


def test_generated_challenge_without_tests_falls_back():
    catalog = ChallengeCatalog(tiny_config(), _llm(_tool_reply({**GENERATED, "testCases": []})))
    assert asyncio.run(catalog.get_challenge("easy")).id == "easy-a"


def test_generated_challenge_with_object_outputs_falls_back():
    bad = {**GENERATED, "testCases": [{"input": {"n": 1}, "output": {"sum": 1}}]}
    catalog = ChallengeCatalog(tiny_config(), _llm(_tool_reply(bad)))
    assert asyncio.run(catalog.get_challenge("easy")).id == "easy-a"


def test_missing_tier_uses_medium():
    catalog = ChallengeCatalog(tiny_config(), rng=random.Random(0))
    assert asyncio.run(catalog.get_challenge("hard")).difficulty == Difficulty.medium
    assert asyncio.run(catalog.get_challenge("impossible")).difficulty == Difficulty.medium


def test_aptitude_fallback_cycles_by_index():
    catalog = ChallengeCatalog(tiny_config())
    questions = asyncio.run(catalog.get_aptitude_questions("medium", 5))
    assert [q.question for q in questions] == ["1 + 1?", "2 + 2?", "1 + 1?", "2 + 2?", "1 + 1?"]


def test_aptitude_generation():
    generated = {
        "questions": [
            {
                "question": "Odd one out: 3, 5, 7, 9",
                "options": ["A: 3", "B: 5", "C: 7", "D: 9"],
                "correctAnswer": "D",
                "explanation": "9 is not prime",
                "category": "Logical Reasoning",
            }
        ]
    }
    catalog = ChallengeCatalog(tiny_config(), _llm(_tool_reply(generated)))
    questions = asyncio.run(catalog.get_aptitude_questions("easy", 1))
    assert questions[0].correct_answer == "D"


def test_get_static_by_id():
    catalog = ChallengeCatalog(tiny_config())
    assert catalog.get_static("medium-b").title == "Fixture medium-b"
    assert catalog.get_static("nope") is None


def test_bad_test_case_in_data_dir_is_a_definition_error(tmp_path):
    (tmp_path / "challenges").mkdir()
    (tmp_path / "challenges" / "easy.json").write_text(
        json.dumps(
            [
                {
                    "id": "broken",
                    "title": "Broken",
                    "difficulty": "easy",
                    "description": "x",
                    "testCases": [{"input": {"n": 1}, "output": None}],
                }
            ]
        )
    )
    with pytest.raises(CatalogDefinitionError):
        load_catalog_config(tmp_path)


def test_jsonl_rows_and_comments_are_loaded(tmp_path):
    (tmp_path / "challenges").mkdir()
    row = {
        "id": "one",
        "title": "One",
        "difficulty": "easy",
        "description": "Print 1",
        "testCases": [{"input": {}, "output": 1}],
    }
    (tmp_path / "challenges" / "extra.jsonl").write_text(
        "# hand-written fixtures\n" + json.dumps(row) + "\n{broken\n"
    )
    cfg = load_catalog_config(tmp_path)
    assert [c.id for c in cfg.coding[Difficulty.easy]] == ["one"]


def test_empty_catalog_is_a_definition_error():
    from catalog import CatalogConfig

    with pytest.raises(CatalogDefinitionError):
        asyncio.run(ChallengeCatalog(CatalogConfig()).get_challenge("easy"))


def test_reload_rereads_data_dir(tmp_path):
    (tmp_path / "challenges").mkdir()
    catalog = ChallengeCatalog(load_catalog_config(tmp_path), data_dir=tmp_path)
    assert catalog.reload() == 0
    (tmp_path / "challenges" / "easy.json").write_text(
        json.dumps([{"title": "T", "difficulty": "easy", "description": "d", "testCases": [{"output": 1}]}])
    )
    assert catalog.reload() == 1


@pytest.mark.parametrize("questions", [5, "three", {"question": "x"}])
def test_aptitude_generation_with_wrong_shape_falls_back(questions):
    catalog = ChallengeCatalog(tiny_config(), _llm(_tool_reply({"questions": questions})))
    result = asyncio.run(catalog.get_aptitude_questions("medium", 3))
    assert [q.question for q in result] == ["1 + 1?", "2 + 2?", "1 + 1?"]


def test_null_message_falls_back_to_static():
    reply = lambda request: httpx.Response(200, json={"choices": [{"message": None}]})
    catalog = ChallengeCatalog(tiny_config(), _llm(reply))
    assert asyncio.run(catalog.get_challenge("easy")).id == "easy-a"


def test_content_parts_without_text_fall_back_to_static():
    message = {"content": [{"type": "text"}, {"type": "image_url"}]}
    reply = lambda request: httpx.Response(200, json={"choices": [{"message": message}]})
    catalog = ChallengeCatalog(tiny_config(), _llm(reply))
    assert asyncio.run(catalog.get_challenge("easy")).id == "easy-a"


def test_object_json_file_is_skipped_with_warning(tmp_path, caplog):
    (tmp_path / "challenges").mkdir()
    (tmp_path / "challenges" / "easy.json").write_text(json.dumps({"title": "not a list"}))
    with caplog.at_level("WARNING", logger="placement-grading.catalog"):
        cfg = load_catalog_config(tmp_path)
    assert cfg.challenge_count() == 0
    assert any("top level is not a list" in r.getMessage() for r in caplog.records)
