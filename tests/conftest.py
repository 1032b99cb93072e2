import copy
import json
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# This repo uses a src/ layout; make it importable without an editable install.
repo_root = Path(__file__).resolve().parents[1]
src_path = str(repo_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

API_KEY_ENVS = (
    "ANTHROPIC_API_KEY",
    "DEEPSEEK_API_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
)

VALID_QUIZ = {
    "questions": [
        {
            "stem": "What is $2 + 2$?",
            "options": ["2", "4", "6", "8"],
            "correct_answer": "4",
            "explanation": "Basic addition: 2+2=4",
            "marks": 1,
        },
        {
            "stem": "Solve $x^2 = 9$",
            "options": ["x=3", "x=±3", "x=9", "x=0"],
            "correct_answer": "x=±3",
            "explanation": "Square root of 9 is ±3",
            "marks": 2,
        },
    ]
}


@pytest.fixture(autouse=True)
def isolated_llm_env(monkeypatch):
    """No real credentials or chain overrides leak into tests."""

    from soma import config

    for name in API_KEY_ENVS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "LLM_FALLBACK_CHAIN", "")


@pytest.fixture
def api_keys(monkeypatch):
    for name in API_KEY_ENVS:
        monkeypatch.setenv(name, f"test-{name.lower()}")


@pytest.fixture
def valid_quiz():
    return copy.deepcopy(VALID_QUIZ)


@pytest.fixture
def valid_quiz_json():
    return json.dumps(VALID_QUIZ)


class RecordingEndpoint:
    """Stands in for an SDK ``create`` endpoint; records kwargs."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def fake_anthropic():
    def _factory(response):
        messages = RecordingEndpoint(response)
        return SimpleNamespace(messages=messages)

    return _factory


@pytest.fixture
def fake_openai():
    def _factory(response):
        completions = RecordingEndpoint(response)
        return SimpleNamespace(chat=SimpleNamespace(completions=completions))

    return _factory
