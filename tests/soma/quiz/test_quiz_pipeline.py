import copy
import json
import logging

import pytest

from soma.llm.errors import (
    ExhaustionError,
    ExtractionError,
    SchemaValidationError,
)
from soma.llm.types import GenerationMetadata, GenerationResult, ProviderConfig
from soma.quiz import pipeline
from soma.quiz.models import QUIZ_DRAFT_SCHEMA
from soma.quiz.prompts import MALFORMED_INPUT_NOTE


class FakeGenerate:
    """Replaces generate_with_fallback; returns queued outputs in order."""

    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def __call__(self, system_prompt, user_prompt, schema=None, **kwargs):
        self.calls.append((system_prompt, user_prompt, schema))
        out = self.outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        provider = ["anthropic", "deepseek", "gemini"][len(self.calls) - 1]
        return GenerationResult(
            data=out,
            metadata=GenerationMetadata(
                provider=provider, model=f"{provider}-model", duration_ms=10
            ),
        )


@pytest.fixture
def install_generate(monkeypatch):
    def _install(outputs):
        fake = FakeGenerate(outputs)
        monkeypatch.setattr(pipeline, "generate_with_fallback", fake)
        return fake

    return _install


def _variant(quiz, stem):
    out = copy.deepcopy(quiz)
    out["questions"][0]["stem"] = stem
    return out


CONTEXT = pipeline.PipelineContext(topic="Number Theory", syllabus="IGCSE")


# =====================================================
# Success path
# =====================================================


def test_three_stages_each_with_schema(install_generate, valid_quiz_json):
    fake = install_generate([valid_quiz_json] * 3)

    pipeline.generate_audited_quiz(CONTEXT)

    assert len(fake.calls) == 3
    for _system, _user, schema in fake.calls:
        assert schema is QUIZ_DRAFT_SCHEMA


def test_returns_the_finalizer_draft(install_generate, valid_quiz):
    maker = json.dumps(_variant(valid_quiz, "maker"))
    checker = json.dumps(_variant(valid_quiz, "checker"))
    final = _variant(valid_quiz, "final")
    install_generate([maker, checker, f"```json\n{json.dumps(final)}\n```"])

    draft = pipeline.generate_audited_quiz(CONTEXT)

    assert draft == final
    assert len(draft["questions"]) >= 1
    for q in draft["questions"]:
        assert len(q["options"]) == 4
        assert 1 <= q["marks"] <= 10


def test_raw_output_is_chained_verbatim(install_generate, valid_quiz):
    maker_raw = "Here you go:\n" + json.dumps(_variant(valid_quiz, "maker"))
    checker_raw = json.dumps(_variant(valid_quiz, "checker"), indent=4)
    fake = install_generate([maker_raw, checker_raw, json.dumps(valid_quiz)])

    pipeline.generate_audited_quiz(CONTEXT)

    (_s1, maker_user, _), (_s2, checker_user, _), (_s3, final_user, _) = fake.calls
    assert "Number Theory" in maker_user
    assert f"Input JSON:\n{maker_raw}" in checker_user
    assert f"Input JSON:\n{checker_raw}" in final_user
    assert "Number Theory" in final_user


def test_stage_roles_use_distinct_system_prompts(install_generate, valid_quiz_json):
    fake = install_generate([valid_quiz_json] * 3)

    pipeline.generate_audited_quiz(CONTEXT)

    maker, checker, final = (c[0].lower() for c in fake.calls)
    assert "multiple choice" in maker and "exactly 4" in maker
    assert "audit" in checker and "accuracy" in checker
    assert "syllabus" in final and "compliance" in final


def test_run_records_stage_provenance(install_generate, valid_quiz_json):
    install_generate([valid_quiz_json] * 3)

    run = pipeline.run_audited_pipeline(CONTEXT)

    assert [s.stage for s in run.stages] == ["maker", "checker", "finalizer"]
    assert [s.metadata.provider for s in run.stages] == [
        "anthropic",
        "deepseek",
        "gemini",
    ]
    assert all(s.is_valid for s in run.stages)
    assert run.draft == run.stages[-1].parsed


# =====================================================
# Intermediate malformed output
# =====================================================


def test_malformed_intermediate_output_is_forwarded(
    install_generate, valid_quiz_json, caplog
):
    fake = install_generate(["I cannot do that.", valid_quiz_json, valid_quiz_json])

    with caplog.at_level(logging.WARNING, logger="soma"):
        run = pipeline.run_audited_pipeline(CONTEXT)

    maker = run.stages[0]
    assert maker.parsed is None
    assert isinstance(maker.error, ExtractionError)
    checker_user = fake.calls[1][1]
    assert "Input JSON:\nI cannot do that." in checker_user
    assert MALFORMED_INPUT_NOTE in checker_user
    assert MALFORMED_INPUT_NOTE not in fake.calls[2][1]
    assert any("maker" in r.getMessage() for r in caplog.records)


def test_fail_fast_stops_at_first_malformed_stage(install_generate, valid_quiz_json):
    fake = install_generate(
        ['{"questions": []}', valid_quiz_json, valid_quiz_json]
    )

    with pytest.raises(SchemaValidationError):
        pipeline.generate_audited_quiz(CONTEXT, fail_fast=True)

    assert len(fake.calls) == 1


# =====================================================
# Terminal errors
# =====================================================


def test_finalizer_extraction_failure_is_terminal(install_generate, valid_quiz_json):
    install_generate([valid_quiz_json, valid_quiz_json, "not valid json at all!!!"])

    with pytest.raises(ExtractionError):
        pipeline.generate_audited_quiz(CONTEXT)


def test_finalizer_schema_failure_is_terminal(install_generate, valid_quiz_json):
    question = {"stem": "Q?", "options": ["A", "B"], "correct_answer": "A", "marks": 999}
    bad = json.dumps({"questions": [question]})
    install_generate([valid_quiz_json, valid_quiz_json, bad])

    with pytest.raises(SchemaValidationError):
        pipeline.generate_audited_quiz(CONTEXT)


def test_empty_questions_from_finalizer_is_rejected(install_generate, valid_quiz_json):
    install_generate([valid_quiz_json, valid_quiz_json, '{"questions": []}'])

    with pytest.raises(SchemaValidationError):
        pipeline.generate_audited_quiz(CONTEXT)


@pytest.mark.parametrize("failing_stage", [0, 1, 2])
def test_exhaustion_in_any_stage_aborts(install_generate, valid_quiz_json, failing_stage):
    exhausted = ExhaustionError([])
    outputs = [valid_quiz_json] * 3
    outputs[failing_stage] = exhausted
    fake = install_generate(outputs)

    with pytest.raises(ExhaustionError) as exc:
        pipeline.generate_audited_quiz(CONTEXT)

    assert exc.value is exhausted
    assert len(fake.calls) == failing_stage + 1


def test_exhaustion_message_survives_pipeline(install_generate):
    from soma.llm.types import AttemptFailure

    err = ExhaustionError(
        [AttemptFailure(ProviderConfig("anthropic", "claude"), RuntimeError("down"))]
    )
    install_generate([err])

    with pytest.raises(ExhaustionError, match="anthropic/claude: down"):
        pipeline.generate_audited_quiz(CONTEXT)


def test_blank_topic_is_rejected_before_any_generation(install_generate):
    fake = install_generate([])

    with pytest.raises(ValueError):
        pipeline.generate_audited_quiz(pipeline.PipelineContext(topic="  "))

    assert fake.calls == []
