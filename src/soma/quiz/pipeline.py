"""Maker -> Checker -> Finalizer quiz generation.

Each stage is one fallback-chain generation. A stage's raw text is embedded
verbatim as the "Input JSON" of the next stage. Intermediate outputs are
parsed only to record whether they were valid; the Finalizer output is the
one that must extract and validate, and its failure is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from soma import logger as logger_mod
from soma.config import DEFAULT_QUESTION_COUNT
from soma.llm.errors import ExtractionError, LLMError, SchemaValidationError
from soma.llm.fallback import generate_with_fallback
from soma.llm.types import GenerationMetadata

from .models import QUIZ_DRAFT_SCHEMA, QuizDraft, parse_quiz_draft
from .prompts import (
    PromptPair,
    build_checker_prompt,
    build_finalizer_prompt,
    build_maker_prompt,
)

log = logger_mod.get_logger()

MAKER = "maker"
CHECKER = "checker"
FINALIZER = "finalizer"


@dataclass(frozen=True)
class PipelineContext:
    topic: str
    subject: str = "Mathematics"
    syllabus: str = ""
    level: str = ""
    auxiliary_prompt: Optional[str] = None
    supporting_text: Optional[str] = None
    question_count: int = DEFAULT_QUESTION_COUNT


@dataclass(frozen=True)
class StageOutput:
    stage: str
    raw: str
    parsed: Optional[QuizDraft]
    metadata: GenerationMetadata
    error: Optional[LLMError] = None

    @property
    def is_valid(self) -> bool:
        return self.parsed is not None


@dataclass(frozen=True)
class PipelineRun:
    draft: QuizDraft
    stages: Tuple[StageOutput, ...]


def _run_stage(
    stage: str, prompts: PromptPair, *, final: bool, fail_fast: bool
) -> StageOutput:
    system_prompt, user_prompt = prompts
    log.info("[quiz pipeline] %s stage starting", stage)
    result = generate_with_fallback(system_prompt, user_prompt, QUIZ_DRAFT_SCHEMA)
    log.info(
        "[quiz pipeline] %s stage answered by %s/%s in %dms",
        stage,
        result.metadata.provider,
        result.metadata.model,
        result.metadata.duration_ms,
    )

    try:
        parsed = parse_quiz_draft(result.data)
    except (ExtractionError, SchemaValidationError) as e:
        if final or fail_fast:
            log.error("❌ [quiz pipeline] %s stage output rejected: %s", stage, e)
            raise
        log.warning(
            "[quiz pipeline] %s stage output is not a valid quiz draft (%s); "
            "forwarding raw text",
            stage,
            e,
        )
        return StageOutput(stage, result.data, None, result.metadata, error=e)

    return StageOutput(stage, result.data, parsed, result.metadata)


def run_audited_pipeline(
    context: PipelineContext, *, fail_fast: bool = False
) -> PipelineRun:
    """Run all three stages and return the validated draft with provenance.

    With ``fail_fast`` an invalid Maker or Checker output raises immediately
    instead of being forwarded to the next stage.
    """

    if not context.topic or not context.topic.strip():
        raise ValueError("topic is required")

    log.info("[quiz pipeline] starting for topic: %r", context.topic)
    stages: List[StageOutput] = []

    maker = _run_stage(
        MAKER, build_maker_prompt(context), final=False, fail_fast=fail_fast
    )
    stages.append(maker)

    checker = _run_stage(
        CHECKER,
        build_checker_prompt(context, maker.raw, input_is_valid=maker.is_valid),
        final=False,
        fail_fast=fail_fast,
    )
    stages.append(checker)

    finalizer = _run_stage(
        FINALIZER,
        build_finalizer_prompt(context, checker.raw, input_is_valid=checker.is_valid),
        final=True,
        fail_fast=fail_fast,
    )
    stages.append(finalizer)

    draft = finalizer.parsed
    log.info(
        "[quiz pipeline] complete: %d questions finalized", len(draft["questions"])
    )
    return PipelineRun(draft=draft, stages=tuple(stages))


def generate_audited_quiz(
    context: PipelineContext, *, fail_fast: bool = False
) -> QuizDraft:
    return run_audited_pipeline(context, fail_fast=fail_fast).draft
