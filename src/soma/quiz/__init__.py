"""Audited quiz generation.

    from soma.quiz import PipelineContext, generate_audited_quiz

    draft = generate_audited_quiz(PipelineContext(topic="Quadratic equations"))
"""

from .models import QUIZ_DRAFT_SCHEMA, QuizDraft, parse_quiz_draft
from .pipeline import (
    PipelineContext,
    PipelineRun,
    StageOutput,
    generate_audited_quiz,
    run_audited_pipeline,
)

__all__ = [
    "PipelineContext",
    "PipelineRun",
    "QUIZ_DRAFT_SCHEMA",
    "QuizDraft",
    "StageOutput",
    "generate_audited_quiz",
    "parse_quiz_draft",
    "run_audited_pipeline",
]
