from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from .models import MAX_MARKS, MIN_MARKS, OPTION_COUNT

if TYPE_CHECKING:
    from .pipeline import PipelineContext

PromptPair = Tuple[str, str]

MAKER_SYSTEM_PROMPT = f"""You are a strict examiner who writes multiple choice (MCQ) assessment questions.

Rules:
- Every question has exactly {OPTION_COUNT} options, given as plain answer values.
- correct_answer must match one of the options exactly, character for character.
- Use LaTeX for mathematics with \\\\( \\\\) for inline math and double-escaped backslashes.
- Give each question a short explanation of why the correct answer is right.
- Assign integer marks between {MIN_MARKS} and {MAX_MARKS} according to difficulty.
- Return JSON only, shaped as {{"questions": [...]}}."""

CHECKER_SYSTEM_PROMPT = """You are a rigorous mathematics auditor. You review quiz questions for accuracy.

For each question:
1. Re-solve the underlying problem yourself and verify correct_answer is actually correct.
2. Fix any arithmetic, algebra or notation errors in the stem, options or explanation.
3. Ensure LaTeX notation is properly formatted and escaped.
4. Keep exactly the same JSON structure; only improve the content.

Return the audited quiz as JSON only."""

FINALIZER_SYSTEM_PROMPT = """You are a curriculum and syllabus compliance specialist performing the final review of a quiz.

For each question:
1. Ensure it aligns with the stated syllabus and level.
2. Verify the explanation is clear and educational.
3. Check that difficulty progression and marks allocation are fair.
4. Ensure LaTeX formatting is clean and consistent.
5. Confirm the format rules: exactly 4 options, correct_answer is one of them.

Return the final quiz as JSON only."""

MALFORMED_INPUT_NOTE = (
    "Note: the previous stage did not produce a valid quiz object. "
    "Repair the input into the required JSON structure while auditing it."
)


def _context_lines(context: "PipelineContext") -> List[str]:
    lines = [f"Topic: {context.topic}", f"Subject: {context.subject}"]
    if context.syllabus:
        lines.append(f"Syllabus: {context.syllabus}")
    if context.level:
        lines.append(f"Level: {context.level}")
    return lines


def build_maker_prompt(context: "PipelineContext") -> PromptPair:
    parts = ["\n".join(_context_lines(context))]
    parts.append(
        f"Generate a quiz of {context.question_count} high-quality multiple choice "
        f'questions on the topic "{context.topic}". Vary the difficulty across questions.'
    )
    if context.auxiliary_prompt:
        parts.append(f"Additional instructions:\n{context.auxiliary_prompt}")
    if context.supporting_text:
        parts.append(
            "Base the questions on this supporting material:\n"
            f"{context.supporting_text}"
        )
    return MAKER_SYSTEM_PROMPT, "\n\n".join(parts)


def _audit_prompt(
    context: "PipelineContext", task: str, raw_input: str, input_is_valid: bool
) -> str:
    parts = ["\n".join(_context_lines(context)), task]
    if not input_is_valid:
        parts.append(MALFORMED_INPUT_NOTE)
    parts.append(f"Input JSON:\n{raw_input}")
    return "\n\n".join(parts)


def build_checker_prompt(
    context: "PipelineContext", maker_raw: str, *, input_is_valid: bool = True
) -> PromptPair:
    task = (
        f'Audit these quiz questions on "{context.topic}" for mathematical accuracy '
        "and return the corrected quiz in the same JSON structure."
    )
    return CHECKER_SYSTEM_PROMPT, _audit_prompt(context, task, maker_raw, input_is_valid)


def build_finalizer_prompt(
    context: "PipelineContext", checker_raw: str, *, input_is_valid: bool = True
) -> PromptPair:
    task = (
        f'Review this quiz on "{context.topic}" for syllabus compliance, pedagogical '
        "quality, clean LaTeX and fair marks, and return the final quiz as JSON."
    )
    return FINALIZER_SYSTEM_PROMPT, _audit_prompt(
        context, task, checker_raw, input_is_valid
    )
