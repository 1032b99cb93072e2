from __future__ import annotations

from typing import Any, Dict

from soma.llm._json import extract_json, validate_json
from soma.llm.errors import ExtractionError

QuizDraft = Dict[str, Any]

OPTION_COUNT = 4
MIN_MARKS = 1
MAX_MARKS = 10

QUESTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "stem": {
            "type": "string",
            "description": "The question text, may include LaTeX notation",
        },
        "options": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": OPTION_COUNT,
            "maxItems": OPTION_COUNT,
            "description": "Exactly 4 answer choices",
        },
        "correct_answer": {
            "type": "string",
            "description": "The correct answer, must match one of the options exactly",
        },
        "explanation": {
            "type": "string",
            "description": "A brief explanation of why the correct answer is right",
        },
        "marks": {
            "type": "integer",
            "minimum": MIN_MARKS,
            "maximum": MAX_MARKS,
            "description": "Mark value for this question",
        },
    },
    "required": ["stem", "options", "correct_answer", "explanation", "marks"],
    "additionalProperties": False,
}

# Canonical schema shared by every pipeline stage. Providers receive a
# translated form (see soma.llm.schema); validation uses it as-is.
QUIZ_DRAFT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$ref": "#/definitions/QuizDraft",
    "definitions": {
        "QuizDraft": {
            "type": "object",
            "properties": {
                "questions": {
                    "type": "array",
                    "items": {"$ref": "#/definitions/Question"},
                    "minItems": 1,
                    "description": "Array of quiz questions",
                }
            },
            "required": ["questions"],
            "additionalProperties": False,
        },
        "Question": QUESTION_SCHEMA,
    },
}


def parse_quiz_draft(text: str) -> QuizDraft:
    """Extract a QuizDraft from raw model text and validate its shape.

    Raises ExtractionError when no JSON can be recovered and
    SchemaValidationError when the JSON does not match the quiz schema.
    ``correct_answer`` membership in ``options`` is not checked here.
    """

    data = extract_json(text)
    if data is None:
        snippet = (text or "")[:200]
        raise ExtractionError(f"No parseable JSON found in model output: {snippet!r}")
    validate_json(data, QUIZ_DRAFT_SCHEMA)
    return data
