"""
Pure input-validation helpers for the advisor endpoints.
No Flask or model-client imports.

Each validator returns (error_code, message) on invalid input and
(None, None) on success.
"""

from typing import Optional, Tuple

INVALID_INPUT = "INVALID_INPUT"

MAX_ANSWERS = 50
MAX_TEXT_LENGTH = 200
MAX_ANSWER_LENGTH = 1000

ValidationResult = Tuple[Optional[str], Optional[str]]


def _non_empty_string(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _require_body(body) -> ValidationResult:
    if not isinstance(body, dict):
        return INVALID_INPUT, "Request body must be a valid JSON object."
    return None, None


def _validate_text_field(body, field: str, label: str) -> ValidationResult:
    err = _require_body(body)
    if err[0]:
        return err
    value = body.get(field)
    if not _non_empty_string(value):
        return INVALID_INPUT, f"{label} parameter is required and must be a non-empty string."
    if len(value.strip()) > MAX_TEXT_LENGTH:
        return INVALID_INPUT, f"{label} must be at most {MAX_TEXT_LENGTH} characters."
    return None, None


def _validate_answer(item, position: int) -> ValidationResult:
    if not isinstance(item, dict):
        return INVALID_INPUT, f"Answer {position} must be an object with 'question' and 'answer'."
    if not _non_empty_string(item.get("question")):
        return INVALID_INPUT, f"Answer {position} is missing its question."

    answer = item.get("answer")
    if isinstance(answer, list):
        if not answer or not all(isinstance(a, str) for a in answer):
            return INVALID_INPUT, f"Answer {position} must be a string or a non-empty list of strings."
        total = sum(len(a) for a in answer)
    elif isinstance(answer, str):
        total = len(answer)
    else:
        return INVALID_INPUT, f"Answer {position} must be a string or a non-empty list of strings."

    if total > MAX_ANSWER_LENGTH:
        return INVALID_INPUT, f"Answer {position} is longer than {MAX_ANSWER_LENGTH} characters."
    return None, None


def validate_assessment_body(body) -> ValidationResult:
    err = _require_body(body)
    if err[0]:
        return err
    answers = body.get("answers")
    if not isinstance(answers, list) or not answers:
        return INVALID_INPUT, "Answers parameter is required and must be a non-empty array."
    if len(answers) > MAX_ANSWERS:
        return INVALID_INPUT, f"At most {MAX_ANSWERS} answers are accepted."
    for position, item in enumerate(answers, start=1):
        err = _validate_answer(item, position)
        if err[0]:
            return err
    return None, None


def validate_pathway_body(body) -> ValidationResult:
    return _validate_text_field(body, "career", "Career")


def validate_suggestions_body(body) -> ValidationResult:
    return _validate_text_field(body, "input", "Input")


def validate_exam_info_body(body) -> ValidationResult:
    return _validate_text_field(body, "examName", "Exam name")


def validate_program_url_body(body) -> ValidationResult:
    return _validate_text_field(body, "programName", "Program name")
