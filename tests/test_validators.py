import pytest

from validators import (
    INVALID_INPUT,
    MAX_ANSWER_LENGTH,
    MAX_ANSWERS,
    MAX_TEXT_LENGTH,
    validate_assessment_body,
    validate_exam_info_body,
    validate_pathway_body,
    validate_program_url_body,
    validate_suggestions_body,
)

ANSWER = {"question": "What do you enjoy?", "answer": "Helping people"}


class TestAssessmentBody:
    def test_valid(self):
        assert validate_assessment_body({"answers": [ANSWER]}) == (None, None)

    def test_list_answer_valid(self):
        body = {"answers": [{"question": "Pick subjects", "answer": ["Math", "Art"]}]}
        assert validate_assessment_body(body) == (None, None)

    def test_empty_string_answer_allowed(self):
        assert validate_assessment_body({"answers": [{"question": "Q", "answer": ""}]}) == (None, None)

    @pytest.mark.parametrize("body", [None, [], "answers", {}, {"answers": []}, {"answers": "x"}])
    def test_missing_or_empty(self, body):
        code, msg = validate_assessment_body(body)
        assert code == INVALID_INPUT
        assert msg

    def test_message_for_empty_array(self):
        _, msg = validate_assessment_body({"answers": []})
        assert msg == "Answers parameter is required and must be a non-empty array."

    def test_too_many(self):
        code, _ = validate_assessment_body({"answers": [ANSWER] * (MAX_ANSWERS + 1)})
        assert code == INVALID_INPUT

    @pytest.mark.parametrize("item", [
        "just text",
        {"answer": "x"},
        {"question": " ", "answer": "x"},
        {"question": "Q", "answer": 3},
        {"question": "Q", "answer": []},
        {"question": "Q", "answer": ["a", 1]},
        {"question": "Q", "answer": "x" * (MAX_ANSWER_LENGTH + 1)},
    ])
    def test_bad_item(self, item):
        code, msg = validate_assessment_body({"answers": [ANSWER, item]})
        assert code == INVALID_INPUT
        assert "Answer 2" in msg


class TestTextBodies:
    @pytest.mark.parametrize("validator,field", [
        (validate_pathway_body, "career"),
        (validate_suggestions_body, "input"),
        (validate_exam_info_body, "examName"),
        (validate_program_url_body, "programName"),
    ])
    def test_valid(self, validator, field):
        assert validator({field: "Registered Nurse"}) == (None, None)

    @pytest.mark.parametrize("validator,field", [
        (validate_pathway_body, "career"),
        (validate_suggestions_body, "input"),
        (validate_exam_info_body, "examName"),
        (validate_program_url_body, "programName"),
    ])
    @pytest.mark.parametrize("value", [None, "", "   ", 12, ["Nurse"]])
    def test_invalid(self, validator, field, value):
        code, _ = validator({field: value})
        assert code == INVALID_INPUT

    def test_not_an_object(self):
        code, msg = validate_pathway_body(None)
        assert code == INVALID_INPUT
        assert msg == "Request body must be a valid JSON object."

    def test_pathway_message(self):
        _, msg = validate_pathway_body({"career": ""})
        assert msg == "Career parameter is required and must be a non-empty string."

    def test_exam_message(self):
        _, msg = validate_exam_info_body({})
        assert msg == "Exam name parameter is required and must be a non-empty string."

    def test_too_long(self):
        code, _ = validate_pathway_body({"career": "n" * (MAX_TEXT_LENGTH + 1)})
        assert code == INVALID_INPUT

    def test_length_counts_trimmed_text(self):
        assert validate_pathway_body({"career": "  " + "n" * MAX_TEXT_LENGTH + "  "}) == (None, None)
