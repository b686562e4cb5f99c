import json

import pytest

from career_advisor import generate_pathway, lookup_exam_info, run_career_assessment, suggest_careers
from errors import EmptyResultError, ResponseParseError, UpstreamTransportError
from llm_client import ModelClient
from normalizer import PARSE_FALLBACK_REQUIREMENTS


class FakeModelClient(ModelClient):
    def __init__(self, reply="", exc=None):
        self.reply = reply
        self.exc = exc
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return self.reply


ANSWERS = [{"question": "What do you enjoy?", "answer": "Helping people"}]

STEPS = [
    {"type": "degree", "level": "A.A. (MDC)", "name": "Associate in Arts in Biology", "description": "Start here."},
    {"type": "spaceflight", "level": "", "name": "Orbit", "description": ""},
    {"type": "exam", "level": "License", "name": "NCLEX-RN", "description": "Pass the exam."},
]


class TestRunCareerAssessment:
    def test_fenced_reply(self):
        client = FakeModelClient('```json\n[{"title":"Nurse","description":"x"}]\n```')
        careers = run_career_assessment(client, ANSWERS)
        assert careers == [{
            "title": "Nurse",
            "description": "x",
            "salary": "",
            "jobOutlook": "",
            "competitiveness": "",
            "matchReason": "",
        }]
        assert "Helping people" in client.requests[0].prompt

    def test_truncated_reply_keeps_complete_records(self):
        client = FakeModelClient('[{"title":"A","matchReason":"r"},{"title":"B"')
        careers = run_career_assessment(client, ANSWERS)
        assert [c["title"] for c in careers] == ["A"]
        assert careers[0]["matchReason"] == "r"

    def test_no_json(self):
        with pytest.raises(ResponseParseError):
            run_career_assessment(FakeModelClient("I cannot answer that."), ANSWERS)

    @pytest.mark.parametrize("reply", ["[]", '[{"title": "  "}]'])
    def test_no_valid_records(self, reply):
        with pytest.raises(EmptyResultError):
            run_career_assessment(FakeModelClient(reply), ANSWERS)

    def test_transport_error_propagates(self):
        with pytest.raises(UpstreamTransportError):
            run_career_assessment(FakeModelClient(exc=UpstreamTransportError("down", status=503)), ANSWERS)


class TestGeneratePathway:
    def test_invalid_steps_dropped(self):
        client = FakeModelClient(json.dumps({"title": "Pathway to RN", "steps": STEPS}))
        pathway = generate_pathway(client, "Registered Nurse")
        assert pathway["title"] == "Pathway to RN"
        assert [s["type"] for s in pathway["steps"]] == ["degree", "exam"]
        assert client.requests[0].response_schema is not None

    def test_default_title(self):
        pathway = generate_pathway(FakeModelClient(json.dumps({"steps": STEPS})), "Registered Nurse")
        assert pathway["title"] == "Pathway to becoming a Registered Nurse"

    def test_not_json(self):
        with pytest.raises(ResponseParseError):
            generate_pathway(FakeModelClient("no structure here"), "Nurse")

    def test_no_valid_steps(self):
        with pytest.raises(EmptyResultError):
            generate_pathway(FakeModelClient('{"title": "x", "steps": []}'), "Nurse")


class TestSuggestCareers:
    def test_json_reply(self):
        reply = 'Here: [{"title": "Registered Nurse", "salary": "$80,000"}, {"name": "Nurse Practitioner"}]'
        suggestions = suggest_careers(FakeModelClient(reply), "nurse")
        assert [s["title"] for s in suggestions] == ["Registered Nurse", "Nurse Practitioner"]
        assert all("matchReason" not in s for s in suggestions)

    def test_line_heuristic_when_no_json(self):
        reply = "- Registered Nurse\n- Nurse Practitioner\n- RN"
        suggestions = suggest_careers(FakeModelClient(reply), "nurse")
        assert [s["title"] for s in suggestions] == ["Registered Nurse", "Nurse Practitioner"]

    def test_empty_array_is_empty(self):
        assert suggest_careers(FakeModelClient("[]"), "banana123") == []


class TestLookupExamInfo:
    def test_valid(self):
        reply = '```json\n{"url": "https://www.ncsbn.org", "requirements": ["Nursing degree", "Apply"]}\n```'
        info = lookup_exam_info(FakeModelClient(reply), "NCLEX-RN")
        assert info == {"url": "https://www.ncsbn.org", "requirements": ["Nursing degree", "Apply"]}

    @pytest.mark.parametrize("reply", ["Sorry, I don't know.", '{"url": "https://x.org", "requirements": []}'])
    def test_parse_fallback(self, reply):
        info = lookup_exam_info(FakeModelClient(reply), "CPA Exam")
        assert info["requirements"] == list(PARSE_FALLBACK_REQUIREMENTS)
        assert info["url"].startswith("https://www.google.com/search?q=CPA%20Exam")
