"""
Model-backed advisor flows: build prompt -> call model -> extract JSON -> normalize.

run_career_assessment / generate_pathway raise AdvisorError subclasses when
nothing usable comes back. suggest_careers / lookup_exam_info degrade to an
empty list or the parse fallback instead; only transport/config errors escape
them, and the server absorbs those too.
"""

import json
import sys

from errors import EmptyResultError, ResponseParseError
from json_extractor import ARRAY, OBJECT, extract_json
from llm_client import ModelClient
from normalizer import (
    normalize_careers,
    normalize_exam_info,
    normalize_pathway,
    parse_fallback_exam_info,
    titles_from_text,
)
from prompt_builder import (
    build_assessment_request,
    build_exam_info_request,
    build_pathway_request,
    build_suggestions_request,
)

RAW_PREVIEW_CHARS = 1000


def _preview(text: str, limit: int = RAW_PREVIEW_CHARS) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"


def _log_parse_miss(flow: str, raw: str) -> None:
    print(f"[WARN] {flow}: no usable records parsed. Raw response: {_preview(raw)}", file=sys.stderr)


def run_career_assessment(client: ModelClient, answers: list[dict]) -> list[dict]:
    """6-10 CareerSuggestion records (with matchReason) for a list of quiz answers."""
    raw = client.generate(build_assessment_request(answers))
    print(f"[LLM] career-assessment response: {_preview(raw)}")

    extraction = extract_json(raw, ARRAY)
    if extraction is None:
        _log_parse_miss("career-assessment", raw)
        raise ResponseParseError("Could not parse career recommendations from the model response.")

    careers = normalize_careers(extraction.value, include_match_reason=True)
    print(f"[LLM] career-assessment parsed {len(careers)} careers via {extraction.strategy}")
    if not careers:
        _log_parse_miss("career-assessment", raw)
        raise EmptyResultError("Could not generate career recommendations. Please try again.")
    return careers


def generate_pathway(client: ModelClient, career: str) -> dict:
    """Pathway {title, steps} for one career."""
    raw = client.generate(build_pathway_request(career))

    extraction = extract_json(raw, OBJECT)
    if extraction is None:
        _log_parse_miss("generate-pathway", raw)
        raise ResponseParseError("Failed to generate pathway: the model response was not valid JSON.")

    pathway = normalize_pathway(extraction.value, career)
    if pathway is None:
        _log_parse_miss("generate-pathway", raw)
        raise EmptyResultError("Failed to generate pathway: no valid steps were returned.")
    print(f"[LLM] generate-pathway '{career.strip()}': {len(pathway['steps'])} steps via {extraction.strategy}")
    return pathway


def suggest_careers(client: ModelClient, text: str) -> list[dict]:
    """
    3-6 autocomplete suggestions. Falls back to line scraping when the reply
    contains no JSON at all; returns [] when nothing usable is found.
    """
    raw = client.generate(build_suggestions_request(text))

    extraction = extract_json(raw, ARRAY)
    if extraction is not None:
        suggestions = normalize_careers(extraction.value, include_match_reason=False)
        strategy = extraction.strategy
    else:
        suggestions = titles_from_text(raw)
        strategy = "line_heuristic"

    if suggestions:
        print(f"[LLM] get-career-suggestions parsed {len(suggestions)} via {strategy}; "
              f"first: {json.dumps(suggestions[0])}")
    else:
        _log_parse_miss("get-career-suggestions", raw)
    return suggestions


def lookup_exam_info(client: ModelClient, exam_name: str) -> dict:
    """{url, requirements} for an exam; the five-item parse fallback when the reply is unusable."""
    raw = client.generate(build_exam_info_request(exam_name))

    extraction = extract_json(raw, OBJECT)
    exam_info = normalize_exam_info(extraction.value) if extraction is not None else None
    if exam_info is None:
        _log_parse_miss("get-exam-info", raw)
        return parse_fallback_exam_info(exam_name)
    print(f"[LLM] get-exam-info '{exam_name.strip()}': {len(exam_info['requirements'])} requirements "
          f"via {extraction.strategy}")
    return exam_info
