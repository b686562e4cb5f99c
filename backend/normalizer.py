import re
from urllib.parse import quote

STEP_TYPES = ("degree", "transfer", "internship", "exam")

CAREER_FIELDS = ("title", "description", "salary", "jobOutlook", "competitiveness")

# First non-empty key wins.
_CAREER_FIELD_ALIASES = {
    "title": ("title", "name"),
    "description": ("description",),
    "salary": ("salary",),
    "jobOutlook": ("jobOutlook", "job_outlook"),
    "competitiveness": ("competitiveness",),
    "matchReason": ("matchReason", "match_reason", "reason"),
}

# Wrapper keys models sometimes put around the list we asked for.
_LIST_WRAPPER_KEYS = ("careers", "suggestions", "results", "items")

_LIST_MARKER_RE = re.compile(r"^[-•*]\s*")
_EDGE_QUOTE_RE = re.compile(r"^[\"']|[\"']$")

# Characters encodeURIComponent leaves alone besides quote()'s defaults.
_URI_COMPONENT_SAFE = "!'()*"

MIN_LINE_TITLE_LENGTH = 3
MAX_LINE_TITLE_LENGTH = 100

PARSE_FALLBACK_REQUIREMENTS = (
    "Check the official certification website for specific education prerequisites",
    "Complete required coursework or training program",
    "Apply for examination with the certifying organization",
    "Pass the required examination(s)",
    "Meet state-specific or jurisdiction-specific requirements",
)

ERROR_FALLBACK_REQUIREMENTS = (
    "Check the official certification website for specific requirements",
    "Requirements may vary by state or jurisdiction",
    "Contact the certifying organization for the most current information",
)


def _text_value(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _first_text(item: dict, keys: tuple) -> str:
    for key in keys:
        value = _text_value(item.get(key))
        if value:
            return value
    return ""


def normalize_career(item, include_match_reason: bool = True) -> dict | None:
    """
    Map one loosely-shaped model record onto a CareerSuggestion.

    Accepts a dict (with title/name, jobOutlook/job_outlook,
    matchReason/match_reason/reason fallbacks) or a plain string title.
    Every field other than title defaults to "".
    Returns None if the title is empty after trimming.
    """
    fields = CAREER_FIELDS + (("matchReason",) if include_match_reason else ())

    if isinstance(item, str):
        record = {field: "" for field in fields}
        record["title"] = item.strip()
    elif isinstance(item, dict):
        title = item.get("title") if isinstance(item.get("title"), str) else ""
        if not title.strip():
            title = item.get("name") if isinstance(item.get("name"), str) else ""
        record = {"title": title.strip()}
        for field in fields[1:]:
            record[field] = _first_text(item, _CAREER_FIELD_ALIASES[field])
    else:
        return None

    if not record["title"]:
        return None
    return record


def _unwrap_records(parsed) -> list:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for key in _LIST_WRAPPER_KEYS:
            inner = parsed.get(key)
            if isinstance(inner, list):
                return inner
        return [parsed]
    if isinstance(parsed, str):
        return [parsed]
    return []


def normalize_careers(parsed, include_match_reason: bool = True) -> list[dict]:
    """Normalize a parsed model payload into CareerSuggestion records, dropping invalid ones."""
    careers = []
    for item in _unwrap_records(parsed):
        record = normalize_career(item, include_match_reason=include_match_reason)
        if record is not None:
            careers.append(record)
    return careers


def _clean_line(line: str) -> str:
    return _EDGE_QUOTE_RE.sub("", _LIST_MARKER_RE.sub("", line))


def titles_from_text(text: str, limit: int = 6, include_match_reason: bool = False) -> list[dict]:
    """
    Last-resort title scraping for unstructured model output.

    Strips list markers (-, •, *) and surrounding quotes, keeps lines whose
    cleaned length is strictly between 3 and 100 characters.
    """
    if not text:
        return []
    fields = CAREER_FIELDS + (("matchReason",) if include_match_reason else ())
    titles = []
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        cleaned = _clean_line(line).strip()
        if not (MIN_LINE_TITLE_LENGTH < len(cleaned) < MAX_LINE_TITLE_LENGTH):
            continue
        record = {field: "" for field in fields}
        record["title"] = cleaned
        titles.append(record)
        if len(titles) >= limit:
            break
    return titles


def normalize_step(item) -> dict | None:
    """
    Return a PathwayStep dict, or None if the step is incomplete or has an unknown type.
    level and name must be non-blank; description may be empty.
    """
    if not isinstance(item, dict):
        return None
    step_type = item.get("type")
    if not isinstance(step_type, str) or step_type.strip().lower() not in STEP_TYPES:
        return None
    values = {}
    for key in ("level", "name", "description"):
        value = item.get(key)
        if not isinstance(value, str):
            return None
        values[key] = value.strip()
    if not values["level"] or not values["name"]:
        return None
    return {
        "type": step_type.strip().lower(),
        "level": values["level"],
        "name": values["name"],
        "description": values["description"],
    }


def default_pathway_title(career: str) -> str:
    return f"Pathway to becoming a {career.strip()}"


def normalize_pathway(parsed, career: str) -> dict | None:
    """
    Normalize a parsed pathway object. Invalid steps are dropped, order is kept.
    Returns None when no valid step remains.
    """
    if not isinstance(parsed, dict):
        return None
    raw_steps = parsed.get("steps")
    if not isinstance(raw_steps, list):
        return None
    steps = [step for step in (normalize_step(s) for s in raw_steps) if step is not None]
    if not steps:
        return None
    title = parsed.get("title")
    if not isinstance(title, str) or not title.strip():
        title = default_pathway_title(career)
    return {"title": title.strip(), "steps": steps}


def normalize_exam_info(parsed) -> dict | None:
    """Return {url, requirements} when both are usable, else None."""
    if not isinstance(parsed, dict):
        return None
    url = parsed.get("url")
    requirements = parsed.get("requirements")
    if not isinstance(url, str) or not url.strip():
        return None
    if not isinstance(requirements, list):
        return None
    cleaned = [_text_value(r).strip() for r in requirements]
    cleaned = [r for r in cleaned if r]
    if not cleaned:
        return None
    return {"url": url.strip(), "requirements": cleaned}


def exam_search_url(exam_name: str) -> str:
    query = f"{(exam_name or '').strip()} official website".strip()
    return f"https://www.google.com/search?q={quote(query, safe=_URI_COMPONENT_SAFE)}"


def parse_fallback_exam_info(exam_name: str) -> dict:
    """Used when the model answered but nothing valid could be recovered."""
    return {
        "url": exam_search_url(exam_name),
        "requirements": list(PARSE_FALLBACK_REQUIREMENTS),
    }


def error_fallback_exam_info(exam_name: str) -> dict:
    """Used when the lookup failed before a model answer was available."""
    return {
        "url": exam_search_url(exam_name),
        "requirements": list(ERROR_FALLBACK_REQUIREMENTS),
    }
