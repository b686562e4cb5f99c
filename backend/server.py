import os
import sys
import time
import threading
import hashlib
import json
from collections import OrderedDict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from settings import DEFAULT_DATA_PATH, load_settings
from errors import (
    AdvisorError,
    UpstreamContentError,
    UpstreamTransportError,
)
from validators import (
    validate_assessment_body,
    validate_exam_info_body,
    validate_pathway_body,
    validate_program_url_body,
    validate_suggestions_body,
)
from data_loader import load_program_catalog
from program_links import ProgramUrlResolver
from llm_client import get_model_client
from normalizer import error_fallback_exam_info
from career_advisor import (
    generate_pathway,
    lookup_exam_info,
    run_career_assessment,
    suggest_careers,
)

APP_VERSION = "1.0.0"

PATHWAY_UPSTREAM_MESSAGE = "Failed to generate pathway due to an external API error."

_settings = load_settings()

app = Flask(__name__)

# -- Rate limiting (sliding window per IP, strict endpoints only) ----------
_rate_limit_lock = threading.Lock()
_rate_limit_tracker: dict[str, list[float]] = {}


class _LruResponseCache:
    """Thread-safe bounded in-memory cache for JSON-serializable responses."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._items: OrderedDict[str, dict] = OrderedDict()

    def get(self, key: str):
        with self._lock:
            if key not in self._items:
                return None
            value = self._items.pop(key)
            self._items[key] = value
            return value

    def set(self, key: str, value: dict) -> None:
        with self._lock:
            if key in self._items:
                self._items.pop(key)
            self._items[key] = value
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


_suggestions_response_cache = _LruResponseCache(_settings.request_cache_size)
_exam_info_response_cache = _LruResponseCache(_settings.request_cache_size)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _stable_payload_hash(payload) -> str:
    normalized = payload if payload is not None else {}
    encoded = json.dumps(
        normalized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _request_cache_key(prefix: str, text: str) -> str:
    # Case and surrounding whitespace do not change the model's answer.
    return f"{prefix}:{_stable_payload_hash(text.strip().lower())}"


def _clear_request_caches() -> None:
    _suggestions_response_cache.clear()
    _exam_info_response_cache.clear()


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate-limited."""
    now = time.time()
    window = _settings.rate_limit_window_seconds
    with _rate_limit_lock:
        # Drop IPs whose whole window has expired so the map stays bounded.
        for stale_ip in [k for k, v in _rate_limit_tracker.items() if not v or now - v[-1] >= window]:
            del _rate_limit_tracker[stale_ip]
        timestamps = [t for t in _rate_limit_tracker.get(ip, ()) if now - t < window]
        if len(timestamps) >= _settings.rate_limit_max:
            _rate_limit_tracker[ip] = timestamps
            return False
        timestamps.append(now)
        _rate_limit_tracker[ip] = timestamps
        return True


def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr or "").split(",")[0].strip()


def _rate_limited_response():
    if app.config.get("TESTING") or _check_rate_limit(_client_ip()):
        return None
    return jsonify({
        "error": "Too many requests. Please wait before submitting again.",
        "error_code": "RATE_LIMITED",
    }), 429


# ── Startup data load ──────────────────────────────────────────────────────────
DATA_PATH = _settings.data_path
try:
    _catalog = load_program_catalog(DATA_PATH)
    print(f"[OK] Loaded {_catalog['entry_count']} program URLs from {DATA_PATH}")
except FileNotFoundError:
    # A stale DATA_PATH falls back to the tables shipped in the repo.
    if DATA_PATH != DEFAULT_DATA_PATH and os.path.exists(DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default tables ({DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = DEFAULT_DATA_PATH
        _catalog = load_program_catalog(DATA_PATH)
        print(f"[OK] Loaded {_catalog['entry_count']} program URLs from {DATA_PATH}")
    else:
        print(f"[FATAL] Program tables not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load program tables: {exc}", file=sys.stderr)
    sys.exit(1)

_resolver = ProgramUrlResolver.from_catalog(_catalog, base_url=_settings.program_base_url)

if not _settings.model_configured:
    print(f"[WARN] No API key configured for provider '{_settings.llm_provider}'", file=sys.stderr)


def _get_model_client():
    """Configured model client. Raises ConfigurationError when its key is missing."""
    return get_model_client(_settings)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _settings.slow_request_log_ms:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


def _error_response(message: str, error_code: str, status: int):
    return jsonify({"error": message, "error_code": error_code}), status


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": APP_VERSION,
        "model_configured": _settings.model_configured,
    })


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({"error": e.description, "error_code": e.name.upper().replace(" ", "_")}), e.code
    print(f"[ERROR] Unhandled {type(e).__name__} on {request.path}: {e}", file=sys.stderr)
    return _error_response("An unexpected server error occurred.", "SERVER_ERROR", 500)


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/career-assessment", methods=["POST"])
def career_assessment_endpoint():
    limited = _rate_limited_response()
    if limited is not None:
        return limited

    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_assessment_body(body)
    if err_code:
        return _error_response(err_msg, err_code, 400)

    try:
        careers = run_career_assessment(_get_model_client(), body["answers"])
    except UpstreamTransportError as exc:
        return _error_response(exc.message, exc.error_code, exc.status or 500)
    except AdvisorError as exc:
        # Config, content-block, parse and empty-result failures are all 500 here.
        print(f"[ERROR] career-assessment: {exc.message}", file=sys.stderr)
        return _error_response(exc.message, exc.error_code, exc.status_code)

    return jsonify({"careers": careers})


@app.route("/generate-pathway", methods=["POST"])
def generate_pathway_endpoint():
    limited = _rate_limited_response()
    if limited is not None:
        return limited

    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_pathway_body(body)
    if err_code:
        return _error_response(err_msg, err_code, 400)

    career = body["career"].strip()
    try:
        pathway = generate_pathway(_get_model_client(), career)
    except UpstreamTransportError as exc:
        print(f"[ERROR] generate-pathway upstream failure: {exc.message}", file=sys.stderr)
        return _error_response(PATHWAY_UPSTREAM_MESSAGE, exc.error_code, 500)
    except UpstreamContentError as exc:
        status = 400 if exc.blocked else 500
        return _error_response(exc.message, exc.error_code, status)
    except AdvisorError as exc:
        print(f"[ERROR] generate-pathway: {exc.message}", file=sys.stderr)
        return _error_response(exc.message, exc.error_code, exc.status_code)

    steps = [dict(step, link=_resolver.link_for_step(step)) for step in pathway["steps"]]
    return jsonify({"title": pathway["title"], "steps": steps})


@app.route("/get-career-suggestions", methods=["POST"])
def career_suggestions_endpoint():
    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_suggestions_body(body)
    if err_code:
        return jsonify({"suggestions": [], "error": err_msg})

    text = body["input"].strip()
    cache_key = _request_cache_key("suggestions", text)
    if _cache_enabled():
        cached = _suggestions_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    try:
        suggestions = suggest_careers(_get_model_client(), text)
    except Exception as exc:
        message = exc.message if isinstance(exc, AdvisorError) else str(exc)
        print(f"[WARN] get-career-suggestions failed: {message}", file=sys.stderr)
        return jsonify({"suggestions": [], "error": message or "Failed to get career suggestions"})

    payload = {"suggestions": suggestions}
    if suggestions and _cache_enabled():
        _suggestions_response_cache.set(cache_key, payload)
    return jsonify(payload)


@app.route("/get-exam-info", methods=["POST"])
def exam_info_endpoint():
    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_exam_info_body(body)
    if err_code:
        raw_name = body.get("examName") if isinstance(body, dict) else None
        fallback = error_fallback_exam_info(raw_name if isinstance(raw_name, str) else "")
        return jsonify(dict(fallback, error=err_msg))

    exam_name = body["examName"].strip()
    cache_key = _request_cache_key("exam-info", exam_name)
    if _cache_enabled():
        cached = _exam_info_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    try:
        exam_info = lookup_exam_info(_get_model_client(), exam_name)
    except Exception as exc:
        message = exc.message if isinstance(exc, AdvisorError) else str(exc)
        print(f"[WARN] get-exam-info failed for '{exam_name}': {message}", file=sys.stderr)
        return jsonify(dict(error_fallback_exam_info(exam_name), error=message or "Failed to fetch exam information"))

    if _cache_enabled():
        _exam_info_response_cache.set(cache_key, exam_info)
    return jsonify(exam_info)


@app.route("/program-url", methods=["POST"])
def program_url_endpoint():
    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_program_url_body(body)
    if err_code:
        return _error_response(err_msg, err_code, 400)
    return jsonify({"url": _resolver.resolve(body["programName"])})


# -- API aliases (/api/* paths used by the frontend) ----------------------
app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/career-assessment", endpoint="api_career_assessment", view_func=career_assessment_endpoint, methods=["POST"])
app.add_url_rule("/api/generate-pathway", endpoint="api_generate_pathway", view_func=generate_pathway_endpoint, methods=["POST"])
app.add_url_rule("/api/get-career-suggestions", endpoint="api_get_career_suggestions", view_func=career_suggestions_endpoint, methods=["POST"])
app.add_url_rule("/api/get-exam-info", endpoint="api_get_exam_info", view_func=exam_info_endpoint, methods=["POST"])
app.add_url_rule("/api/program-url", endpoint="api_program_url", view_func=program_url_endpoint, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found", "error_code": "NOT_FOUND"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
