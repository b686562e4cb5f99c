import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from pathway_client import CancelToken, PathwayCancelled, PathwayClient, PathwayRequestError

PATHWAY = {"title": "Pathway to becoming a Chef", "steps": []}


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class ScriptedSession:
    """Returns (or raises) the scripted outcomes in order."""

    def __init__(self, outcomes, on_post=None):
        self.outcomes = list(outcomes)
        self.on_post = on_post
        self.calls = []
        self.close_calls = 0

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        if self.on_post is not None:
            self.on_post()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def closed(self):
        return self.close_calls > 0

    def close(self):
        self.close_calls += 1


class RecordingToken(CancelToken):
    def __init__(self, cancel_on_wait=False):
        super().__init__()
        self.waits = []
        self.cancel_on_wait = cancel_on_wait

    def wait(self, seconds):
        self.waits.append(seconds)
        if self.cancel_on_wait:
            self.cancel()
        return self.cancelled


def make_client(session, **kwargs):
    return PathwayClient("http://advisor.test/", session=session, **kwargs)


class SlowPathwayHandler(BaseHTTPRequestHandler):
    reply_delay = 2.0

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        time.sleep(self.reply_delay)
        body = json.dumps(PATHWAY).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_server_url():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), SlowPathwayHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


class TestCancelToken:
    def test_callbacks_run_once(self):
        token = CancelToken()
        calls = []
        token.on_cancel(lambda: calls.append("a"))
        token.cancel()
        token.cancel()
        assert token.cancelled
        assert calls == ["a"]

    def test_callback_after_cancel_runs_immediately(self):
        token = CancelToken()
        token.cancel()
        calls = []
        token.on_cancel(lambda: calls.append("late"))
        assert calls == ["late"]

    def test_wait_wakes_on_cancel(self):
        token = CancelToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        try:
            assert token.wait(5.0) is True
        finally:
            timer.cancel()

    def test_wait_times_out(self):
        assert CancelToken().wait(0.01) is False


class TestPathwayClient:
    def test_success_first_attempt(self):
        session = ScriptedSession([FakeResponse(body=PATHWAY)])
        token = RecordingToken()
        assert make_client(session).generate("Chef", cancel_token=token) == PATHWAY
        assert session.calls == [("http://advisor.test/generate-pathway", {"career": "Chef"})]
        assert token.waits == []

    def test_backoff_doubles_between_attempts(self):
        session = ScriptedSession([
            FakeResponse(500, {"error": "busy"}),
            requests.ConnectionError("reset"),
            FakeResponse(body=PATHWAY),
        ])
        token = RecordingToken()
        assert make_client(session).generate("Chef", cancel_token=token) == PATHWAY
        assert token.waits == [1.0, 2.0]

    def test_gives_up_after_retries(self):
        session = ScriptedSession([FakeResponse(500, {"error": "busy"})] * 3)
        token = RecordingToken()
        with pytest.raises(PathwayRequestError) as info:
            make_client(session).generate("Chef", cancel_token=token)
        assert info.value.message == "busy"
        assert info.value.status == 500
        assert info.value.attempts == 3
        assert token.waits == [1.0, 2.0]
        assert len(session.calls) == 3

    def test_error_without_body(self):
        session = ScriptedSession([FakeResponse(502)])
        with pytest.raises(PathwayRequestError, match="HTTP error! status: 502"):
            make_client(session, retries=1).generate("Chef")

    def test_cancel_during_backoff_stops_retry(self):
        session = ScriptedSession([FakeResponse(500, {"error": "busy"}), FakeResponse(body=PATHWAY)])
        token = RecordingToken(cancel_on_wait=True)
        with pytest.raises(PathwayCancelled):
            make_client(session).generate("Chef", cancel_token=token)
        assert len(session.calls) == 1
        assert session.closed

    def test_cancel_while_post_fails(self):
        token = RecordingToken()
        session = ScriptedSession(
            [requests.ConnectionError("aborted"), FakeResponse(body=PATHWAY)],
            on_post=token.cancel,
        )
        with pytest.raises(PathwayCancelled):
            make_client(session).generate("Chef", cancel_token=token)
        assert len(session.calls) == 1
        assert token.waits == []
        assert session.closed

    def test_already_cancelled(self):
        token = CancelToken()
        token.cancel()
        session = ScriptedSession([FakeResponse(body=PATHWAY)])
        with pytest.raises(PathwayCancelled):
            make_client(session).generate("Chef", cancel_token=token)
        assert session.calls == []

    def test_base_delay_scales(self):
        session = ScriptedSession([FakeResponse(500)] * 3 + [FakeResponse(body=PATHWAY)])
        token = RecordingToken()
        make_client(session, retries=4, base_delay=0.5).generate("Chef", cancel_token=token)
        assert token.waits == [0.5, 1.0, 2.0]

    def test_reply_after_cancel_is_discarded(self):
        token = RecordingToken()
        session = ScriptedSession([FakeResponse(body=PATHWAY)], on_post=token.cancel)
        with pytest.raises(PathwayCancelled):
            make_client(session).generate("Chef", cancel_token=token)
        assert len(session.calls) == 1
        assert token.waits == []

    def test_reused_token_does_not_accumulate_callbacks(self):
        session = ScriptedSession([FakeResponse(body=PATHWAY), FakeResponse(body=PATHWAY)])
        token = CancelToken()
        client = make_client(session)
        client.generate("Chef", cancel_token=token)
        client.generate("Nurse", cancel_token=token)
        token.cancel()
        assert session.close_calls == 0


class TestPathwayClientOverHttp:
    def test_returns_pathway(self, slow_server_url, monkeypatch):
        monkeypatch.setattr(SlowPathwayHandler, "reply_delay", 0.0)
        session = requests.Session()
        session.trust_env = False
        assert PathwayClient(slow_server_url, session=session).generate("Chef") == PATHWAY

    def test_cancel_aborts_request_in_flight(self, slow_server_url):
        session = requests.Session()
        session.trust_env = False
        client = PathwayClient(slow_server_url, session=session, retries=1)
        token = CancelToken()
        timer = threading.Timer(0.2, token.cancel)
        started = time.monotonic()
        timer.start()
        try:
            with pytest.raises(PathwayCancelled):
                client.generate("Chef", cancel_token=token)
        finally:
            timer.cancel()
        assert time.monotonic() - started < SlowPathwayHandler.reply_delay / 2
