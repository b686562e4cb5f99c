"""
HTTP client for the /generate-pathway endpoint, with bounded retry and
user-triggered cancellation.

    token = CancelToken()
    client = PathwayClient("http://localhost:5000")
    pathway = client.generate("Registered Nurse", cancel_token=token)

token.cancel() from any thread makes generate() raise PathwayCancelled at once.
Each POST runs on a worker thread that the caller stops waiting for; a reply
that lands after cancel() is discarded. Cancelling also closes the session's
pooled connections and wakes a pending backoff wait, and no retry starts
afterwards.
"""

import sys
import threading

import requests

DEFAULT_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_TIMEOUT = 60.0


class PathwayCancelled(Exception):
    """Generation was cancelled by the caller."""


class PathwayRequestError(Exception):
    def __init__(self, message: str, status: int | None = None, attempts: int = 0):
        super().__init__(message)
        self.message = message
        self.status = status
        self.attempts = attempts


class CancelToken:
    """Thread-safe, one-way cancellation flag with cancel callbacks."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback) -> None:
        """Run callback on cancel(); immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; True if cancelled meanwhile."""
        return self._event.wait(seconds)


class PathwayClient:
    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        retries: int = DEFAULT_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.retries = max(1, int(retries))
        self.base_delay = base_delay
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/generate-pathway"

    def _post_once(self, career: str) -> dict:
        response = self.session.post(self.url, json={"career": career}, timeout=self.timeout)
        try:
            body = response.json()
        except ValueError:
            body = None
        if not response.ok:
            message = body.get("error") if isinstance(body, dict) else None
            raise PathwayRequestError(
                message or f"HTTP error! status: {response.status_code}",
                status=response.status_code,
            )
        if not isinstance(body, dict):
            raise PathwayRequestError("Invalid response from server", status=response.status_code)
        return body

    def _post_cancellable(self, career: str, token: CancelToken) -> dict:
        """
        One POST on a worker thread. The caller returns as soon as the token
        fires; the abandoned request's result is discarded.
        """
        finished = threading.Event()
        outcome = {}

        def _worker():
            try:
                outcome["body"] = self._post_once(career)
            except Exception as exc:
                outcome["error"] = exc
            finally:
                finished.set()

        token.on_cancel(finished.set)
        try:
            threading.Thread(target=_worker, name="pathway-post", daemon=True).start()
            finished.wait()
        finally:
            token.remove_callback(finished.set)

        if token.cancelled:
            raise PathwayCancelled("Pathway generation cancelled.")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["body"]

    def generate(self, career: str, cancel_token: CancelToken | None = None) -> dict:
        """
        POST {career} and return the Pathway body.

        Any failure is retried up to `retries` attempts total, sleeping
        base_delay * 2**attempt between them (1 s, 2 s by default).
        Raises PathwayCancelled or the last PathwayRequestError. A response
        that arrives after cancel() is discarded.
        """
        token = cancel_token or CancelToken()
        token.on_cancel(self.session.close)
        try:
            return self._generate_with_retries(career, token)
        finally:
            token.remove_callback(self.session.close)

    def _generate_with_retries(self, career: str, token: CancelToken) -> dict:
        for attempt in range(self.retries):
            if token.cancelled:
                raise PathwayCancelled("Pathway generation cancelled.")
            try:
                return self._post_cancellable(career, token)
            except PathwayRequestError as exc:
                error = exc
            except requests.RequestException as exc:
                error = PathwayRequestError(f"{type(exc).__name__}: {exc}")
                error.__cause__ = exc

            error.attempts = attempt + 1
            print(f"[WARN] Pathway attempt {attempt + 1} failed: {error.message}", file=sys.stderr)
            if attempt == self.retries - 1:
                raise error
            if token.wait(self.base_delay * 2 ** attempt):
                raise PathwayCancelled("Pathway generation cancelled.") from error

        raise PathwayCancelled("Pathway generation cancelled.")
