import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

import openai
import requests
from openai import OpenAI

from errors import ConfigurationError, UpstreamContentError, UpstreamTransportError

ERROR_BODY_PREVIEW_CHARS = 500


@dataclass(frozen=True)
class GenerationRequest:
    """One model call: prompt, optional system instruction / output schema, sampling."""

    prompt: str
    system_instruction: str | None = None
    response_schema: dict | None = None
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None


class ModelClient(ABC):
    """Single-shot text generation. No retries at this layer."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> str:
        raise NotImplementedError


def extract_generated_text(payload: dict) -> str:
    """
    Return the first candidate's first text part from a generateContent reply.

    Raises UpstreamContentError when the prompt was blocked, when there are no
    candidates, or when the first candidate carries no text.
    """
    payload = payload if isinstance(payload, dict) else {}
    candidates = payload.get("candidates") or []
    if not candidates:
        feedback = payload.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            raise UpstreamContentError(f"Request blocked: {block_reason}", block_reason=block_reason)
        raise UpstreamContentError("No candidates returned from API.")

    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content")
    parts = (content.get("parts") or []) if isinstance(content, dict) else []
    text = ""
    if parts and isinstance(parts[0], dict):
        text = parts[0].get("text") or ""
    if not text:
        finish_reason = first.get("finishReason")
        if finish_reason in {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}:
            raise UpstreamContentError(f"Request blocked: {finish_reason}", block_reason=finish_reason)
        raise UpstreamContentError("No response from Gemini API")
    return text


class GeminiClient(ModelClient):
    """Google Generative Language REST API (models/<model>:generateContent)."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 45.0,
        session: requests.Session | None = None,
    ):
        if not api_key:
            raise ConfigurationError("API key not configured")
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    @staticmethod
    def build_payload(request: GenerationRequest) -> dict:
        payload = {"contents": [{"parts": [{"text": request.prompt}]}]}
        if request.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}

        config = {}
        if request.temperature is not None:
            config["temperature"] = request.temperature
        if request.top_k is not None:
            config["topK"] = request.top_k
        if request.top_p is not None:
            config["topP"] = request.top_p
        if request.max_output_tokens is not None:
            config["maxOutputTokens"] = request.max_output_tokens
        if request.response_schema is not None:
            config["responseMimeType"] = "application/json"
            config["responseSchema"] = request.response_schema
        if config:
            payload["generationConfig"] = config
        return payload

    def generate(self, request: GenerationRequest) -> str:
        try:
            response = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=self.build_payload(request),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            print(f"[ERROR] Gemini request failed: {type(exc).__name__}", file=sys.stderr)
            raise UpstreamTransportError(f"Gemini API request failed: {type(exc).__name__}") from exc

        if not response.ok:
            print(
                f"[ERROR] Gemini API error {response.status_code}: "
                f"{(response.text or '')[:ERROR_BODY_PREVIEW_CHARS]}",
                file=sys.stderr,
            )
            raise UpstreamTransportError(
                f"Gemini API error: {response.reason or response.status_code}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamTransportError("Gemini API returned a non-JSON body", status=response.status_code) from exc
        return extract_generated_text(payload)


class OpenAIChatClient(ModelClient):
    """OpenAI-compatible chat completions endpoint via the openai SDK."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 45.0,
        client: OpenAI | None = None,
    ):
        if not api_key and client is None:
            raise ConfigurationError("OPENAI_API_KEY not set in environment")
        self.model = model
        self.client = client or OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    def generate(self, request: GenerationRequest) -> str:
        messages = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": request.prompt})

        kwargs = {"model": self.model, "messages": messages}
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p
        if request.max_output_tokens is not None:
            kwargs["max_tokens"] = request.max_output_tokens
        if request.response_schema is not None:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            print(f"[ERROR] OpenAI API error {exc.status_code}: {exc.message}", file=sys.stderr)
            raise UpstreamTransportError(f"OpenAI API error: {exc.message}", status=exc.status_code) from exc
        except openai.OpenAIError as exc:
            print(f"[ERROR] OpenAI request failed: {type(exc).__name__}", file=sys.stderr)
            raise UpstreamTransportError(f"OpenAI API request failed: {type(exc).__name__}") from exc

        if not response.choices:
            raise UpstreamContentError("No candidates returned from API.")
        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise UpstreamContentError("Request blocked: content_filter", block_reason="content_filter")
        text = (choice.message.content or "").strip() if choice.message else ""
        if not text:
            refusal = getattr(choice.message, "refusal", None) if choice.message else None
            if refusal:
                raise UpstreamContentError(f"Request blocked: {refusal}", block_reason="refusal")
            raise UpstreamContentError("No response from OpenAI API")
        return text


def get_model_client(settings) -> ModelClient:
    """Build the configured client. Raises ConfigurationError when its key is missing."""
    if settings.llm_provider == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError("API key not configured")
        return OpenAIChatClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_api_base,
            timeout=settings.llm_timeout_seconds,
        )
    if not settings.gemini_api_key:
        raise ConfigurationError("API key not configured")
    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        api_base=settings.gemini_api_base,
        timeout=settings.llm_timeout_seconds,
    )
