from __future__ import annotations

from typing import Optional, Protocol

import openai

from .exceptions import ConfigError, TransformError
from .models import ErrorReason


class TextGenerator(Protocol):
    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:  # pragma: no cover - interface
        ...


def classify_openai_error(exc: BaseException) -> ErrorReason:
    if isinstance(exc, openai.RateLimitError):
        # Covers both insufficient_quota and per-minute throttling.
        return ErrorReason.RESOURCE_EXHAUSTED
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ErrorReason.UNAUTHORIZED
    if isinstance(exc, (openai.APIConnectionError, openai.InternalServerError)):
        # APITimeoutError is an APIConnectionError
        return ErrorReason.TRANSIENT
    return ErrorReason.OTHER


def classify_gemini_error(exc: BaseException) -> ErrorReason:
    from google.api_core import exceptions as gexc  # type: ignore

    if isinstance(exc, gexc.ResourceExhausted):
        return ErrorReason.RESOURCE_EXHAUSTED
    if isinstance(exc, (gexc.Unauthenticated, gexc.PermissionDenied)):
        return ErrorReason.UNAUTHORIZED
    if isinstance(exc, (gexc.DeadlineExceeded, gexc.ServiceUnavailable, gexc.InternalServerError)):
        return ErrorReason.TRANSIENT
    return ErrorReason.OTHER


class OpenAITextGenerator:
    def __init__(self, *, api_key: str, model: str, timeout_sec: float) -> None:
        # failures go straight to the fallback chain, no SDK-level retries
        self._client = openai.OpenAI(api_key=api_key, timeout=timeout_sec, max_retries=0)
        self._model = model

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            raise TransformError(classify_openai_error(e), str(e)) from e
        content = resp.choices[0].message.content if resp and resp.choices else None
        if not content or not content.strip():
            raise TransformError(ErrorReason.EMPTY_RESPONSE, "model returned no text")
        return content.strip()


class GeminiTextGenerator:
    def __init__(self, *, api_key: str, model: str, timeout_sec: float) -> None:
        try:
            import google.generativeai as genai  # type: ignore
        except ImportError as e:  # pragma: no cover - optional dep
            raise ConfigError(
                "google-generativeai package is required for Gemini. Install with `pip install rss-digest[gemini]`."
            ) from e
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model)
        self._timeout = timeout_sec

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        from google.api_core import exceptions as gexc  # type: ignore

        try:
            resp = self._model.generate_content(
                prompt,
                generation_config={"max_output_tokens": max_tokens, "temperature": temperature},
                request_options={"timeout": self._timeout},
            )
        except gexc.GoogleAPIError as e:
            raise TransformError(classify_gemini_error(e), str(e)) from e
        try:
            text = resp.text
        except ValueError as e:
            # Raised when the candidate was blocked or has no parts.
            raise TransformError(ErrorReason.EMPTY_RESPONSE, str(e)) from e
        if not text or not text.strip():
            raise TransformError(ErrorReason.EMPTY_RESPONSE, "model returned no text")
        return text.strip()


def build_text_generator(
    provider: str,
    *,
    openai_api_key: Optional[str],
    gemini_api_key: Optional[str],
    openai_model: str,
    gemini_model: str,
    timeout_sec: float,
) -> TextGenerator:
    provider = (provider or "").lower()
    if provider == "openai":
        if not openai_api_key:
            raise ConfigError("OPENAI_API_KEY not set.")
        return OpenAITextGenerator(api_key=openai_api_key, model=openai_model, timeout_sec=timeout_sec)
    if provider in {"gemini", "google", "googleai"}:
        if not gemini_api_key:
            raise ConfigError("GEMINI_API_KEY (or GOOGLE_API_KEY) not set.")
        return GeminiTextGenerator(api_key=gemini_api_key, model=gemini_model, timeout_sec=timeout_sec)
    raise ConfigError(f"Unknown text provider: {provider!r}")
