from __future__ import annotations

import logging
from typing import Optional, Protocol

import openai

from .exceptions import CoverGenerationError

logger = logging.getLogger(__name__)

DEFAULT_COVER_TEMPLATE = (
    "Minimalist flat illustration, cover for a frontend development news digest dated {label}. "
    "Icons of HTML, CSS and JavaScript, a browser window, code brackets and a newspaper, "
    "soft gradient background, no text."
)


class ImageGenerator(Protocol):
    def generate(self, prompt: str, *, size: str) -> str:  # pragma: no cover - interface
        ...


class OpenAIImageGenerator:
    def __init__(self, *, api_key: str, model: str, timeout_sec: float) -> None:
        self._client = openai.OpenAI(api_key=api_key, timeout=timeout_sec, max_retries=0)
        self._model = model

    def generate(self, prompt: str, *, size: str) -> str:
        try:
            resp = self._client.images.generate(model=self._model, prompt=prompt, size=size, n=1)
        except openai.OpenAIError as e:
            raise CoverGenerationError(str(e)) from e
        url = resp.data[0].url if resp and resp.data else None
        if not url:
            raise CoverGenerationError("image service returned no URL")
        return url


class CoverGenerator:
    """Produces the run's cover image reference, falling back to a static one."""

    def __init__(
        self,
        generator: ImageGenerator,
        *,
        fallback_ref: Optional[str] = None,
        size: str = "1024x1024",
        template: str = DEFAULT_COVER_TEMPLATE,
    ) -> None:
        self._generator = generator
        self._fallback_ref = fallback_ref
        self._size = size
        self._template = template

    def generate_cover(self, label: str) -> Optional[str]:
        try:
            return self._generator.generate(self._template.format(label=label), size=self._size)
        except Exception as e:
            logger.warning("Cover generation failed (%s); using fallback %r", e, self._fallback_ref)
            return self._fallback_ref
