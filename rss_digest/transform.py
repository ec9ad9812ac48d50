from __future__ import annotations

import concurrent.futures as _fut
import logging
import re
from typing import List, Optional, Sequence, Tuple

from .exceptions import TransformError
from .models import ErrorReason, RawItem, TransformedItem
from .textgen import TextGenerator

logger = logging.getLogger(__name__)

COMBINED_TEMPERATURE = 0.2
DEGRADED_TEMPERATURE = 0.0

_COMBINED_PROMPT = (
    "Переведи новость на {language} язык и кратко перескажи её в 1–2 предложениях.\n"
    "Первой строкой напиши переведённый заголовок, со следующей строки — краткое описание. "
    "Без вступлений, кавычек и пометок.\n\n"
    "Заголовок: {title}\n"
    "{snippet_line}"
)
_TRANSLATE_PROMPT = "Переведи на {language} язык. Верни только перевод:\n\n{title}"

# bullets, numbering and label prefixes models like to add
_LEAD_RE = re.compile(r"^(?:[-•*#>]+\s*|\d+[.)]\s+)+")
_LABEL_RE = re.compile(r"^(?:заголовок|описание|title|summary)\s*:\s*", re.IGNORECASE)


def _truncate(s: str, limit: int) -> str:
    if limit <= 0:
        return s
    if len(s) <= limit:
        return s
    return s[:limit]


def _clean_line(line: str) -> str:
    line = _LEAD_RE.sub("", line.strip())
    line = _LABEL_RE.sub("", line)
    line = line.replace("**", "").strip()
    return line.strip("\"'«»“” ")


def parse_combined_response(text: str) -> Tuple[str, Optional[str]]:
    """
    Split a combined response into (headline, detail).

    The first non-empty line is the headline; the remaining non-empty lines
    are joined into the detail.
    """
    lines = [_clean_line(ln) for ln in (text or "").splitlines()]
    lines = [ln for ln in lines if ln]
    if not lines:
        raise TransformError(ErrorReason.EMPTY_RESPONSE, "no usable lines in response")
    detail = " ".join(lines[1:]) or None
    return lines[0], detail


def _reason_of(exc: Exception) -> ErrorReason:
    if isinstance(exc, TransformError):
        return exc.reason
    return ErrorReason.OTHER


def pass_through(item: RawItem) -> TransformedItem:
    return TransformedItem(headline=item.title or item.link, detail=item.snippet, link=item.link)


class Transformer:
    """
    Turns a RawItem into a TransformedItem via the fallback chain:
    translate+summarize -> translate-only -> original text.

    `transform` never raises.
    """

    def __init__(
        self,
        generator: TextGenerator,
        *,
        language: str = "русский",
        max_tokens: int = 200,
        max_input_chars: int = 1500,
    ) -> None:
        self._generator = generator
        self._language = language
        self._max_tokens = max_tokens
        self._max_input_chars = max_input_chars

    def transform(self, item: RawItem) -> TransformedItem:
        try:
            headline, detail = self._combined(item)
            return TransformedItem(headline=headline, detail=detail, link=item.link)
        except Exception as e:
            reason = _reason_of(e)
            logger.warning("Translate+summarize failed for %s: reason=%s (%s)", item.link, reason.value, e)
            if reason.skips_degraded:
                return pass_through(item)

        try:
            return TransformedItem(headline=self._translate_only(item), detail=None, link=item.link)
        except Exception as e:
            logger.warning("Translate-only failed for %s: reason=%s (%s)", item.link, _reason_of(e).value, e)
        return pass_through(item)

    def _combined(self, item: RawItem) -> Tuple[str, Optional[str]]:
        snippet = _truncate(item.snippet or "", self._max_input_chars)
        prompt = _COMBINED_PROMPT.format(
            language=self._language,
            title=_truncate(item.title, self._max_input_chars),
            snippet_line=f"Описание: {snippet}\n" if snippet else "",
        )
        text = self._generator.complete(prompt, max_tokens=self._max_tokens, temperature=COMBINED_TEMPERATURE)
        return parse_combined_response(text)

    def _translate_only(self, item: RawItem) -> str:
        prompt = _TRANSLATE_PROMPT.format(
            language=self._language,
            title=_truncate(item.title, self._max_input_chars),
        )
        text = self._generator.complete(prompt, max_tokens=self._max_tokens, temperature=DEGRADED_TEMPERATURE)
        headline = _clean_line(text.strip().splitlines()[0]) if text and text.strip() else ""
        if not headline:
            raise TransformError(ErrorReason.EMPTY_RESPONSE, "empty translation")
        return headline


def transform_items(
    transformer: Transformer,
    items: Sequence[RawItem],
    *,
    max_workers: int = 4,
) -> List[TransformedItem]:
    """Transform items concurrently; output order matches input order."""

    max_workers = max(1, int(max_workers or 1))
    if max_workers == 1 or len(items) <= 1:
        return [transformer.transform(it) for it in items]

    with _fut.ThreadPoolExecutor(max_workers=max_workers) as ex:
        return list(ex.map(transformer.transform, items))
