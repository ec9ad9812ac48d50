from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from .aggregator import FetchFn, aggregate
from .assembler import assemble, cover_caption
from .config import DigestConfig
from .cover import CoverGenerator, OpenAIImageGenerator
from .delivery import Channel, TelegramChannel
from .exceptions import DeliveryError
from .fetcher import fetch_feed_items
from .models import DigestRun, RunOutcome, RunReport, SourceBlock
from .textgen import build_text_generator
from .transform import Transformer, transform_items

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Dispatcher:
    """
    Runs one digest: optional cover phase, then the digest phase.

    Pipeline: fetch → freshness filter → cap → transform → assemble → deliver

    Holds no state between runs; concurrent `run()` calls are independent and
    may deliver the same digest twice.
    """

    def __init__(
        self,
        config: DigestConfig,
        channel: Channel,
        transformer: Transformer,
        *,
        cover: Optional[CoverGenerator] = None,
        fetch: Optional[FetchFn] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self.config = config
        self._channel = channel
        self._transformer = transformer
        self._cover = cover
        self._fetch = fetch or functools.partial(fetch_feed_items, timeout=config.feed_timeout_sec)
        self._clock = clock

    def run(self) -> RunReport:
        now = self._clock()
        label = now.strftime("%Y-%m-%d")

        cover_ref: Optional[str] = None
        cover_sent: Optional[bool] = None
        if self._cover is not None:
            logger.debug("Phase: cover")
            cover_ref, cover_sent = self._cover_phase(self._cover, label)

        logger.debug("Phase: digest")
        blocks = self._build_blocks(now)
        run = DigestRun(generated_at=now, blocks=tuple(blocks), cover_ref=cover_ref)
        outcome = self._deliver_digest(run)
        logger.debug("Phase: idle")
        return RunReport(run=run, outcome=outcome, cover_sent=cover_sent)

    def _cover_phase(self, cover: CoverGenerator, label: str) -> Tuple[Optional[str], Optional[bool]]:
        ref = cover.generate_cover(label)
        if not ref:
            logger.info("No cover image available; continuing text-only")
            return None, None
        try:
            self._channel.send_image(ref, cover_caption(label, title=self.config.digest_title))
        except DeliveryError as e:
            logger.error("Cover delivery failed: %s", e)
            return ref, False
        logger.info("Cover sent")
        return ref, True

    def _build_blocks(self, now: datetime) -> List[SourceBlock]:
        cfg = self.config
        fetched = aggregate(
            cfg.sources,
            cfg.window,
            cfg.items_per_source,
            now=now,
            fetch=self._fetch,
            max_workers=cfg.max_workers,
        )
        # items of all sources share one pool, regrouped in configuration order
        flat = [it for _, raw_items in fetched for it in raw_items]
        for it in flat:
            logger.debug("  • %s", it.title)
        transformed = iter(transform_items(self._transformer, flat, max_workers=cfg.max_workers))
        return [
            SourceBlock(source=source, items=tuple(next(transformed) for _ in raw_items))
            for source, raw_items in fetched
        ]

    def _deliver_digest(self, run: DigestRun) -> RunOutcome:
        body = assemble(
            run.blocks,
            run.generated_at,
            window_hours=self.config.window_hours,
            title=self.config.digest_title,
        )
        if body is None:
            logger.info("No fresh items in the last %dh; nothing to send", self.config.window_hours)
            return RunOutcome.EMPTY
        try:
            self._channel.send_text(body)
        except DeliveryError as e:
            logger.error("Digest delivery failed: %s", e)
            return RunOutcome.DELIVERY_FAILED
        logger.info(
            "Digest sent: %d sources, %d items",
            len(run.non_empty_blocks),
            sum(len(b.items) for b in run.non_empty_blocks),
        )
        return RunOutcome.DELIVERED


def build_dispatcher(config: DigestConfig) -> Dispatcher:
    """Wire the production collaborators for `config`."""
    generator = build_text_generator(
        config.text_provider,
        openai_api_key=config.openai_api_key,
        gemini_api_key=config.gemini_api_key,
        openai_model=config.openai_model,
        gemini_model=config.gemini_model,
        timeout_sec=config.llm_timeout_sec,
    )
    transformer = Transformer(
        generator,
        language=config.target_language,
        max_tokens=config.max_output_tokens,
    )
    cover = None
    if config.cover_enabled and config.openai_api_key:
        cover = CoverGenerator(
            OpenAIImageGenerator(
                api_key=config.openai_api_key,
                model=config.image_model,
                timeout_sec=config.llm_timeout_sec,
            ),
            fallback_ref=config.cover_fallback_url,
            size=config.image_size,
        )
    channel = TelegramChannel(token=config.bot_token, chat_id=config.channel_id)
    return Dispatcher(config, channel, transformer, cover=cover)
