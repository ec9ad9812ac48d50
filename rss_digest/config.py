from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

from .exceptions import ConfigError
from .models import SourceDescriptor

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_SOURCES: Tuple[SourceDescriptor, ...] = (
    SourceDescriptor("Smashing Magazine", "https://www.smashingmagazine.com/feed/"),
    SourceDescriptor("CSS-Tricks", "https://css-tricks.com/feed/"),
    SourceDescriptor("Dev.to (frontend)", "https://dev.to/feed/frontend"),
    SourceDescriptor("Frontend Focus", "https://frontendfoc.us/rss"),
    SourceDescriptor("A List Apart", "https://alistapart.com/feed/"),
    SourceDescriptor("SitePoint (Front End)", "https://www.sitepoint.com/front-end/feed/"),
    SourceDescriptor("JavaScript Weekly", "https://javascriptweekly.com/rss/"),
    SourceDescriptor("CSS Weekly", "https://css-weekly.com/feed/"),
    SourceDescriptor("HTML5 Weekly", "https://html5weekly.com/rss.xml"),
    SourceDescriptor("React Status", "https://react.statuscode.com/rss"),
    SourceDescriptor("Vue.js News", "https://news.vuejs.org/rss.xml"),
    SourceDescriptor("Angular Blog", "https://blog.angular.io/feed.xml"),
    SourceDescriptor("TypeScript Weekly", "https://www.typescriptweekly.com/rss.xml"),
    SourceDescriptor("Reddit r/frontend", "https://www.reddit.com/r/frontend/.rss"),
    SourceDescriptor("Hacker News (Front Page)", "https://hnrss.org/frontpage"),
    SourceDescriptor("Medium (Frontend Tag)", "https://medium.com/feed/tag/frontend"),
)


@dataclass(frozen=True)
class DigestConfig:
    """Immutable settings, built once at startup and passed to every component."""
    bot_token: str
    channel_id: str
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    sources: Tuple[SourceDescriptor, ...] = DEFAULT_SOURCES
    cron_schedule: str = "0 * * * *"
    window_hours: int = 24
    items_per_source: int = 3
    text_provider: str = "openai"
    openai_model: str = "gpt-4o-mini"
    gemini_model: str = "gemini-1.5-flash"
    target_language: str = "русский"
    max_output_tokens: int = 200
    max_workers: int = 4
    feed_timeout_sec: float = 15.0
    llm_timeout_sec: float = 30.0
    cover_enabled: bool = False
    cover_fallback_url: Optional[str] = None
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"
    digest_title: str = "Дайджест фронтенд-новостей"
    log_level: str = "INFO"

    @property
    def window(self) -> timedelta:
        return timedelta(hours=self.window_hours)

    def validate(self) -> "DigestConfig":
        if not self.bot_token:
            raise ConfigError("BOT_TOKEN is not set.")
        if not self.channel_id:
            raise ConfigError("CHANNEL_ID is not set.")
        if self.window_hours <= 0:
            raise ConfigError("DIGEST_HOURS must be positive.")
        if self.items_per_source <= 0:
            raise ConfigError("ITEMS_PER_SOURCE must be positive.")
        if not self.sources:
            raise ConfigError("No feeds configured.")
        names = [s.name for s in self.sources]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ConfigError(f"Duplicate feed names: {', '.join(dupes)}")

        provider = self.text_provider.lower()
        if provider == "openai" and not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is not set.")
        if provider in {"gemini", "google", "googleai"} and not self.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY (or GOOGLE_API_KEY) is not set.")
        if self.cover_enabled and not self.openai_api_key:
            raise ConfigError("COVER_ENABLED requires OPENAI_API_KEY.")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid LOG_LEVEL {self.log_level!r}; expected one of {', '.join(LOG_LEVELS)}")

        try:
            CronTrigger.from_crontab(self.cron_schedule)
        except ValueError as e:
            raise ConfigError(f"Invalid CRON_SCHEDULE {self.cron_schedule!r}: {e}") from e
        return self

    def redacted_summary(self) -> Dict[str, Any]:
        return {
            "BOT_TOKEN": bool(self.bot_token),
            "CHANNEL_ID": bool(self.channel_id),
            "OPENAI": bool(self.openai_api_key),
            "GEMINI": bool(self.gemini_api_key),
            "PROVIDER": self.text_provider,
            "CRON": self.cron_schedule,
            "HOURS": self.window_hours,
            "FEEDS": len(self.sources),
            "COVER": self.cover_enabled,
        }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> "DigestConfig":
        """
        Build the config from environment variables (and a local .env file).

        Raises ConfigError for missing or malformed values.
        """
        env = environ
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ

        feeds_file = env.get("FEEDS_FILE")
        sources = load_sources(feeds_file) if feeds_file else DEFAULT_SOURCES

        cfg = cls(
            bot_token=env.get("BOT_TOKEN", "").strip(),
            channel_id=env.get("CHANNEL_ID", "").strip(),
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            gemini_api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY") or None,
            sources=sources,
            cron_schedule=env.get("CRON_SCHEDULE") or "0 * * * *",
            window_hours=_int(env, "DIGEST_HOURS", 24),
            items_per_source=_int(env, "ITEMS_PER_SOURCE", 3),
            text_provider=(env.get("TEXT_PROVIDER") or "openai").lower(),
            openai_model=env.get("OPENAI_MODEL") or "gpt-4o-mini",
            gemini_model=env.get("GEMINI_MODEL") or "gemini-1.5-flash",
            target_language=env.get("TARGET_LANGUAGE") or "русский",
            max_output_tokens=_int(env, "MAX_OUTPUT_TOKENS", 200),
            max_workers=_int(env, "MAX_WORKERS", 4),
            feed_timeout_sec=float(_int(env, "FEED_TIMEOUT_SECONDS", 15)),
            llm_timeout_sec=float(_int(env, "LLM_TIMEOUT_SECONDS", 30)),
            cover_enabled=_bool(env.get("COVER_ENABLED")),
            cover_fallback_url=env.get("COVER_FALLBACK_URL") or None,
            image_model=env.get("IMAGE_MODEL") or "dall-e-3",
            image_size=env.get("IMAGE_SIZE") or "1024x1024",
            digest_title=env.get("DIGEST_TITLE") or "Дайджест фронтенд-новостей",
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
        return cfg.validate()


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e


def _bool(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def parse_sources(rows: Iterable[Any]) -> Tuple[SourceDescriptor, ...]:
    out = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ConfigError(f"Feed #{i} must be a mapping with 'name' and 'url'")
        name = str(row.get("name") or "").strip()
        url = str(row.get("url") or "").strip()
        if not name or not url:
            raise ConfigError(f"Feed #{i} lacks 'name' or 'url'")
        out.append(SourceDescriptor(name=name, endpoint=url))
    return tuple(out)


def load_sources(path: str) -> Tuple[SourceDescriptor, ...]:
    """Read a YAML list of {name, url} mappings."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read FEEDS_FILE {path}: {e}") from e
    if not isinstance(data, list):
        raise ConfigError(f"FEEDS_FILE {path} must contain a list of feeds")
    return parse_sources(data)
