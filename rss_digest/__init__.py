"""
rss_digest

Collects fresh items from RSS/Atom feeds, translates and condenses them with a
text-generation model and posts one digest message to a Telegram channel.

Core ideas:
- Input: an ordered list of feeds, a freshness window, a per-feed cap
- Process: fetch → filter by age → cap → translate+summarize (with fallbacks) → assemble
- Output: a single Markdown message (optionally preceded by a cover image)

A failing feed, model call or cover image never stops the run.

Example
-------
from rss_digest import DigestConfig, build_dispatcher

config = DigestConfig.from_env()
report = build_dispatcher(config).run()
print(report.outcome)
"""
from .models import (
    DigestRun,
    ErrorReason,
    RawItem,
    RunOutcome,
    RunReport,
    SourceBlock,
    SourceDescriptor,
    TransformedItem,
)
from .exceptions import (
    ConfigError,
    CoverGenerationError,
    DeliveryError,
    DigestError,
    SourceFetchError,
    TransformError,
)
from .config import DigestConfig
from .dispatcher import Dispatcher, build_dispatcher

__all__ = [
    "ConfigError",
    "CoverGenerationError",
    "DeliveryError",
    "DigestConfig",
    "DigestError",
    "DigestRun",
    "Dispatcher",
    "ErrorReason",
    "RawItem",
    "RunOutcome",
    "RunReport",
    "SourceBlock",
    "SourceDescriptor",
    "SourceFetchError",
    "TransformError",
    "TransformedItem",
    "build_dispatcher",
]
