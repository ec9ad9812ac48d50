from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class SourceDescriptor:
    """A configured feed: display label (unique per run) and fetch URL."""
    name: str
    endpoint: str


@dataclass(frozen=True)
class RawItem:
    """
    One feed entry as returned by the fetch collaborator.

    `published_at` may be missing on the wire; such items never pass the
    freshness filter.
    """
    title: str
    snippet: Optional[str]
    link: str
    published_at: Optional[datetime]


@dataclass(frozen=True)
class TransformedItem:
    headline: str
    detail: Optional[str]
    link: str


@dataclass(frozen=True)
class SourceBlock:
    source: SourceDescriptor
    items: Tuple[TransformedItem, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class DigestRun:
    """
    Everything one invocation produced. Never persisted.

    WARNING: blocks keep source configuration order; the assembler relies on it.
    """
    generated_at: datetime
    blocks: Tuple[SourceBlock, ...]
    cover_ref: Optional[str] = None

    @property
    def non_empty_blocks(self) -> Tuple[SourceBlock, ...]:
        return tuple(b for b in self.blocks if not b.is_empty)


class ErrorReason(str, Enum):
    RESOURCE_EXHAUSTED = "resource_exhausted"
    UNAUTHORIZED = "unauthorized"
    TRANSIENT = "transient"
    EMPTY_RESPONSE = "empty_response"
    OTHER = "other"

    @property
    def skips_degraded(self) -> bool:
        # Quota and auth failures doom any further call to the same service.
        return self in (ErrorReason.RESOURCE_EXHAUSTED, ErrorReason.UNAUTHORIZED)


class RunOutcome(str, Enum):
    DELIVERED = "delivered"
    EMPTY = "empty"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class RunReport:
    run: DigestRun
    outcome: RunOutcome
    cover_sent: Optional[bool] = None
