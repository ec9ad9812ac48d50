from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from telegram.helpers import escape_markdown

from .models import SourceBlock

DEFAULT_TITLE = "Дайджест фронтенд-новостей"
DEFAULT_EMOJI = "📰"
LINK_LABEL = "читать"


def _md(text: str) -> str:
    return escape_markdown(text, version=1)


def _url(link: str) -> str:
    # a raw ")" ends the inline link early
    return link.replace("(", "%28").replace(")", "%29")


def format_timestamp(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M")


def header_line(generated_at: datetime, *, window_hours: int, title: str = DEFAULT_TITLE, emoji: str = DEFAULT_EMOJI) -> str:
    return (
        f"{emoji} *{_md(title)} за последние {window_hours}ч "
        f"(по состоянию на {format_timestamp(generated_at)})*"
    )


def cover_caption(label: str, *, title: str = DEFAULT_TITLE) -> str:
    return f"🖼 *{_md(title)}* — {label}"


def render_block(block: SourceBlock) -> List[str]:
    lines = [f"🔹 *{_md(block.source.name)}*"]
    for item in block.items:
        lines.append(f"• {_md(item.headline)} — [{LINK_LABEL}]({_url(item.link)})")
        if item.detail:
            lines.append(f"  {_md(item.detail)}")
    return lines


def assemble(
    blocks: Iterable[SourceBlock],
    generated_at: datetime,
    *,
    window_hours: int,
    title: str = DEFAULT_TITLE,
    emoji: str = DEFAULT_EMOJI,
) -> Optional[str]:
    """
    Render the digest message, or return None when no block has items.

    Blocks are emitted in the order given; empty blocks are skipped.
    """
    lines = [header_line(generated_at, window_hours=window_hours, title=title, emoji=emoji), ""]
    rendered = 0
    for block in blocks:
        if block.is_empty:
            continue
        lines.extend(render_block(block))
        lines.append("")
        rendered += 1

    if not rendered:
        return None
    return "\n".join(lines).rstrip()
