from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import TelegramError

from .exceptions import DeliveryError


class Channel(Protocol):
    def send_text(self, body: str) -> None:  # pragma: no cover - interface
        ...

    def send_image(self, image_ref: str, caption: str) -> None:  # pragma: no cover - interface
        ...


class TelegramChannel:
    """
    Single-destination Telegram channel.

    Each send opens its own Bot session so the channel can be driven from the
    synchronous pipeline and from scheduler worker threads alike.
    """

    def __init__(self, *, token: str, chat_id: str, timeout_sec: float = 30.0) -> None:
        self._token = token
        self._chat_id = chat_id
        self._timeout = timeout_sec

    def send_text(self, body: str) -> None:
        async def _send(bot: Bot) -> None:
            await bot.send_message(
                chat_id=self._chat_id,
                text=body,
                parse_mode=ParseMode.MARKDOWN,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
                read_timeout=self._timeout,
                write_timeout=self._timeout,
            )

        self._run(_send)

    def send_image(self, image_ref: str, caption: str) -> None:
        async def _send(bot: Bot) -> None:
            await bot.send_photo(
                chat_id=self._chat_id,
                photo=image_ref,
                caption=caption,
                parse_mode=ParseMode.MARKDOWN,
                read_timeout=self._timeout,
                write_timeout=self._timeout,
            )

        self._run(_send)

    def _run(self, send: Callable[[Bot], Awaitable[None]]) -> None:
        async def _session() -> None:
            async with Bot(self._token) as bot:
                await send(bot)

        try:
            asyncio.run(_session())
        except TelegramError as e:
            raise DeliveryError(f"Telegram rejected message for {self._chat_id}: {e}") from e
