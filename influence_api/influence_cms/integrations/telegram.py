from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import aiohttp

log = logging.getLogger(__name__)

LEAD_TEMPLATE = "Новая заявка!\nИмя: {name}\nТелефон: {phone}\nОписание: {description}"


class TelegramError(Exception):
    pass


def format_lead_message(name: str, phone: str, description: str) -> str:
    return LEAD_TEMPLATE.format(name=name, phone=phone, description=description)


@dataclass(frozen=True)
class TelegramBot:
    token: str
    chat_id: str
    api_base: str = "https://api.telegram.org"

    @property
    def send_message_url(self) -> str:
        return f"{self.api_base}/bot{self.token}/sendMessage"

    async def send_message(self, text: str) -> None:
        """Single POST to sendMessage. No retry: a timeout may still have delivered."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.send_message_url,
                    data={"chat_id": self.chat_id, "text": text},
                ) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        raise TelegramError(f"sendMessage returned {resp.status}: {body[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TelegramError(repr(e)) from e
