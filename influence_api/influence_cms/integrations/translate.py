from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

log = logging.getLogger(__name__)

SUPPORTED_LANGS = ("uz", "en")

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class TranslationError(Exception):
    pass


def extract_translation(data: Any) -> Optional[str]:
    """Pull the translated text out of a ``translate_a/single`` response.

    The payload looks like ``[[["Salom", "Привет", ...], ...], null, "ru", ...]``;
    long inputs come back split into several segments.
    """
    if not isinstance(data, list) or not data or not isinstance(data[0], list):
        return None
    parts = []
    for seg in data[0]:
        if isinstance(seg, list) and seg and isinstance(seg[0], str):
            parts.append(seg[0])
    return "".join(parts) if parts else None


@dataclass(frozen=True)
class Translator:
    url: str = "https://translate.googleapis.com/translate_a/single"
    source_lang: str = "ru"

    async def translate(self, text: str, target: str) -> str:
        if not text:
            return ""
        if target not in SUPPORTED_LANGS:
            return text

        params = {"client": "gtx", "sl": self.source_lang, "tl": target, "dt": "t", "q": text}
        try:
            async with aiohttp.ClientSession(headers=_BROWSER_HEADERS) as session:
                async with session.get(self.url, params=params) as resp:
                    body = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranslationError(f"{target}: {e!r}") from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise TranslationError(f"{target}: undecodable response ({resp.status})") from e

        translated = extract_translation(data)
        if translated is None:
            log.info("No translation found for lang=%s, returning original", target)
            return text
        return translated

    async def translate_all(self, text: str) -> Dict[str, str]:
        """Translate into every supported language; failed languages are left out."""
        results = await asyncio.gather(
            *(self.translate(text, lang) for lang in SUPPORTED_LANGS),
            return_exceptions=True,
        )
        out: Dict[str, str] = {}
        for lang, res in zip(SUPPORTED_LANGS, results):
            if isinstance(res, TranslationError):
                log.warning("Translation to %s failed: %s", lang, res)
                continue
            if isinstance(res, BaseException):
                raise res
            out[lang] = res
        return out
