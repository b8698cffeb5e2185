from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import List

def _env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default

def _env_bool(key: str, default: bool) -> bool:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}

def parse_cors_origins(raw: str) -> List[str]:
    raw = (raw or "").strip()
    if not raw:
        return []

    # Accept JSON list first, fallback to comma-separated.
    try:
        v = json.loads(raw)
        if isinstance(v, list):
            return [str(x) for x in v if str(x).strip()]
    except ValueError:
        pass

    return [x.strip() for x in raw.split(",") if x.strip()]

@dataclass(frozen=True)
class Settings:
    # storage / db
    db_url: str = "sqlite:///influence.db"

    # site files; uploads land under site_root / upload_subdir
    site_root: Path = Path("..")
    upload_subdir: str = "img/uploads"

    # contact form -> telegram (optional)
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_api_base: str = "https://api.telegram.org"

    # translation relay
    translate_url: str = "https://translate.googleapis.com/translate_a/single"
    translate_source_lang: str = "ru"

    # empty list means "*"
    cors_origins: tuple = ()

    # server
    host: str = "0.0.0.0"
    port: int = 9090
    reload: bool = False

    @property
    def upload_dir(self) -> Path:
        return self.site_root / self.upload_subdir

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            db_url=os.getenv("DB_URL", "sqlite:///influence.db"),
            site_root=Path(os.getenv("SITE_ROOT", "..")),
            upload_subdir=os.getenv("UPLOAD_SUBDIR", "img/uploads").strip("/"),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
            telegram_api_base=os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org").rstrip("/"),
            translate_url=os.getenv("TRANSLATE_URL", "https://translate.googleapis.com/translate_a/single"),
            translate_source_lang=os.getenv("TRANSLATE_SOURCE_LANG", "ru"),
            cors_origins=tuple(parse_cors_origins(os.getenv("CORS_ORIGINS", ""))),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 9090),
            reload=_env_bool("RELOAD", False),
        )
