from __future__ import annotations

import os

import uvicorn
from dotenv import load_dotenv

from influence_cms.settings import Settings


def main() -> None:
    load_dotenv(os.getenv("ENV_FILE", ".env"))
    settings = Settings.from_env()

    # Single process: the app owns one SQLite connection shared by all requests.
    uvicorn.run(
        "influence_cms.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
