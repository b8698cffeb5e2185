from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path, PurePosixPath
from typing import Dict, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError
from starlette.convertors import Convertor, register_url_convertor
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.staticfiles import StaticFiles

from influence_cms.api.entity_routes import read_json_body, register_entity_routes
from influence_cms.api.schemas import FormRequest, StatusResponse, TranslateRequest, TranslateResponse
from influence_cms.db.repo import EntityRepo, Repo
from influence_cms.entities import ENTITY_KINDS
from influence_cms.integrations.telegram import TelegramBot, TelegramError, format_lead_message
from influence_cms.integrations.translate import TranslationError, Translator
from influence_cms.logging_conf import setup_logging
from influence_cms.settings import Settings
from influence_cms.uploads import UploadStore

log = logging.getLogger(__name__)

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"
TRANSLATE_LANGS = ("uz", "en", "all")


class SitePathConvertor(Convertor):
    """Any path outside the API namespace, so unknown /api routes stay 404 or 405."""

    regex = r"(?!api(?:/|$)).*"

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


register_url_convertor("sitepath", SitePathConvertor())


def _load_env() -> None:
    """Load .env for local development.

    Set ENV_FILE to override the default.
    """
    env_file = os.getenv("ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file)


def _cors_headers(request: Request, settings: Settings) -> Dict[str, str]:
    headers = {
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
    }
    if not settings.cors_origins:
        headers["Access-Control-Allow-Origin"] = "*"
        return headers

    origin = request.headers.get("origin")
    if origin and origin in settings.cors_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def _site_page(root: Path, path: str) -> Optional[Path]:
    """Resolve ``/`` to index.html and ``/about`` to about.html, if present."""
    if path == "":
        candidate = root / "index.html"
    elif "." not in PurePosixPath(path).name:
        candidate = root / f"{path.strip('/')}.html"
    else:
        return None
    try:
        if candidate.is_file() and candidate.resolve().is_relative_to(root.resolve()):
            return candidate
    except OSError:
        return None
    return None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    _load_env()
    setup_logging()

    settings = settings or Settings.from_env()

    # Ensure schema on startup. Any failure here aborts the process.
    repo = Repo(settings=settings)
    repo.ensure_schema()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        repo.close()

    app = FastAPI(title="Influence CMS API", version="0.3", lifespan=lifespan)

    # Store shared objects
    app.state.settings = settings
    app.state.repo = repo
    app.state.entities = {kind.name: EntityRepo(db=repo, kind=kind) for kind in ENTITY_KINDS}
    app.state.uploads = UploadStore(settings.site_root, settings.upload_subdir)
    app.state.translator = Translator(url=settings.translate_url, source_lang=settings.translate_source_lang)
    app.state.telegram = (
        TelegramBot(
            token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            api_base=settings.telegram_api_base,
        )
        if settings.telegram_configured
        else None
    )

    # CORS: every response gets the headers, OPTIONS never reaches a route.
    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        response.headers.update(_cors_headers(request, settings))
        return response

    # --- errors: plain text bodies, no internals ---
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse("Invalid request", status_code=400)

    @app.exception_handler(sqlite3.Error)
    async def db_error(request: Request, exc: sqlite3.Error) -> PlainTextResponse:
        log.exception("DB error on %s %s", request.method, request.url.path, exc_info=exc)
        return PlainTextResponse("DB error", status_code=500)

    @app.exception_handler(OSError)
    async def fs_error(request: Request, exc: OSError) -> PlainTextResponse:
        log.exception("I/O error on %s %s", request.method, request.url.path, exc_info=exc)
        return PlainTextResponse("Internal Server Error", status_code=500)

    # --- basic ---
    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    router = APIRouter(prefix="/api")

    @router.post("/form", response_model=StatusResponse)
    async def submit_form(request: Request) -> StatusResponse:
        body = await read_json_body(request)
        try:
            payload = FormRequest.model_validate(body)
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid JSON")

        bot: Optional[TelegramBot] = request.app.state.telegram
        if bot is None:
            log.warning("Telegram env not set, skipping send. name=%s phone=%s", payload.name, payload.phone)
            raise HTTPException(status_code=500, detail="Telegram config missing")

        try:
            await bot.send_message(format_lead_message(payload.name, payload.phone, payload.description))
        except TelegramError as e:
            log.error("Failed to send form to Telegram: %s", e)
            raise HTTPException(status_code=500, detail="Failed to send to Telegram")
        return StatusResponse()

    @router.post("/translate")
    async def translate(request: Request) -> JSONResponse:
        body = await read_json_body(request)
        try:
            payload = TranslateRequest.model_validate(body)
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid JSON")
        if not payload.text:
            raise HTTPException(status_code=400, detail="Text is required")
        if payload.lang not in TRANSLATE_LANGS:
            raise HTTPException(status_code=400, detail="Lang must be 'uz', 'en' or 'all'")

        translator: Translator = request.app.state.translator
        response = TranslateResponse(original=payload.text, lang=payload.lang)
        if payload.lang == "all":
            response.translations = await translator.translate_all(payload.text)
        else:
            try:
                response.translated = await translator.translate(payload.text, payload.lang)
            except TranslationError as e:
                log.error("Translation failed: %s", e)
                raise HTTPException(status_code=500, detail="Translation failed")
        return JSONResponse(response.to_payload())

    for kind in ENTITY_KINDS:
        register_entity_routes(router, kind)

    app.include_router(router)

    # --- site pages and assets (registered last so API routes win) ---
    static = StaticFiles(directory=str(settings.site_root), check_dir=False)

    @app.get("/{path:sitepath}", include_in_schema=False)
    async def site(request: Request, path: str) -> Response:
        page = _site_page(settings.site_root, path)
        if page is not None:
            return FileResponse(page)
        return await static.get_response(path, request.scope)

    return app
