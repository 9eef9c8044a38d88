import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from controllers.record_controller import database_ready
from routes.record_route import router as record_router
from services.errors import RecordStoreError, RecordValidationError
from services.record_store import RecordStore
from utils.config import Settings, load_settings
from utils.database_init import AsyncDatabaseInitializer
from utils.logging_config import setup_logging

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - logging, from LOG_LEVEL
      - the SQLite record database (created if missing, never wiped)
      - the record store built on top of it
    and attach them to `app.state`. The database handle is closed on shutdown.
    """
    settings: Settings = getattr(app.state, "settings", None) or load_settings()
    app.state.settings = settings
    setup_logging(settings.log_level)

    db_initializer = AsyncDatabaseInitializer(settings)
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer
    app.state.record_store = RecordStore(
        db_initializer,
        list_limit=settings.list_limit,
        max_list_limit=settings.max_list_limit,
        max_image_bytes=settings.max_image_bytes,
    )

    try:
        yield
    finally:
        await db_initializer.close()


def _error_body(error: str, **extra) -> dict:
    body = {"success": False, "error": error}
    body.update({k: v for k, v in extra.items() if v})
    return body


async def record_store_error_handler(request: Request, exc: RecordStoreError) -> JSONResponse:
    if isinstance(exc, RecordValidationError):
        body = _error_body(
            exc.message,
            missingFields=exc.missing_fields,
            invalidFields=exc.invalid_fields,
        )
    else:
        LOGGER.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        body = _error_body(str(exc) or "Database operation failed")
    return JSONResponse(status_code=exc.status_code, content=body)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request parameters", invalidFields=fields),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Optional explicit settings; read from the environment at
            startup when omitted.
    """
    app = FastAPI(lifespan=lifespan, title="Tree Health Records")
    app.state.settings = settings

    app.add_exception_handler(RecordStoreError, record_store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports whether the record database is open.
        """
        return {"ok": True, "db_initialized": database_ready(request)}

    app.include_router(record_router)

    return app


app = create_app()
