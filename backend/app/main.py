import logging
import sqlite3
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import init_db
from app.routers import jobs, search
from app.schemas.common import ErrorDetail, ErrorResponse

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db()
    conn = sqlite3.connect(str(settings.db_path))
    result = conn.execute("PRAGMA integrity_check").fetchone()
    conn.close()
    if result and result[0] == "ok":
        logger.info("Database integrity check passed: %s", settings.db_path)
    else:
        logger.error("DATABASE INTEGRITY CHECK FAILED: %s (%s)", result, settings.db_path)
    yield


app = FastAPI(
    title="Job Board API",
    description="Job posting management with filtered listing, search and statistics",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, details: list[ErrorDetail] | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        ErrorDetail(
            field=".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    logger.warning(
        "Validation failed on %s %s: %s",
        request.method,
        request.url.path,
        [d.model_dump() for d in details],
    )
    return _error(400, "Validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.warning(
            "%s %s returned %d: %s (path params: %s)",
            request.method,
            request.url.path,
            exc.status_code,
            exc.detail,
            request.path_params,
        )
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    # Store errors are logged in full; the client only sees a generic message
    logger.error(
        "Store failure on %s %s (path params: %s, query: %s)",
        request.method,
        request.url.path,
        request.path_params,
        dict(request.query_params),
        exc_info=exc,
    )
    return _error(500, "Internal server error")


app.include_router(jobs.router, prefix=settings.api_prefix)
app.include_router(search.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
