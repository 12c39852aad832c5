"""
Photo Revive – AI photo restoration and editing API (FastAPI + SQLModel)

Quick start
-----------
1) python -m venv .venv && source .venv/bin/activate  # or .venv\\Scripts\\activate on Windows
2) pip install -e .
3) export REPLICATE_API_TOKEN=...  # prediction API credential
4) python app.py  # creates ./photo_revive.db on first start
5) python accounts.py you@example.com  # prints an API token for authenticated use

Notes
-----
• POST /api/restore {inputImage} and POST /api/edit {inputImage, prompt} return {output}.
• Results are cached by content hash, so identical uploads never hit the model twice.
• Anonymous callers get two operations per feature, tracked with the anon-id cookie.
• Seed the restore cache from sample pairs with `python seed_cache.py img_cache`.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import configure_logging
from database import init_db
from errors import ServiceError
from routes import (
    create_edit,
    create_restoration,
    health_check,
    list_edits,
    list_restorations,
    usage_stats,
)

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down")


# Create FastAPI app
app = FastAPI(title="Photo Revive", lifespan=lifespan)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse({"error": detail or "Invalid request body"}, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


# Routes
app.post("/api/restore")(create_restoration)
app.get("/api/restore")(list_restorations)
app.post("/api/edit")(create_edit)
app.get("/api/edit")(list_edits)
app.get("/api/stats")(usage_stats)
app.get("/health")(health_check)


if __name__ == "__main__":
    # Allow `python app.py 8000`
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000
    logger.info("Open http://localhost:%s/docs", port)
    import uvicorn

    uvicorn.run("app:app", host="127.0.0.1", port=port, reload=True)
