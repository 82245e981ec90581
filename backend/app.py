"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.config import get_settings
from backend.middleware import setup_middleware
from backend.routes import router


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Routes that need a richer body pass a dict as the detail.
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {error.get('msg')}" if loc else error.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"error": "; ".join(messages) or "Solicitud inválida."},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=settings.app_name, version="0.1.0")
    setup_middleware(app, settings)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
