from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .clients import close_http_clients, init_http_client
from .routers.admin import router as admin_router
from .routers.auth import router as auth_router
from .routers.health import router as health_router
from .routers.public import router as public_router
from .state import Portal, build_portal
from .ui import render_error
from .utils import wants_html


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    await init_http_client()
    try:
        yield
    finally:
        await close_http_clients()


def create_app(portal: Optional[Portal] = None) -> FastAPI:
    logging.basicConfig(level=logging.INFO)

    portal = portal or build_portal()
    portal.uploads_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="Discord Stickers Showcase", lifespan=app_lifespan)
    app.state.portal = portal

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if wants_html(request) and not request.url.path.startswith("/api/"):
            if exc.status_code == 404:
                return render_error("Page not found", "We couldn't find that page.", status_code=404)
            msg = exc.detail if isinstance(exc.detail, str) else "Something went wrong."
            return render_error("Request failed", msg, status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"error": "Invalid input", "detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logging.exception("Unhandled error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(health_router)
    app.include_router(public_router)
    app.include_router(auth_router)
    app.include_router(admin_router)

    app.mount("/uploads", StaticFiles(directory=str(portal.uploads_dir)), name="uploads")

    return app
