"""FastAPI application factory."""

import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from photo_restore.adapters.cookie_entitlement_store import CookieEntitlementStore
from photo_restore.api.checkout import router as checkout_router
from photo_restore.api.dependencies import (
    UID_COOKIE,
    UID_MAX_AGE,
    get_entitlement_store,
    get_uid,
)
from photo_restore.api.restore import router as restore_router
from photo_restore.app_logging import configure_logging
from photo_restore.config import resolve_allowed_origins
from photo_restore.containers import AppContainer
from photo_restore.domain.errors import PhotoRestoreError, RateLimited

STATIC_FILES = ("index.html", "script.js", "styles.css")
_BEFORE_PATTERN = re.compile(r"^before(\d+)\.")
_MAX_UID_LENGTH = 128


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    settings = container.settings
    configure_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    allowed_origins = resolve_allowed_origins(settings)
    if not container.cookie_signer.is_signing:
        logger.warning("COOKIE_SECRET is not set; entitlement cookies are unsigned")
    if not container.generation_gateway.is_configured:
        logger.warning("No image generation provider API key is configured")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.state.allowed_origins = allowed_origins

    @app.middleware("http")
    async def assign_uid(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Give first-time clients an anonymous id cookie."""
        uid = request.cookies.get(UID_COOKIE)
        issued = not uid or len(uid) > _MAX_UID_LENGTH
        if issued:
            uid = uuid4().hex
        request.state.uid = uid
        response = await call_next(request)
        if issued:
            response.set_cookie(
                UID_COOKIE,
                uid,
                max_age=UID_MAX_AGE,
                httponly=True,
                secure=settings.is_production,
                samesite="lax",
            )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(PhotoRestoreError)
    async def photo_restore_error(
        request: Request, exc: PhotoRestoreError
    ) -> JSONResponse:
        headers = exc.headers() if isinstance(exc, RateLimited) else None
        return JSONResponse(exc.payload(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body: dict[str, object] = {"error": "Invalid request body"}
        if settings.environment == "local":
            body["detail"] = str(exc)
        return JSONResponse(body, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        body: dict[str, object] = {"error": "Internal error"}
        if settings.environment == "local":
            body["detail"] = str(exc)
        return JSONResponse(body, status_code=500)

    app.include_router(restore_router)
    app.include_router(checkout_router)

    @app.get("/api/health")
    async def health(
        uid: str = Depends(get_uid),
        store: CookieEntitlementStore = Depends(get_entitlement_store),
    ) -> dict[str, object]:
        """Health check with the caller's usage."""
        entitlement = store.get_entitlement(uid)
        return {
            "ok": True,
            "modelDefault": (
                settings.gemini_model
                if settings.gemini_api_key
                else settings.openrouter_model
            ),
            "hasKey": container.generation_gateway.is_configured,
            "uid": uid,
            "usage": {"credits": entitlement.credits},
            "freeRemaining": entitlement.free_remaining,
            "stripeTestMode": settings.stripe_test_mode,
        }

    @app.get("/api/me")
    async def me(
        uid: str = Depends(get_uid),
        store: CookieEntitlementStore = Depends(get_entitlement_store),
    ) -> dict[str, object]:
        """Return the caller's credits and free restores left."""
        entitlement = store.get_entitlement(uid)
        return {
            "uid": uid,
            "credits": entitlement.credits,
            "freeRemaining": entitlement.free_remaining,
        }

    examples_dir = Path(settings.examples_dir)

    @app.get("/api/examples")
    async def examples() -> JSONResponse:
        """List before/after sample pairs."""
        try:
            items = list_example_pairs(examples_dir)
        except OSError as exc:
            logger.exception("Failed to list examples", extra={"dir": str(examples_dir)})
            return JSONResponse({"error": str(exc)}, status_code=500)
        return JSONResponse({"items": items})

    if examples_dir.is_dir():
        app.mount("/examples", StaticFiles(directory=examples_dir), name="examples")
    _register_static_files(app, Path(settings.static_dir))

    return app


def list_example_pairs(directory: Path) -> list[dict[str, str | None]]:
    """Pair beforeN.* files with afterN.* files in a directory."""
    files = sorted(entry.name for entry in directory.iterdir() if entry.is_file())
    items: list[dict[str, str | None]] = []
    for name in files:
        match = _BEFORE_PATTERN.match(name)
        if not match:
            continue
        after = next((f for f in files if f.startswith(f"after{match.group(1)}.")), None)
        items.append(
            {
                "before": f"/examples/{name}",
                "after": f"/examples/{after}" if after else None,
            }
        )
    return items


def _register_static_files(app: FastAPI, static_dir: Path) -> None:
    """Serve the frontend's entry files when they exist on disk."""
    for name in STATIC_FILES:
        path = static_dir / name
        if not path.is_file():
            continue
        route = "/" if name == "index.html" else f"/{name}"
        app.add_api_route(
            route, _file_endpoint(path), methods=["GET"], include_in_schema=False
        )


def _file_endpoint(path: Path) -> Callable[[], Awaitable[FileResponse]]:
    async def serve() -> FileResponse:
        return FileResponse(path)

    return serve
