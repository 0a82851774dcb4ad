"""FastAPI application factory."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from push_relay.api.v1 import api_router, health_router
from push_relay.config import settings
from push_relay.logging_config import configure_logging
from push_relay.services.state import RelayState, build_relay_state


tags_metadata: List[dict[str, str]] = [
    {"name": "subscriptions", "description": "Register and inspect device push subscriptions."},
    {"name": "notifications", "description": "Broadcast payloads to every subscribed device."},
    {"name": "health", "description": "Relay liveness."},
]


def create_app(state: RelayState | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    ``state`` lets callers supply a pre-wired registry and engine; by default a
    fresh one is built from settings, delivering through Web Push.
    """

    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Relay that stores push subscriptions and broadcasts notifications to them.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
    )
    app.state.relay = state or build_relay_state(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("Request rejected", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_errors(exc), "message": "Validation failed"},
        )

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(health_router)
    logger.info("Relay application created", prefix=settings.API_PREFIX)
    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


app = create_app()
