"""FastAPI application configuration (Relay API)."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...envs.relay_env import get_settings
from .routers import relay

settings = get_settings()


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.app_name} Relay",
        version=settings.app_version,
        description="Gasless refund relay for bonded escrows",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Root-level paths: clients already post to /relay-refund
    app.include_router(relay.router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": f"Welcome to {settings.app_name} Relay API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()
