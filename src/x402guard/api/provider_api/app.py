"""FastAPI application configuration (Provider API)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...envs.provider_env import get_settings
from .dependencies import get_facilitator_client
from .payments import install_payment_handler
from .routers import resources

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await get_facilitator_client().aclose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=f"{settings.app_name} Provider",
        version=settings.app_version,
        description="x402 resource server with refund vouchers",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-PAYMENT-RESPONSE", "X-PAYMENT-RECEIPT"],
    )
    install_payment_handler(app)
    app.include_router(resources.router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": f"Welcome to {settings.app_name} Provider API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()
