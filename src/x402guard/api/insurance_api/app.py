"""FastAPI application configuration (Insurer API)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...envs.insurance_env import get_settings
from ...infrastructure.scripts import INSURANCE_SCRIPTS
from .dependencies import get_database_client_dependency, get_store_dependency
from .routers import insurance

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    store = get_store_dependency()
    for name, script in INSURANCE_SCRIPTS.items():
        await store.register_script(name, script)
    yield
    await get_database_client_dependency().close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=f"{settings.app_name} Insurer",
        version=settings.app_version,
        description="Per-request insurance for x402 payments",
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
    )
    app.include_router(insurance.router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": f"Welcome to {settings.app_name} Insurer API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": f"{settings.app_name} Insurer",
            "contract": settings.insurance_contract_address,
        }

    return app


app = create_app()
