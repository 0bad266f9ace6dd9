from __future__ import annotations

import uvicorn

from .envs.insurance_env import get_settings
from .serving import install_event_loop_policy, setup_prometheus_multiproc_dir

install_event_loop_policy()


def main() -> None:
    """Main entry point for the insurer service."""

    settings = get_settings()

    print(f"Starting {settings.app_name} Insurer v{settings.app_version}")
    print(f"Database: {settings.database_url}")
    print(f"Insurance contract: {settings.insurance_contract_address}")
    print(f"Minimum provider bond: {settings.min_bond}")
    print(f"API will be available at: http://{settings.api_host}:{settings.api_port}")
    print(f"API Documentation: http://{settings.api_host}:{settings.api_port}/docs")

    setup_prometheus_multiproc_dir()

    uvicorn.run(
        "x402guard.api.insurance_api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
