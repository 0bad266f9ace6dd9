from __future__ import annotations

import uvicorn

from .envs.provider_env import get_settings
from .infrastructure.signing import address_from_private_key
from .serving import install_event_loop_policy, setup_prometheus_multiproc_dir

install_event_loop_policy()


def main() -> None:
    """Main entry point for the provider (resource server)."""

    settings = get_settings()

    print(f"Starting {settings.app_name} Provider v{settings.app_version}")
    print(f"Provider address: {address_from_private_key(settings.provider_private_key)}")
    print(f"Bond escrow: {settings.bond_escrow_address}")
    print(f"Facilitator: {settings.facilitator_url}")
    print(f"Price: {settings.price_units} units on {settings.network}")
    print(f"API will be available at: http://{settings.api_host}:{settings.api_port}")
    print(f"API Documentation: http://{settings.api_host}:{settings.api_port}/docs")

    setup_prometheus_multiproc_dir()

    uvicorn.run(
        "x402guard.api.provider_api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
