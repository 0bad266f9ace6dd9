from __future__ import annotations

import uvicorn

from .envs.relay_env import get_settings
from .infrastructure.signing import address_from_private_key
from .serving import install_event_loop_policy, setup_prometheus_multiproc_dir

install_event_loop_policy()


def main() -> None:
    """Main entry point for the gasless refund relay."""

    settings = get_settings()

    print(f"Starting {settings.app_name} Relay v{settings.app_version}")
    print(f"Relayer address: {address_from_private_key(settings.relayer_private_key)}")
    print(f"RPC: {settings.rpc_url} (chain {settings.chain_id})")
    print(f"API will be available at: http://{settings.api_host}:{settings.api_port}")
    print(f"API Documentation: http://{settings.api_host}:{settings.api_port}/docs")

    # Statistics live in process memory, so the relay always runs one worker
    setup_prometheus_multiproc_dir()

    uvicorn.run(
        "x402guard.api.relay_api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
