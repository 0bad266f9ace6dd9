"""Process setup shared by the service entry points."""

from __future__ import annotations

import asyncio
import os
import sys


def install_event_loop_policy() -> None:
    # uvloop is only installed on Linux/macOS
    if sys.platform != "win32":
        import uvloop

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())


def setup_prometheus_multiproc_dir() -> None:
    """Prepare the Prometheus multiprocess directory before Uvicorn starts.

    Each run starts from a clean directory so stale metric files from a
    previous process are not aggregated into the new one.
    """
    prom_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if not prom_dir:
        return

    os.makedirs(prom_dir, exist_ok=True)
    for filename in os.listdir(prom_dir):
        file_path = os.path.join(prom_dir, filename)
        if os.path.isfile(file_path):
            os.remove(file_path)
