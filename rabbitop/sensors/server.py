"""HTTP server exposing the /metrics endpoint for Prometheus scraping.

Uses the prometheus_client HTTP server in a daemon thread so it never
blocks the operator event loop or its shutdown.
"""

import os
import logging
from threading import Thread
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int = 8000) -> None:
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics available at http://0.0.0.0:{port}/metrics")
    except OSError as e:
        logger.error(f"Failed to start metrics server on port {port}: {e}")
        raise


def init_metrics_server() -> None:
    """Start the metrics server on METRICS_PORT (default: 8000)."""
    port = int(os.environ.get('METRICS_PORT', '8000'))
    thread = Thread(target=start_metrics_server, args=(port,), daemon=True)
    thread.start()
    logger.info(f"Metrics server initialization complete (port: {port})")
