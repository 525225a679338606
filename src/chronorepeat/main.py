#!/usr/bin/env python3
"""Main entry point for ChronoRepeat."""

import argparse
import logging
import sys
from pathlib import Path
import uvicorn

from chronorepeat.config import settings

logger = logging.getLogger(__name__)


def configure_logging():
    """Configure root logging from settings."""
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def run_http_server():
    """Run the HTTP API server."""
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")

    uvicorn.run(
        "chronorepeat.api.http_server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="ChronoRepeat Scheduler")
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"HTTP server host (default: {settings.api_host})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api_port,
        help=f"HTTP server port (default: {settings.api_port})"
    )

    args = parser.parse_args()

    settings.api_host = args.host
    settings.api_port = args.port

    configure_logging()

    try:
        run_http_server()
    except KeyboardInterrupt:
        logger.info("Shutting down ChronoRepeat...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
