#!/usr/bin/env python3
"""
Assistants Gateway - HTTP Server
================================

Serves the MCP gateway over HTTP:
- Endpoint: POST /mcp/{api-key} or POST /mcp/{provider}/{api-key}
- CORS preflight answered on every path
- One provider registry bridged per request from the key in the path

Usage:
    python server.py              # Start server on 127.0.0.1:8787
    python server.py --port 8000  # Custom port
"""

import argparse
import logging

import uvicorn

from assistants_gateway.config import load_config
from assistants_gateway.transports.http import create_app
from assistants_gateway.version import __version__

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("Gateway")

config = load_config()
app = create_app(config)


def main():
    parser = argparse.ArgumentParser(description="Assistants Gateway HTTP Server")
    parser.add_argument("--host", default=config.server.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.server.port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload")
    args = parser.parse_args()

    logger.info("Starting Assistants Gateway %s on %s:%d", __version__, args.host, args.port)
    try:
        uvicorn.run(
            "server:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=config.server.log_level,
        )
    except OSError as e:
        if e.errno in (98, 10048):
            logger.error("Failed to start server on port %d. Port is likely in use.", args.port)
            raise SystemExit(1)
        raise


if __name__ == "__main__":
    main()
