#!/usr/bin/env python3
"""
Assistants Gateway - stdio entrypoint
=====================================

Launched by MCP hosts as a subprocess.  Speaks line-delimited JSON-RPC on
stdin/stdout.  When GATEWAY_PROXY_URL is set, every request is forwarded to a
remote HTTP gateway instead of being served locally.

stdout carries protocol messages only: logs go to GATEWAY_STDIO_LOG_FILE when
set, otherwise to stderr.  A fatal error is reported to the host as one
JSON-RPC InternalError line before the process exits.
"""

import json
import logging
import sys

from assistants_gateway.cli import configure_logging, run_stdio
from assistants_gateway.config import load_config
from assistants_gateway.errors import INTERNAL_ERROR, create_error_response

logger = logging.getLogger("Gateway")


def _report_fatal(exc: BaseException) -> None:
    message = create_error_response(
        None, INTERNAL_ERROR, "Gateway stdio transport failed", {"errorType": type(exc).__name__}
    )
    try:
        sys.stdout.write(json.dumps(message) + "\n")
        sys.stdout.flush()
    except (BrokenPipeError, OSError):
        logger.warning("Could not report fatal error; stdout is closed")


def main():
    config = load_config()
    configure_logging(config.server.log_level, config.stdio.log_file)
    logger.info("Assistants Gateway stdio wrapper started")
    try:
        return run_stdio(config)
    except Exception as exc:
        logger.exception("Stdio wrapper terminated with an error")
        _report_fatal(exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
