"""
Assistants Gateway CLI.

Usage:
    assistants-gateway serve [--host HOST] [--port PORT]
    assistants-gateway stdio [--log-file PATH]
    assistants-gateway tools [--json]
    assistants-gateway providers

Commands:
    serve       Run the HTTP transport (POST /mcp/{api-key}).
    stdio       Run the line-delimited stdio transport, or forward to a remote
                gateway when GATEWAY_PROXY_URL is set.
    tools       Print the tool catalog.
    providers   Print the provider factories known to this build.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from assistants_gateway.config import GatewayConfig, load_config
from assistants_gateway.version import __version__

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("Gateway.cli")


def configure_logging(level: str = "info", log_file: Optional[str] = None) -> None:
    """Send logs to ``log_file`` or stderr; stdout is reserved for protocol output."""
    kwargs = {"filename": log_file, "filemode": "a"} if log_file else {"stream": sys.stderr}
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT, **kwargs)


def cmd_serve(args: argparse.Namespace, config: GatewayConfig) -> int:
    import uvicorn

    from assistants_gateway.transports.http import create_app

    configure_logging(config.server.log_level)
    host = args.host or config.server.host
    port = args.port or config.server.port
    logger.info("Starting assistants gateway %s on %s:%d", __version__, host, port)
    try:
        uvicorn.run(create_app(config), host=host, port=port, log_level=config.server.log_level)
    except OSError as e:
        if e.errno in (98, 10048):
            logger.error("Port %d is already in use", port)
            return 1
        raise
    return 0


def run_stdio(config: GatewayConfig) -> int:
    from assistants_gateway.mcp.dispatcher import ProtocolDispatcher
    from assistants_gateway.providers.registry import create_provider_registry
    from assistants_gateway.transports.proxy import ProxyTransportAdapter
    from assistants_gateway.transports.stdio import StdioServer, StdioTransportAdapter

    server = StdioServer(max_in_flight=config.stdio.max_in_flight)
    server.start()
    registry = None
    proxy = None
    try:
        if config.proxy_url:
            logger.info("Stdio transport forwarding to remote gateway")
            proxy = ProxyTransportAdapter(config.proxy_url, timeout=config.request_timeout)
            server.handler = proxy.handle_request
        else:
            registry = server.call(create_provider_registry(config))
            dispatcher = ProtocolDispatcher(registry, adapter=StdioTransportAdapter(), debug=config.debug)
            server.handler = dispatcher.handle_request
        server.serve()
    finally:
        if registry is not None:
            server.call(registry.shutdown(), timeout=10.0)
        if proxy is not None:
            server.call(proxy.close(), timeout=10.0)
        server.close()
    return 0


def cmd_stdio(args: argparse.Namespace, config: GatewayConfig) -> int:
    configure_logging(config.server.log_level, args.log_file or config.stdio.log_file)
    return run_stdio(config)


def cmd_tools(args: argparse.Namespace, config: GatewayConfig) -> int:
    from assistants_gateway.mcp.definitions import build_tool_definitions

    definitions = build_tool_definitions()
    if args.json:
        print(json.dumps(definitions, indent=2))
        return 0
    for tool in definitions:
        flags = []
        annotations = tool["annotations"]
        if annotations["readOnlyHint"]:
            flags.append("read-only")
        if annotations["destructiveHint"]:
            flags.append("destructive")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{tool['name']:<28} {tool['title']}{suffix}")
    return 0


def cmd_providers(args: argparse.Namespace, config: GatewayConfig) -> int:
    from assistants_gateway.providers.registry import default_factories

    enabled = set(config.enabled_providers())
    for name, factory in default_factories().items():
        metadata = factory.get_metadata()
        state = "enabled" if name in enabled else "disabled"
        print(f"{name:<10} {state:<9} {metadata.description}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assistants-gateway",
        description="MCP gateway for the OpenAI Assistants API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  assistants-gateway serve --port 8787\n"
               "  OPENAI_API_KEY=sk-... assistants-gateway stdio\n"
               "  assistants-gateway tools --json\n",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP transport.")
    serve.add_argument("--host", default=None, help="Host to bind to (default: GATEWAY_HOST or 127.0.0.1).")
    serve.add_argument("--port", type=int, default=None, help="Port to bind to (default: GATEWAY_PORT or 8787).")

    stdio = subparsers.add_parser("stdio", help="Run the stdio transport.")
    stdio.add_argument("--log-file", default=None, metavar="PATH", help="Write logs here instead of stderr.")

    tools = subparsers.add_parser("tools", help="Print the tool catalog.")
    tools.add_argument("--json", action="store_true", default=False, help="Print full tool definitions as JSON.")

    subparsers.add_parser("providers", help="Print known providers.")
    return parser


_COMMANDS = {
    "serve": cmd_serve,
    "stdio": cmd_stdio,
    "tools": cmd_tools,
    "providers": cmd_providers,
}


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1
    return command(args, load_config())


if __name__ == "__main__":
    raise SystemExit(main())
