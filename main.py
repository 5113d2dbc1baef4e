"""Main entry point for ClipShare."""

import argparse
import asyncio
import os

import uvicorn
from dotenv import load_dotenv

from clipshare.api import create_fastapi_app
from clipshare.app import Application
from clipshare.client.console import run_console
from clipshare.config import CERTS_DIR, PROJECT_ROOT, tls_files
from clipshare.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def serve(args: argparse.Namespace) -> None:
    """Run the hub server."""
    setup_logging()

    api_host = args.host or os.getenv("API_HOST", "localhost")
    api_port = args.port or int(os.getenv("API_PORT", "3000"))

    application = Application()
    app = create_fastapi_app(application)

    use_https = os.getenv("HTTPS", "").lower() == "true"
    ssl_options = {}
    tls = tls_files(use_https)
    if tls:
        ssl_options = {"ssl_certfile": str(tls[0]), "ssl_keyfile": str(tls[1])}
        logger.info("Starting server in HTTPS mode")
    elif use_https:
        logger.warning(
            "HTTPS requested but certificates not found in %s; falling back to HTTP",
            CERTS_DIR,
        )

    protocol = "https" if tls else "http"
    logger.info("Server running at %s://%s:%s", protocol, api_host, api_port)

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
        ws_max_size=application.max_payload_bytes,
        **ssl_options,
    )


def client(args: argparse.Namespace) -> None:
    """Run the console client."""
    setup_logging(log_level=os.getenv("LOG_LEVEL", "WARNING"))
    server_url = args.url or os.getenv("CLIPSHARE_URL", "http://localhost:3000")
    try:
        asyncio.run(run_console(server_url))
    except KeyboardInterrupt:
        pass


def main() -> None:
    """Parse the command line and run the selected command."""
    load_dotenv(PROJECT_ROOT / ".env")

    parser = argparse.ArgumentParser(prog="clipshare", description="Real-time shared clipboard")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="run the hub server (default)")
    serve_parser.add_argument("--host", help="bind address (API_HOST)")
    serve_parser.add_argument("--port", type=int, help="port (API_PORT)")
    serve_parser.set_defaults(func=serve)

    client_parser = subparsers.add_parser("client", help="run the console client")
    client_parser.add_argument("--url", help="hub base URL (CLIPSHARE_URL)")
    client_parser.set_defaults(func=client)

    args = parser.parse_args()
    if args.command is None:
        args = parser.parse_args(["serve"])
    args.func(args)


if __name__ == "__main__":
    main()
