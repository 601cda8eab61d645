from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from prometheus_client import start_http_server

from .app import create_app
from .config import GatewayConfig

logger = logging.getLogger("crudgate")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the crudgate CRUD gateway")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8787, help="Bind port (default: 8787)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Local log level (default: INFO)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port (default: off)",
    )
    parser.add_argument("--env-file", default=".env", help="dotenv file to load first")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_dotenv(args.env_file)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = GatewayConfig.from_env()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    if args.metrics_port is not None:
        start_http_server(args.metrics_port)
        logger.info("Prometheus metrics on :%d", args.metrics_port)

    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
