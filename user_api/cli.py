"""Command-line entry point: serve the API or initialise the database."""

from __future__ import annotations

import argparse
import asyncio
import socket
import sys
from typing import Sequence

from .config import settings
from .logger import logger


def find_available_port(host: str, start_port: int, attempts: int) -> int:
    """Return the first port in [start_port, start_port + attempts) that can be bound."""
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                logger.debug(f"Port {port} is in use, trying next one")
                continue
        return port
    raise RuntimeError(
        f"Could not find available port in range {start_port}-{start_port + attempts - 1}"
    )


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{settings.APP_NAME} utilities")
    subparsers = parser.add_subparsers(dest="command")
    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the users table and exit")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default=settings.HOST, help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help=f"First port to try (default: {settings.PORT})",
    )
    serve_parser.add_argument(
        "--port-range",
        type=int,
        default=settings.PORT_SCAN_RANGE,
        help="How many consecutive ports to try before giving up",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    if not args_list:
        args_list = ["serve"]
    elif args_list[0] not in ("serve", "init-db", "-h", "--help"):
        args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _init_db() -> None:
    from .container import get_container
    from .db import create_tables, dispose_engine

    async def _run() -> None:
        container = get_container()
        await create_tables(container.engine)
        await dispose_engine(container.engine)

    asyncio.run(_run())
    logger.info(f"Database initialised at {settings.DB_URL}")


def _serve(*, host: str, port: int, port_range: int) -> None:
    from .main import app
    import uvicorn

    try:
        port = find_available_port(host, port, port_range)
    except RuntimeError as e:
        raise SystemExit(str(e)) from e

    logger.info(f"Server starting on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=settings.LOG_LEVEL.lower())


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    if args.command == "init-db":
        _init_db()
    else:
        _serve(host=args.host, port=args.port, port_range=args.port_range)


if __name__ == "__main__":
    main()
