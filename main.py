"""
Entrypoint for the LIX Text Generator.
This file wires the FastAPI application together by importing the core package,
which initializes shared state and registers all routes.
"""

from __future__ import annotations

import argparse
import os

import core  # noqa: F401  # Ensure route modules are imported for side effects
from core.app_state import app, config, logger  # noqa: F401


if __name__ == "__main__":
    import uvicorn

    parser = argparse.ArgumentParser(description="LIX Text Generator")
    parser.add_argument("--host", default=config.APP_HOST, help="Bind address")
    parser.add_argument("--port", type=int, default=config.APP_PORT, help="Bind port")
    parser.add_argument(
        "--reload",
        action="store_true",
        default=config.APP_RELOAD,
        help="Enable auto-reload (development only)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-attempt phases and decisions for all requests",
    )
    parser.add_argument(
        "--extra-verbose",
        action="store_true",
        help="Also log full prompts and model responses (includes --verbose)",
    )
    args = parser.parse_args()

    if args.extra_verbose:
        os.environ["EXTRA_VERBOSE"] = "true"
        os.environ["VERBOSE"] = "true"
        config.EXTRA_VERBOSE = True
        config.VERBOSE = True
    elif args.verbose:
        os.environ["VERBOSE"] = "true"
        config.VERBOSE = True

    logger.info("Starting with uvicorn on %s:%d", args.host, args.port)
    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
