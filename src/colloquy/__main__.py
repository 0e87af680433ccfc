"""CLI entry point for colloquy.

This module provides the command-line interface for serving an agent over
HTTP. It can be invoked as `colloquy` (via the script entry point) or
`python -m colloquy`.
"""

import argparse
import logging
import sys

import uvicorn

from colloquy import __version__, create_app
from colloquy.config import ColloquySettings


def main() -> None:
    """Main entry point for the colloquy CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="colloquy",
        description="Serve a conversational agent over HTTP",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"colloquy {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via COLLOQUY_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via COLLOQUY_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help=(
            "Ollama server URL (default: http://localhost:11434, "
            "can be set via COLLOQUY_OLLAMA_HOST)"
        ),
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model the agent uses (default: llama3.2:latest, can be set via COLLOQUY_MODEL)",
    )

    parser.add_argument(
        "--session-backend",
        type=str,
        default=None,
        choices=["memory", "json"],
        help="Where sessions are kept (default: memory, can be set via COLLOQUY_SESSION_BACKEND)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for session files (default: ., can be set via COLLOQUY_DATA_DIR)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via COLLOQUY_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.model is not None:
        settings_kwargs["model"] = args.model
    if args.session_backend is not None:
        settings_kwargs["session_backend"] = args.session_backend
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = ColloquySettings(**settings_kwargs)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
