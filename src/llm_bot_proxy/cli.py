"""
Command-line entry point for the LLM bot content proxy.

Usage:
    # Serve with settings from config.enc.yaml or the environment
    llm-bot-proxy

    # Explicit config file and bind address
    llm-bot-proxy --config config.enc.yaml --host 127.0.0.1 --port 9000

    # Validate configuration and exit
    llm-bot-proxy --check-config
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence

import uvicorn

from .config.settings import Settings, get_settings
from .config.sops_loader import check_sops_installed
from .proxy.exceptions import ConfigurationError
from .server.app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the proxy process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve curated content to AI visitors in front of an origin site"
    )
    parser.add_argument(
        "--config",
        help="Path to SOPS-encrypted YAML config (default: config.enc.yaml)",
    )
    parser.add_argument("--host", help="Bind address (overrides settings)")
    parser.add_argument("--port", type=int, help="Bind port (overrides settings)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate configuration, print problems and exit",
    )
    return parser


def check_config(settings: Settings) -> int:
    """Print validation results. Returns a process exit code."""
    errors = settings.validate()
    print(f"SOPS available: {'yes' if check_sops_installed() else 'no'}")
    for key, value in settings.to_dict().items():
        print(f"  {key}: {value}")
    if errors:
        print("\nConfiguration problems:")
        for error in errors:
            print(f"  - {error}")
        return 1
    print("\nConfiguration OK")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    settings = get_settings(args.config)
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if overrides:
        settings = replace(settings, **overrides)

    if args.check_config:
        return check_config(settings)

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
