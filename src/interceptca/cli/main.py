"""interceptca command-line entry point.

Usage::

    interceptca ca path
    interceptca -c interceptca.yaml ca env
    interceptca --cache-path /tmp/cache ca sign api.example.com
    interceptca workflows
    interceptca tempdir
    python -m interceptca ca pem
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from interceptca import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="interceptca",
        description="interceptca -- transient CA for TLS interception",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--cache-path",
        metavar="DIR",
        help="Override the cache_path configuration value.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ca
    ca_parser = subparsers.add_parser("ca", help="Transient CA operations")
    ca_sub = ca_parser.add_subparsers(dest="ca_command", required=True)
    ca_sub.add_parser("path", help="Print the CA certificate path")
    ca_sub.add_parser("pem", help="Print the CA certificate PEM")
    ca_sub.add_parser("env", help="Print environment variables trusting the CA")
    sign = ca_sub.add_parser("sign", help="Issue a leaf certificate for a host")
    sign.add_argument("hostname", help="DNS name or IP address")
    sign.add_argument("--key-out", metavar="PATH", help="Write the leaf key here")

    # workflows
    subparsers.add_parser("workflows", help="List user-visible workflows")

    # tempdir
    subparsers.add_parser("tempdir", help="Print the temporary directory")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    sys.stderr.write(f"interceptca: error: {message}\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, runs a command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    from interceptca.config import CACHE_PATH, Configuration, ConfigValidationError

    try:
        if args.config:
            config_path = Path(args.config)
            if not config_path.is_file():
                _print_error(f"configuration file not found: {config_path}")
                sys.exit(1)
            config = Configuration.from_file(config_path)
        else:
            config = Configuration.from_dict()
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)

    if args.cache_path:
        config.set(CACHE_PATH, args.cache_path)

    # -- replace bootstrap logging with structured logging ---
    from interceptca.logging import configure_logging

    configure_logging(config.settings.logging, debug=args.debug)

    from interceptca.app import AppContext
    from interceptca.ca.base import CAError
    from interceptca.cli.commands.ca import init_ca_workflows

    ctx = AppContext(config)
    init_ca_workflows(ctx.engine, ctx.authority)
    ctx.register_signals()
    try:
        _dispatch(ctx, args)
    except CAError as exc:
        if args.debug:
            raise
        _print_error(str(exc))
        sys.exit(1)
    finally:
        ctx.shutdown()
        log.debug("Metrics at exit:\n%s", ctx.metrics.export())


def _dispatch(ctx, args) -> None:
    command = args.command

    if command == "ca":
        from interceptca.cli.commands.ca import run_ca

        run_ca(ctx, args)
    elif command == "workflows":
        for identifier in ctx.engine.visible_workflows():
            sys.stdout.write(f"{identifier}\n")
    elif command == "tempdir":
        from interceptca import get_full_version
        from interceptca.config import CACHE_PATH
        from interceptca.core.paths import get_temporary_directory

        tmp = get_temporary_directory(ctx.config.get_string(CACHE_PATH), get_full_version())
        sys.stdout.write(f"{tmp}\n")
