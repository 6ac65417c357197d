"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:7878, bundled pages)
    python -m helloserver

    # Serve your own index.html / 404.html
    python -m helloserver --root ./site

    # Single-threaded compatibility mode
    python -m helloserver --legacy

Environment variables (HTTP_PORT, HTTP_DOCUMENT_ROOT, ...) supply the
defaults; command-line flags override them.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import HelloServer
from .config import ServerConfig, LOG_LEVELS


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="helloserver",
        description="Serve an index page for GET / and a not-found page for everything else",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m helloserver                      # Run with defaults
  python -m helloserver --port 8080          # Custom port
  python -m helloserver --root ./site        # Own index.html / 404.html
  python -m helloserver --legacy             # Serial compatibility mode
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout or 0,
        help="Seconds to wait for a client, 0 = forever (default: %(default)s)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help="Maximum worker threads, 0 = serve one connection at a time (default: %(default)s)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help="Directory containing index.html and 404.html (default: bundled pages)"
    )

    parser.add_argument(
        "--legacy",
        action="store_true",
        default=defaults.legacy,
        help="Single 1024-byte read, literal 'GET / HTTP/1.1' match, serial handling"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help="Logging level (default: %(default)s)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"helloserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed arguments into a ServerConfig."""
    return ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout or None,
        min_workers=min(4, args.workers),
        max_workers=args.workers,
        document_root=args.root,
        legacy=args.legacy,
        log_level=args.log_level,
    )


def main(argv=None):
    """
    Main CLI entry point.

    Exits with status 1 on invalid configuration or when the address
    cannot be bound.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args(argv)

    try:
        server = HelloServer(config_from_args(args))
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
