# main.py

"""Entry point for AgroBridge (TUI, headless browse, or catalog server)."""

import argparse
import asyncio
import logging
import sys

from agrobridge.config.logging_config import setup_logging
from agrobridge.config.settings import Settings

logger = logging.getLogger("agrobridge.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    categories = ", ".join(c["id"] for c in Settings.CATEGORIES)

    parser = argparse.ArgumentParser(
        prog="agrobridge",
        description="Location-aware agricultural marketplace browser.",
        epilog=f"Categories: {categories}",
    )
    parser.add_argument(
        "category",
        nargs="?",
        default=None,
        help="Category to browse. Omit to launch the interactive TUI.",
    )
    parser.add_argument(
        "--lng",
        type=float,
        default=None,
        help="Longitude to browse from (default: env or IP lookup).",
    )
    parser.add_argument(
        "--lat",
        type=float,
        default=None,
        help="Latitude to browse from (default: env or IP lookup).",
    )
    parser.add_argument(
        "-n",
        "--max-pages",
        type=int,
        default=None,
        dest="max_pages",
        help="Stop after this many pages (default: until the end).",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        dest="page_size",
        help=f"Products per page (default: {Settings.PRODUCTS_PER_PAGE}).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        dest="output_dir",
        help="Custom output directory (default: results/).",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the catalog API server.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Server port (default: {Settings.SERVER_PORT}).",
    )
    parser.add_argument(
        "--seed",
        default=None,
        metavar="JSON_FILE",
        help="Import product records from a JSON file into the catalog.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on the backend.",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from agrobridge.ui.app import AgroBridgeApp

    try:
        app = AgroBridgeApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("AgroBridge TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless category browse and exit."""
    from agrobridge.cli.runner import cli_browse

    exit_code = asyncio.run(
        cli_browse(
            category=args.category,
            longitude=args.lng,
            latitude=args.lat,
            max_pages=args.max_pages,
            output_format=args.output_format,
            output_dir=args.output_dir,
            page_size=args.page_size,
        )
    )
    sys.exit(exit_code)


def _run_seed(seed_path: str) -> None:
    """Import product records into the catalog database."""
    from agrobridge.cli.runner import run_seed

    sys.exit(run_seed(seed_path))


def _run_server(port: int | None) -> None:
    """Serve the catalog API."""
    from agrobridge.cli.runner import run_server

    sys.exit(run_server(None, port))


def _run_health_check() -> None:
    """Run backend connectivity health check."""
    from agrobridge.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to TUI, headless browse, seeding, server or health check."""
    parser = _build_parser()
    args = parser.parse_args()

    console_level = logging.INFO if args.serve else logging.WARNING
    log_file = setup_logging(console_level)
    logger.info("AgroBridge starting, log file: %s", log_file)

    if args.seed:
        _run_seed(args.seed)
    elif args.serve:
        _run_server(args.port)
    elif args.health:
        _run_health_check()
    elif args.category is None:
        _run_tui()
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
