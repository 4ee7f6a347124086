# main.py

"""Entry point for the excom_catalog application (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from excom_catalog.config.logging_config import setup_logging
from excom_catalog.config.settings import Settings
from excom_catalog.models.filter_state import FACETS

logger = logging.getLogger("excom_catalog.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    sort_ids = [s["id"] for s in Settings.SORT_MODES]

    parser = argparse.ArgumentParser(
        prog="excom_catalog",
        description="Browse the marketplace product catalog.",
        epilog=f"Facets: {', '.join(FACETS)}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Search text (\"\" for everything). Omit to launch the TUI.",
    )
    parser.add_argument(
        "-c",
        "--categories",
        default=None,
        help="Comma-separated categories (default: all).",
    )
    parser.add_argument("--min-price", type=float, default=None)
    parser.add_argument("--max-price", type=float, default=None)
    parser.add_argument(
        "-r",
        "--rating",
        type=float,
        default=None,
        help="Minimum rating (0-5).",
    )
    parser.add_argument(
        "--facet",
        action="append",
        default=None,
        metavar="NAME=VALUE",
        help="Facet selection, repeatable (e.g. --facet color=red).",
    )
    parser.add_argument(
        "-s",
        "--sort",
        choices=sort_ids,
        default="newest",
        dest="sort_mode",
        help="Sort mode (default: newest).",
    )
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lng", type=float, default=None)
    parser.add_argument(
        "--radius",
        type=float,
        default=None,
        help=(
            f"Nearby radius in km ({Settings.MIN_RADIUS_KM:g}-"
            f"{Settings.MAX_RADIUS_KM:g}, default "
            f"{Settings.NEARBY_RADIUS_KM:g})."
        ),
    )
    parser.add_argument(
        "--nearby-only",
        action="store_true",
        default=False,
        help="Only show products within the nearby radius.",
    )
    parser.add_argument("-p", "--page", type=int, default=1)
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--export",
        action="store_true",
        default=False,
        help="Also export the full ranked listing to CSV.",
    )
    parser.add_argument(
        "--no-persist",
        action="store_false",
        dest="persist",
        help="Keep browsing state in memory only.",
    )
    parser.add_argument(
        "--wishlist",
        action="store_true",
        default=False,
        help="Show saved wishlist items and exit.",
    )
    parser.add_argument(
        "--create",
        default=None,
        metavar="DRAFT_JSON",
        help="Create a product from a JSON file.",
    )
    parser.add_argument(
        "--delete",
        default=None,
        metavar="PRODUCT_ID",
        help="Delete a product.",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from excom_catalog.ui.app import CatalogApp

    try:
        app = CatalogApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("excom_catalog TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless listing and exit."""
    from excom_catalog.cli.runner import (
        build_geolocation,
        build_state,
        cli_list,
        parse_facets,
    )

    state = build_state(
        query=args.query,
        category_csv=args.categories,
        min_price=args.min_price,
        max_price=args.max_price,
        rating=args.rating,
        facets=parse_facets(args.facet),
        sort_mode=args.sort_mode,
        radius_km=args.radius,
        nearby_only=args.nearby_only,
        page=args.page,
    )
    exit_code = asyncio.run(
        cli_list(
            state,
            build_geolocation(args.lat, args.lng),
            output_format=args.output_format,
            export=args.export,
            persist=args.persist,
        )
    )
    sys.exit(exit_code)


def main() -> None:
    """Route to the TUI (no args) or a headless command."""
    parser = _build_parser()
    args = parser.parse_args()

    headless = bool(
        args.wishlist or args.create or args.delete or args.query is not None
    )
    log_file = setup_logging(console=headless)
    logger.info("excom_catalog starting, log file: %s", log_file)

    if args.wishlist:
        from excom_catalog.cli.runner import show_wishlist

        sys.exit(show_wishlist(args.persist))
    elif args.create:
        from excom_catalog.cli.runner import cli_create

        sys.exit(asyncio.run(cli_create(args.create)))
    elif args.delete:
        from excom_catalog.cli.runner import cli_delete

        sys.exit(asyncio.run(cli_delete(args.delete)))
    elif args.query is None:
        _run_tui()
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
