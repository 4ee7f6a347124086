# excom_catalog/cli/runner.py

"""Headless CLI runner, sharing the catalog service with the TUI."""

import json
import logging
import math
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from excom_catalog.filters.distance import format_distance
from excom_catalog.filters.product_sorter import product_distance
from excom_catalog.models.filter_state import FACETS
from excom_catalog.models.product import Geopoint, Product
from excom_catalog.services.catalog_reducer import (
    Action,
    CatalogState,
    SetLocationFilter,
    SetNearbyRadius,
    SetPage,
    SetPriceRange,
    SetQuery,
    SetRating,
    SetSortMode,
    ToggleCategory,
    ToggleFacet,
    reduce,
)
from excom_catalog.services.catalog_service import CatalogService
from excom_catalog.services.geolocation import (
    GeolocationService,
    IpLocationProvider,
    StaticLocationProvider,
)
from excom_catalog.services.product_editor import ProductEditor
from excom_catalog.storage.browsing_state import BrowsingState
from excom_catalog.storage.file_manager import FileManager
from excom_catalog.storage.key_value_store import (
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
)

logger = logging.getLogger("excom_catalog.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def parse_facets(pairs: list[str] | None) -> list[tuple[str, str]]:
    """Turn ``["brand=acme", "color=red"]`` into (facet, value) pairs.

    Raises ``SystemExit`` on malformed pairs or unknown facets.
    """
    parsed: list[tuple[str, str]] = []
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        name = name.strip().lower()
        value = value.strip()
        if not sep or not value:
            _err.print(f"[red]Invalid facet '{pair}', expected name=value[/red]")
            raise SystemExit(1)
        if name not in FACETS:
            _err.print(f"[red]Unknown facet '{name}'[/red]")
            _err.print(f"[dim]Available: {', '.join(FACETS)}[/dim]")
            raise SystemExit(1)
        parsed.append((name, value))
    return parsed


def build_state(
    query: str = "",
    category_csv: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    rating: float | None = None,
    facets: list[tuple[str, str]] | None = None,
    sort_mode: str = "newest",
    radius_km: float | None = None,
    nearby_only: bool = False,
    page: int = 1,
) -> CatalogState:
    """Fold command-line options into a CatalogState via the reducer."""
    actions: list[Action] = [SetQuery(query), SetSortMode(sort_mode)]
    if category_csv:
        for category in category_csv.split(","):
            if category.strip():
                actions.append(ToggleCategory(category.strip()))
    if min_price is not None or max_price is not None:
        actions.append(
            SetPriceRange(
                min_price or 0.0,
                math.inf if max_price is None else max_price,
            )
        )
    if rating is not None:
        actions.append(SetRating(rating))
    for name, value in facets or []:
        actions.append(ToggleFacet(name, value))
    if radius_km is not None:
        actions.append(SetNearbyRadius(radius_km))
    if nearby_only:
        actions.append(SetLocationFilter(True))
    actions.append(SetPage(page))

    state = CatalogState()
    for action in actions:
        state = reduce(state, action)
    return state


def build_geolocation(
    lat: float | None, lng: float | None,
) -> GeolocationService:
    """Use coordinates from the command line, else an IP lookup."""
    if lat is not None and lng is not None:
        point = Geopoint.parse(lat, lng)
        if point is None:
            _err.print(f"[red]Invalid coordinates: {lat}, {lng}[/red]")
            raise SystemExit(1)
        return GeolocationService(StaticLocationProvider(point), enabled=True)
    return GeolocationService(IpLocationProvider())


def open_store(persist: bool = True) -> KeyValueStore:
    return JsonFileStore() if persist else MemoryStore()


def _products_to_dicts(
    products: list[Product], user_location: Geopoint | None,
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for p in products:
        row = p.to_dict()
        dist = product_distance(p, user_location)
        row["distanceKm"] = None if math.isinf(dist) else round(dist, 2)
        rows.append(row)
    return rows


def _print_table(
    products: list[Product],
    user_location: Geopoint | None,
    nearby_ids: frozenset[str],
    title: str = "Products",
) -> None:
    """Render a Rich table of products to stdout, in ranked order."""
    table = Table(title=title, show_lines=True, title_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Category", style="magenta")
    table.add_column("Distance", justify="right")
    table.add_column("ID", overflow="fold", style="dim")

    for idx, p in enumerate(products, 1):
        dist = product_distance(p, user_location)
        distance = "—" if math.isinf(dist) else format_distance(dist)
        if p.id in nearby_ids:
            distance = f"[bold green]{distance}[/bold green]"
        table.add_row(
            str(idx),
            p.title[:50],
            f"{p.currency} {p.price:,.2f}",
            f"{p.rating:.1f}" if p.rating is not None else "—",
            p.category or "—",
            distance,
            p.id,
        )

    Console().print(table)


async def cli_list(
    state: CatalogState,
    geolocation: GeolocationService,
    output_format: str = "json",
    export: bool = False,
    persist: bool = True,
) -> int:
    """Fetch, rank and print one page; return an exit code (0=ok, 1=fail)."""
    service = CatalogService(
        browsing=BrowsingState(open_store(persist)),
        geolocation=geolocation,
    )

    state, notice = await service.locate(state)
    if notice:
        _err.print(f"[yellow]{notice}[/yellow]")

    result = await service.load(state)
    for error_msg in result.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")

    if not result.ranked:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    parts: list[str] = []
    if result.excluded_count:
        parts.append(f"{result.excluded_count} filtered")
    if result.invalid_count:
        parts.append(f"{result.invalid_count} invalid")
    if result.nearby_ids:
        parts.append(f"{len(result.nearby_ids)} nearby")
    detail = f" ({', '.join(parts)})" if parts else ""
    _err.print(
        f"[green]✓ {len(result.ranked)} products"
        f" of {result.total_before_filter}{detail}"
        f", page {result.page}/{result.total_pages}[/green]"
    )

    if export:
        try:
            path = FileManager().export_csv(
                state.filters.query, result.ranked, state.user_location
            )
            _err.print(f"[dim]Exported → {path}[/dim]")
        except OSError as exc:
            logger.error("Export failed: %s", exc, exc_info=True)
            _err.print(f"[red]Export failed: {exc}[/red]")

    if output_format == "table":
        _print_table(
            result.products, state.user_location, result.nearby_ids,
        )
    else:
        json.dump(
            _products_to_dicts(result.products, state.user_location),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0


def show_wishlist(persist: bool = True) -> int:
    """Print the saved wishlist."""
    items = BrowsingState(open_store(persist)).wishlist()
    if not items:
        _err.print("[yellow]Wishlist is empty.[/yellow]")
        return 0

    table = Table(title="Wishlist", show_lines=True, title_style="bold cyan")
    table.add_column("Title", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Added", style="dim")
    table.add_column("ID", style="dim")
    for item in items:
        table.add_row(
            str(item.get("title", "")),
            f"{item.get('currency', '')} {item.get('price', '')}",
            str(item.get("addedAt", ""))[:19],
            str(item.get("id", "")),
        )
    Console().print(table)
    return 0


async def cli_create(draft_path: str) -> int:
    """Create a product from a JSON file."""
    try:
        with open(Path(draft_path), encoding="utf-8") as f:
            draft = json.load(f)
    except (OSError, ValueError) as exc:
        _err.print(f"[red]Cannot read {draft_path}: {exc}[/red]")
        return 1
    if not isinstance(draft, dict):
        _err.print("[red]Product draft must be a JSON object[/red]")
        return 1

    result = await ProductEditor().create(draft)
    for err in result.field_errors:
        _err.print(f"[red]{err.field}: {err.message}[/red]")
    if result.error:
        _err.print(f"[red]Error: {result.error}[/red]")
    if not result.ok:
        return 1
    created = result.product.id if result.product else "?"
    _err.print(f"[green]✓ Created product {created}[/green]")
    return 0


async def cli_delete(product_id: str) -> int:
    result = await ProductEditor().delete(product_id)
    if not result.ok:
        _err.print(f"[red]Error: {result.error}[/red]")
        return 1
    _err.print(f"[green]✓ Deleted product {product_id}[/green]")
    return 0
