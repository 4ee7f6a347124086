# excom_catalog/ui/app.py

"""Terminal UI for browsing the marketplace catalog."""

import logging
import math
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    Static,
)

from excom_catalog.config.settings import Settings
from excom_catalog.filters.distance import format_distance
from excom_catalog.filters.product_sorter import product_distance
from excom_catalog.models.product import Product
from excom_catalog.services.catalog_reducer import (
    Action,
    CatalogState,
    ClearFilters,
    SetLocationFilter,
    SetPage,
    SetQuery,
    SetSortMode,
    reduce,
)
from excom_catalog.services.catalog_service import CatalogResult, CatalogService
from excom_catalog.services.geolocation import (
    GeolocationService,
    IpLocationProvider,
)
from excom_catalog.storage.browsing_state import BrowsingState
from excom_catalog.storage.file_manager import FileManager
from excom_catalog.storage.key_value_store import JsonFileStore

logger = logging.getLogger("excom_catalog.ui")


class CatalogApp(App[object]):
    """Terminal UI for browsing the marketplace catalog."""

    CSS = """
    #search_bar { height: 3; }
    #search_input { width: 1fr; }
    #sort_select { width: 32; }
    #status { height: 1; padding: 0 1; color: $text-muted; }
    #results_table { height: 1fr; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("s", "save", "Save"),
        Binding("e", "export", "Export CSV"),
        Binding("c", "clear_filters", "Clear Filters"),
        Binding("n", "toggle_nearby", "Nearby Only"),
        Binding("l", "refresh_location", "Locate"),
        Binding("r", "refresh", "Refresh"),
        Binding("w", "add_wishlist", "Wishlist"),
        Binding("right_square_bracket", "next_page", "Next Page"),
        Binding("left_square_bracket", "prev_page", "Prev Page"),
    ]

    def __init__(self, service: CatalogService | None = None) -> None:
        super().__init__()
        self.service = service or CatalogService(
            browsing=BrowsingState(JsonFileStore()),
            geolocation=GeolocationService(IpLocationProvider()),
        )
        self.state = CatalogState()
        self.result: CatalogResult | None = None
        self.products: list[Product] = []

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        sort_options = [
            (mode["label"], mode["id"]) for mode in Settings.SORT_MODES
        ]

        yield Header()
        yield Container(
            Horizontal(
                Input(placeholder="Search products...", id="search_input"),
                Button("Search", variant="primary", id="search_btn"),
                Select(
                    sort_options,
                    value=self.state.sort_mode.value,
                    allow_blank=False,
                    id="sort_select",
                ),
                id="search_bar",
            ),
            Static("Ready", id="status"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="results_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            id="main_container",
        )
        yield Footer()

    async def on_mount(self) -> None:
        """Configure the table, then locate the user and load the catalog."""
        table = self._table()
        table.add_columns("Title", "Price", "Rating", "Category", "Distance")
        await self.locate()
        await self.reload()

    def _table(self) -> DataTable[str | Text]:
        return cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )

    # ── State plumbing ───────────────────────────────────

    async def locate(self, force_refresh: bool = False) -> None:
        # A location request may take up to GEOLOCATION_TIMEOUT
        self.query_one("#status", Static).update("📍 Locating...")
        self.state, notice = await self.service.locate(
            self.state, force_refresh
        )
        if notice:
            self.notify(notice, severity="warning")

    async def reload(self, force_refresh: bool = False) -> None:
        """Fetch the catalog and show the current page."""
        self.query_one("#status", Static).update("🔄 Loading products...")
        result = await self.service.load(self.state, force_refresh)
        self.show(result)

    def dispatch(self, action: Action) -> None:
        """Apply a UI action and re-rank without refetching."""
        self.state = reduce(self.state, action)
        self.show(self.service.rank(self.state))

    def show(self, result: CatalogResult) -> None:
        self.result = result
        self.state = result.state
        self.products = result.products
        for error in result.errors:
            self.notify(f"Error: {error}", severity="error")
        self.populate_table()

        status = self.query_one("#status", Static)
        if not result.ranked:
            status.update("❌ No products found")
            return
        nearby = (
            f", {len(result.nearby_ids)} nearby" if result.nearby_ids else ""
        )
        status.update(
            f"✅ {len(result.ranked)} products found{nearby}"
            f" · page {result.page}/{result.total_pages}"
        )

    def populate_table(self) -> None:
        """Fill the DataTable with the current page."""
        table = self._table()
        table.clear()
        nearby_ids = self.result.nearby_ids if self.result else frozenset()
        for p in self.products:
            dist = product_distance(p, self.state.user_location)
            distance = "" if math.isinf(dist) else format_distance(dist)
            style = "bold green" if p.id in nearby_ids else ""
            table.add_row(
                p.title[:60],
                Text(f"{p.price:,.2f} {p.currency}"),
                f"⭐ {p.rating:.1f}" if p.rating is not None else "",
                p.category,
                Text(distance, style=style),
            )

    def _selected(self) -> Product | None:
        row = self._table().cursor_row
        if 0 <= row < len(self.products):
            return self.products[row]
        return None

    # ── Events ───────────────────────────────────────────

    def _submit_query(self) -> None:
        query = self.query_one("#search_input", Input).value.strip()
        self.dispatch(SetQuery(query))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "search_btn":
            self._submit_query()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search_input":
            self._submit_query()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "sort_select" and isinstance(event.value, str):
            if event.value != self.state.sort_mode.value:
                self.dispatch(SetSortMode(event.value))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Record a view of the selected product and show its summary."""
        if 0 <= event.cursor_row < len(self.products):
            product = self.products[event.cursor_row]
            self.service.browsing.record_view(product)
            self.notify(
                f"{product.title} · {product.price:,.2f} {product.currency}"
                + (f"\n{product.description[:200]}" if product.description else "")
            )

    # ── Actions ──────────────────────────────────────────

    def action_clear_filters(self) -> None:
        self.query_one("#search_input", Input).value = ""
        self.dispatch(ClearFilters())
        self.notify("Filters cleared")

    def action_toggle_nearby(self) -> None:
        enabled = self.state.filters.location_radius_km is None
        self.dispatch(SetLocationFilter(enabled))
        if enabled:
            self.notify(
                f"Showing products within {self.state.nearby_radius_km:g} km"
            )

    async def action_refresh_location(self) -> None:
        await self.locate(force_refresh=True)
        self.show(self.service.rank(self.state))

    async def action_refresh(self) -> None:
        await self.reload(force_refresh=True)

    def action_next_page(self) -> None:
        self.dispatch(SetPage(self.state.page + 1))

    def action_prev_page(self) -> None:
        self.dispatch(SetPage(self.state.page - 1))

    def action_add_wishlist(self) -> None:
        product = self._selected()
        if product is None:
            self.notify("Select a product first", severity="warning")
            return
        self.service.browsing.add_to_wishlist(product)
        self.notify(f"Added '{product.title[:40]}' to wishlist")

    def action_save(self) -> None:
        """Save the full ranked listing to a JSON file."""
        if not self.result or not self.result.ranked:
            self.notify("No results to save", severity="warning")
            return
        try:
            path = FileManager().save_results(
                self.state.filters.query, self.result.ranked
            )
            logger.info("Results saved to %s", path)
            self.notify(f"Saved to {path}")
        except OSError as e:
            logger.error("Failed to save results", exc_info=True)
            self.notify(f"Save failed: {e}", severity="error")

    def action_export(self) -> None:
        """Export the full ranked listing to a CSV file."""
        if not self.result or not self.result.ranked:
            self.notify("No results to export", severity="warning")
            return
        try:
            path = FileManager().export_csv(
                self.state.filters.query,
                self.result.ranked,
                self.state.user_location,
            )
            logger.info("Exported results to %s", path)
            self.notify(f"Exported to {path}")
        except OSError as e:
            logger.error("Failed to export results", exc_info=True)
            self.notify(f"Export failed: {e}", severity="error")
