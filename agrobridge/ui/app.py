# agrobridge/ui/app.py

"""Terminal UI for browsing AgroBridge categories by location."""

import logging
from typing import Any, cast

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
    LoadingIndicator,
    Static,
)

from agrobridge.config.settings import Settings
from agrobridge.models.location import Location
from agrobridge.models.product import Product
from agrobridge.services.category_client import CategoryQueryClient
from agrobridge.services.geolocation import (
    GeolocationProvider,
    GeolocationResolver,
    default_provider,
)
from agrobridge.services.location_store import LocationStore
from agrobridge.services.paginator import CategoryFetcher, ProductPaginator
from agrobridge.storage.cart_store import CartStore
from agrobridge.storage.file_manager import FileManager

logger = logging.getLogger("agrobridge.ui")

END_OF_RESULTS_TEXT = (
    "You have reached the end of this category. Check back later or "
    "explore other categories to find what you're looking for!"
)


class AgroBridgeApp(App[object]):
    """Terminal UI for browsing AgroBridge categories by location."""

    CSS_PATH = "styles.css"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("l", "choose_location", "Choose Location"),
        Binding("s", "save", "Save"),
        Binding("e", "export", "Export CSV"),
        Binding("c", "add_to_cart", "Add to Cart"),
        Binding("x", "remove_from_cart", "Remove from Cart"),
    ]

    def __init__(
        self,
        client: CategoryFetcher | None = None,
        provider: GeolocationProvider | None = None,
        cart: CartStore | None = None,
        category: str | None = None,
    ) -> None:
        super().__init__()
        self.settings = Settings()
        self.store = LocationStore()
        self.client: Any = client or CategoryQueryClient()
        self.cart = cart or CartStore()
        self.resolver = GeolocationResolver(
            provider or default_provider(), self.store, self.cart.clear,
        )
        self.file_manager = FileManager()
        self.paginator: ProductPaginator | None = None
        self.initial_category = category
        self._listed: list[tuple[Product, bool]] = []

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        default_lng, default_lat = self.settings.DEFAULT_LOCATION
        category_names = ", ".join(
            c["id"] for c in self.settings.CATEGORIES
        )

        yield Header()
        yield Container(
            Static("🌾 AgroBridge Marketplace", id="title"),
            Horizontal(
                Input(
                    value=self.initial_category or "",
                    placeholder=f"Category ({category_names})",
                    id="category_input",
                ),
                Button("Browse", variant="primary", id="browse_btn"),
                Button("Choose Location", id="choose_location_btn"),
                id="browse_bar",
            ),
            Horizontal(
                Input(
                    value=f"{default_lng}",
                    placeholder="Longitude",
                    id="lng_input",
                ),
                Input(
                    value=f"{default_lat}",
                    placeholder="Latitude",
                    id="lat_input",
                ),
                Button(
                    "Select Location",
                    variant="success",
                    id="select_location_btn",
                ),
                id="location_panel",
            ),
            Static("Locating…", id="status"),
            LoadingIndicator(id="loading"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="results_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            Static(END_OF_RESULTS_TEXT, id="end_message"),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure the table and start geolocation."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )
        table.add_columns(
            "Name", "Price", "Available", "Radius", "Brand", "Delivery"
        )
        self.query_one("#location_panel").display = False
        self.query_one("#loading").display = False
        self.query_one("#end_message").display = False
        self.run_worker(self._resolve_location(), exclusive=True)

    def on_unmount(self) -> None:
        """Tear down the paginator when leaving the listing."""
        if self.paginator is not None:
            self.paginator.on_change = None
            self.paginator.close()

    async def _resolve_location(self) -> None:
        location = await self.resolver.resolve_async()
        status = self.query_one("#status", Static)
        if location is None:
            status.update(
                "📍 Location unavailable (cart cleared). "
                "Choose a location to see deliverable products."
            )
            self.notify(
                "Could not get your location", severity="warning"
            )
            return
        self._fill_location_inputs(location)
        if self.paginator is None and self.initial_category:
            self.browse(self.initial_category)
        else:
            self.refresh_view()

    def _fill_location_inputs(self, location: Location) -> None:
        self.query_one("#lng_input", Input).value = f"{location.longitude}"
        self.query_one("#lat_input", Input).value = f"{location.latitude}"

    # ── Events ───────────────────────────────────────────

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        if event.button.id == "browse_btn":
            self._browse_from_input()
        elif event.button.id == "choose_location_btn":
            self.action_choose_location()
        elif event.button.id == "select_location_btn":
            self.select_location()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle Enter in the category or coordinate inputs."""
        if event.input.id == "category_input":
            self._browse_from_input()
        elif event.input.id in ("lng_input", "lat_input"):
            self.select_location()

    def _browse_from_input(self) -> None:
        category = self.query_one("#category_input", Input).value.strip()
        if not category:
            self.notify("Please enter a category", severity="warning")
            return
        self.browse(category)

    # ── Browsing ─────────────────────────────────────────

    def browse(self, category: str) -> None:
        """Replace the current listing with *category*."""
        if self.paginator is not None:
            self.paginator.on_change = None
            self.paginator.close()
        self.paginator = ProductPaginator(
            self.client,
            self.store,
            category,
            on_change=self.refresh_view,
        )
        if self.store.current is not None:
            self.paginator.start()
        self.refresh_view()

    def select_location(self) -> None:
        """Publish the coordinates typed in the location panel."""
        try:
            lng = float(self.query_one("#lng_input", Input).value)
            lat = float(self.query_one("#lat_input", Input).value)
        except ValueError:
            self.notify(
                "Longitude and latitude must be numbers",
                severity="error",
            )
            return
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            self.notify("Coordinates out of range", severity="error")
            return
        self.query_one("#location_panel").display = False
        self.store.set(Location(lng, lat))
        self.refresh_view()

    def refresh_view(self) -> None:
        """Re-render the table, loader, end message and status."""
        paginator = self.paginator
        status = self.query_one("#status", Static)
        loading = self.query_one("#loading")
        end_message = self.query_one("#end_message")
        table = cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )
        table.clear()
        self._listed = []

        if paginator is None:
            loading.display = bool(getattr(self.client, "is_loading", False))
            end_message.display = False
            location = self.store.current
            if location is not None:
                status.update(
                    f"📍 {location.latitude:.2f}, {location.longitude:.2f}"
                    " · enter a category"
                )
            return

        self._listed = [(p, True) for p in paginator.deliverable] + [
            (p, False) for p in paginator.non_deliverable
        ]
        for p, deliverable in self._listed:
            table.add_row(*self._row(p, deliverable=deliverable))

        fetching = paginator.is_fetching or bool(
            getattr(self.client, "is_loading", False)
        )
        loading.display = fetching
        end_message.display = (
            paginator.is_reaching_end and not paginator.is_fetching
        )

        location = paginator.location
        where = (
            f"{location.latitude:.2f}, {location.longitude:.2f}"
            if location is not None
            else "no location"
        )
        status.update(
            f"🔍 {paginator.category} @ {where}: "
            f"{len(paginator.deliverable)} deliverable, "
            f"{len(paginator.non_deliverable)} out of range"
        )

    @staticmethod
    def _row(p: Any, deliverable: bool) -> tuple[str | Text, ...]:
        unit = f"/{p.measuring_unit}" if p.measuring_unit else ""
        return (
            p.name[:50],
            Text(
                f"₹{p.price_per_unit:,.2f}{unit}",
                style="bold green" if deliverable else "dim",
            ),
            f"{p.quantity:g}",
            f"{p.delivery_radius_km:g} km",
            p.brand,
            Text("yes", style="green")
            if deliverable
            else Text("out of range", style="red"),
        )

    # ── Actions ──────────────────────────────────────────

    def action_choose_location(self) -> None:
        """Toggle the manual location panel."""
        panel = self.query_one("#location_panel")
        panel.display = not panel.display
        if panel.display:
            self.query_one("#lng_input", Input).focus()

    def _selected(self) -> tuple[Product, bool] | None:
        table = self.query_one("#results_table", DataTable)
        if not 0 <= table.cursor_row < len(self._listed):
            return None
        return self._listed[table.cursor_row]

    def action_add_to_cart(self) -> None:
        """Add one unit of the highlighted deliverable product to the cart."""
        selected = self._selected()
        if selected is None:
            self.notify("No product selected", severity="warning")
            return
        product, deliverable = selected
        if not deliverable:
            self.notify(
                f"{product.name} does not deliver to your location",
                severity="warning",
            )
            return
        self.cart.add(product)
        self.notify(f"Added {product.name} to cart")

    def action_remove_from_cart(self) -> None:
        """Remove the highlighted product from the cart."""
        selected = self._selected()
        if selected is None:
            self.notify("No product selected", severity="warning")
            return
        product, _ = selected
        if self.cart.remove(product.product_id):
            self.notify(f"Removed {product.name} from cart")
        else:
            self.notify(f"{product.name} is not in the cart")

    def action_save(self) -> None:
        """Save the current listing to a JSON file."""
        paginator = self.paginator
        if paginator is None or not paginator.product_count:
            self.notify("No products to save", severity="warning")
            return
        try:
            path = self.file_manager.save_listing(
                paginator.category,
                paginator.location,
                paginator.deliverable,
                paginator.non_deliverable,
            )
            self.notify(f"Saved to {path}")
        except OSError as e:
            logger.error("Failed to save listing", exc_info=True)
            self.notify(f"Save failed: {e}", severity="error")

    def action_export(self) -> None:
        """Export the current listing to CSV."""
        paginator = self.paginator
        if paginator is None or not paginator.product_count:
            self.notify("No products to export", severity="warning")
            return
        try:
            path = self.file_manager.export_csv(
                paginator.category,
                paginator.deliverable,
                paginator.non_deliverable,
            )
            self.notify(f"Exported to {path}")
        except OSError as e:
            logger.error("Failed to export listing", exc_info=True)
            self.notify(f"Export failed: {e}", severity="error")
