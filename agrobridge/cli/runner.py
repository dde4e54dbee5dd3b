# agrobridge/cli/runner.py

"""Headless CLI runners: browse a category, seed/serve the catalog, health."""

import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from agrobridge.config.settings import Settings
from agrobridge.models.product import Product
from agrobridge.services.category_client import CategoryQueryClient
from agrobridge.services.geolocation import (
    GeolocationResolver,
    default_provider,
)
from agrobridge.services.location_store import LocationStore
from agrobridge.services.paginator import ProductPaginator
from agrobridge.storage.cart_store import CartStore
from agrobridge.storage.file_manager import FileManager, product_row

logger = logging.getLogger("agrobridge.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

END_OF_RESULTS_TEXT = (
    "You have reached the end of this category. Check back later or "
    "explore other categories."
)


def _print_table(
    deliverable: list[Product],
    non_deliverable: list[Product],
) -> None:
    """Render a Rich table, deliverable products first."""
    table = Table(
        title="Products",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=40)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Available", justify="right")
    table.add_column("Radius", justify="right")
    table.add_column("Brand", style="magenta")
    table.add_column("Delivery", justify="center")

    rows = [(p, True) for p in deliverable] + [
        (p, False) for p in non_deliverable
    ]
    for idx, (p, ok) in enumerate(rows, 1):
        unit = f"/{p.measuring_unit}" if p.measuring_unit else ""
        price_str = (
            f"₹{p.price_per_unit:,.2f}{unit}"
            if p.price_per_unit > 0
            else "N/A"
        )
        table.add_row(
            str(idx),
            p.name[:40] or "—",
            price_str,
            f"{p.quantity:g}",
            f"{p.delivery_radius_km:g} km",
            p.brand or "—",
            "[green]yes[/green]" if ok else "[red]out of range[/red]",
        )

    Console().print(table)


async def cli_browse(
    category: str,
    longitude: float | None,
    latitude: float | None,
    max_pages: int | None,
    output_format: str,
    output_dir: str | None,
    page_size: int | None = None,
) -> int:
    """Browse *category* for the user's location; returns an exit code."""
    known = {c["id"] for c in Settings.CATEGORIES}
    if category not in known:
        _err.print(
            f"[yellow]'{category}' is not a known category; "
            f"querying anyway[/yellow]"
        )

    if output_dir is not None:
        Settings.RESULTS_DIR = Path(output_dir)

    store = LocationStore()
    cart = CartStore()
    client = CategoryQueryClient()
    paginator = ProductPaginator(
        client, store, category, page_size=page_size, max_pages=max_pages,
    )
    resolver = GeolocationResolver(
        default_provider(longitude, latitude), store, cart.clear,
    )

    try:
        location = await resolver.resolve_async()
        if location is None:
            _err.print(
                "[red]Could not determine your location; cart cleared. "
                "Pass --lng/--lat to choose one.[/red]"
            )
            return 1

        _err.print(
            f"[bold]Browsing:[/bold] {category}  "
            f"[dim]lng={location.longitude:.4f} "
            f"lat={location.latitude:.4f}[/dim]"
        )
        await paginator.wait()
    finally:
        paginator.close()

    deliverable = paginator.deliverable
    non_deliverable = paginator.non_deliverable

    if paginator.unidentified_total:
        _err.print(
            f"[yellow]{paginator.unidentified_total} products had no id "
            f"and were given temporary ones[/yellow]"
        )

    if not deliverable and not non_deliverable:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    _err.print(
        f"[green]✓ {len(deliverable)} deliverable, "
        f"{len(non_deliverable)} out of range "
        f"({paginator.page - 1} pages)[/green]"
    )
    if paginator.is_reaching_end:
        _err.print(f"[dim]{END_OF_RESULTS_TEXT}[/dim]")

    try:
        path = FileManager().save_listing(
            category, location, deliverable, non_deliverable
        )
        _err.print(f"[dim]Saved → {path}[/dim]")
    except OSError as exc:
        logger.error("Save failed: %s", exc, exc_info=True)
        _err.print(f"[red]Save failed: {exc}[/red]")

    if output_format == "table":
        _print_table(deliverable, non_deliverable)
    else:
        json.dump(
            {
                "category": category,
                "location": location.as_pair(),
                "deliverable": [
                    product_row(p, True) for p in deliverable
                ],
                "non_deliverable": [
                    product_row(p, False) for p in non_deliverable
                ],
                "has_more": not paginator.is_reaching_end,
            },
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0


def run_seed(seed_path: str) -> int:
    """Import a JSON file of product records into the catalog."""
    from agrobridge.server.catalog_db import CatalogDB

    path = Path(seed_path)
    if not path.exists():
        _err.print(f"[red]Seed file not found: {path}[/red]")
        return 1

    db = CatalogDB()
    try:
        count = db.import_json_file(path)
        total = db.count()
    finally:
        db.close()

    _err.print(
        f"[green]✓ Imported {count:,} products "
        f"({total:,} in catalog)[/green]"
    )
    return 0 if count else 1


def run_server(host: str | None, port: int | None) -> int:
    """Serve the catalog API with waitress until interrupted."""
    from waitress import serve

    from agrobridge.server.api import create_app
    from agrobridge.server.catalog_db import CatalogDB

    db = CatalogDB()
    app = create_app(db)
    bind_host = host or Settings.SERVER_HOST
    bind_port = port or Settings.SERVER_PORT

    logger.info(
        "Serving %d catalog products on %s:%d",
        db.count(),
        bind_host,
        bind_port,
    )
    _err.print(
        f"[bold]AgroBridge catalog API[/bold] on http://{bind_host}:{bind_port}"
    )
    try:
        serve(
            app,
            host=bind_host,
            port=bind_port,
            threads=Settings.SERVER_THREADS,
            ident="AgroBridge",
        )
    finally:
        db.close()
    return 0


async def run_health_check() -> int:
    """Run a connectivity health check on the backend."""
    from agrobridge.services.health_checker import HealthChecker

    _err.print("[bold]Running backend health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Backend Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Endpoint", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(r.endpoint, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
