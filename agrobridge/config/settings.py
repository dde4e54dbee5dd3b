# agrobridge/config/settings.py

"""Central configuration for the AgroBridge listing client."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_location() -> tuple[float, float] | None:
    """Parse ``AGROBRIDGE_LOCATION`` ("lng,lat") if it is set."""
    raw = os.getenv("AGROBRIDGE_LOCATION", "").strip()
    if not raw:
        return None
    try:
        lng, lat = (float(part) for part in raw.split(","))
    except ValueError:
        return None
    return lng, lat


class Settings:
    """Central configuration for the AgroBridge listing client."""

    # --- Backend API ---
    API_BASE_URL: str = os.getenv(
        "AGROBRIDGE_API_URL", "http://localhost:8080"
    ).rstrip("/")
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    PRODUCTS_PER_PAGE: int = 50         # Page size for category queries

    # --- Identity ---
    # Raise on records without an id instead of assigning a synthetic one
    STRICT_IDENTITY: bool = (
        os.getenv("AGROBRIDGE_STRICT_IDENTITY", "false").lower() == "true"
    )
    SYNTHETIC_ID_PREFIX: str = "synthetic-"

    # --- Location ---
    # (longitude, latitude); centre of India, used to seed manual selection
    DEFAULT_LOCATION: tuple[float, float] = (78.96, 20.59)
    ENV_LOCATION: tuple[float, float] | None = _env_location()
    GEOLOCATION_URL: str = "https://ipapi.co/json/"
    GEOLOCATION_TIMEOUT: int = 10

    # --- Catalog server ---
    SERVER_HOST: str = os.getenv("AGROBRIDGE_HOST", "0.0.0.0")
    SERVER_PORT: int = int(os.getenv("AGROBRIDGE_PORT", "8080"))
    SERVER_THREADS: int = 4
    EARTH_RADIUS_KM: float = 6371.0

    # --- Health ---
    HEALTH_SLOW_MS: float = 5000.0

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"
    DATA_DIR: Path = BASE_DIR / "data"
    CART_PATH: Path = DATA_DIR / "cart.json"
    CATALOG_DB_PATH: Path = DATA_DIR / "catalog.db"

    # --- Categories (registry shown in the CLI/TUI help) ---
    CATEGORIES: list[dict[str, str]] = [
        {"id": "vegetables", "label": "Vegetables"},
        {"id": "fruits", "label": "Fruits"},
        {"id": "grains", "label": "Grains"},
        {"id": "pulses", "label": "Pulses"},
        {"id": "spices", "label": "Spices"},
        {"id": "dairy", "label": "Dairy"},
        {"id": "seeds", "label": "Seeds"},
        {"id": "fertilizers", "label": "Fertilizers"},
    ]
