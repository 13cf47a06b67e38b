"""Runtime settings for localmarket, read from the environment."""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

# Can be overridden via LOCALMARKET_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"

CATALOG_FILE = "products.json"
ORDERS_FILE = "orders.json"
CLIENT_STATE_FILE = "client_state.json"
UPLOADS_DIR = "uploads"

DEFAULT_PORT = 5000
DEFAULT_SHIPPING_RATE = Decimal("500")
DEFAULT_TAX_RATE = Decimal("0.16")
# (request sent, confirmed) for mobile money; single delay for card
DEFAULT_MOBILE_MONEY_DELAYS = (2.0, 3.0)
DEFAULT_CARD_DELAY = 2.0

STORE_BACKENDS = ("json", "memory")


@dataclass
class Settings:
    """Resolved configuration for one process."""

    data_dir: Path = _default_data_dir
    port: int = DEFAULT_PORT
    store_backend: str = "json"
    shipping_rate: Decimal = DEFAULT_SHIPPING_RATE
    tax_rate: Decimal = DEFAULT_TAX_RATE
    mobile_money_delays: tuple[float, float] = DEFAULT_MOBILE_MONEY_DELAYS
    card_delay: float = DEFAULT_CARD_DELAY
    log_level: str = "INFO"
    max_image_bytes: int = field(default=2 * 1024 * 1024)

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / CATALOG_FILE

    @property
    def orders_path(self) -> Path:
        return self.data_dir / ORDERS_FILE

    @property
    def client_state_path(self) -> Path:
        return self.data_dir / CLIENT_STATE_FILE

    @property
    def uploads_dir(self) -> Path:
        return self.data_dir / UPLOADS_DIR


def _parse_delays(raw: str) -> tuple[float, float]:
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        raise ValueError(
            f"LOCALMARKET_MOBILE_MONEY_DELAYS must be two comma-separated numbers, got {raw!r}"
        )
    return float(parts[0]), float(parts[1])


def _parse_decimal(name: str, raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """
    Build Settings from environment variables.

    Unset variables fall back to the module defaults. Malformed values raise
    ValueError so a misconfigured process fails at startup.
    """
    env = os.environ if environ is None else environ

    backend = env.get("LOCALMARKET_STORE", "json")
    if backend not in STORE_BACKENDS:
        raise ValueError(f"LOCALMARKET_STORE must be one of {STORE_BACKENDS}, got {backend!r}")

    delays = DEFAULT_MOBILE_MONEY_DELAYS
    if env.get("LOCALMARKET_MOBILE_MONEY_DELAYS"):
        delays = _parse_delays(env["LOCALMARKET_MOBILE_MONEY_DELAYS"])

    return Settings(
        data_dir=Path(env.get("LOCALMARKET_DATA_DIR", _default_data_dir)),
        port=int(env.get("PORT", DEFAULT_PORT)),
        store_backend=backend,
        shipping_rate=_parse_decimal(
            "LOCALMARKET_SHIPPING_RATE", env.get("LOCALMARKET_SHIPPING_RATE", str(DEFAULT_SHIPPING_RATE))
        ),
        tax_rate=_parse_decimal(
            "LOCALMARKET_TAX_RATE", env.get("LOCALMARKET_TAX_RATE", str(DEFAULT_TAX_RATE))
        ),
        mobile_money_delays=delays,
        card_delay=float(env.get("LOCALMARKET_CARD_DELAY", DEFAULT_CARD_DELAY)),
        log_level=env.get("LOCALMARKET_LOG_LEVEL", "INFO").upper(),
    )
