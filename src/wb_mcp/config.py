from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven configuration for the MCP server."""

    # Marketplace
    WB_BASE_URL: str = "https://www.wildberries.ru"
    WB_DEFAULT_DEST: str = "-1255987"  # Moscow
    WB_CURRENCY: str = "rub"
    WB_LANG: str = "ru"
    WB_SPP: int = 30
    WB_APP_TYPE: int = 1

    # Browser profile (one long-lived Chromium page)
    WB_HEADLESS: bool = True
    WB_USER_AGENT: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    WB_VIEWPORT_WIDTH: int = 1920
    WB_VIEWPORT_HEIGHT: int = 1080
    WB_BROWSER_LOCALE: str = "ru-RU"
    WB_TIMEZONE: str = "Europe/Moscow"

    # Timeouts and settle delays.
    # Prices are rendered asynchronously after the cards mount, hence the settle waits.
    WB_NAV_TIMEOUT_MS: int = 60_000
    WB_RESULTS_TIMEOUT_MS: int = 30_000
    WB_WARMUP_DELAY_S: float = 5.0
    WB_SEARCH_SETTLE_S: float = 3.0
    WB_FILTERS_SETTLE_S: float = 2.0

    # Content mirrors (basket-01 .. basket-NN)
    WB_BASKET_MIN: int = 1
    WB_BASKET_MAX: int = 36
    WB_MIRROR_TIMEOUT_S: float = 10.0
    WB_MIRROR_VIA_BROWSER: bool = False

    # Optional JSON file overriding the card/filter lookup lists
    WB_SELECTORS_FILE: str | None = None

    # Network transport
    MCP_HOST: str = "0.0.0.0"
    MCP_PORT: int = 3000
    MCP_KEEPALIVE_S: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()



# Convenience instance for modules that import `settings` directly.
settings: Settings = get_settings()
