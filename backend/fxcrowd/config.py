from __future__ import annotations
from dataclasses import dataclass
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Now, we define the Settings class.
# We use @dataclass(frozen=True) to make this immutable.
# Once settings are loaded, they should not change during runtime.
@dataclass(frozen=True)
class Settings:
    # Now, we fetch the Database URL.
    # We provide a sensible default for local development (PostgreSQL).
    database_url: str = os.getenv(
        "DATABASE_URL",
        "postgresql+psycopg://fxcrowd:fxcrowdpass@db:5432/fxcrowd"
    )

    # Now, we parse the list of enabled sources.
    # The env var is a comma-separated string ("myfxbook,oanda").
    # We split it, strip whitespace, and lowercase it to match adapter names.
    enabled_sources: tuple[str, ...] = tuple(
        s.strip().lower()
        for s in os.getenv("ENABLED_SOURCES", "myfxbook,oanda,dukascopy,forexfactory").split(",")
        if s.strip()
    )

    # Scheduling
    scrape_interval_seconds: int = int(os.getenv("SCRAPE_INTERVAL_SECONDS", "3600"))
    scrape_initial_delay_seconds: int = int(os.getenv("SCRAPE_INITIAL_DELAY_SECONDS", "10"))
    scrape_cooldown_seconds: int = int(os.getenv("SCRAPE_COOLDOWN_SECONDS", "300"))
    scheduler_enabled: bool = _env_bool("SCHEDULER_ENABLED", "true")

    # Retention
    snapshot_retention_days: int = int(os.getenv("SNAPSHOT_RETENTION_DAYS", "7"))
    run_log_retention_hours: int = int(os.getenv("RUN_LOG_RETENTION_HOURS", "12"))
    sentiment_freshness_hours: int = int(os.getenv("SENTIMENT_FRESHNESS_HOURS", "24"))

    # Browser automation
    navigation_timeout_ms: int = int(os.getenv("NAVIGATION_TIMEOUT_MS", "60000"))
    settle_seconds: float = float(os.getenv("SETTLE_SECONDS", "3"))
    challenge_wait_seconds: float = float(os.getenv("CHALLENGE_WAIT_SECONDS", "5"))
    browser_headless: bool = _env_bool("BROWSER_HEADLESS", "true")
    browser_user_agent: str = os.getenv(
        "BROWSER_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )

settings = Settings()
