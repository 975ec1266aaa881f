import os
import logging

from dotenv import load_dotenv


def load_env() -> None:
    """Load environment variables from a .env file next to the project root, if present."""
    env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".env"))
    load_dotenv(env_path)
    # Also honour a .env in the working directory
    load_dotenv()


# Load env early
load_env()

# Logging configuration
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, log_level, logging.INFO),
)
logger = logging.getLogger("gamethreadbot")

# Reduce noisy libraries
logging.getLogger("discord").setLevel(logging.WARNING)
logging.getLogger("discord.gateway").setLevel(logging.WARNING)
logging.getLogger("discord.client").setLevel(logging.WARNING)
logging.getLogger("discord.http").setLevel(logging.WARNING)
logging.getLogger("aiohttp").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default


class Config:
    """Application configuration read from the environment."""

    REQUIRED_VARS = (
        "DISCORD_TOKEN",
        "GUILD_ID",
        "GAME_THREADS_CHANNEL_ID",
        "GENERAL_CHANNEL_ID",
        "MODERATOR_ROLE_ID",
    )

    # Discord Configuration
    DISCORD_TOKEN: str | None = os.getenv("DISCORD_TOKEN")
    GUILD_ID: int = _int_env("GUILD_ID", 0)
    GAME_THREADS_CHANNEL_ID: int = _int_env("GAME_THREADS_CHANNEL_ID", 0)
    GENERAL_CHANNEL_ID: int = _int_env("GENERAL_CHANNEL_ID", 0)
    MODERATOR_ROLE_ID: int = _int_env("MODERATOR_ROLE_ID", 0)

    # Organization identity in ESPN's namespace
    TEAM_ID: str = os.getenv("TEAM_ID", "2306").strip()
    TEAM_NAME: str = os.getenv("TEAM_NAME", "Kansas State").strip()
    TEAM_ABBREVIATION: str = os.getenv("TEAM_ABBREVIATION", "KSU").strip()

    # ESPN API Configuration
    ESPN_BASE_URL: str = os.getenv(
        "ESPN_BASE_URL", "https://site.api.espn.com/apis/site/v2/sports"
    ).strip().rstrip("/")
    REQUEST_TIMEOUT_SECS: int = _int_env("REQUEST_TIMEOUT_SECS", 10)
    # 0 keeps secondary-sport seasons on the calendar year all year long
    SECONDARY_SEASON_ROLLOVER_MONTH: int = _int_env("SECONDARY_SEASON_ROLLOVER_MONTH", 0)

    # Scheduling
    WEEKLY_REFRESH_CRON: str = os.getenv("WEEKLY_REFRESH_CRON", "1 0 * * 0").strip()  # Sunday 12:01 AM
    TIMEZONE: str = os.getenv("TIMEZONE", "America/New_York").strip()
    GAME_DAY_HOUR: int = _int_env("GAME_DAY_HOUR", 5)

    @classmethod
    def missing_vars(cls) -> list[str]:
        missing = []
        for name in cls.REQUIRED_VARS:
            value = getattr(cls, name)
            if not value:
                missing.append(name)
        return missing

    @classmethod
    def validate_config(cls) -> None:
        missing = cls.missing_vars()
        if missing:
            raise ValueError(f"Missing required environment variable(s): {', '.join(missing)}")
        if not cls.TEAM_ID:
            raise ValueError("TEAM_ID must not be empty")
        if not 0 <= cls.GAME_DAY_HOUR <= 23:
            raise ValueError(f"GAME_DAY_HOUR must be between 0 and 23, got {cls.GAME_DAY_HOUR}")
        if not 0 <= cls.SECONDARY_SEASON_ROLLOVER_MONTH <= 12:
            raise ValueError("SECONDARY_SEASON_ROLLOVER_MONTH must be between 0 and 12")

        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(cls.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown TIMEZONE {cls.TIMEZONE!r}") from e

        from .jobs import crontab_trigger
        try:
            crontab_trigger(cls.WEEKLY_REFRESH_CRON, cls.TIMEZONE)
        except ValueError as e:
            raise ValueError(f"Invalid WEEKLY_REFRESH_CRON {cls.WEEKLY_REFRESH_CRON!r}: {e}") from e

        logger.info(
            f"Configuration OK: team {cls.TEAM_NAME} ({cls.TEAM_ID}), "
            f"timezone {cls.TIMEZONE}, weekly refresh '{cls.WEEKLY_REFRESH_CRON}'"
        )
