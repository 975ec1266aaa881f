"""Game Thread Bot package.

Creates one Discord discussion thread per game on game day, for every sport
the organization plays, from the ESPN team schedule feed.

- config: environment, logging and validation
- models: sports, games and participants
- http: session and request helpers
- api: ESPN schedule source
- schedule: cached schedules and game counters
- jobs: time-triggered job registry and weekly refresh
- threads: game-day thread creation with duplicate suppression
- orchestrator: refresh, reconciliation and manual triggers
- formatting: message building utilities
- auth: moderator checks for slash commands
- commands: slash command handlers
- app: Discord client bootstrap and wiring
"""

from .config import Config, logger
from .models import Sport, Game, Participant, TeamIdentity, game_job_key, parse_iso_datetime
from .http import make_session, fetch_json, build_headers
from .api import ScheduleSource, EspnScheduleSource, current_season, parse_game, parse_schedule
from .schedule import ScheduleStore
from .jobs import Job, JobScheduler, crontab_trigger, game_day_fire_time
from .threads import ThreadDispatcher, find_opponent
from .orchestrator import Orchestrator, BotStatus
from .formatting import (
    thread_title,
    fmt_game_details,
    fmt_thread_notification,
    fmt_status_report,
)
from .auth import is_moderator, guard_moderator
from .commands import (
    refresh_schedule_cmd,
    check_games_today_cmd,
    bot_status_cmd,
    build_commands,
)
from .app import GameThreadBot, main, startup_health_check

__all__ = [
    # Config / models / HTTP
    "Config", "logger",
    "Sport", "Game", "Participant", "TeamIdentity", "game_job_key", "parse_iso_datetime",
    "make_session", "fetch_json", "build_headers",
    # Schedule source and store
    "ScheduleSource", "EspnScheduleSource", "current_season", "parse_game", "parse_schedule",
    "ScheduleStore",
    # Jobs / threads / orchestration
    "Job", "JobScheduler", "crontab_trigger", "game_day_fire_time",
    "ThreadDispatcher", "find_opponent",
    "Orchestrator", "BotStatus",
    # Formatting
    "thread_title", "fmt_game_details", "fmt_thread_notification", "fmt_status_report",
    # Auth / Commands / App
    "is_moderator", "guard_moderator",
    "refresh_schedule_cmd", "check_games_today_cmd", "bot_status_cmd", "build_commands",
    "GameThreadBot", "main", "startup_health_check",
]
