from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict, List, Optional

from discord.utils import escape_markdown

from .models import Game, Participant, Sport


def thread_title(sport: Sport, game_number: int, opponent_name: str) -> str:
    """Canonical thread name; the duplicate check relies on it being deterministic."""
    return f"{sport.display_name} Game {game_number}: {opponent_name}"


def fmt_game_date(dt: datetime) -> str:
    return f"{dt.strftime('%A, %B')} {dt.day}, {dt.year}"


def fmt_game_time(dt: datetime) -> str:
    hour = dt.strftime("%I").lstrip("0") or "12"
    return f"{hour}:{dt.strftime('%M %p')} {dt.tzname() or ''}".strip()


def fmt_game_details(game: Game, opponent: Participant, team_name: str, tz: tzinfo) -> str:
    """Opening message posted inside a new game thread."""
    local = game.date.astimezone(tz)
    home_away = "vs" if game.is_home else "@"
    return (
        f"{game.sport.emoji} **{game.sport.display_name} Game Thread**\n\n"
        f"**{escape_markdown(team_name)} {home_away} {escape_markdown(opponent.display_name)}**\n"
        f"📅 {fmt_game_date(local)}\n"
        f"⏰ {fmt_game_time(local)}\n\n"
        f"Let's go {escape_markdown(team_name)}! 🎉"
    )


def fmt_thread_notification(sport: Sport, title: str, thread_mention: str) -> str:
    return (
        f"{sport.emoji} The game thread for **{escape_markdown(title)}** is now up! "
        f"Head over to {thread_mention} to discuss the game."
    )


def fmt_game_line(game: Game, opponent: Optional[Participant], tz: tzinfo, with_date: bool = False) -> str:
    opponent_name = opponent.display_name if opponent else "Unknown"
    home_away = "vs" if game.is_home or game.organization is None else "@"
    local = game.date.astimezone(tz)
    when = f"{local.strftime('%a %b')} {local.day}, {fmt_game_time(local)}" if with_date else fmt_game_time(local)
    return f"• {game.sport.emoji} {game.sport.display_name}: {home_away} {escape_markdown(opponent_name)} ({when})"


def fmt_status_report(
    counters: Dict[Sport, int],
    todays_games: List[Game],
    upcoming: Dict[Sport, List[Game]],
    opponents: Dict[str, Optional[Participant]],
    next_weekly_run: Optional[datetime],
    job_count: int,
    tz: tzinfo,
) -> str:
    """Moderator-facing status. `opponents` is keyed by game id."""
    lines = ["🤖 **Bot Status Report**", "", "📊 **Game Counters:**"]
    for sport, count in counters.items():
        lines.append(f"{sport.emoji} {sport.display_name}: {count} games")

    lines += ["", f"📅 **Today's Games:** {len(todays_games)}"]
    if todays_games:
        lines += [fmt_game_line(g, opponents.get(g.id), tz) for g in todays_games]
    else:
        lines.append("No games scheduled for today")

    lines += ["", "🗓️ **Upcoming Games:**"]
    for sport, games in upcoming.items():
        if not games:
            lines.append(f"{sport.emoji} {sport.display_name}: none scheduled")
            continue
        lines += [fmt_game_line(g, opponents.get(g.id), tz, with_date=True) for g in games]

    lines += ["", "⏰ **Scheduled Jobs:**"]
    if next_weekly_run:
        local = next_weekly_run.astimezone(tz)
        lines.append(f"• Weekly refresh: {fmt_game_date(local)} at {fmt_game_time(local)}")
    else:
        lines.append("• Weekly refresh: not scheduled")
    lines.append(f"• Game day checks registered: {job_count}")
    return "\n".join(lines)
