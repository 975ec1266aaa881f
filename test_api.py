#!/usr/bin/env python3
"""
ESPN schedule source tests: season selection, payload parsing and failure handling.
"""

import asyncio
from datetime import date, timezone

import pytest

import gamethreadbot.api as api
from gamethreadbot.api import EspnScheduleSource, current_season, parse_game, parse_schedule
from gamethreadbot.models import Sport, TeamIdentity

KSU = TeamIdentity(team_id="2306", name="Kansas State", abbreviation="KSU")


def espn_event(event_id, when, opponent="Iowa State Cyclones", opponent_abbr="ISU", ksu_home=True):
    return {
        "id": event_id,
        "name": f"{opponent} at Kansas State Wildcats",
        "date": when,
        "competitions": [{
            "id": event_id,
            "date": when,
            "competitors": [
                {"id": "2306", "homeAway": "home" if ksu_home else "away",
                 "team": {"id": "2306", "displayName": "Kansas State Wildcats", "abbreviation": "KSU"}},
                {"id": "66", "homeAway": "away" if ksu_home else "home",
                 "team": {"id": "66", "displayName": opponent, "abbreviation": opponent_abbr}},
            ],
        }],
    }


@pytest.mark.parametrize("today, expected", [
    (date(2025, 8, 1), 2025),
    (date(2025, 12, 31), 2025),
    (date(2026, 1, 3), 2025),
    (date(2026, 7, 31), 2025),
])
def test_football_season_rolls_over_in_august(today, expected):
    assert current_season(Sport.FOOTBALL, today) == expected


@pytest.mark.parametrize("today", [date(2025, 1, 15), date(2025, 8, 15), date(2025, 11, 15)])
def test_secondary_sports_use_calendar_year_by_default(today):
    assert current_season(Sport.MENS_BASKETBALL, today) == today.year
    assert current_season(Sport.WOMENS_BASKETBALL, today) == today.year


def test_secondary_season_rollover_month_is_configurable():
    assert current_season(Sport.MENS_BASKETBALL, date(2025, 11, 4), secondary_rollover_month=8) == 2026
    assert current_season(Sport.MENS_BASKETBALL, date(2026, 2, 4), secondary_rollover_month=8) == 2026
    # Primary sport ignores the secondary setting
    assert current_season(Sport.FOOTBALL, date(2025, 11, 4), secondary_rollover_month=8) == 2025


def test_parse_game_marks_organization_and_home_away():
    game = parse_game(espn_event("401", "2025-09-06T23:30Z", ksu_home=False), Sport.FOOTBALL, KSU)

    assert game.id == "401"
    assert game.sport is Sport.FOOTBALL
    assert game.date.tzinfo is not None
    assert game.date.astimezone(timezone.utc).hour == 23
    assert game.organization.abbreviation == "KSU"
    assert game.is_home is False
    assert [p.is_organization for p in game.participants] == [True, False]


def test_team_identity_matches_by_name_or_abbreviation():
    assert KSU.matches("", "Kansas State Wildcats", "")
    assert KSU.matches("", "K-State", "ksu")
    assert KSU.matches("2306", "", "")
    assert not KSU.matches("66", "Iowa State Cyclones", "ISU")


def test_parse_schedule_skips_malformed_events_and_sorts():
    payload = {"events": [
        espn_event("2", "2025-09-13T16:00Z"),
        {"name": "no id or date"},
        espn_event("1", "2025-08-30T16:00Z"),
    ]}

    games = parse_schedule(payload, Sport.FOOTBALL, KSU)

    assert [g.id for g in games] == ["1", "2"]


def test_parse_schedule_rejects_non_object_payload():
    with pytest.raises(ValueError):
        parse_schedule(["not", "a", "dict"], Sport.FOOTBALL, KSU)


@pytest.mark.asyncio
async def test_fetch_requests_current_season(monkeypatch):
    seen = {}

    async def fake_fetch_json(session, url, params=None):
        seen["url"] = url
        seen["params"] = params
        return {"events": [espn_event("401", "2025-09-06T16:00Z")]}

    monkeypatch.setattr(api, "fetch_json", fake_fetch_json)
    src = EspnScheduleSource(KSU, base_url="https://espn.test/sports", today=lambda: date(2026, 1, 2))

    games = await src.fetch(Sport.FOOTBALL)

    assert [g.id for g in games] == ["401"]
    assert seen["url"] == "https://espn.test/sports/football/college-football/teams/2306/schedule"
    assert seen["params"] == {"season": "2025"}


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    RuntimeError("HTTP 503 for url"),
    asyncio.TimeoutError(),
    ValueError("Expecting value"),
    PermissionError("Access denied (403)"),
])
async def test_fetch_returns_empty_list_on_failure(monkeypatch, error):
    async def failing_fetch_json(session, url, params=None):
        raise error

    monkeypatch.setattr(api, "fetch_json", failing_fetch_json)
    src = EspnScheduleSource(KSU, base_url="https://espn.test/sports")

    assert await src.fetch(Sport.WOMENS_BASKETBALL) == []


@pytest.mark.asyncio
async def test_fetch_returns_empty_list_on_malformed_payload(monkeypatch):
    async def html_fetch_json(session, url, params=None):
        return "<html>maintenance</html>"

    monkeypatch.setattr(api, "fetch_json", html_fetch_json)
    src = EspnScheduleSource(KSU, base_url="https://espn.test/sports")

    assert await src.fetch(Sport.FOOTBALL) == []
