"""Shared fakes for the Game Thread Bot test suite.

The chat platform and the ESPN feed are replaced by small in-memory
stand-ins so the scheduling and dedup logic can be exercised offline.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Add current directory to path for bot imports
sys.path.insert(0, str(Path(__file__).parent))

from gamethreadbot.models import Game, Participant, Sport  # noqa: E402

TZ = ZoneInfo("America/New_York")


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeSource:
    def __init__(self, schedules=None):
        self.schedules = schedules or {}
        self.failures = {}
        self.calls = []

    async def fetch(self, sport):
        self.calls.append(sport)
        if sport in self.failures:
            raise self.failures[sport]
        return list(self.schedules.get(sport, []))


class FakeThread:
    _next_id = 9000

    def __init__(self, name, parent_id):
        FakeThread._next_id += 1
        self.id = FakeThread._next_id
        self.name = name
        self.parent_id = parent_id
        self.mention = f"<#{self.id}>"
        self.sent = []
        self.fail_send = False

    async def send(self, content=None, **kwargs):
        if self.fail_send:
            raise RuntimeError("send failed")
        self.sent.append(content)


class FakeGuild:
    def __init__(self):
        self.active = []

    async def active_threads(self):
        return list(self.active)


class FakeChannel:
    def __init__(self, channel_id, guild):
        self.id = channel_id
        self.guild = guild
        self.archived = []
        self.sent = []
        self.created = []
        self.fail_send = False
        self.fail_thread_send = False

    async def create_thread(self, name, auto_archive_duration=None, type=None, reason=None):
        thread = FakeThread(name, self.id)
        thread.fail_send = self.fail_thread_send
        self.created.append(thread)
        self.guild.active.append(thread)
        return thread

    async def archived_threads(self, limit=None):
        for thread in list(self.archived):
            yield thread

    async def send(self, content=None, **kwargs):
        if self.fail_send:
            raise RuntimeError("send failed")
        self.sent.append(content)

    def archive_all(self):
        """Move every active thread of this channel to the archive."""
        mine = [t for t in self.guild.active if t.parent_id == self.id]
        self.guild.active = [t for t in self.guild.active if t.parent_id != self.id]
        self.archived.extend(mine)


class FakeClient:
    def __init__(self, channels):
        self.channels = {c.id: c for c in channels}

    def get_channel(self, channel_id):
        return self.channels.get(channel_id)


THREADS_CHANNEL_ID = 111
GENERAL_CHANNEL_ID = 222


def make_game(game_id, when, sport=Sport.FOOTBALL, opponent="Opponent A", home=True, org_matches=1):
    participants = []
    for _ in range(org_matches):
        participants.append(Participant(
            display_name="Kansas State Wildcats",
            abbreviation="KSU",
            team_id="2306",
            home_away="home" if home else "away",
            is_organization=True,
        ))
    if opponent is not None:
        participants.append(Participant(
            display_name=opponent,
            abbreviation=opponent[:3].upper(),
            team_id="99",
            home_away="away" if home else "home",
            is_organization=False,
        ))
    return Game(id=game_id, sport=sport, date=when, name=f"{opponent} at Kansas State", participants=participants)


@pytest.fixture
def clock():
    # Saturday morning, 9 AM Eastern
    return FakeClock(datetime(2025, 9, 6, 9, 0, tzinfo=TZ))


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def guild():
    return FakeGuild()


@pytest.fixture
def threads_channel(guild):
    return FakeChannel(THREADS_CHANNEL_ID, guild)


@pytest.fixture
def general_channel(guild):
    return FakeChannel(GENERAL_CHANNEL_ID, guild)


@pytest.fixture
def client(threads_channel, general_channel):
    return FakeClient([threads_channel, general_channel])


@pytest.fixture
def store(source, clock):
    from gamethreadbot.schedule import ScheduleStore
    return ScheduleStore(source, TZ, clock=clock)


@pytest.fixture
def scheduler(clock):
    # Tests call stop_all() themselves while the event loop is still running
    from gamethreadbot.jobs import JobScheduler
    return JobScheduler(TZ, clock=clock)


@pytest.fixture
def dispatcher(client, store):
    from gamethreadbot.threads import ThreadDispatcher
    return ThreadDispatcher(client, store, THREADS_CHANNEL_ID, GENERAL_CHANNEL_ID, "Kansas State", TZ)


@pytest.fixture
def orchestrator(store, scheduler, dispatcher):
    from gamethreadbot.orchestrator import Orchestrator
    return Orchestrator(store, scheduler, dispatcher, "1 0 * * 0", "America/New_York", 5)
