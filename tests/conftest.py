"""Pytest fixtures for matchcore tests."""

from dataclasses import replace
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from matchcore.db.session import init_models
from matchcore.lifecycle import MatchRepository, MatchSnapshot, MatchStatus, resolve
from matchcore.lifecycle.errors import MatchNotFound, StaleSnapshot

A = 101
B = 202
STRANGER = 999

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2026, 3, 1, 12, 5, tzinfo=timezone.utc)


def make_snapshot(**overrides) -> MatchSnapshot:
    """Snapshot between A and B, created at NOW, with field overrides."""
    base = MatchSnapshot.open(A, B, source="event", now=NOW)
    return replace(base, **overrides)


class InMemoryStore:
    """Match store double with an optional concurrent writer.

    Requests queued in `concurrent_writes` are applied to the stored row
    right before the next save, which then sees a stale version.
    """

    def __init__(self):
        self.rows: dict[int, MatchSnapshot] = {}
        self.next_id = 1
        self.concurrent_writes = []
        self.saves = 0

    def put(self, snapshot: MatchSnapshot) -> MatchSnapshot:
        if snapshot.match_id is None:
            snapshot = replace(snapshot, match_id=self.next_id)
            self.next_id += 1
        self.rows[snapshot.match_id] = snapshot
        return snapshot

    async def get(self, match_id):
        if match_id not in self.rows:
            raise MatchNotFound(match_id)
        return self.rows[match_id]

    async def get_or_create(
        self,
        participant_a,
        participant_b,
        source="unknown",
        *,
        meeting_event_id=None,
        match_score=None,
    ):
        for snap in self.rows.values():
            if snap.involves_both(participant_a, participant_b):
                return snap
        low, high = sorted((participant_a, participant_b))
        return self.put(MatchSnapshot.open(low, high, source, NOW, meeting_event_id, match_score))

    async def save(self, snapshot, expected_version=None):
        self.saves += 1
        if self.concurrent_writes:
            request = self.concurrent_writes.pop(0)
            stored = self.rows[snapshot.match_id]
            other = resolve(stored, request, NOW).snapshot
            self.rows[snapshot.match_id] = replace(other, version=stored.version + 1)

        expected = snapshot.version if expected_version is None else expected_version
        stored = self.rows[snapshot.match_id]
        if stored.version != expected:
            raise StaleSnapshot(snapshot.match_id, expected)
        saved = replace(snapshot, version=expected + 1)
        self.rows[snapshot.match_id] = saved
        return saved


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def dispatch(self, envelope):
        self.sent.append(envelope)


class RecordingAudit:
    def __init__(self):
        self.records = []

    async def record(self, envelope):
        self.records.append(envelope)


@pytest.fixture
def pending():
    """A has liked B; B has not answered yet."""
    return make_snapshot(approved_by_a=True, status=MatchStatus.PENDING)


@pytest.fixture
def mutual():
    return make_snapshot(approved_by_a=True, approved_by_b=True, status=MatchStatus.MUTUAL)


@pytest.fixture
def active():
    return make_snapshot(
        approved_by_a=True,
        approved_by_b=True,
        status=MatchStatus.ACTIVE,
        chat_opened=True,
        first_message_sent=True,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
async def db_session():
    """AsyncSession on a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    maker = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def repo(db_session):
    return MatchRepository(db_session)
