import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from matchcore.db.models import Match
from matchcore.lifecycle.errors import MatchNotFound, StaleSnapshot
from matchcore.lifecycle.snapshot import MatchSnapshot, MatchStatus

log = logging.getLogger("matchcore-repo")


def to_snapshot(row: Match) -> MatchSnapshot:
    return MatchSnapshot(
        participant_a=row.participant_a_id,
        participant_b=row.participant_b_id,
        approved_by_a=row.approved_by_a,
        approved_by_b=row.approved_by_b,
        status=MatchStatus(row.status),
        freeze_reason=row.freeze_reason,
        restore_status=MatchStatus(row.restore_status) if row.restore_status else None,
        blocked_by_a=row.blocked_by_a,
        blocked_by_b=row.blocked_by_b,
        frozen_by_a=row.frozen_by_a,
        frozen_by_b=row.frozen_by_b,
        match_source=row.match_source,
        meeting_event_id=row.meeting_event_id,
        origin_event_id=row.origin_event_id,
        match_score=row.match_score,
        unread_count=row.unread_count or 0,
        read_by_a=row.read_by_a,
        read_by_b=row.read_by_b,
        last_message_at=row.last_message_at,
        chat_opened=row.chat_opened,
        first_message_sent=row.first_message_sent,
        created_at=row.created_at,
        updated_at=row.updated_at,
        first_seen_at=row.first_seen_at,
        archived_at=row.archived_at,
        match_id=row.id,
        version=row.version,
    )


def to_columns(snap: MatchSnapshot) -> dict:
    """Column values for a snapshot, without id, version and created_at."""
    return {
        "participant_a_id": snap.participant_a,
        "participant_b_id": snap.participant_b,
        "approved_by_a": snap.approved_by_a,
        "approved_by_b": snap.approved_by_b,
        "mutual_approved": snap.mutual_approved,
        "status": snap.status.value,
        "freeze_reason": snap.freeze_reason,
        "restore_status": snap.restore_status.value if snap.restore_status else None,
        "blocked_by_a": snap.blocked_by_a,
        "blocked_by_b": snap.blocked_by_b,
        "frozen_by_a": snap.frozen_by_a,
        "frozen_by_b": snap.frozen_by_b,
        "match_source": snap.match_source,
        "meeting_event_id": snap.meeting_event_id,
        "origin_event_id": snap.origin_event_id,
        "match_score": snap.match_score,
        "unread_count": snap.unread_count,
        "read_by_a": snap.read_by_a,
        "read_by_b": snap.read_by_b,
        "last_message_at": snap.last_message_at,
        "chat_opened": snap.chat_opened,
        "first_message_sent": snap.first_message_sent,
        "updated_at": snap.updated_at,
        "first_seen_at": snap.first_seen_at,
        "archived_at": snap.archived_at,
    }


class MatchRepository:
    """Loads and stores match snapshots with an optimistic version check."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, match_id: int) -> MatchSnapshot:
        # populate_existing: a retry after a conflict must see the other writer's row
        row = await self.db.get(Match, match_id, populate_existing=True)
        if row is None:
            raise MatchNotFound(match_id)
        return to_snapshot(row)

    async def find_between(self, x: int, y: int) -> Optional[MatchSnapshot]:
        q = select(Match).where(
            or_(
                and_(Match.participant_a_id == x, Match.participant_b_id == y),
                and_(Match.participant_a_id == y, Match.participant_b_id == x),
            )
        )
        res = await self.db.execute(q)
        row = res.scalars().first()
        return to_snapshot(row) if row else None

    async def get_or_create(
        self,
        participant_a: int,
        participant_b: int,
        source: str = "unknown",
        now: Optional[datetime] = None,
        *,
        meeting_event_id: Optional[int] = None,
        match_score: Optional[float] = None,
    ) -> MatchSnapshot:
        existing = await self.find_between(participant_a, participant_b)
        if existing:
            return existing

        # canonical order: the unique pair index then covers both directions
        low, high = sorted((participant_a, participant_b))
        snap = MatchSnapshot.open(low, high, source, now, meeting_event_id, match_score)
        row = Match(**to_columns(snap), version=0, created_at=snap.created_at)
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            # another writer created the pair between our lookup and insert
            await self.db.rollback()
            existing = await self.find_between(low, high)
            if existing is None:
                raise
            log.info("Match for a=%s b=%s created concurrently, reusing id=%s", low, high, existing.match_id)
            return existing
        await self.db.refresh(row)

        log.info("Match created id=%s a=%s b=%s source=%s", row.id, low, high, source)
        return to_snapshot(row)

    async def save(self, snapshot: MatchSnapshot, expected_version: Optional[int] = None) -> MatchSnapshot:
        """
        Writes the snapshot only if the stored version still equals
        `expected_version` (defaults to `snapshot.version`), then bumps it.
        Raises StaleSnapshot when another writer got there first.
        """
        if snapshot.match_id is None:
            raise ValueError("Cannot save a snapshot that was never stored")
        expected = snapshot.version if expected_version is None else expected_version

        stmt = (
            update(Match)
            .where(Match.id == snapshot.match_id, Match.version == expected)
            .values(**to_columns(snapshot), version=expected + 1)
            .execution_options(synchronize_session=False)
        )
        res = await self.db.execute(stmt)
        if res.rowcount == 0:
            await self.db.rollback()
            raise StaleSnapshot(snapshot.match_id, expected)

        await self.db.commit()
        return replace(snapshot, version=expected + 1)
