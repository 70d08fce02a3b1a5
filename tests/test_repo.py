"""Tests for MatchRepository on in-memory SQLite."""

from dataclasses import replace

import pytest
from sqlalchemy import func, select

from conftest import A, B, LATER, NOW
from matchcore.db.models import Match
from matchcore.lifecycle import ActionRequest, MatchAction, MatchStatus, mark_seen, process_match_action, resolve
from matchcore.lifecycle.errors import MatchNotFound, StaleSnapshot


class TestMatchRepository:
    async def test_get_or_create_stores_new_match(self, repo):
        snap = await repo.get_or_create(A, B, "event", NOW)

        assert snap.match_id is not None
        assert snap.status == MatchStatus.NONE
        assert snap.version == 0
        assert snap.match_source == "event"

    async def test_pair_lookup_is_unordered(self, repo):
        created = await repo.get_or_create(A, B)

        again = await repo.get_or_create(B, A)
        found = await repo.find_between(B, A)

        assert again.match_id == created.match_id
        assert found.match_id == created.match_id
        assert found.participant_a == A

    async def test_find_between_unknown_pair(self, repo):
        assert await repo.find_between(A, 12345) is None

    async def test_save_bumps_version(self, repo):
        snap = await repo.get_or_create(A, B)
        liked = resolve(snap, ActionRequest(MatchAction.LIKE, A), LATER).snapshot

        saved = await repo.save(liked)
        loaded = await repo.get(snap.match_id)

        assert saved.version == 1
        assert loaded.version == 1
        assert loaded.status == MatchStatus.PENDING
        assert loaded.approved_by_a is True

    async def test_stale_save_is_rejected(self, repo):
        snap = await repo.get_or_create(A, B)
        by_a = resolve(snap, ActionRequest(MatchAction.LIKE, A)).snapshot
        by_b = resolve(snap, ActionRequest(MatchAction.LIKE, B)).snapshot

        await repo.save(by_a, expected_version=snap.version)
        with pytest.raises(StaleSnapshot):
            await repo.save(by_b, expected_version=snap.version)

        loaded = await repo.get(snap.match_id)
        assert loaded.approved_by_a is True
        assert loaded.approved_by_b is False

    async def test_restore_and_freeze_columns_round_trip(self, repo):
        snap = await repo.get_or_create(A, B)
        snap = await repo.save(resolve(snap, ActionRequest(MatchAction.LIKE, A)).snapshot)
        frozen = resolve(snap, ActionRequest(MatchAction.FREEZE, B, reason="away")).snapshot

        await repo.save(frozen)
        loaded = await repo.get(snap.match_id)

        assert loaded.status == MatchStatus.FROZEN
        assert loaded.restore_status == MatchStatus.PENDING
        assert loaded.freeze_reason == "away"

    async def test_missing_match(self, repo):
        with pytest.raises(MatchNotFound):
            await repo.get(999)

    async def test_save_requires_stored_snapshot(self, repo):
        snap = await repo.get_or_create(A, B)

        with pytest.raises(ValueError):
            await repo.save(replace(snap, match_id=None))

    async def test_pipeline_on_database(self, repo):
        snap = await repo.get_or_create(A, B)

        await process_match_action(repo=repo, match_id=snap.match_id, request=ActionRequest(MatchAction.LIKE, A))
        env = await process_match_action(
            repo=repo, match_id=snap.match_id, request=ActionRequest(MatchAction.LIKE, B)
        )

        loaded = await repo.get(snap.match_id)
        assert env.became_mutual_now is True
        assert loaded.status == MatchStatus.MUTUAL
        assert loaded.version == 2


class TestPairCreation:
    async def test_pair_is_stored_lower_id_first(self, repo):
        snap = await repo.get_or_create(B, A)

        assert snap.participant_a == A
        assert snap.participant_b == B

    async def test_insert_race_reuses_existing_match(self, repo, db_session, monkeypatch):
        created = await repo.get_or_create(A, B)
        real_find = repo.find_between
        calls = []

        async def find_misses_once(x, y):
            calls.append((x, y))
            if len(calls) == 1:
                return None
            return await real_find(x, y)

        monkeypatch.setattr(repo, "find_between", find_misses_once)

        again = await repo.get_or_create(B, A)

        count = await db_session.scalar(select(func.count()).select_from(Match))
        assert again.match_id == created.match_id
        assert count == 1


class TestSuspensionAndEventColumns:
    async def test_block_side_round_trips(self, repo):
        snap = await repo.get_or_create(A, B)
        blocked = resolve(snap, ActionRequest(MatchAction.BLOCK, B)).snapshot

        await repo.save(blocked)
        loaded = await repo.get(snap.match_id)

        assert loaded.blocked_by_b is True
        assert loaded.blocked_by_a is False
        assert loaded.restore_status == MatchStatus.NONE

    async def test_freeze_side_round_trips(self, repo):
        snap = await repo.get_or_create(A, B)
        snap = await repo.save(resolve(snap, ActionRequest(MatchAction.LIKE, A)).snapshot)

        await repo.save(resolve(snap, ActionRequest(MatchAction.FREEZE, A)).snapshot)
        loaded = await repo.get(snap.match_id)

        assert loaded.frozen_by_a is True
        assert loaded.frozen_by_b is False

    async def test_event_score_and_first_seen_round_trip(self, repo):
        snap = await repo.get_or_create(A, B, "event", NOW, meeting_event_id=4, match_score=0.5)
        liked = resolve(snap, ActionRequest(MatchAction.LIKE, A, event_id=9), LATER).snapshot

        await repo.save(mark_seen(liked, B, LATER))
        loaded = await repo.get(snap.match_id)

        assert loaded.meeting_event_id == 9
        assert loaded.origin_event_id == 4
        assert loaded.match_score == 0.5
        assert loaded.first_seen_at is not None
