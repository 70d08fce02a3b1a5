"""Tests for the match action pipeline against the in-memory store."""

import pytest

from conftest import A, B, LATER, STRANGER, make_snapshot
from matchcore.core.config import settings
from matchcore.lifecycle import (
    ActionRequest,
    ActorClass,
    MatchAction,
    MatchStatus,
    NotificationKind,
    OperatingContext,
    open_match,
    process_match_action,
)
from matchcore.lifecycle.errors import (
    ActorNotInRelationship,
    InvalidTransition,
    MatchNotFound,
    StaleSnapshot,
    TerminalStateViolation,
    UnrecognizedContext,
)


class TestProcessMatchAction:
    async def test_like_completes_mutual_and_notifies(self, store, notifier, audit, pending):
        snap = store.put(pending)

        env = await process_match_action(
            repo=store,
            match_id=snap.match_id,
            request=ActionRequest(MatchAction.LIKE, B, source="MATCH_SERVICE", mode="event"),
            notifier=notifier,
            audit=audit,
            cid="t1",
            now=LATER,
        )

        assert env.after_status == MatchStatus.MUTUAL
        assert env.became_mutual_now is True
        assert env.mode == OperatingContext.EVENT_SCOPED
        assert env.snapshot.version == 1
        assert store.rows[snap.match_id].status == MatchStatus.MUTUAL
        assert notifier.sent == [env]
        assert audit.records == [env]

    async def test_default_source_is_participant(self, store, pending):
        snap = store.put(pending)

        env = await process_match_action(
            repo=store, match_id=snap.match_id, request=ActionRequest(MatchAction.FREEZE, A)
        )

        assert env.actor_class == ActorClass.PARTICIPANT
        assert env.stable_code == "MATCH_FROZEN_NONE_PARTICIPANT"

    async def test_admin_source_changes_actor_class(self, store, mutual):
        snap = store.put(mutual)

        env = await process_match_action(
            repo=store,
            match_id=snap.match_id,
            request=ActionRequest(MatchAction.BLOCK, A, source="AUTO_MODERATION", mode="global"),
        )

        assert env.actor_class == ActorClass.ADMIN_OR_SYSTEM
        assert env.stable_code == "MATCH_BLOCKED_GLOBAL_POOL_ADMIN_OR_SYSTEM"

    async def test_plain_update_is_audited_but_not_notified(self, store, notifier, audit, mutual):
        snap = store.put(mutual)

        await process_match_action(
            repo=store,
            match_id=snap.match_id,
            request=ActionRequest(MatchAction.UPDATE, A),
            notifier=notifier,
            audit=audit,
        )

        assert notifier.sent == []
        assert len(audit.records) == 1

    async def test_concurrent_likes_resolve_to_mutual(self, store, notifier, audit):
        """Both sides like at once; the retry sees the other like and reports mutual once."""
        snap = store.put(make_snapshot())
        store.concurrent_writes.append(ActionRequest(MatchAction.LIKE, B))

        env = await process_match_action(
            repo=store,
            match_id=snap.match_id,
            request=ActionRequest(MatchAction.LIKE, A),
            notifier=notifier,
            audit=audit,
        )

        stored = store.rows[snap.match_id]
        assert store.saves == 2
        assert stored.status == MatchStatus.MUTUAL
        assert stored.version == 2
        assert env.became_mutual_now is True
        assert env.before_status == MatchStatus.PENDING
        assert [e.suggested_notification for e in notifier.sent] == [NotificationKind.MUTUAL_MATCH]

    async def test_gives_up_after_retries(self, store, notifier, audit, monkeypatch):
        monkeypatch.setattr(settings, "MATCH_STALE_RETRIES", 2)
        snap = store.put(make_snapshot())
        store.concurrent_writes.extend([
            ActionRequest(MatchAction.LIKE, B),
            ActionRequest(MatchAction.LIKE, B),
        ])

        with pytest.raises(StaleSnapshot):
            await process_match_action(
                repo=store,
                match_id=snap.match_id,
                request=ActionRequest(MatchAction.LIKE, A),
                notifier=notifier,
                audit=audit,
            )

        assert store.saves == 2
        assert notifier.sent == []
        assert audit.records == []
        assert store.rows[snap.match_id].approved_by_a is False

    async def test_archived_match_is_rejected_without_writing(self, store, notifier, active):
        snap = store.put(active)
        await process_match_action(
            repo=store, match_id=snap.match_id, request=ActionRequest(MatchAction.ARCHIVE, A)
        )

        with pytest.raises(TerminalStateViolation):
            await process_match_action(
                repo=store,
                match_id=snap.match_id,
                request=ActionRequest(MatchAction.UNBLOCK, B),
                notifier=notifier,
            )

        assert store.saves == 1
        assert notifier.sent == []

    async def test_stranger_is_rejected(self, store, pending):
        snap = store.put(pending)

        with pytest.raises(ActorNotInRelationship):
            await process_match_action(
                repo=store, match_id=snap.match_id, request=ActionRequest(MatchAction.LIKE, STRANGER)
            )

        assert store.saves == 0

    async def test_invalid_transition_propagates(self, store, pending):
        snap = store.put(pending)

        with pytest.raises(InvalidTransition):
            await process_match_action(
                repo=store, match_id=snap.match_id, request=ActionRequest(MatchAction.UNBLOCK, A)
            )

    async def test_unknown_mode_is_rejected_before_loading(self, store):
        with pytest.raises(UnrecognizedContext):
            await process_match_action(
                repo=store, match_id=404, request=ActionRequest(MatchAction.LIKE, A, mode="moon")
            )

    async def test_missing_match(self, store):
        with pytest.raises(MatchNotFound):
            await process_match_action(
                repo=store, match_id=404, request=ActionRequest(MatchAction.LIKE, A)
            )


class TestOpenMatch:
    async def test_creates_match_and_likes(self, store, notifier):
        env = await open_match(repo=store, actor_id=A, target_id=B, notifier=notifier)

        assert env.after_status == MatchStatus.PENDING
        assert env.other_participant_id == B
        assert notifier.sent[0].suggested_notification == NotificationKind.LIKE_RECEIVED

    async def test_reverse_like_reuses_match(self, store):
        first = await open_match(repo=store, actor_id=A, target_id=B)
        second = await open_match(repo=store, actor_id=B, target_id=A, mode="global")

        assert len(store.rows) == 1
        assert second.snapshot.match_id == first.snapshot.match_id
        assert second.after_status == MatchStatus.MUTUAL
        assert second.became_mutual_now is True


class TestRepeatedActions:
    async def test_like_on_mutual_is_audited_but_not_notified(self, store, notifier, audit, mutual):
        snap = store.put(mutual)

        env = await process_match_action(
            repo=store,
            match_id=snap.match_id,
            request=ActionRequest(MatchAction.LIKE, B),
            notifier=notifier,
            audit=audit,
        )

        assert env.changed is False
        assert env.suggested_notification is None
        assert notifier.sent == []
        assert audit.records == [env]

    async def test_double_block_notifies_once(self, store, notifier, active):
        snap = store.put(active)
        block = ActionRequest(MatchAction.BLOCK, A)

        await process_match_action(repo=store, match_id=snap.match_id, request=block, notifier=notifier)
        again = await process_match_action(repo=store, match_id=snap.match_id, request=block, notifier=notifier)

        assert again.changed is False
        assert len(notifier.sent) == 1
        assert store.rows[snap.match_id].status == MatchStatus.BLOCKED

    async def test_blocked_side_cannot_unblock(self, store, active):
        snap = store.put(active)
        await process_match_action(
            repo=store, match_id=snap.match_id, request=ActionRequest(MatchAction.BLOCK, A)
        )

        with pytest.raises(InvalidTransition):
            await process_match_action(
                repo=store, match_id=snap.match_id, request=ActionRequest(MatchAction.UNBLOCK, B)
            )

        assert store.rows[snap.match_id].blocked_by_a is True


class TestOpenMatchAtEvents:
    async def test_records_event_and_score(self, store):
        env = await open_match(repo=store, actor_id=A, target_id=B, meeting_event_id=4, match_score=0.7)

        assert env.snapshot.meeting_event_id == 4
        assert env.snapshot.origin_event_id == 4
        assert env.snapshot.match_score == 0.7

    async def test_meeting_again_keeps_origin(self, store):
        await open_match(repo=store, actor_id=A, target_id=B, meeting_event_id=4)
        env = await open_match(repo=store, actor_id=B, target_id=A, meeting_event_id=9)

        assert env.snapshot.meeting_event_id == 9
        assert env.snapshot.origin_event_id == 4
        assert env.after_status == MatchStatus.MUTUAL

    async def test_reverse_open_stores_lower_id_first(self, store):
        env = await open_match(repo=store, actor_id=B, target_id=A)

        assert env.snapshot.participant_a == A
        assert env.snapshot.participant_b == B
