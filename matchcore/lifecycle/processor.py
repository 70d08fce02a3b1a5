import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from matchcore.core.config import settings
from matchcore.lifecycle.actions import ActionRequest, MatchAction
from matchcore.lifecycle.context import classify, classify_mode
from matchcore.lifecycle.engine import is_noop, resolve
from matchcore.lifecycle.errors import (
    ActorNotInRelationship,
    StaleSnapshot,
    TerminalStateViolation,
)
from matchcore.lifecycle.feedback import FeedbackEnvelope, build_feedback
from matchcore.lifecycle.ports import AuditSink, MatchStore, NotificationDispatcher

log = logging.getLogger("matchcore-lifecycle")


async def _hand_off(
    envelope: FeedbackEnvelope,
    notifier: Optional[NotificationDispatcher],
    audit: Optional[AuditSink],
    cid: str,
) -> None:
    if notifier is not None and envelope.suggested_notification is not None:
        await notifier.dispatch(envelope)
        log.info(
            "[MATCH %s] NOTIFY other=%s kind=%s",
            cid, envelope.other_participant_id, envelope.suggested_notification.value,
        )
    if audit is not None:
        await audit.record(envelope)


async def process_match_action(
    *,
    repo: MatchStore,
    match_id: int,
    request: ActionRequest,
    notifier: Optional[NotificationDispatcher] = None,
    audit: Optional[AuditSink] = None,
    cid: str = "",
    now: Optional[datetime] = None,
) -> FeedbackEnvelope:
    """
    Shared pipeline for every match action: load, resolve, build feedback,
    save with a version check, then hand the envelope to the collaborators.

    On a version conflict the snapshot is re-fetched and the whole resolution
    runs again, so an envelope is only dispatched for the state that was
    actually stored.
    """
    action = MatchAction.parse(request.action)
    actor_class = classify(request.source or settings.DEFAULT_SOURCE_MODULE)
    context = classify_mode(request.mode)

    log.info(
        "[MATCH %s] START match_id=%s action=%s actor=%s class=%s mode=%s",
        cid, match_id, action.value, request.actor_id, actor_class.value, context.value,
    )

    attempts = settings.MATCH_STALE_RETRIES
    for attempt in range(1, attempts + 1):
        current = await repo.get(match_id)

        try:
            resolution = resolve(current, request, now)
            changed = not is_noop(current, resolution.snapshot)
            envelope = build_feedback(
                resolution.snapshot,
                request.actor_id,
                action,
                context,
                actor_class,
                current.status,
                request.reason,
                resolution.became_mutual_now,
                resolution.mutual_broken_now,
                changed,
            )
        except ActorNotInRelationship:
            log.error(
                "[MATCH %s] actor %s is not part of match %s (action=%s source=%s)",
                cid, request.actor_id, match_id, action.value, request.source,
            )
            raise
        except TerminalStateViolation:
            log.warning("[MATCH %s] %s rejected: match %s is archived", cid, action.value, match_id)
            raise

        try:
            saved = await repo.save(resolution.snapshot, expected_version=current.version)
        except StaleSnapshot:
            log.warning(
                "[MATCH %s] stale version=%s attempt=%d/%d, re-fetching",
                cid, current.version, attempt, attempts,
            )
            continue

        envelope = replace(envelope, snapshot=saved)
        log.info(
            "[MATCH %s] DONE status %s->%s mutual=%s became=%s broken=%s changed=%s code=%s",
            cid,
            current.status.value,
            saved.status.value,
            saved.mutual_approved,
            resolution.became_mutual_now,
            resolution.mutual_broken_now,
            changed,
            envelope.stable_code,
        )

        await _hand_off(envelope, notifier, audit, cid)
        return envelope

    log.error("[MATCH %s] giving up on match %s after %d stale attempts", cid, match_id, attempts)
    raise StaleSnapshot(match_id, current.version)


async def open_match(
    *,
    repo: MatchStore,
    actor_id,
    target_id,
    source: Optional[str] = None,
    mode: Optional[str] = None,
    match_source: str = "like-action",
    meeting_event_id: Optional[int] = None,
    match_score: Optional[float] = None,
    notifier: Optional[NotificationDispatcher] = None,
    audit: Optional[AuditSink] = None,
    cid: str = "",
    now: Optional[datetime] = None,
) -> FeedbackEnvelope:
    """
    Like hook: finds or creates the pair's match, then applies LIKE for the
    actor. A known pair meeting at a new event gets that event recorded.
    """
    snap = await repo.get_or_create(
        actor_id, target_id, match_source,
        meeting_event_id=meeting_event_id, match_score=match_score,
    )
    request = ActionRequest(
        MatchAction.LIKE, actor_id, source=source, mode=mode, event_id=meeting_event_id
    )
    return await process_match_action(
        repo=repo,
        match_id=snap.match_id,
        request=request,
        notifier=notifier,
        audit=audit,
        cid=cid,
        now=now,
    )
