"""Outbound collaborators the match service hands envelopes to."""

import logging
from typing import Optional, Protocol

from matchcore.lifecycle.feedback import FeedbackEnvelope
from matchcore.lifecycle.snapshot import MatchSnapshot
from matchcore.schemas.match import AuditRecord


class MatchStore(Protocol):
    async def get(self, match_id: int) -> MatchSnapshot: ...

    async def get_or_create(
        self,
        participant_a,
        participant_b,
        source: str = "unknown",
        *,
        meeting_event_id: Optional[int] = None,
        match_score: Optional[float] = None,
    ) -> MatchSnapshot: ...

    async def save(self, snapshot: MatchSnapshot, expected_version: Optional[int] = None) -> MatchSnapshot: ...


class NotificationDispatcher(Protocol):
    async def dispatch(self, envelope: FeedbackEnvelope) -> None: ...


class AuditSink(Protocol):
    async def record(self, envelope: FeedbackEnvelope) -> None: ...


class LoggingAuditSink:
    """Audit sink that writes one JSON line per envelope to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger("matchcore.audit")

    async def record(self, envelope: FeedbackEnvelope) -> None:
        record = AuditRecord.from_envelope(envelope)
        self.log.info("[AUDIT] %s", record.model_dump_json())
