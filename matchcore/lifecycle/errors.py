"""Error kinds raised by the match lifecycle core and its service edge."""


class MatchLifecycleError(Exception):
    """Base class for every lifecycle error."""


class TerminalStateViolation(MatchLifecycleError):
    """A transition was attempted against an ARCHIVED match. Never retry."""

    def __init__(self, match_id=None, action=None):
        self.match_id = match_id
        self.action = action
        super().__init__(f"Match {match_id} is archived; {action} rejected")


class ActorNotInRelationship(MatchLifecycleError):
    """The acting participant is not one of the two sides of the match.

    Reaching this means an upstream authorization check let a stranger
    through, so callers should treat it as fatal for the request.
    """

    def __init__(self, actor_id, match_id=None):
        self.actor_id = actor_id
        self.match_id = match_id
        super().__init__(f"Participant {actor_id} is not part of match {match_id}")


class UnrecognizedAction(MatchLifecycleError, ValueError):
    def __init__(self, tag):
        self.tag = tag
        super().__init__(f"Unrecognized match action: {tag!r}")


class UnrecognizedContext(MatchLifecycleError, ValueError):
    def __init__(self, tag):
        self.tag = tag
        super().__init__(f"Unrecognized operating context: {tag!r}")


class InvalidTransition(MatchLifecycleError):
    """The action is defined, but not from the match's current status."""

    def __init__(self, status, action):
        self.status = status
        self.action = action
        super().__init__(f"{action} is not allowed from {status}")


class SuspendedByOtherSide(InvalidTransition):
    """A participant tried to lift a freeze or block placed only by the other side."""

    def __init__(self, status, action, actor_id):
        self.actor_id = actor_id
        super().__init__(status, action)
        self.args = (f"{action} by {actor_id} rejected: {status} was set by the other side",)


class InvalidSnapshot(MatchLifecycleError, ValueError):
    pass


class StaleSnapshot(MatchLifecycleError):
    """The stored version moved on since the snapshot was loaded."""

    def __init__(self, match_id, expected_version):
        self.match_id = match_id
        self.expected_version = expected_version
        super().__init__(f"Match {match_id} changed since version {expected_version}")


class MatchNotFound(MatchLifecycleError, LookupError):
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match not found: {match_id}")
