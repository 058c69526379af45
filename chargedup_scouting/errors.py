"""Domain exceptions raised by the match store and report ingestion."""


class ScoutingError(Exception):
    """Base exception for all scouting errors.

    Carries a ``details`` dict so callers can report what was rejected.
    """

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class DuplicateMatchRecordError(ScoutingError):
    """Raised when a (match number, alliance) pair is already stored."""

    reason = "Already exists in the database."

    def __init__(self, match_number: int, alliance: str):
        details = {
            "match_number": match_number,
            "alliance": alliance,
        }
        super().__init__(self.reason, details)


class MalformedMatchRecordError(ScoutingError):
    """Raised when a match report cannot be turned into a valid match record."""

    def __init__(self, message: str, source: str = None):
        details = {"source": source} if source is not None else {}
        super().__init__(f"Malformed match record: {message}", details)
