class TutorDeskError(Exception):
    """Base exception for the TutorDesk backend."""

    pass


class PersistenceFailure(TutorDeskError):
    """Raised when a storage operation fails after validation passed.

    No partial write is left behind; the whole call may be retried.
    """

    pass


class ConcurrentUpdateError(PersistenceFailure):
    """Raised when optimistic concurrency retries are exhausted."""

    def __init__(self, inquiry_id: str, attempts: int):
        self.inquiry_id = inquiry_id
        self.attempts = attempts
        super().__init__(
            f"Inquiry {inquiry_id} was modified concurrently; gave up after {attempts} attempts"
        )


class AppendOnlyViolationError(TutorDeskError):
    """Raised when code tries to modify or delete a status history record."""

    pass
