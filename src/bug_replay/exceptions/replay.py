"""
Replay-related exceptions.
"""

from typing import Any, Optional

from bug_replay.exceptions.base import BugReplayError


class ReplayError(BugReplayError):
    """Base exception for replay session errors."""
    pass


class ElementNotResolvable(ReplayError):
    """
    A recorded element could not be found in the live page.
    
    Raised after every resolution strategy missed on every attempt.
    Terminal for the replay session.
    """
    
    def __init__(self, message: str, descriptor: Optional[dict] = None, attempts: int = 0):
        super().__init__(message, {"descriptor": descriptor, "attempts": attempts})
        self.descriptor = descriptor
        self.attempts = attempts


class EmptyInteractionSet(ReplayError):
    """
    The report has nothing replayable.
    
    Signals a benign early exit. Never surfaced to the user as a failure.
    """
    
    def __init__(self, message: str, report_id: str | None = None):
        super().__init__(message, {"report_id": report_id})
        self.report_id = report_id


class RecordingSessionFault(ReplayError):
    """
    Starting or stopping the underlying recording failed or timed out.
    """
    
    def __init__(self, message: str, operation: str):
        super().__init__(message, {"operation": operation})
        self.operation = operation


class TransportFault(ReplayError):
    """
    The report store did not acknowledge a save.
    
    The iteration that failed to persist is kept on the exception so the
    captured trace is not lost; retrying is the caller's responsibility.
    """
    
    def __init__(
        self,
        message: str,
        report_id: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, {"report_id": report_id, "status_code": status_code})
        self.report_id = report_id
        self.status_code = status_code
        self.iteration: Optional[Any] = None


class ReplayCancelled(ReplayError):
    """
    The caller cancelled the replay.
    """
    
    def __init__(self, reason: str = "Replay cancelled"):
        super().__init__(reason, {"reason": reason})
        self.reason = reason


class ReplayStateError(ReplayError):
    """
    An illegal session lifecycle transition or progress update.
    """
    pass
