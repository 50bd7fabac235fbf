"""
Collaborator Interfaces - What the replay orchestrator talks to.

The orchestrator only knows these contracts. Concrete implementations live
in ``bug_replay.recorder`` (recording), ``bug_replay.storage`` (persistence)
and ``bug_replay.reporting`` (screenshots, progress, user-facing outcomes).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bug_replay.exceptions import TransportFault
    from bug_replay.models import BugReport, Recording, Trace


@dataclass
class SessionHandle:
    """
    Identifies a started recording session.
    
    Attributes:
        session_id: Unique id of the session
        started_at: ISO timestamp of the start
        metadata: Recorder-specific details (url, viewport, ...)
    """
    session_id: str
    started_at: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FallbackPlan:
    """
    What a human needs to finish the reproduction by hand.
    
    Attributes:
        reason: Why automatic replay stopped
        steps: Ordered descriptions of the original interactions
        next_iteration: Iteration number a manual recording would get
    """
    reason: str
    steps: List[str] = field(default_factory=list)
    next_iteration: int = 1


class IRecordingSession(ABC):
    """
    Captures a fresh trace while replay drives the page.
    """
    
    @property
    @abstractmethod
    def is_recording(self) -> bool:
        """Whether a session is currently open."""
        ...
    
    @abstractmethod
    async def start(self) -> SessionHandle:
        """
        Open a recording session.
        
        Returns:
            Handle of the new session
        
        Raises:
            RecordingSessionFault: If the session cannot be started
        """
        ...
    
    @abstractmethod
    async def stop(self) -> Optional["Trace"]:
        """
        Close the session and return its trace.
        
        Stopping is idempotent: a repeated call returns the trace captured
        by the first one (or None if nothing was ever recorded).
        
        Returns:
            The captured trace
        """
        ...


class IProgressSink(ABC):
    """
    Receives replay progress. Calls are fire-and-forget.
    """
    
    def on_start(self, total: int) -> None:
        """Called once before the first step."""
        return None
    
    @abstractmethod
    def on_progress(self, completed: int, total: int) -> None:
        """
        Called after every successfully performed step.
        
        Args:
            completed: Steps performed so far
            total: Steps in the session
        """
        ...
    
    def on_finish(self) -> None:
        """Called once when the session ends, whatever the outcome."""
        return None


class IPersistenceAdapter(ABC):
    """
    Stores a new iteration on a bug report.
    """
    
    @abstractmethod
    async def append_iteration(
        self,
        report: "BugReport",
        trace: "Trace",
        screenshot: Optional[bytes] = None,
        replayed: bool = True,
    ) -> "Recording":
        """
        Append a trace as the report's next iteration and persist the report.
        
        Args:
            report: Report to extend; updated in place only on success
            trace: Trace to append
            screenshot: Optional PNG bytes of the final page state
            replayed: Whether the trace came from automatic replay
        
        Returns:
            The appended iteration
        
        Raises:
            TransportFault: If the store did not acknowledge the save
        """
        ...


class IScreenshotProvider(ABC):
    """
    Captures the current page. Absence of a screenshot is not an error.
    """
    
    @abstractmethod
    async def capture(self) -> Optional[bytes]:
        """
        Returns:
            PNG bytes, or None if nothing could be captured
        """
        ...


class IOutcomePresenter(ABC):
    """
    Shows replay outcomes to the user.
    """
    
    @abstractmethod
    def show_success(self, report_id: str, reference: str) -> None:
        """
        Args:
            report_id: Replayed report
            reference: Copyable diagnostic reference string
        """
        ...
    
    @abstractmethod
    def show_failure(self, report_id: str, plan: FallbackPlan) -> None:
        """
        Args:
            report_id: Replayed report
            plan: Original steps and the manual-fallback iteration
        """
        ...
    
    @abstractmethod
    def show_persistence_error(self, report_id: str, error: "TransportFault") -> None:
        """
        Args:
            report_id: Replayed report
            error: The failed save
        """
        ...
