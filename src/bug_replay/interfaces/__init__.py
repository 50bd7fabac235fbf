"""
Interfaces module - Abstract base classes for all pluggable components.

This module defines the contracts that browser engines and the replay
collaborators (recording, persistence, screenshots, progress, outcome
presentation) must implement.
"""

from bug_replay.interfaces.browser import (
    IBrowser,
    IPage,
    IElement,
    BrowserType,
)
from bug_replay.interfaces.collaborators import (
    FallbackPlan,
    IOutcomePresenter,
    IPersistenceAdapter,
    IProgressSink,
    IRecordingSession,
    IScreenshotProvider,
    SessionHandle,
)

__all__ = [
    # Browser interfaces
    "IBrowser",
    "IPage",
    "IElement",
    "BrowserType",
    # Collaborator interfaces
    "FallbackPlan",
    "IOutcomePresenter",
    "IPersistenceAdapter",
    "IProgressSink",
    "IRecordingSession",
    "IScreenshotProvider",
    "SessionHandle",
]
