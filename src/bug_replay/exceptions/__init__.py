"""
Exceptions module - Custom exception hierarchy.

This module defines all custom exceptions used throughout bug-replay,
providing clear error types for different failure scenarios.
"""

from bug_replay.exceptions.base import (
    BugReplayError,
    ConfigurationError,
)
from bug_replay.exceptions.browser import (
    BrowserError,
    BrowserLaunchError,
    BrowserConnectionError,
    PageError,
    NavigationError,
    ElementDetachedError,
)
from bug_replay.exceptions.replay import (
    ReplayError,
    ElementNotResolvable,
    EmptyInteractionSet,
    RecordingSessionFault,
    TransportFault,
    ReplayCancelled,
    ReplayStateError,
)

__all__ = [
    # Base exceptions
    "BugReplayError",
    "ConfigurationError",
    # Browser exceptions
    "BrowserError",
    "BrowserLaunchError",
    "BrowserConnectionError",
    "PageError",
    "NavigationError",
    "ElementDetachedError",
    # Replay exceptions
    "ReplayError",
    "ElementNotResolvable",
    "EmptyInteractionSet",
    "RecordingSessionFault",
    "TransportFault",
    "ReplayCancelled",
    "ReplayStateError",
]
