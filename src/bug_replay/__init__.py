"""
bug-replay - Replay recorded bug reports against the live page.

This package re-runs the clicks and inputs of a recorded bug report on a
possibly-changed page, records a fresh diagnostic timeline while doing so,
and appends it to the report as a new iteration.

Example:
    >>> from bug_replay import ReplayOrchestrator
    >>> orchestrator = ReplayOrchestrator(page, recorder, store)
    >>> outcome = await orchestrator.replay(report)
"""

__version__ = "0.1.0"
__author__ = "Suhaib Bin Younis"

# Public API exports
from bug_replay.config.settings import Settings
from bug_replay.engine.orchestrator import OutcomeKind, ReplayOrchestrator, ReplayOutcome
from bug_replay.models.report import BugReport

__all__ = [
    "BugReport",
    "OutcomeKind",
    "ReplayOrchestrator",
    "ReplayOutcome",
    "Settings",
    "__version__",
]
