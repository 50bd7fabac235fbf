"""
Models module - Bug reports, recordings, timelines and interactions.
"""

from bug_replay.models.interaction import (
    ElementDescriptor,
    InteractionRecord,
    InteractionType,
)
from bug_replay.models.timeline import (
    Timeline,
    TimelineEvent,
    Trace,
    analyze_key_issues,
    utc_timestamp,
)
from bug_replay.models.report import (
    BugReport,
    Recording,
    ScreenshotMeta,
)

__all__ = [
    "ElementDescriptor",
    "InteractionRecord",
    "InteractionType",
    "Timeline",
    "TimelineEvent",
    "Trace",
    "analyze_key_issues",
    "utc_timestamp",
    "BugReport",
    "Recording",
    "ScreenshotMeta",
]
