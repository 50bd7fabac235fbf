"""
Reporting module - Screenshots and user-facing output.
"""

from bug_replay.reporting.console import ConsolePresenter, RichProgressSink
from bug_replay.reporting.screenshot import PageScreenshotProvider

__all__ = [
    "ConsolePresenter",
    "RichProgressSink",
    "PageScreenshotProvider",
]
