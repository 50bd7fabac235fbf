"""
Recorder module - Capture a diagnostic timeline from a live page.
"""

from bug_replay.recorder.recorder import PageTraceRecorder

__all__ = ["PageTraceRecorder"]
