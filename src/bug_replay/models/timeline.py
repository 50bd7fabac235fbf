"""
Timeline - Timestamped diagnostic events captured during a recording.

A timeline mixes console output, network activity and user interactions
in the order they happened. A Trace is a finished timeline plus the
metadata and key issues derived from it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bug_replay.models.interaction import InteractionRecord


USER_INTERACTION = "user-interaction"
CONSOLE_ERROR = "console-error"
CONSOLE_WARNING = "console-warning"
CONSOLE_LOG = "console-log"
NETWORK = "network"
RECORDING_START = "recording-start"
RECORDING_END = "recording-end"


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class TimelineEvent:
    """
    A single timeline entry.
    
    Attributes:
        type: Event family (console-error, network, user-interaction, ...)
        relative_time: Milliseconds since the recording started
        timestamp: Wall-clock ISO timestamp
        subtype: Finer kind (click, input, success, failed, ...)
        severity: info, warning or error
        data: Event payload
    """
    type: str
    relative_time: int = 0
    timestamp: Optional[str] = None
    subtype: Optional[str] = None
    severity: str = "info"
    data: Dict[str, Any] = field(default_factory=dict)
    
    @property
    def is_user_interaction(self) -> bool:
        return self.type == USER_INTERACTION
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "relativeTime": self.relative_time,
            "type": self.type,
        }
        if self.subtype is not None:
            result["subtype"] = self.subtype
        result["severity"] = self.severity
        result["data"] = self.data
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineEvent":
        """Create from dictionary."""
        return cls(
            type=data.get("type", ""),
            relative_time=int(data.get("relativeTime") or 0),
            timestamp=data.get("timestamp"),
            subtype=data.get("subtype"),
            severity=data.get("severity", "info"),
            data=data.get("data") or {},
        )


@dataclass
class Timeline:
    """Ordered events plus summary counters."""
    events: List[TimelineEvent] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)
    
    @classmethod
    def build(cls, events: List[TimelineEvent]) -> "Timeline":
        """Sort events by relative time and compute the summary."""
        ordered = sorted(events, key=lambda e: e.relative_time)
        console = [e for e in ordered if e.type.startswith("console")]
        network = [e for e in ordered if e.type == NETWORK]
        interactions = [e for e in ordered if e.type == USER_INTERACTION]
        return cls(
            events=ordered,
            summary={
                "totalEvents": len(ordered),
                "userInteractions": len(interactions),
                "networkRequests": len(network),
                "networkFailures": sum(1 for e in network if e.subtype == "failed"),
                "consoleErrors": sum(1 for e in console if e.type == CONSOLE_ERROR),
                "consoleWarnings": sum(1 for e in console if e.type == CONSOLE_WARNING),
                "consoleLogs": sum(1 for e in console if e.type == CONSOLE_LOG),
            },
        )
    
    def user_interactions(self) -> List[InteractionRecord]:
        """All user interactions in recorded order."""
        return [InteractionRecord.from_event(e) for e in self.events if e.is_user_interaction]
    
    def replayable_interactions(self) -> List[InteractionRecord]:
        """Click and input interactions in recorded order."""
        return [i for i in self.user_interactions() if i.type.is_replayable]
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "events": [e.to_dict() for e in self.events],
            "summary": dict(self.summary),
        }
    
    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Timeline":
        """Create from dictionary."""
        data = data or {}
        return cls(
            events=[TimelineEvent.from_dict(e) for e in data.get("events") or []],
            summary=dict(data.get("summary") or {}),
        )


def analyze_key_issues(timeline: Timeline) -> List[Dict[str, Any]]:
    """
    Pick out console errors and failed network requests.
    
    Issues are sorted by time and the earliest one is flagged as the
    likely root cause.
    """
    issues: List[Dict[str, Any]] = []
    
    for event in timeline.events:
        if event.type == CONSOLE_ERROR:
            issues.append({
                "type": "console-error",
                "description": event.data.get("message"),
                "timestamp": event.timestamp,
                "relativeTime": event.relative_time,
                "severity": "error",
                "source": event.data.get("source"),
                "lineNumber": event.data.get("lineNumber"),
            })
        elif event.type == NETWORK and event.subtype == "failed":
            status = event.data.get("status") or "unknown"
            issues.append({
                "type": "network-failure",
                "description": f"{event.data.get('method')} {event.data.get('url')} failed with status {status}",
                "timestamp": event.timestamp,
                "relativeTime": event.relative_time,
                "severity": "error",
                "url": event.data.get("url"),
                "status": event.data.get("status"),
                "responseBody": event.data.get("responseBody"),
            })
    
    if issues:
        issues.sort(key=lambda i: i["relativeTime"])
        issues[0]["isRootCause"] = True
    
    return issues


@dataclass
class Trace:
    """
    The result of one recording session.
    
    Attributes:
        timeline: Events captured during the session
        key_issues: Errors worth looking at first
        metadata: startTime, url, userAgent, viewport
        end_time: ISO timestamp of when recording stopped
        duration_ms: Session length in milliseconds
    """
    timeline: Timeline = field(default_factory=Timeline)
    key_issues: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    end_time: Optional[str] = None
    duration_ms: int = 0
    
    @property
    def start_time(self) -> Optional[str]:
        return self.metadata.get("startTime")
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timeline": self.timeline.to_dict(),
            "keyIssues": list(self.key_issues),
            "metadata": dict(self.metadata),
            "endTime": self.end_time,
            "duration": self.duration_ms,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trace":
        """Create from dictionary."""
        return cls(
            timeline=Timeline.from_dict(data.get("timeline")),
            key_issues=list(data.get("keyIssues") or []),
            metadata=dict(data.get("metadata") or {}),
            end_time=data.get("endTime"),
            duration_ms=int(data.get("duration") or 0),
        )
