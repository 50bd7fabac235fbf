"""
Bug reports and their recorded iterations.

A bug report is owned by the report storage service. Replay only ever
appends a new iteration to ``recordings``; earlier iterations are left
exactly as they were loaded.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bug_replay.models.interaction import InteractionRecord
from bug_replay.models.timeline import Timeline


@dataclass
class ScreenshotMeta:
    """
    Where the screenshot of an iteration ended up, if anywhere.
    
    Attributes:
        captured: Whether a screenshot is stored for the iteration
        id: Screenshot identifier
        timestamp: When it was taken
        filename: Stored file name
        path: Path relative to the storage root
        error: Why capture or upload failed
    """
    captured: bool = False
    id: Optional[str] = None
    timestamp: Optional[str] = None
    filename: Optional[str] = None
    path: Optional[str] = None
    error: Optional[str] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, dropping empty fields."""
        result: Dict[str, Any] = {}
        if self.id:
            result["id"] = self.id
        result["captured"] = self.captured
        for key in ("timestamp", "filename", "path", "error"):
            value = getattr(self, key)
            if value:
                result[key] = value
        return result
    
    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScreenshotMeta":
        """Create from dictionary."""
        data = data or {}
        return cls(
            captured=bool(data.get("captured", False)),
            id=data.get("id"),
            timestamp=data.get("timestamp"),
            filename=data.get("filename"),
            path=data.get("path"),
            error=data.get("error"),
        )


@dataclass
class Recording:
    """
    One iteration of a bug report: a captured timeline.
    
    Attributes:
        iteration: 1-based position in the report's history
        timestamp: When the iteration was appended
        timeline: Events captured during the iteration
        screenshot: Screenshot metadata
        replayed: True when produced by automatic replay
        metadata: startTime, endTime, duration and anything else recorded
        extra: Fields this package does not interpret, kept for round-trips
    """
    iteration: int = 1
    timestamp: Optional[str] = None
    timeline: Timeline = field(default_factory=Timeline)
    screenshot: ScreenshotMeta = field(default_factory=ScreenshotMeta)
    replayed: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)
    
    def replayable_interactions(self) -> List[InteractionRecord]:
        return self.timeline.replayable_interactions()
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = dict(self.extra)
        result.update({
            "iteration": self.iteration,
            "timestamp": self.timestamp,
            "timeline": self.timeline.to_dict(),
            "screenshot": self.screenshot.to_dict(),
            "replayed": self.replayed,
            "metadata": dict(self.metadata),
        })
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any], position: int = 1) -> "Recording":
        """
        Create from dictionary.
        
        Args:
            data: Serialized recording
            position: 1-based index in the report, used when the stored
                recording predates iteration numbering
        """
        known = {"iteration", "timestamp", "timeline", "screenshot", "replayed", "metadata"}
        return cls(
            iteration=int(data.get("iteration") or position),
            timestamp=data.get("timestamp"),
            timeline=Timeline.from_dict(data.get("timeline")),
            screenshot=ScreenshotMeta.from_dict(data.get("screenshot")),
            replayed=bool(data.get("replayed", False)),
            metadata=dict(data.get("metadata") or {}),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class BugReport:
    """
    A bug report with its recording history.
    
    Attributes:
        id: Report identifier
        status: Workflow status (active, debugging, in-review, resolved, ...)
        url: Page the bug was reported on
        created: ISO creation timestamp
        updated: ISO timestamp of the last change
        recordings: Iterations, oldest first
        extra: Fields this package does not interpret, kept for round-trips
    """
    id: str
    status: str = "active"
    url: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    recordings: List[Recording] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)
    
    @property
    def original_recording(self) -> Optional[Recording]:
        """The first recording, which replay reproduces."""
        return self.recordings[0] if self.recordings else None
    
    @property
    def next_iteration(self) -> int:
        return len(self.recordings) + 1
    
    @property
    def start_url(self) -> Optional[str]:
        """Where replay should begin: the report URL or the original recording's URL."""
        if self.url:
            return self.url
        original = self.original_recording
        if original:
            return original.metadata.get("url")
        return None
    
    @property
    def title(self) -> str:
        report = self.extra.get("report")
        if isinstance(report, dict):
            return report.get("title") or report.get("description") or self.id
        return self.id
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = dict(self.extra)
        result["id"] = self.id
        result["status"] = self.status
        if self.url is not None:
            result["url"] = self.url
        if self.created is not None:
            result["created"] = self.created
        if self.updated is not None:
            result["updated"] = self.updated
        result["recordings"] = [r.to_dict() for r in self.recordings]
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BugReport":
        """Create from dictionary."""
        known = {"id", "status", "url", "created", "updated", "recordings"}
        return cls(
            id=str(data["id"]),
            status=data.get("status", "active"),
            url=data.get("url"),
            created=data.get("created"),
            updated=data.get("updated"),
            recordings=[
                Recording.from_dict(r, position=i + 1)
                for i, r in enumerate(data.get("recordings") or [])
            ],
            extra={k: v for k, v in data.items() if k not in known},
        )
