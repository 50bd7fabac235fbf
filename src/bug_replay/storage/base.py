"""
Report Store - Base class for where bug reports live.

Stores implement loading and saving; appending a new iteration is shared.
"""

from abc import abstractmethod
from copy import deepcopy
from typing import List, Optional
import logging

from bug_replay.exceptions.replay import TransportFault
from bug_replay.interfaces.collaborators import IPersistenceAdapter
from bug_replay.models.report import BugReport, Recording, ScreenshotMeta
from bug_replay.models.timeline import Trace, utc_timestamp

logger = logging.getLogger(__name__)


def screenshot_id(report_id: str, iteration: int) -> str:
    return f"bug-replay-{report_id}-{iteration}"


class ReportStore(IPersistenceAdapter):
    """
    Abstract report store.
    
    Subclasses provide get/list/save/save_screenshot; append_iteration
    builds the new iteration and saves the report through them.
    """
    
    @abstractmethod
    async def get(self, report_id: str) -> Optional[BugReport]:
        """
        Load one report.
        
        Returns:
            The report, or None if there is no such report
        
        Raises:
            TransportFault: If the store cannot be read
        """
        ...
    
    @abstractmethod
    async def list(self, status: Optional[str] = None) -> List[BugReport]:
        """
        Load all reports, optionally only those with a status.
        
        Raises:
            TransportFault: If the store cannot be read
        """
        ...
    
    @abstractmethod
    async def save(self, report: BugReport) -> None:
        """
        Persist a report.
        
        Raises:
            TransportFault: If the store did not acknowledge the save
        """
        ...
    
    @abstractmethod
    async def save_screenshot(self, screenshot_id: str, png: bytes) -> ScreenshotMeta:
        """
        Store a PNG screenshot.
        
        Returns:
            Metadata of the stored screenshot
        
        Raises:
            TransportFault: If the screenshot was not stored
        """
        ...
    
    async def close(self) -> None:
        """Release any resources held by the store."""
        return None
    
    async def append_iteration(
        self,
        report: BugReport,
        trace: Trace,
        screenshot: Optional[bytes] = None,
        replayed: bool = True,
    ) -> Recording:
        """
        Append a trace as the report's next iteration and save the report.
        
        The iteration is built on a copy. The caller's report is only
        changed once the store acknowledged the save; on a fault the built
        iteration travels on the exception.
        
        Raises:
            TransportFault: If the store did not acknowledge the save
        """
        iteration_number = report.next_iteration
        now = utc_timestamp()
        
        meta = ScreenshotMeta(captured=False)
        if screenshot:
            meta = await self._store_screenshot(screenshot_id(report.id, iteration_number), screenshot, now)
        
        recording = Recording(
            iteration=iteration_number,
            timestamp=now,
            timeline=trace.timeline,
            screenshot=meta,
            replayed=replayed,
            metadata={
                "startTime": trace.start_time,
                "endTime": trace.end_time,
                "duration": trace.duration_ms,
            },
        )
        if trace.key_issues:
            recording.extra["keyIssues"] = list(trace.key_issues)
        
        updated = deepcopy(report)
        updated.recordings.append(recording)
        updated.status = "active"
        updated.updated = now
        
        try:
            await self.save(updated)
        except TransportFault as e:
            e.iteration = recording
            raise
        
        report.recordings.append(recording)
        report.status = updated.status
        report.updated = updated.updated
        logger.info(f"Saved iteration {iteration_number} of bug report {report.id}")
        return recording
    
    async def _store_screenshot(self, shot_id: str, png: bytes, timestamp: str) -> ScreenshotMeta:
        """Upload a screenshot. A failed upload is recorded, not raised."""
        try:
            meta = await self.save_screenshot(shot_id, png)
        except TransportFault as e:
            logger.warning(f"Screenshot {shot_id} was not stored: {e.message}")
            return ScreenshotMeta(captured=False, id=shot_id, error=e.message)
        meta.timestamp = meta.timestamp or timestamp
        return meta
