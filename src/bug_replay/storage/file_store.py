"""
File Report Store - Reads and writes bug_reports.json directly.

Layout under the data directory (``~/.pointa`` by default):
    bug_reports.json        JSON array of reports
    bug_screenshots/        <screenshotId>.png
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import asyncio
import json
import logging
import os

from bug_replay.exceptions.replay import TransportFault
from bug_replay.models.report import BugReport, ScreenshotMeta
from bug_replay.storage.base import ReportStore

logger = logging.getLogger(__name__)


REPORTS_FILENAME = "bug_reports.json"
SCREENSHOTS_DIRNAME = "bug_screenshots"


class FileReportStore(ReportStore):
    """
    Report store on the local filesystem.
    
    Writes go to a temporary file that replaces the real one, and are
    serialized with a lock so concurrent saves cannot interleave.
    
    Example:
        >>> store = FileReportStore("~/.pointa")
        >>> reports = await store.list(status="active")
    """
    
    def __init__(self, data_dir: Union[str, Path] = "~/.pointa"):
        self._data_dir = Path(data_dir).expanduser()
        self._lock = asyncio.Lock()
    
    @property
    def data_dir(self) -> Path:
        return self._data_dir
    
    @property
    def reports_file(self) -> Path:
        return self._data_dir / REPORTS_FILENAME
    
    @property
    def screenshots_dir(self) -> Path:
        return self._data_dir / SCREENSHOTS_DIRNAME
    
    def _load_raw(self) -> List[Dict[str, Any]]:
        """Read the reports array. A corrupted file is backed up and treated as empty."""
        path = self.reports_file
        if not path.exists():
            return []
        
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise TransportFault(f"Cannot read {path}: {e}")
        
        if not text.strip():
            return []
        
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            backup = path.with_name(f"{path.name}.corrupted.{int(datetime.now().timestamp() * 1000)}")
            backup.write_text(text, encoding="utf-8")
            logger.error(f"Corrupted {path.name} ({e}), backed up to {backup.name}")
            return []
        
        if not isinstance(data, list):
            logger.error(f"{path.name} does not hold a list of reports, ignoring it")
            return []
        return data
    
    def _write_raw(self, reports: List[Dict[str, Any]]) -> None:
        path = self.reports_file
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(reports, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise TransportFault(f"Cannot write {path}: {e}")
    
    async def list(self, status: Optional[str] = None) -> List[BugReport]:
        async with self._lock:
            raw = self._load_raw()
        reports = [BugReport.from_dict(r) for r in raw if isinstance(r, dict) and r.get("id")]
        if status and status != "all":
            reports = [r for r in reports if r.status == status]
        return reports
    
    async def get(self, report_id: str) -> Optional[BugReport]:
        for report in await self.list():
            if report.id == report_id:
                return report
        return None
    
    async def save(self, report: BugReport) -> None:
        """Replace the stored report with the same id, or add it."""
        async with self._lock:
            raw = self._load_raw()
            payload = report.to_dict()
            for index, existing in enumerate(raw):
                if isinstance(existing, dict) and existing.get("id") == report.id:
                    raw[index] = {**existing, **payload}
                    break
            else:
                raw.append(payload)
            self._write_raw(raw)
        logger.debug(f"Wrote bug report {report.id} to {self.reports_file}")
    
    async def save_screenshot(self, screenshot_id: str, png: bytes) -> ScreenshotMeta:
        filename = f"{screenshot_id}.png"
        try:
            self.screenshots_dir.mkdir(parents=True, exist_ok=True)
            (self.screenshots_dir / filename).write_bytes(png)
        except OSError as e:
            raise TransportFault(f"Cannot write screenshot {filename}: {e}")
        return ScreenshotMeta(
            captured=True,
            id=screenshot_id,
            filename=filename,
            path=f"{SCREENSHOTS_DIRNAME}/{filename}",
        )
