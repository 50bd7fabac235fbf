"""
Storage module - Where bug reports and their screenshots are kept.
"""

from typing import TYPE_CHECKING

from bug_replay.storage.base import ReportStore, screenshot_id
from bug_replay.storage.http_store import HttpReportStore
from bug_replay.storage.file_store import FileReportStore

if TYPE_CHECKING:
    from bug_replay.config.settings import StorageSettings


def create_store(settings: "StorageSettings") -> ReportStore:
    """
    Build the report store selected by the storage settings.
    
    Args:
        settings: Storage settings
    
    Returns:
        An HttpReportStore or a FileReportStore
    """
    if settings.backend == "file":
        return FileReportStore(settings.data_dir)
    return HttpReportStore(settings.api_url, timeout=settings.timeout)


__all__ = [
    "ReportStore",
    "HttpReportStore",
    "FileReportStore",
    "create_store",
    "screenshot_id",
]
