"""
HTTP Report Store - Talks to the local report storage service.

Endpoints used:
    GET  /api/bug-reports?status=...   -> {"bug_reports": [...], "count", "total"}
    PUT  /api/bug-reports/{id}         -> {"success": true, "bug_report": {...}}
    POST /api/bug-screenshots          -> {"success": true, "filename", "path", ...}
"""

from typing import Any, Dict, List, Optional
import base64
import logging

import httpx

from bug_replay.exceptions.replay import TransportFault
from bug_replay.models.report import BugReport, ScreenshotMeta
from bug_replay.storage.base import ReportStore

logger = logging.getLogger(__name__)


# The service truncates listings to 50 reports unless told otherwise
LIST_LIMIT = 10000


class HttpReportStore(ReportStore):
    """
    Report store backed by the report storage service's REST API.
    
    Example:
        >>> store = HttpReportStore("http://127.0.0.1:4242")
        >>> report = await store.get("BUG-42")
        >>> await store.close()
    """
    
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:4242",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the store.
        
        Args:
            base_url: Service URL
            timeout: Request timeout in seconds
            client: Optional preconfigured client (tests pass a mock transport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
    
    @property
    def base_url(self) -> str:
        return self._base_url
    
    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
            )
        return self._client
    
    async def _request(
        self,
        method: str,
        path: str,
        report_id: Optional[str] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.ConnectError:
            raise TransportFault(
                f"Cannot connect to the report storage service at {self._base_url}. "
                "Make sure the server is running.",
                report_id=report_id,
            )
        except httpx.HTTPStatusError as e:
            raise TransportFault(
                f"Report storage error: {e.response.status_code} - {e.response.text}",
                report_id=report_id,
                status_code=e.response.status_code,
            )
        except (httpx.HTTPError, ValueError) as e:
            raise TransportFault(f"Report storage error: {e}", report_id=report_id)
        
        if not isinstance(data, dict):
            raise TransportFault(f"Unexpected response from {method} {path}", report_id=report_id)
        if data.get("success") is False:
            raise TransportFault(
                f"Report storage rejected {method} {path}: {data.get('error', 'unknown error')}",
                report_id=report_id,
                status_code=response.status_code,
            )
        return data
    
    async def list(self, status: Optional[str] = None) -> List[BugReport]:
        data = await self._request(
            "GET",
            "/api/bug-reports",
            params={"status": status or "all", "limit": LIST_LIMIT},
        )
        return [BugReport.from_dict(r) for r in data.get("bug_reports") or []]
    
    async def get(self, report_id: str) -> Optional[BugReport]:
        # The service has no single-report endpoint
        for report in await self.list():
            if report.id == report_id:
                return report
        return None
    
    async def save(self, report: BugReport) -> None:
        payload = report.to_dict()
        data = await self._request(
            "PUT",
            f"/api/bug-reports/{report.id}",
            report_id=report.id,
            json=payload,
        )
        saved = data.get("bug_report")
        if isinstance(saved, dict) and saved.get("updated"):
            report.updated = saved["updated"]
        logger.debug(f"PUT bug report {report.id} acknowledged")
    
    async def save_screenshot(self, screenshot_id: str, png: bytes) -> ScreenshotMeta:
        data_url = "data:image/png;base64," + base64.b64encode(png).decode("ascii")
        data = await self._request(
            "POST",
            "/api/bug-screenshots",
            json={"screenshotId": screenshot_id, "dataUrl": data_url},
        )
        return ScreenshotMeta(
            captured=True,
            id=screenshot_id,
            filename=data.get("filename"),
            path=data.get("path"),
        )
    
    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
