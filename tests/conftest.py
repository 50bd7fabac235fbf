"""
Pytest configuration and fixtures.

Replay tests run against an in-memory document and a virtual clock, so
no browser is launched and no test waits in real time.
"""

import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest

from bug_replay.config.settings import ReplaySettings
from bug_replay.engine.orchestrator import ReplayOrchestrator
from bug_replay.exceptions.replay import TransportFault
from bug_replay.interfaces.browser import IElement, IPage
from bug_replay.interfaces.collaborators import (
    FallbackPlan,
    IOutcomePresenter,
    IProgressSink,
    IRecordingSession,
    SessionHandle,
)
from bug_replay.models.report import BugReport, ScreenshotMeta
from bug_replay.models.timeline import Timeline, TimelineEvent, Trace, utc_timestamp
from bug_replay.storage.base import ReportStore
from bug_replay.utils.timing import Clock


# =============================================================================
# FAKE DOM
# =============================================================================

class FakeElement(IElement):
    """In-memory element that journals every action performed on it."""
    
    def __init__(
        self,
        tag: str = "div",
        id: Optional[str] = None,
        text: str = "",
        class_name: str = "",
        attached: bool = True,
    ):
        self.tag = tag
        self.id = id
        self.text = text
        self.class_name = class_name
        self.attached = attached
        self.value = ""
        self.calls: List[Tuple[Any, ...]] = []
        self.journal: Optional[List[Tuple[Any, ...]]] = None
    
    def __repr__(self) -> str:
        return f"<FakeElement {self.tag}#{self.id} {self.text!r}>"
    
    def _log(self, *entry: Any) -> None:
        self.calls.append(entry)
        if self.journal is not None:
            self.journal.append(("element", self.id or self.text) + entry)
    
    async def is_connected(self) -> bool:
        return self.attached
    
    async def text_content(self) -> Optional[str]:
        return self.text
    
    async def get_attribute(self, name: str) -> Optional[str]:
        return {"id": self.id, "class": self.class_name}.get(name)
    
    async def scroll_into_view(self, block: str = "center") -> None:
        self._log("scroll", block)
    
    async def highlight(self, color: str, duration_ms: int) -> None:
        self._log("highlight", color, duration_ms)
    
    async def dispatch_event(self, event_type: str) -> None:
        self._log("dispatch", event_type)
    
    async def activate(self) -> None:
        self._log("activate")
    
    async def focus(self) -> None:
        self._log("focus")
    
    async def set_value(self, value: str) -> None:
        self.value = value
        self._log("set_value", value)


class FakeDocument(IPage):
    """
    In-memory page. Elements are kept in document order; selectors and
    XPaths are explicit mappings.
    """
    
    def __init__(self, url: str = "https://app.example.com/checkout"):
        self._url = url
        self.elements: List[FakeElement] = []
        self.selectors: Dict[str, FakeElement] = {}
        self.xpaths: Dict[str, FakeElement] = {}
        self.failing: Dict[str, Exception] = {}
        self.lookups: List[Tuple[str, str]] = []
        self.journal: List[Tuple[Any, ...]] = []
        self.visited: List[str] = []
    
    def add(
        self,
        element: FakeElement,
        selector: Optional[str] = None,
        xpath: Optional[str] = None,
    ) -> FakeElement:
        element.journal = self.journal
        self.elements.append(element)
        if selector:
            self.selectors[selector] = element
        if xpath:
            self.xpaths[xpath] = element
        return element
    
    def _lookup(self, kind: str, key: str) -> None:
        self.lookups.append((kind, key))
        self.journal.append(("lookup", kind, key))
        if kind in self.failing:
            raise self.failing[kind]
    
    @property
    def url(self) -> str:
        return self._url
    
    async def goto(self, url: str, **options: Any) -> None:
        self.visited.append(url)
        self._url = url
    
    async def get_element_by_id(self, element_id: str) -> Optional[IElement]:
        self._lookup("id", element_id)
        for element in self.elements:
            if element.id == element_id:
                return element
        return None
    
    async def query_selector(self, selector: str) -> Optional[IElement]:
        self._lookup("selector", selector)
        return self.selectors.get(selector)
    
    async def query_selector_all(self, selector: str) -> List[IElement]:
        self._lookup("all", selector)
        if selector == "body *":
            return list(self.elements)
        return [e for e in self.elements if e.tag == selector]
    
    async def find_by_text(self, text: str, scope: str = "body *") -> Optional[IElement]:
        self._lookup("text", scope)
        candidates = self.elements if scope == "body *" else [e for e in self.elements if e.tag == scope]
        matches = [e for e in candidates if e.text and text in e.text]
        return min(matches, key=lambda e: len(e.text), default=None)
    
    async def query_xpath(self, xpath: str) -> Optional[IElement]:
        self._lookup("xpath", xpath)
        return self.xpaths.get(xpath)
    
    async def screenshot(self, path: Optional[Any] = None, full_page: bool = False, **options: Any) -> bytes:
        return b"\x89PNG\r\n\x1a\nfake"
    
    async def close(self) -> None:
        pass


class VirtualClock(Clock):
    """Clock that fast-forwards instead of sleeping."""
    
    def __init__(self, journal: Optional[List[Tuple[Any, ...]]] = None):
        self.now = 0.0
        self.sleeps: List[float] = []
        self.journal = journal
        self.on_sleep = None
    
    def monotonic_ms(self) -> float:
        return self.now
    
    async def sleep(self, ms: float) -> None:
        self.sleeps.append(ms)
        self.now += ms
        if self.journal is not None:
            self.journal.append(("sleep", ms))
        if self.on_sleep:
            self.on_sleep(ms)
        await asyncio.sleep(0)


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeRecorder(IRecordingSession):
    """Recording session that counts calls and hands back a canned trace."""
    
    def __init__(
        self,
        start_error: Optional[Exception] = None,
        stop_error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.start_error = start_error
        self.stop_error = stop_error
        self.gate = gate
        self.start_calls = 0
        self.stop_calls = 0
        self._recording = False
        self._trace: Optional[Trace] = None
    
    @property
    def is_recording(self) -> bool:
        return self._recording
    
    async def start(self) -> SessionHandle:
        self.start_calls += 1
        if self.start_error:
            raise self.start_error
        if self.gate is not None:
            await self.gate.wait()
        self._recording = True
        self._trace = None
        return SessionHandle(session_id=f"session-{self.start_calls}", started_at=utc_timestamp())
    
    async def stop(self) -> Optional[Trace]:
        self.stop_calls += 1
        if not self._recording:
            return self._trace
        self._recording = False
        if self.stop_error:
            raise self.stop_error
        timeline = Timeline.build([
            TimelineEvent(type="recording-start", relative_time=0),
            TimelineEvent(type="console-error", relative_time=40, severity="error", data={"message": "boom"}),
        ])
        self._trace = Trace(
            timeline=timeline,
            metadata={"startTime": "2024-05-01T10:00:00.000Z", "url": "https://app.example.com/checkout"},
            end_time="2024-05-01T10:00:03.000Z",
            duration_ms=3000,
        )
        return self._trace


class MemoryReportStore(ReportStore):
    """Report store in a dict. save() fails while fail_saves > 0."""
    
    def __init__(self, reports: Optional[List[BugReport]] = None, fail_saves: int = 0):
        self.reports: Dict[str, Dict[str, Any]] = {r.id: r.to_dict() for r in reports or []}
        self.fail_saves = fail_saves
        self.save_calls = 0
        self.screenshots: Dict[str, bytes] = {}
    
    async def get(self, report_id: str) -> Optional[BugReport]:
        data = self.reports.get(report_id)
        return BugReport.from_dict(data) if data else None
    
    async def list(self, status: Optional[str] = None) -> List[BugReport]:
        reports = [BugReport.from_dict(d) for d in self.reports.values()]
        return [r for r in reports if not status or r.status == status]
    
    async def save(self, report: BugReport) -> None:
        self.save_calls += 1
        if self.fail_saves > 0:
            self.fail_saves -= 1
            raise TransportFault("Report storage error: 503 - unavailable", report_id=report.id, status_code=503)
        self.reports[report.id] = report.to_dict()
    
    async def save_screenshot(self, screenshot_id: str, png: bytes) -> ScreenshotMeta:
        self.screenshots[screenshot_id] = png
        return ScreenshotMeta(captured=True, id=screenshot_id, filename=f"{screenshot_id}.png")


class RecordingProgress(IProgressSink):
    """Progress sink that remembers every notification."""
    
    def __init__(self):
        self.events: List[Tuple[Any, ...]] = []
        self.on_update = None
    
    def on_start(self, total: int) -> None:
        self.events.append(("start", total))
    
    def on_progress(self, completed: int, total: int) -> None:
        self.events.append((completed, total))
        if self.on_update:
            self.on_update(completed, total)
    
    def on_finish(self) -> None:
        self.events.append(("finish",))
    
    @property
    def updates(self) -> List[Tuple[int, int]]:
        return [e for e in self.events if isinstance(e[0], int)]


class RecordingPresenter(IOutcomePresenter):
    """Presenter that remembers what it was asked to show."""
    
    def __init__(self):
        self.successes: List[Tuple[str, str]] = []
        self.failures: List[Tuple[str, FallbackPlan]] = []
        self.persistence_errors: List[Tuple[str, TransportFault]] = []
    
    def show_success(self, report_id: str, reference: str) -> None:
        self.successes.append((report_id, reference))
    
    def show_failure(self, report_id: str, plan: FallbackPlan) -> None:
        self.failures.append((report_id, plan))
    
    def show_persistence_error(self, report_id: str, error: TransportFault) -> None:
        self.persistence_errors.append((report_id, error))


# =============================================================================
# REPORT BUILDERS
# =============================================================================

def click(relative_time: int, **element: Any) -> Dict[str, Any]:
    """A recorded click event."""
    return {
        "timestamp": "2024-05-01T09:00:00.000Z",
        "relativeTime": relative_time,
        "type": "user-interaction",
        "subtype": "click",
        "severity": "info",
        "data": {"element": element, "coordinates": {"x": 10, "y": 20}},
    }


def type_in(relative_time: int, value: Optional[str], **element: Any) -> Dict[str, Any]:
    """A recorded input event."""
    data: Dict[str, Any] = {"element": element}
    if value is not None:
        data["value"] = value
    return {
        "timestamp": "2024-05-01T09:00:01.000Z",
        "relativeTime": relative_time,
        "type": "user-interaction",
        "subtype": "input",
        "severity": "info",
        "data": data,
    }


def keypress(relative_time: int, key: str = "Enter") -> Dict[str, Any]:
    """A recorded special-key event."""
    return {
        "timestamp": "2024-05-01T09:00:02.000Z",
        "relativeTime": relative_time,
        "type": "user-interaction",
        "subtype": "keypress",
        "severity": "info",
        "data": {"key": key},
    }


def make_report(events: List[Dict[str, Any]], report_id: str = "BUG-1", **extra: Any) -> BugReport:
    """A report whose first recording holds the given timeline events."""
    data: Dict[str, Any] = {
        "id": report_id,
        "status": "debugging",
        "created": "2024-05-01T09:00:00.000Z",
        "updated": "2024-05-01T09:00:00.000Z",
        "url": "https://app.example.com/checkout",
        "report": {"title": "Checkout button does nothing"},
        "recordings": [{
            "iteration": 1,
            "timestamp": "2024-05-01T09:00:05.000Z",
            "timeline": {"events": events, "summary": {}},
            "screenshot": {"captured": False},
            "metadata": {"startTime": "2024-05-01T09:00:00.000Z"},
        }],
    }
    data.update(extra)
    return BugReport.from_dict(data)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def page():
    """Provide an empty in-memory document."""
    return FakeDocument()


@pytest.fixture
def clock(page):
    """Provide a virtual clock journaling into the page's journal."""
    return VirtualClock(journal=page.journal)


@pytest.fixture
def recorder():
    """Provide a fake recording session."""
    return FakeRecorder()


@pytest.fixture
def store():
    """Provide an in-memory report store."""
    return MemoryReportStore()


@pytest.fixture
def progress():
    """Provide a progress sink that records notifications."""
    return RecordingProgress()


@pytest.fixture
def presenter():
    """Provide a presenter that records outcomes."""
    return RecordingPresenter()


@pytest.fixture
def make_orchestrator(page, recorder, store, progress, presenter, clock):
    """Provide a factory for orchestrators wired to the fakes."""
    def factory(settings: Optional[ReplaySettings] = None, **kwargs: Any) -> ReplayOrchestrator:
        options: Dict[str, Any] = {
            "progress": progress,
            "presenter": presenter,
            "settings": settings or ReplaySettings(),
            "clock": clock,
        }
        options.update(kwargs)
        session_recorder = options.pop("recorder", recorder)
        persistence = options.pop("persistence", store)
        return ReplayOrchestrator(page, session_recorder, persistence, **options)
    return factory


@pytest.fixture
def build():
    """Provide the report builders and fake collaborator classes."""
    return SimpleNamespace(
        click=click,
        type_in=type_in,
        keypress=keypress,
        report=make_report,
        recorder=FakeRecorder,
        store=MemoryReportStore,
    )


@pytest.fixture
def el():
    """Provide the fake element factory."""
    return FakeElement
