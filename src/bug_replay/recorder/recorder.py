"""
Page Trace Recorder - Captures a diagnostic timeline from a Playwright page.

Console output and page errors come from Playwright page events, fetch/XHR
traffic from request events, and user interactions from an injected script
that reports back through an exposed function.
"""

import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

from bug_replay.exceptions.replay import RecordingSessionFault
from bug_replay.interfaces.collaborators import IRecordingSession, SessionHandle
from bug_replay.models.timeline import (
    CONSOLE_ERROR,
    CONSOLE_LOG,
    CONSOLE_WARNING,
    NETWORK,
    RECORDING_END,
    RECORDING_START,
    USER_INTERACTION,
    Timeline,
    TimelineEvent,
    Trace,
    analyze_key_issues,
    utc_timestamp,
)

if TYPE_CHECKING:
    from playwright.async_api import ConsoleMessage, Page, Request

logger = logging.getLogger(__name__)


BINDING_NAME = "_bugReplayRecord"

# Only these request types are application traffic worth recording
RECORDED_RESOURCE_TYPES = ("fetch", "xhr")

RESPONSE_BODY_LIMIT = 1000


INTERACTION_JS = r"""
(() => {
    window.__bugReplayRecording = true;
    if (window.__bugReplayInstalled) return;
    window.__bugReplayInstalled = true;
    
    function send(payload) {
        if (!window.__bugReplayRecording || !window._bugReplayRecord) return;
        try { window._bugReplayRecord(JSON.stringify(payload)); } catch (e) {}
    }
    
    function cssSelector(el) {
        if (el.id) return '#' + el.id;
        if (el.className && typeof el.className === 'string') {
            const classes = el.className.trim().split(/\s+/).filter(c => c);
            if (classes.length > 0) {
                const selector = el.tagName.toLowerCase() + '.' + classes.join('.');
                try {
                    if (document.querySelectorAll(selector).length === 1) return selector;
                } catch (e) {}
            }
        }
        const path = [];
        let current = el;
        while (current && current.parentElement) {
            const index = Array.from(current.parentElement.children).indexOf(current) + 1;
            path.unshift(current.tagName.toLowerCase() + ':nth-child(' + index + ')');
            current = current.parentElement;
            if (current && current.id) {
                path.unshift('#' + current.id);
                break;
            }
            if (current && current.tagName.toLowerCase() === 'body') break;
        }
        return path.join(' > ');
    }
    
    function xpath(el) {
        if (el.id) return '//*[@id="' + el.id + '"]';
        const path = [];
        let current = el;
        while (current && current.nodeType === Node.ELEMENT_NODE) {
            let index = 1;
            let sibling = current.previousElementSibling;
            while (sibling) {
                if (sibling.tagName === current.tagName) index++;
                sibling = sibling.previousElementSibling;
            }
            path.unshift(current.tagName.toLowerCase() + '[' + index + ']');
            current = current.parentElement;
            if (current && current.tagName.toLowerCase() === 'body') break;
        }
        return '/' + path.join('/');
    }
    
    function className(el) {
        return typeof el.className === 'string' ? el.className : '';
    }
    
    document.addEventListener('click', (event) => {
        const el = event.target;
        if (!el || !el.tagName) return;
        send({
            subtype: 'click',
            element: {
                tagName: el.tagName.toLowerCase(),
                id: el.id,
                className: className(el),
                textContent: (el.textContent || '').substring(0, 50),
                selector: cssSelector(el),
                xpath: xpath(el),
            },
            coordinates: { x: event.clientX, y: event.clientY },
        });
    }, true);
    
    document.addEventListener('input', (event) => {
        const el = event.target;
        if (!el || !el.tagName) return;
        let value = '[REDACTED]';
        if (el.type !== 'password' && el.type !== 'email') {
            value = (el.value || '').substring(0, 20);
        }
        send({
            subtype: 'input',
            element: {
                tagName: el.tagName.toLowerCase(),
                type: el.type,
                id: el.id,
                className: className(el),
                selector: cssSelector(el),
                xpath: xpath(el),
            },
            value: value,
        });
    }, true);
    
    document.addEventListener('keydown', (event) => {
        if (['Enter', 'Escape', 'Tab'].includes(event.key)) {
            send({ subtype: 'keypress', key: event.key });
        }
    }, true);
})();
"""

STOP_JS = "() => { window.__bugReplayRecording = false; }"


class PageTraceRecorder(IRecordingSession):
    """
    Records console, network and interaction events on a Playwright page.
    
    Example:
        >>> recorder = PageTraceRecorder(page)
        >>> await recorder.start()
        >>> # interact with the page...
        >>> trace = await recorder.stop()
        >>> print(trace.timeline.summary)
    """
    
    def __init__(self, page: Any, capture_response_bodies: bool = True):
        """
        Initialize the recorder.
        
        Args:
            page: Playwright page, or a wrapper exposing it as ``raw``
            capture_response_bodies: Keep the start of failed response bodies
        """
        self._page: "Page" = getattr(page, "raw", page)
        self._capture_response_bodies = capture_response_bodies
        self._is_recording = False
        self._start_time: float = 0
        self._started_at: Optional[datetime] = None
        self._events: List[TimelineEvent] = []
        self._metadata: Dict[str, Any] = {}
        self._trace: Optional[Trace] = None
        self._exposed = False
        self._listeners: List[Tuple[str, Callable[..., Any]]] = []
        self._pending: Set["asyncio.Task[Any]"] = set()
    
    @property
    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._is_recording
    
    @property
    def events(self) -> List[TimelineEvent]:
        """Events captured so far."""
        return list(self._events)
    
    async def start(self) -> SessionHandle:
        """
        Start recording on the page.
        
        Raises:
            RecordingSessionFault: If already recording or the page cannot be instrumented
        """
        if self._is_recording:
            raise RecordingSessionFault("Already recording. Call stop() first.", operation="start")
        
        self._start_time = time.time()
        self._started_at = datetime.now(timezone.utc)
        self._events = []
        self._trace = None
        self._metadata = {
            "startTime": utc_timestamp(self._started_at),
            "url": self._page.url,
            "viewport": self._page.viewport_size,
        }
        
        try:
            self._metadata["userAgent"] = await self._page.evaluate("() => navigator.userAgent")
            await self._install_interaction_capture()
        except Exception as e:
            raise RecordingSessionFault(f"Could not instrument page: {e}", operation="start") from e
        
        self._listen("console", self._on_console)
        self._listen("pageerror", self._on_page_error)
        self._listen("requestfinished", self._on_request_finished)
        self._listen("requestfailed", self._on_request_failed)
        
        self._is_recording = True
        self._add_event(RECORDING_START, data={"url": self._page.url, "pageState": "loaded"})
        
        session_id = str(uuid.uuid4())[:8]
        logger.info(f"Started recording session {session_id} on {self._page.url}")
        return SessionHandle(
            session_id=session_id,
            started_at=self._metadata["startTime"],
            metadata=dict(self._metadata),
        )
    
    async def stop(self) -> Optional[Trace]:
        """
        Stop recording and return the trace.
        
        A repeated call returns the trace from the first one.
        
        Returns:
            The captured trace, or None if recording never started
        """
        if not self._is_recording:
            return self._trace
        
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        
        self._add_event(
            RECORDING_END,
            data={"method": "stopped", "totalEvents": len(self._events)},
        )
        self._is_recording = False
        
        for event_name, handler in self._listeners:
            self._page.remove_listener(event_name, handler)
        self._listeners = []
        
        try:
            await self._page.evaluate(STOP_JS)
        except Exception as e:
            # The page may have navigated away or closed
            logger.debug(f"Could not disable interaction capture: {e}")
        
        timeline = Timeline.build(self._events)
        self._trace = Trace(
            timeline=timeline,
            key_issues=analyze_key_issues(timeline),
            metadata=dict(self._metadata),
            end_time=utc_timestamp(),
            duration_ms=self._elapsed_ms(),
        )
        logger.info(
            f"Stopped recording. Captured {len(timeline.events)} events "
            f"({timeline.summary.get('consoleErrors', 0)} console errors, "
            f"{timeline.summary.get('networkFailures', 0)} network failures)"
        )
        return self._trace
    
    async def _install_interaction_capture(self) -> None:
        if not self._exposed:
            try:
                await self._page.expose_function(BINDING_NAME, self._handle_js_event)
            except Exception as e:
                # Function may already be exposed on this page
                logger.debug(f"expose_function: {e}")
            # Survives navigations within the session
            await self._page.add_init_script(INTERACTION_JS)
            self._exposed = True
        await self._page.evaluate(INTERACTION_JS)
    
    def _listen(self, event_name: str, handler: Callable[..., Any]) -> None:
        self._page.on(event_name, handler)
        self._listeners.append((event_name, handler))
    
    def _handle_js_event(self, event_json: str) -> None:
        """Handle an interaction reported by the injected script."""
        if not self._is_recording:
            return
        
        try:
            event = json.loads(event_json)
        except (TypeError, ValueError) as e:
            logger.warning(f"Error handling JS event: {e}")
            return
        
        subtype = event.pop("subtype", "other")
        self._add_event(USER_INTERACTION, subtype=subtype, data=event)
        logger.debug(f"Recorded: {subtype}")
    
    def _on_console(self, message: "ConsoleMessage") -> None:
        level = message.type
        if level == "error":
            event_type, severity = CONSOLE_ERROR, "error"
        elif level == "warning":
            event_type, severity = CONSOLE_WARNING, "warning"
        else:
            event_type, severity = CONSOLE_LOG, "info"
        
        location = message.location or {}
        self._add_event(
            event_type,
            severity=severity,
            data={
                "message": message.text,
                "level": level,
                "source": location.get("url"),
                "lineNumber": location.get("lineNumber"),
            },
        )
    
    def _on_page_error(self, error: Any) -> None:
        self._add_event(
            CONSOLE_ERROR,
            severity="error",
            data={
                "message": getattr(error, "message", str(error)),
                "stack": getattr(error, "stack", None),
                "level": "error",
            },
        )
    
    def _on_request_finished(self, request: "Request") -> None:
        if request.resource_type not in RECORDED_RESOURCE_TYPES:
            return
        # Stamp the event now; the response is read in the background
        relative_time = self._elapsed_ms()
        timestamp = utc_timestamp()
        task = asyncio.ensure_future(self._record_response(request, relative_time, timestamp))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
    
    async def _record_response(self, request: "Request", relative_time: int, timestamp: str) -> None:
        try:
            response = await request.response()
        except Exception as e:
            logger.debug(f"No response for {request.url}: {e}")
            response = None
        
        status = response.status if response else 0
        ok = bool(response and response.ok)
        data: Dict[str, Any] = {
            "url": request.url,
            "method": request.method,
            "status": status,
            "statusText": response.status_text if response else "",
            "duration": self._request_duration(request),
            "type": request.resource_type,
        }
        
        if response and not ok and self._capture_response_bodies:
            try:
                data["responseBody"] = (await response.text())[:RESPONSE_BODY_LIMIT]
            except Exception as e:
                logger.debug(f"Could not read response body of {request.url}: {e}")
        
        self._events.append(TimelineEvent(
            type=NETWORK,
            relative_time=relative_time,
            timestamp=timestamp,
            subtype="success" if ok else "failed",
            severity="info" if ok else "error",
            data=data,
        ))
    
    def _on_request_failed(self, request: "Request") -> None:
        if request.resource_type not in RECORDED_RESOURCE_TYPES:
            return
        self._add_event(
            NETWORK,
            subtype="failed",
            severity="error",
            data={
                "url": request.url,
                "method": request.method,
                "error": request.failure or "Network error",
                "type": request.resource_type,
            },
        )
    
    @staticmethod
    def _request_duration(request: "Request") -> Optional[int]:
        timing = request.timing or {}
        end = timing.get("responseEnd", -1)
        return int(end) if end is not None and end >= 0 else None
    
    def _add_event(
        self,
        event_type: str,
        subtype: Optional[str] = None,
        severity: str = "info",
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self._is_recording:
            return
        self._events.append(TimelineEvent(
            type=event_type,
            relative_time=self._elapsed_ms(),
            timestamp=utc_timestamp(),
            subtype=subtype,
            severity=severity,
            data=data or {},
        ))
    
    def _elapsed_ms(self) -> int:
        """Get elapsed time since recording started."""
        return int((time.time() - self._start_time) * 1000)
