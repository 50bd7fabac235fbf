"""
Replay Orchestrator - Drive a recorded bug report against the live page.

A replay session walks a strict lifecycle:

    IDLE -> REPLAYING -> SUCCEEDED | FAILED -> IDLE

While replaying, every recorded click and input is paced, resolved and
performed in order under a fresh recording. On success the new trace is
appended to the report as its next iteration; on failure the recording is
discarded and the user gets the original steps to reproduce by hand.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, TYPE_CHECKING
import asyncio
import logging

from bug_replay.config.settings import ReplaySettings
from bug_replay.engine.player import ActionPlayer
from bug_replay.engine.resolver import ElementResolver
from bug_replay.engine.steps import describe_steps, replayable_interactions
from bug_replay.exceptions.base import BugReplayError
from bug_replay.exceptions.replay import (
    ElementNotResolvable,
    EmptyInteractionSet,
    RecordingSessionFault,
    ReplayStateError,
    TransportFault,
)
from bug_replay.interfaces.collaborators import FallbackPlan
from bug_replay.utils.retry import RetryConfig, retry_async, with_timeout
from bug_replay.utils.timing import CancellationToken, Clock, SystemClock

if TYPE_CHECKING:
    from bug_replay.config.settings import Settings
    from bug_replay.interfaces.browser import IPage
    from bug_replay.interfaces.collaborators import (
        IOutcomePresenter,
        IPersistenceAdapter,
        IProgressSink,
        IRecordingSession,
        IScreenshotProvider,
        SessionHandle,
    )
    from bug_replay.models.interaction import InteractionRecord
    from bug_replay.models.report import BugReport, Recording
    from bug_replay.models.timeline import Trace

logger = logging.getLogger(__name__)


SUCCESS_REFERENCE = "Check new bug report with console logs for {report_id}"


class ReplayStatus(Enum):
    """Lifecycle states of a replay session."""
    IDLE = "idle"
    REPLAYING = "replaying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS = {
    ReplayStatus.IDLE: {ReplayStatus.REPLAYING},
    ReplayStatus.REPLAYING: {ReplayStatus.SUCCEEDED, ReplayStatus.FAILED},
    ReplayStatus.SUCCEEDED: {ReplayStatus.IDLE},
    ReplayStatus.FAILED: {ReplayStatus.IDLE},
}


@dataclass
class ReplaySession:
    """
    State of one replay run.
    
    Attributes:
        bug_report_id: Report being replayed
        total_steps: Number of replayable interactions
        completed_steps: Interactions performed so far
        status: Current lifecycle state
    """
    bug_report_id: str
    total_steps: int = 0
    completed_steps: int = 0
    status: ReplayStatus = ReplayStatus.IDLE
    
    def transition(self, status: ReplayStatus) -> None:
        """
        Move to another lifecycle state.
        
        Raises:
            ReplayStateError: If the transition is not allowed
        """
        if status not in _TRANSITIONS[self.status]:
            raise ReplayStateError(
                f"Illegal replay transition {self.status.value} -> {status.value}",
                {"bug_report_id": self.bug_report_id},
            )
        logger.debug(f"Session {self.bug_report_id}: {self.status.value} -> {status.value}")
        self.status = status
    
    def advance(self) -> int:
        """
        Count one more performed step.
        
        Returns:
            The new completed_steps
        
        Raises:
            ReplayStateError: If not replaying or all steps are already done
        """
        if self.status != ReplayStatus.REPLAYING:
            raise ReplayStateError(f"Cannot advance a session that is {self.status.value}")
        if self.completed_steps >= self.total_steps:
            raise ReplayStateError(
                f"Progress overflow: {self.completed_steps + 1} > {self.total_steps}",
                {"bug_report_id": self.bug_report_id},
            )
        self.completed_steps += 1
        return self.completed_steps
    
    def snapshot(self) -> "ReplaySession":
        return replace(self)


class OutcomeKind(Enum):
    """How a replay request ended."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOTHING_TO_REPLAY = "nothing_to_replay"
    REJECTED = "rejected"


@dataclass
class ReplayOutcome:
    """
    Result of a replay request.
    
    Attributes:
        kind: How the request ended
        report_id: Report the request was for
        session: The session as it was in its terminal state
        iteration: The appended iteration (or the one that failed to persist)
        reference: Diagnostic reference shown on success
        fallback: Steps for manual reproduction, on failure
        error: What ended the session, or the persistence fault
        persisted: Whether the new iteration was acknowledged by the store
        trace: Trace captured by a successful replay
    """
    kind: OutcomeKind
    report_id: str
    session: Optional[ReplaySession] = None
    iteration: Optional["Recording"] = None
    reference: Optional[str] = None
    fallback: Optional[FallbackPlan] = None
    error: Optional[BaseException] = None
    persisted: bool = False
    trace: Optional["Trace"] = None
    
    @property
    def success(self) -> bool:
        return self.kind == OutcomeKind.SUCCEEDED


class ReplayOrchestrator:
    """
    Replays bug reports one at a time.
    
    Example:
        >>> orchestrator = ReplayOrchestrator(page, recorder, store, presenter=presenter)
        >>> outcome = await orchestrator.replay(report)
        >>> if outcome.success:
        ...     print(outcome.reference)
        ... elif outcome.fallback:
        ...     print("\\n".join(outcome.fallback.steps))
    """
    
    def __init__(
        self,
        page: "IPage",
        recorder: "IRecordingSession",
        persistence: "IPersistenceAdapter",
        progress: Optional["IProgressSink"] = None,
        presenter: Optional["IOutcomePresenter"] = None,
        screenshots: Optional["IScreenshotProvider"] = None,
        settings: Optional[ReplaySettings] = None,
        clock: Optional[Clock] = None,
        resolver: Optional[ElementResolver] = None,
        player: Optional[ActionPlayer] = None,
        persist_retries: int = 0,
        persist_retry_delay_ms: int = 1000,
    ):
        """
        Initialize the orchestrator.
        
        Args:
            page: Live page to replay against
            recorder: Recording session captured during replay
            persistence: Where new iterations are stored
            progress: Optional progress sink
            presenter: Optional user-facing outcome presenter
            screenshots: Optional screenshot provider
            settings: Replay timing and retry settings
            clock: Clock for every wait (defaults to real time)
            resolver: Element resolver (built from settings if omitted)
            player: Action player (built from settings if omitted)
            persist_retries: Automatic retries of a failed save
            persist_retry_delay_ms: Initial delay between save retries
        """
        self._page = page
        self._recorder = recorder
        self._persistence = persistence
        self._progress = progress
        self._presenter = presenter
        self._screenshots = screenshots
        self._settings = settings or ReplaySettings()
        self._clock = clock or SystemClock()
        self._resolver = resolver or ElementResolver(
            max_attempts=self._settings.max_attempts,
            retry_backoff_ms=self._settings.retry_backoff_ms,
            clock=self._clock,
        )
        self._player = player or ActionPlayer(
            clock=self._clock,
            scroll_settle_ms=self._settings.scroll_settle_ms,
            action_settle_ms=self._settings.action_settle_ms,
            highlight_duration_ms=self._settings.highlight_duration_ms,
            highlight_color=self._settings.highlight_color,
        )
        self._persist_retries = persist_retries
        self._persist_retry_delay_ms = persist_retry_delay_ms
        self._session: Optional[ReplaySession] = None
    
    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        page: "IPage",
        recorder: "IRecordingSession",
        persistence: "IPersistenceAdapter",
        **kwargs: Any,
    ) -> "ReplayOrchestrator":
        """Build an orchestrator from the full application settings."""
        return cls(
            page,
            recorder,
            persistence,
            settings=settings.replay,
            persist_retries=settings.storage.persist_retries,
            persist_retry_delay_ms=settings.storage.retry_delay_ms,
            **kwargs,
        )
    
    @property
    def session(self) -> Optional[ReplaySession]:
        """The active session, or None when idle."""
        return self._session
    
    @property
    def status(self) -> ReplayStatus:
        return self._session.status if self._session else ReplayStatus.IDLE
    
    @property
    def is_replaying(self) -> bool:
        return self.status == ReplayStatus.REPLAYING
    
    async def replay(
        self,
        report: "BugReport",
        cancel_token: Optional[CancellationToken] = None,
    ) -> ReplayOutcome:
        """
        Replay the report's original recording.
        
        Args:
            report: Report to replay; gains a new iteration on success
            cancel_token: Optional token to stop the replay early
        
        Returns:
            The outcome. Replay failures are reported here, not raised.
        
        Raises:
            asyncio.CancelledError: If the task itself is cancelled; the
                recording is stopped first
        """
        # Check and set with no suspension in between
        if self._session is not None:
            logger.warning(
                f"Replay of {report.id} rejected: {self._session.bug_report_id} is already replaying"
            )
            return ReplayOutcome(
                kind=OutcomeKind.REJECTED,
                report_id=report.id,
                error=ReplayStateError("A replay is already in progress"),
            )
        
        try:
            interactions = replayable_interactions(report)
        except EmptyInteractionSet as e:
            logger.warning(e.message)
            return ReplayOutcome(kind=OutcomeKind.NOTHING_TO_REPLAY, report_id=report.id, error=e)
        
        session = ReplaySession(bug_report_id=report.id, total_steps=len(interactions))
        session.transition(ReplayStatus.REPLAYING)
        self._session = session
        
        token = cancel_token or CancellationToken()
        logger.info(f"Replaying {len(interactions)} interactions of bug report {report.id}")
        
        try:
            return await self._run(report, interactions, session, token)
        finally:
            if session.status == ReplayStatus.REPLAYING:
                session.transition(ReplayStatus.FAILED)
            session.transition(ReplayStatus.IDLE)
            self._session = None
            self._notify_finish()
    
    async def record_manually(
        self,
        report: "BugReport",
        until: Callable[[], Awaitable[Any]],
    ) -> "Recording":
        """
        Record a new iteration while a human reproduces the bug.
        
        Args:
            report: Report to extend
            until: Awaited between starting and stopping the recording;
                returns when the user is done
        
        Returns:
            The appended, non-replayed iteration
        
        Raises:
            ReplayStateError: If a replay is in progress
            RecordingSessionFault: If recording fails to start or stop
            TransportFault: If the store did not acknowledge the save
        """
        if self._session is not None:
            raise ReplayStateError("Cannot record manually while a replay is in progress")
        
        logger.info(f"Manual recording of iteration {report.next_iteration} for {report.id}")
        await self._start_recording()
        try:
            await until()
        except BaseException:
            await self._stop_quietly()
            raise
        
        trace = await self._stop_recording()
        screenshot = await self._capture_screenshot()
        return await self._persist(report, trace, screenshot, replayed=False)
    
    async def _run(
        self,
        report: "BugReport",
        interactions: List["InteractionRecord"],
        session: ReplaySession,
        token: CancellationToken,
    ) -> ReplayOutcome:
        total = session.total_steps
        self._notify_start(total)
        
        try:
            await self._start_recording()
            started_ms = self._clock.monotonic_ms()
            
            for index, interaction in enumerate(interactions, start=1):
                token.raise_if_cancelled()
                await self._pace(interaction, started_ms, token)
                
                resolved = await self._resolver.resolve(self._page, interaction.element, token)
                if not resolved.is_resolved:
                    raise ElementNotResolvable(
                        f"Step {index}/{total}: could not find {interaction.element.label!r}",
                        descriptor=interaction.element.to_dict(),
                        attempts=resolved.attempt,
                    )
                
                logger.debug(f"Step {index}/{total}: {interaction.type.value} via {resolved.strategy.value}")
                await self._player.perform(resolved.element, interaction, token)
                
                completed = session.advance()
                self._notify_progress(completed, total)
            
            await self._clock.sleep(self._settings.final_settle_ms)
            token.raise_if_cancelled()
            trace = await self._stop_recording()
        except asyncio.CancelledError:
            logger.warning(f"Replay of {report.id} was cancelled after {session.completed_steps}/{total} steps")
            await self._stop_quietly()
            raise
        except Exception as e:
            return await self._fail(report, session, e)
        
        return await self._succeed(report, session, trace)
    
    async def _succeed(
        self,
        report: "BugReport",
        session: ReplaySession,
        trace: "Trace",
    ) -> ReplayOutcome:
        session.transition(ReplayStatus.SUCCEEDED)
        snapshot = session.snapshot()
        reference = SUCCESS_REFERENCE.format(report_id=report.id)
        screenshot = await self._capture_screenshot()
        
        try:
            iteration = await self._persist(report, trace, screenshot, replayed=True)
        except TransportFault as e:
            logger.error(f"Replay of {report.id} succeeded but the new iteration was not saved: {e}")
            self._present("show_persistence_error", report.id, e)
            return ReplayOutcome(
                kind=OutcomeKind.SUCCEEDED,
                report_id=report.id,
                session=snapshot,
                iteration=e.iteration,
                reference=reference,
                error=e,
                persisted=False,
                trace=trace,
            )
        
        logger.info(f"Replay of {report.id} succeeded, saved as iteration {iteration.iteration}")
        self._present("show_success", report.id, reference)
        return ReplayOutcome(
            kind=OutcomeKind.SUCCEEDED,
            report_id=report.id,
            session=snapshot,
            iteration=iteration,
            reference=reference,
            persisted=True,
            trace=trace,
        )
    
    async def _fail(
        self,
        report: "BugReport",
        session: ReplaySession,
        error: Exception,
    ) -> ReplayOutcome:
        session.transition(ReplayStatus.FAILED)
        snapshot = session.snapshot()
        
        # The partial trace is discarded
        await self._stop_quietly()
        
        reason = error.message if isinstance(error, BugReplayError) else str(error) or type(error).__name__
        original = report.original_recording
        plan = FallbackPlan(
            reason=reason,
            steps=describe_steps(original) if original else [],
            next_iteration=report.next_iteration,
        )
        
        if isinstance(error, BugReplayError):
            logger.warning(f"Replay of {report.id} failed after {snapshot.completed_steps}/{snapshot.total_steps} steps: {reason}")
        else:
            logger.exception(f"Replay of {report.id} failed unexpectedly: {reason}")
        
        self._present("show_failure", report.id, plan)
        return ReplayOutcome(
            kind=OutcomeKind.FAILED,
            report_id=report.id,
            session=snapshot,
            fallback=plan,
            error=error,
        )
    
    async def _pace(
        self,
        interaction: "InteractionRecord",
        started_ms: float,
        token: CancellationToken,
    ) -> None:
        if self._settings.pacing == "relative":
            elapsed = self._clock.monotonic_ms() - started_ms
            wait_ms = min(max(interaction.relative_time - elapsed, 0), self._settings.max_step_wait_ms)
        else:
            wait_ms = self._settings.step_delay_ms
        
        if wait_ms > 0:
            await self._clock.sleep(wait_ms)
        token.raise_if_cancelled()
    
    def _timeout_seconds(self) -> Optional[float]:
        ms = self._settings.collaborator_timeout_ms
        return ms / 1000 if ms else None
    
    async def _start_recording(self) -> "SessionHandle":
        try:
            handle = await with_timeout(
                self._recorder.start(),
                self._timeout_seconds(),
                "Timed out starting the recording",
            )
        except RecordingSessionFault:
            raise
        except Exception as e:
            raise RecordingSessionFault(f"Could not start recording: {e}", operation="start") from e
        logger.debug(f"Recording session {handle.session_id} started")
        return handle
    
    async def _stop_recording(self) -> "Trace":
        try:
            trace = await with_timeout(
                self._recorder.stop(),
                self._timeout_seconds(),
                "Timed out stopping the recording",
            )
        except RecordingSessionFault:
            raise
        except Exception as e:
            raise RecordingSessionFault(f"Could not stop recording: {e}", operation="stop") from e
        if trace is None:
            raise RecordingSessionFault("Recording produced no trace", operation="stop")
        return trace
    
    async def _stop_quietly(self) -> None:
        """Stop the recording if it is running; errors are logged only."""
        if not self._recorder.is_recording:
            return
        try:
            await with_timeout(
                self._recorder.stop(),
                self._timeout_seconds(),
                "Timed out stopping the recording",
            )
        except Exception as e:
            logger.warning(f"Failed to stop recording: {e}")
    
    async def _capture_screenshot(self) -> Optional[bytes]:
        if not self._screenshots:
            return None
        try:
            return await self._screenshots.capture()
        except Exception as e:
            logger.warning(f"Screenshot capture failed: {e}")
            return None
    
    async def _persist(
        self,
        report: "BugReport",
        trace: "Trace",
        screenshot: Optional[bytes],
        replayed: bool,
    ) -> "Recording":
        config = RetryConfig(
            max_attempts=self._persist_retries + 1,
            initial_delay_ms=self._persist_retry_delay_ms,
            retry_on=(TransportFault,),
        )
        return await retry_async(
            self._persistence.append_iteration,
            config,
            report,
            trace,
            screenshot,
            replayed,
            sleep=self._clock.sleep,
        )
    
    def _notify_start(self, total: int) -> None:
        if not self._progress:
            return
        try:
            self._progress.on_start(total)
        except Exception as e:
            logger.debug(f"Progress sink failed on start: {e}")
    
    def _notify_progress(self, completed: int, total: int) -> None:
        if not self._progress:
            return
        try:
            self._progress.on_progress(completed, total)
        except Exception as e:
            logger.debug(f"Progress sink failed on progress: {e}")
    
    def _notify_finish(self) -> None:
        if not self._progress:
            return
        try:
            self._progress.on_finish()
        except Exception as e:
            logger.debug(f"Progress sink failed on finish: {e}")
    
    def _present(self, method: str, *args: Any) -> None:
        if not self._presenter:
            return
        try:
            getattr(self._presenter, method)(*args)
        except Exception as e:
            logger.warning(f"Outcome presenter failed in {method}: {e}")
