"""
Action Player - Perform a recorded interaction on a resolved element.
"""

from typing import Optional, TYPE_CHECKING
import logging

from bug_replay.exceptions.browser import ElementDetachedError
from bug_replay.models.interaction import InteractionType
from bug_replay.utils.timing import Clock, CancellationToken, SystemClock

if TYPE_CHECKING:
    from bug_replay.interfaces.browser import IElement
    from bug_replay.models.interaction import InteractionRecord

logger = logging.getLogger(__name__)


class ActionPlayer:
    """
    Replays clicks and inputs the way a user would have produced them.
    
    Every action scrolls its target into view, highlights it, dispatches
    the interaction and then gives the page time to react.
    """
    
    def __init__(
        self,
        clock: Optional[Clock] = None,
        scroll_settle_ms: int = 200,
        action_settle_ms: int = 300,
        highlight_duration_ms: int = 500,
        highlight_color: str = "#4CAF50",
    ):
        self._clock = clock or SystemClock()
        self._scroll_settle_ms = scroll_settle_ms
        self._action_settle_ms = action_settle_ms
        self._highlight_duration_ms = highlight_duration_ms
        self._highlight_color = highlight_color
    
    async def perform(
        self,
        element: "IElement",
        interaction: "InteractionRecord",
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        """
        Perform one interaction.
        
        Args:
            element: Resolved live element
            interaction: The recorded interaction
            cancel_token: Checked after each settle delay
        
        Raises:
            ElementDetachedError: If the element left the document before the action
            ReplayCancelled: If the token is cancelled during a settle delay
        """
        if not await element.is_connected():
            raise ElementDetachedError(
                f"Element {interaction.element.label!r} detached before {interaction.subtype or interaction.type.value}",
                action_type=interaction.type.value,
            )
        
        await element.scroll_into_view("center")
        await self._settle(self._scroll_settle_ms, cancel_token)
        
        await element.highlight(self._highlight_color, self._highlight_duration_ms)
        
        if interaction.type == InteractionType.CLICK:
            await self._click(element)
        elif interaction.type == InteractionType.INPUT:
            await self._input(element, interaction.value)
        else:
            logger.debug(f"Nothing to perform for {interaction.subtype or interaction.type.value} interaction")
        
        await self._settle(self._action_settle_ms, cancel_token)
    
    async def _click(self, element: "IElement") -> None:
        # Listeners bound to synthetic events and to native activation both fire
        await element.dispatch_event("click")
        await element.activate()
    
    async def _input(self, element: "IElement", value: Optional[str]) -> None:
        await element.focus()
        await element.set_value(value or "")
        await element.dispatch_event("input")
        await element.dispatch_event("change")
    
    async def _settle(self, ms: int, cancel_token: Optional[CancellationToken]) -> None:
        await self._clock.sleep(ms)
        if cancel_token:
            cancel_token.raise_if_cancelled()
