"""
Element Resolver - Map a recorded element descriptor onto the live page.

The page may have drifted since the recording was made, so several
strategies are tried in order of confidence:
1. ID - exact id attribute
2. SELECTOR - the CSS selector generated at recording time
3. TEXT - text containment, scoped to the recorded tag name
4. XPATH - the absolute XPath generated at recording time

One pass runs every strategy. When a pass finds nothing attached to the
document the resolver backs off and tries again, up to max_attempts passes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple, TYPE_CHECKING
import logging

from bug_replay.utils.timing import Clock, CancellationToken, SystemClock

if TYPE_CHECKING:
    from bug_replay.interfaces.browser import IPage, IElement
    from bug_replay.models.interaction import ElementDescriptor

logger = logging.getLogger(__name__)


class ResolutionStrategy(Enum):
    """Which strategy resolved the element."""
    ID = "id"
    SELECTOR = "selector"
    TEXT = "text"
    XPATH = "xpath"
    FAILED = "failed"


@dataclass
class ResolvedElement:
    """
    Outcome of resolving one descriptor.
    
    The element is only valid for the step it was resolved for; the page
    can detach it at any time.
    """
    element: Optional["IElement"] = None
    strategy: ResolutionStrategy = ResolutionStrategy.FAILED
    attempt: int = 0
    
    @property
    def is_resolved(self) -> bool:
        return self.strategy != ResolutionStrategy.FAILED and self.element is not None


StrategyFn = Callable[["IPage", "ElementDescriptor"], Awaitable[Optional["IElement"]]]


async def by_id(page: "IPage", descriptor: "ElementDescriptor") -> Optional["IElement"]:
    if not descriptor.id:
        return None
    return await page.get_element_by_id(descriptor.id)


async def by_selector(page: "IPage", descriptor: "ElementDescriptor") -> Optional["IElement"]:
    if not descriptor.selector:
        return None
    return await page.query_selector(descriptor.selector)


async def by_text(page: "IPage", descriptor: "ElementDescriptor") -> Optional["IElement"]:
    """
    Find an element whose text contains the recorded text.
    
    Candidates are the elements with the recorded tag name, or every element
    in the body when no tag was recorded. Ancestors contain their children's
    text too, so the candidate with the shortest text wins; ties go to the
    first in document order.
    """
    if not descriptor.text_content:
        return None
    
    scope = descriptor.tag_name.lower() if descriptor.tag_name else "body *"
    return await page.find_by_text(descriptor.text_content, scope)


async def by_xpath(page: "IPage", descriptor: "ElementDescriptor") -> Optional["IElement"]:
    if not descriptor.xpath:
        return None
    return await page.query_xpath(descriptor.xpath)


DEFAULT_STRATEGIES: Tuple[Tuple[ResolutionStrategy, StrategyFn], ...] = (
    (ResolutionStrategy.ID, by_id),
    (ResolutionStrategy.SELECTOR, by_selector),
    (ResolutionStrategy.TEXT, by_text),
    (ResolutionStrategy.XPATH, by_xpath),
)


class ElementResolver:
    """
    Retrying multi-strategy resolver.
    
    Example:
        >>> resolver = ElementResolver(max_attempts=3, retry_backoff_ms=500)
        >>> result = await resolver.resolve(page, interaction.element)
        >>> if result.is_resolved:
        ...     await result.element.focus()
    """
    
    def __init__(
        self,
        max_attempts: int = 3,
        retry_backoff_ms: int = 500,
        clock: Optional[Clock] = None,
        strategies: Tuple[Tuple[ResolutionStrategy, StrategyFn], ...] = DEFAULT_STRATEGIES,
    ):
        self._max_attempts = max(1, max_attempts)
        self._retry_backoff_ms = retry_backoff_ms
        self._clock = clock or SystemClock()
        self._strategies = strategies
    
    @property
    def max_attempts(self) -> int:
        return self._max_attempts
    
    async def resolve(
        self,
        page: "IPage",
        descriptor: "ElementDescriptor",
        cancel_token: Optional[CancellationToken] = None,
    ) -> ResolvedElement:
        """
        Resolve a descriptor to a live, attached element.
        
        Args:
            page: The live page
            descriptor: Recorded element descriptor
            cancel_token: Checked before every attempt and after every backoff
        
        Returns:
            A resolved element, or a FAILED result after max_attempts passes.
            A descriptor no strategy can use fails at once with attempt 0.
        
        Raises:
            ReplayCancelled: If the token is cancelled while resolving
        """
        if not descriptor.is_resolvable:
            logger.warning(f"Nothing recorded to find {descriptor.label!r} by")
            return ResolvedElement(strategy=ResolutionStrategy.FAILED, attempt=0)
        
        for attempt in range(1, self._max_attempts + 1):
            if cancel_token:
                cancel_token.raise_if_cancelled()
            
            for strategy, find in self._strategies:
                element = await self._try_strategy(strategy, find, page, descriptor)
                if element is not None:
                    logger.debug(f"Resolved {descriptor.label!r} by {strategy.value} on attempt {attempt}")
                    return ResolvedElement(element=element, strategy=strategy, attempt=attempt)
            
            logger.debug(f"No live match for {descriptor.label!r} (attempt {attempt}/{self._max_attempts})")
            if attempt < self._max_attempts:
                await self._clock.sleep(self._retry_backoff_ms)
                if cancel_token:
                    cancel_token.raise_if_cancelled()
        
        logger.warning(f"Could not resolve {descriptor.label!r} after {self._max_attempts} attempts")
        return ResolvedElement(strategy=ResolutionStrategy.FAILED, attempt=self._max_attempts)
    
    async def _try_strategy(
        self,
        strategy: ResolutionStrategy,
        find: StrategyFn,
        page: "IPage",
        descriptor: "ElementDescriptor",
    ) -> Optional["IElement"]:
        """Run one strategy. Errors and detached matches count as misses."""
        try:
            element = await find(page, descriptor)
            if element is None:
                return None
            if not await element.is_connected():
                logger.debug(f"{strategy.value} matched a detached element")
                return None
            return element
        except Exception as e:
            logger.debug(f"{strategy.value} strategy failed: {e}")
            return None
