"""
Browser Interface - Abstract base classes for the live page replay runs against.

This module defines the contract a browser implementation must follow for
the resolver and player to work on it. The Playwright implementation lives
in ``bug_replay.browsers``; tests use an in-memory document.

Example:
    >>> from bug_replay.browsers import PlaywrightBrowser
    >>> browser = PlaywrightBrowser()
    >>> await browser.launch(headless=True)
    >>> page = await browser.new_page()
    >>> await page.goto("https://example.com")
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class BrowserType(Enum):
    """Supported browser types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class IElement(ABC):
    """
    Abstract interface for a live DOM element.
    
    An IElement is a reference into the live document. It carries no
    ownership and may go stale at any time; check is_connected() before
    acting on it.
    """
    
    @abstractmethod
    async def is_connected(self) -> bool:
        """
        Check whether the element is still attached to the document.
        
        Returns:
            True if the element is attached
        """
        ...
    
    @abstractmethod
    async def text_content(self) -> Optional[str]:
        """
        Get the text content of this element.
        
        Returns:
            The element's text content
        """
        ...
    
    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]:
        """
        Get an attribute value from this element.
        
        Args:
            name: The attribute name
        
        Returns:
            The attribute value, or None if not present
        """
        ...
    
    @abstractmethod
    async def scroll_into_view(self, block: str = "center") -> None:
        """
        Scroll the element into view without animation.
        
        Args:
            block: Vertical alignment ('start', 'center', 'end', 'nearest')
        """
        ...
    
    @abstractmethod
    async def highlight(self, color: str, duration_ms: int) -> None:
        """
        Outline the element, restoring its previous inline style after duration_ms.
        
        Args:
            color: CSS color of the outline
            duration_ms: How long the highlight stays
        """
        ...
    
    @abstractmethod
    async def dispatch_event(self, event_type: str) -> None:
        """
        Dispatch a synthetic bubbling event on the element.
        
        Args:
            event_type: DOM event type ('click', 'input', 'change', ...)
        """
        ...
    
    @abstractmethod
    async def activate(self) -> None:
        """Invoke the element's native click() activation."""
        ...
    
    @abstractmethod
    async def focus(self) -> None:
        """Give the element keyboard focus."""
        ...
    
    @abstractmethod
    async def set_value(self, value: str) -> None:
        """
        Assign the element's value property without raising events.
        
        Args:
            value: The new value
        """
        ...


class IPage(ABC):
    """
    Abstract interface for browser page operations.
    
    Covers navigation, the element lookups the resolver strategies need,
    and screenshots.
    """
    
    @property
    @abstractmethod
    def url(self) -> str:
        """Get the current page URL."""
        ...
    
    @abstractmethod
    async def goto(self, url: str, **options: Any) -> None:
        """Navigate to the page the report was recorded on."""
        ...
    
    @abstractmethod
    async def get_element_by_id(self, element_id: str) -> Optional[IElement]:
        """
        Find the element with exactly this id.
        
        Args:
            element_id: The id attribute value
        
        Returns:
            The matching element, or None if not found
        """
        ...
    
    @abstractmethod
    async def query_selector(self, selector: str) -> Optional[IElement]:
        """
        Find the first element matching a CSS selector.
        
        Args:
            selector: CSS selector
        
        Returns:
            The matching element, or None if not found
        
        Raises:
            Exception: If the selector is malformed
        """
        ...
    
    @abstractmethod
    async def query_selector_all(self, selector: str) -> List[IElement]:
        """
        Find all elements matching a CSS selector, in document order.
        
        Args:
            selector: CSS selector
        
        Returns:
            List of matching elements
        """
        ...
    
    @abstractmethod
    async def find_by_text(self, text: str, scope: str = "body *") -> Optional[IElement]:
        """
        Find the element in ``scope`` whose text content most tightly
        contains ``text``.
        
        Ancestors contain their descendants' text, so among the matches the
        one with the shortest text content wins; ties go to document order.
        Implementations score every candidate in a single page round trip.
        
        Args:
            text: Recorded text, matched as a substring
            scope: CSS selector of the candidates
        
        Returns:
            The best match, or None
        """
        ...
    
    @abstractmethod
    async def query_xpath(self, xpath: str) -> Optional[IElement]:
        """
        Find the first element matching an XPath expression.
        
        Args:
            xpath: XPath expression evaluated against the document
        
        Returns:
            The matching element, or None if not found
        
        Raises:
            Exception: If the expression is malformed
        """
        ...
    
    @abstractmethod
    async def screenshot(
        self,
        path: Optional["Path"] = None,
        full_page: bool = False,
        **options: Any,
    ) -> bytes:
        """Capture PNG bytes of the viewport, or of the whole page with full_page."""
        ...
    
    @abstractmethod
    async def close(self) -> None:
        """Close this page."""
        ...


class IBrowser(ABC):
    """Launches the browser that hosts the replay page."""
    
    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether launch() succeeded and close() has not run yet."""
        ...
    
    @abstractmethod
    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """Start the browser; options go to the engine's launcher unchanged."""
        ...
    
    @abstractmethod
    async def new_page(self, **options: Any) -> IPage:
        """
        Open a page. Context options such as ``viewport`` apply to the
        first page only; later pages share that context.
        """
        ...
    
    @abstractmethod
    async def close(self) -> None:
        """Close every page and the browser."""
        ...
