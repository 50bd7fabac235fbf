"""
Playwright Browser - The live page that replays run against.

Elements are driven through DOM calls rather than Playwright's
actionability-checked clicks and fills, so a replay behaves like the page's
own scripts would.
"""

from typing import Any, List, Optional
import logging

from bug_replay.interfaces.browser import (
    IBrowser,
    IPage,
    IElement,
    BrowserType,
)
from bug_replay.exceptions.browser import (
    BrowserLaunchError,
    BrowserConnectionError,
    NavigationError,
)

logger = logging.getLogger(__name__)


HIGHLIGHT_JS = """
(el, [color, duration]) => {
    const originalOutline = el.style.outline;
    const originalBoxShadow = el.style.boxShadow;
    el.style.outline = `3px solid ${color}`;
    el.style.boxShadow = `0 0 10px ${color}`;
    setTimeout(() => {
        el.style.outline = originalOutline;
        el.style.boxShadow = originalBoxShadow;
    }, duration);
}
"""

# Shortest containing text wins; ties go to document order
FIND_BY_TEXT_JS = """
([scope, text]) => {
    let best = null;
    let bestLength = -1;
    for (const el of document.querySelectorAll(scope)) {
        const content = el.textContent;
        if (!content || !content.includes(text)) continue;
        if (best === null || content.length < bestLength) {
            best = el;
            bestLength = content.length;
        }
    }
    return best;
}
"""


class PlaywrightElement(IElement):
    """An ElementHandle plus the lookup that produced it, for log messages."""
    
    def __init__(self, element: Any, selector: str):
        self._element = element
        self._selector = selector
    
    @property
    def selector(self) -> str:
        return self._selector
    
    async def is_connected(self) -> bool:
        return bool(await self._element.evaluate("el => el.isConnected"))
    
    async def text_content(self) -> Optional[str]:
        return await self._element.text_content()
    
    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._element.get_attribute(name)
    
    async def scroll_into_view(self, block: str = "center") -> None:
        await self._element.evaluate(
            "(el, block) => el.scrollIntoView({ behavior: 'instant', block })",
            block,
        )
    
    async def highlight(self, color: str, duration_ms: int) -> None:
        await self._element.evaluate(HIGHLIGHT_JS, [color, duration_ms])
    
    async def dispatch_event(self, event_type: str) -> None:
        """Dispatch a bubbling, cancelable event."""
        await self._element.dispatch_event(event_type, {"bubbles": True, "cancelable": True})
    
    async def activate(self) -> None:
        """Call the native click()."""
        await self._element.evaluate("el => el.click()")
    
    async def focus(self) -> None:
        await self._element.focus()
    
    async def set_value(self, value: str) -> None:
        """Assign the value property."""
        await self._element.evaluate("(el, value) => { el.value = value; }", value)


class PlaywrightPage(IPage):
    """A Playwright Page exposing the lookups the resolver strategies use."""
    
    def __init__(self, page: Any):
        self._page = page
    
    @property
    def raw(self) -> Any:
        """The underlying Playwright page, for the recorder."""
        return self._page
    
    @property
    def url(self) -> str:
        return self._page.url
    
    async def goto(self, url: str, **options: Any) -> None:
        try:
            await self._page.goto(url, **options)
        except Exception as e:
            raise NavigationError(f"Failed to navigate to {url}: {e}", url=url)
    
    async def get_element_by_id(self, element_id: str) -> Optional[IElement]:
        """Match the id attribute exactly; ids need not be valid CSS identifiers."""
        escaped = element_id.replace("\\", "\\\\").replace('"', '\\"')
        return await self.query_selector(f'[id="{escaped}"]')
    
    async def query_selector(self, selector: str) -> Optional[IElement]:
        element = await self._page.query_selector(selector)
        if element:
            return PlaywrightElement(element, selector)
        return None
    
    async def query_selector_all(self, selector: str) -> List[IElement]:
        elements = await self._page.query_selector_all(selector)
        return [PlaywrightElement(el, selector) for el in elements]
    
    async def find_by_text(self, text: str, scope: str = "body *") -> Optional[IElement]:
        handle = await self._page.evaluate_handle(FIND_BY_TEXT_JS, [scope, text])
        element = handle.as_element()
        if element is None:
            await handle.dispose()
            return None
        return PlaywrightElement(element, f"{scope} >> text={text!r}")
    
    async def query_xpath(self, xpath: str) -> Optional[IElement]:
        return await self.query_selector(f"xpath={xpath}")
    
    async def screenshot(
        self,
        path: Optional[Any] = None,
        full_page: bool = False,
        **options: Any,
    ) -> bytes:
        return await self._page.screenshot(path=path, full_page=full_page, **options)
    
    async def close(self) -> None:
        await self._page.close()


class PlaywrightBrowser(IBrowser):
    """
    One Playwright browser with a single shared context.
    
    Example:
        >>> browser = PlaywrightBrowser()
        >>> await browser.launch(headless=False)
        >>> page = await browser.new_page(viewport={"width": 1280, "height": 720})
        >>> await page.goto(report.url)
        >>> await browser.close()
    """
    
    def __init__(self):
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
    
    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()
    
    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Start Playwright and launch the requested engine.
        
        Raises:
            BrowserLaunchError: If Playwright or the browser binary fails to start
        """
        from playwright.async_api import async_playwright
        
        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, browser_type.value)
            self._browser = await launcher.launch(headless=headless, **options)
        except Exception as e:
            await self.close()
            raise BrowserLaunchError(f"Failed to launch {browser_type.value}: {e}")
        
        logger.info(f"Launched {browser_type.value} (headless={headless})")
    
    async def new_page(self, **options: Any) -> PlaywrightPage:
        """Open a page in the shared context, creating it from ``options`` first."""
        if not self._browser:
            raise BrowserConnectionError("Browser not launched. Call launch() first.")
        
        if self._context is None:
            self._context = await self._browser.new_context(**options)
        
        return PlaywrightPage(await self._context.new_page())
    
    async def close(self) -> None:
        """Close the context, the browser and Playwright, whichever are open."""
        context, browser, playwright = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None
        
        if context:
            await context.close()
        if browser:
            await browser.close()
        if playwright:
            await playwright.stop()
        
        logger.debug("Browser closed")
