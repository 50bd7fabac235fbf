"""
Tests for browser implementations.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


class TestPlaywrightElement:
    """Test the PlaywrightElement wrapper."""
    
    @pytest.fixture
    def mock_element(self):
        """Create a mock Playwright element."""
        element = MagicMock()
        element.evaluate = AsyncMock(return_value=True)
        element.text_content = AsyncMock(return_value="Place order")
        element.get_attribute = AsyncMock(return_value="primary")
        element.dispatch_event = AsyncMock()
        element.focus = AsyncMock()
        return element
    
    @pytest.mark.asyncio
    async def test_is_connected(self, mock_element):
        """Test the attachment check."""
        from bug_replay.browsers.playwright_browser import PlaywrightElement
        
        mock_element.evaluate.return_value = False
        el = PlaywrightElement(mock_element, "#pay")
        
        assert await el.is_connected() is False
        mock_element.evaluate.assert_called_once_with("el => el.isConnected")
    
    @pytest.mark.asyncio
    async def test_text_and_attributes(self, mock_element):
        """Test element inspection."""
        from bug_replay.browsers.playwright_browser import PlaywrightElement
        
        el = PlaywrightElement(mock_element, "button")
        
        assert await el.text_content() == "Place order"
        assert await el.get_attribute("class") == "primary"
        assert el.selector == "button"
    
    @pytest.mark.asyncio
    async def test_dispatch_event_bubbles(self, mock_element):
        """Test synthetic events bubble and can be cancelled."""
        from bug_replay.browsers.playwright_browser import PlaywrightElement
        
        el = PlaywrightElement(mock_element, "#pay")
        await el.dispatch_event("click")
        
        mock_element.dispatch_event.assert_called_once_with("click", {"bubbles": True, "cancelable": True})
    
    @pytest.mark.asyncio
    async def test_highlight(self, mock_element):
        """Test the highlight passes color and duration."""
        from bug_replay.browsers.playwright_browser import HIGHLIGHT_JS, PlaywrightElement
        
        el = PlaywrightElement(mock_element, "#pay")
        await el.highlight("#4CAF50", 500)
        
        mock_element.evaluate.assert_called_once_with(HIGHLIGHT_JS, ["#4CAF50", 500])
    
    @pytest.mark.asyncio
    async def test_set_value_and_focus(self, mock_element):
        """Test input helpers."""
        from bug_replay.browsers.playwright_browser import PlaywrightElement
        
        el = PlaywrightElement(mock_element, "#qty")
        await el.focus()
        await el.set_value("2")
        
        mock_element.focus.assert_called_once()
        assert mock_element.evaluate.call_args.args[1] == "2"


class TestPlaywrightPage:
    """Test the PlaywrightPage wrapper."""
    
    @pytest.fixture
    def mock_page(self):
        """Create a mock Playwright page."""
        page = MagicMock()
        page.url = "https://app.example.com/checkout"
        page.goto = AsyncMock()
        page.query_selector = AsyncMock(return_value=MagicMock())
        page.query_selector_all = AsyncMock(return_value=[MagicMock(), MagicMock()])
        page.screenshot = AsyncMock(return_value=b"png")
        return page
    
    @pytest.mark.asyncio
    async def test_get_element_by_id_escapes_quotes(self, mock_page):
        """Test ids are matched exactly, whatever characters they hold."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        
        page = PlaywrightPage(mock_page)
        element = await page.get_element_by_id('form:"total"')
        
        assert element is not None
        mock_page.query_selector.assert_called_once_with('[id="form:\\"total\\""]')
    
    @pytest.mark.asyncio
    async def test_query_xpath(self, mock_page):
        """Test XPath lookups use the xpath= engine prefix."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        
        page = PlaywrightPage(mock_page)
        await page.query_xpath("/html/body/div[2]/button[1]")
        
        mock_page.query_selector.assert_called_once_with("xpath=/html/body/div[2]/button[1]")
    
    @pytest.mark.asyncio
    async def test_no_match(self, mock_page):
        """Test a missing element is None."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        
        mock_page.query_selector.return_value = None
        page = PlaywrightPage(mock_page)
        
        assert await page.query_selector("#ghost") is None
    
    @pytest.mark.asyncio
    async def test_find_by_text_is_one_round_trip(self, mock_page):
        """Test text matching is scored inside the page."""
        from bug_replay.browsers.playwright_browser import FIND_BY_TEXT_JS, PlaywrightElement, PlaywrightPage
        
        raw_element = MagicMock()
        handle = MagicMock()
        handle.as_element.return_value = raw_element
        mock_page.evaluate_handle = AsyncMock(return_value=handle)
        page = PlaywrightPage(mock_page)
        
        element = await page.find_by_text("Place order", "button")
        
        assert isinstance(element, PlaywrightElement)
        assert element._element is raw_element
        mock_page.evaluate_handle.assert_awaited_once_with(FIND_BY_TEXT_JS, ["button", "Place order"])
        mock_page.query_selector_all.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_find_by_text_no_match(self, mock_page):
        """Test a null result is released and reported as None."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        
        handle = MagicMock()
        handle.as_element.return_value = None
        handle.dispose = AsyncMock()
        mock_page.evaluate_handle = AsyncMock(return_value=handle)
        page = PlaywrightPage(mock_page)
        
        assert await page.find_by_text("Confirm") is None
        handle.dispose.assert_awaited_once()
    
    @pytest.mark.asyncio
    async def test_query_selector_all(self, mock_page):
        """Test every match is wrapped."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        
        page = PlaywrightPage(mock_page)
        
        assert len(await page.query_selector_all("button")) == 2
    
    @pytest.mark.asyncio
    async def test_goto_failure(self, mock_page):
        """Test navigation errors are wrapped."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        from bug_replay.exceptions import NavigationError
        
        mock_page.goto.side_effect = RuntimeError("net::ERR_CONNECTION_REFUSED")
        page = PlaywrightPage(mock_page)
        
        with pytest.raises(NavigationError) as exc_info:
            await page.goto("https://app.example.com/")
        
        assert exc_info.value.url == "https://app.example.com/"
    
    def test_raw_and_url(self, mock_page):
        """Test the underlying page is exposed."""
        from bug_replay.browsers.playwright_browser import PlaywrightPage
        
        page = PlaywrightPage(mock_page)
        
        assert page.raw is mock_page
        assert page.url == "https://app.example.com/checkout"


class TestPlaywrightBrowser:
    """Test the PlaywrightBrowser lifecycle."""
    
    @pytest.mark.asyncio
    async def test_new_page_requires_launch(self):
        """Test a page cannot be opened before launch."""
        from bug_replay.browsers.playwright_browser import PlaywrightBrowser
        from bug_replay.exceptions import BrowserConnectionError
        
        browser = PlaywrightBrowser()
        
        assert not browser.is_connected
        with pytest.raises(BrowserConnectionError):
            await browser.new_page()
    
    @pytest.mark.asyncio
    async def test_new_page_and_close(self):
        """Test pages share one context and close releases everything."""
        from bug_replay.browsers.playwright_browser import PlaywrightBrowser, PlaywrightPage
        
        context = MagicMock()
        context.new_page = AsyncMock(return_value=MagicMock())
        context.close = AsyncMock()
        raw_browser = MagicMock()
        raw_browser.new_context = AsyncMock(return_value=context)
        raw_browser.close = AsyncMock()
        
        browser = PlaywrightBrowser()
        browser._browser = raw_browser
        
        page = await browser.new_page(viewport={"width": 1280, "height": 720})
        await browser.new_page()
        await browser.close()
        
        assert isinstance(page, PlaywrightPage)
        raw_browser.new_context.assert_called_once_with(viewport={"width": 1280, "height": 720})
        assert context.new_page.call_count == 2
        context.close.assert_called_once()
        raw_browser.close.assert_called_once()
