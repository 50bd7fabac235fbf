"""
Screenshot Provider - Capture the page at the end of a replay.
"""

from pathlib import Path
from typing import Optional, TYPE_CHECKING
import logging

from bug_replay.interfaces.collaborators import IScreenshotProvider

if TYPE_CHECKING:
    from bug_replay.interfaces.browser import IPage

logger = logging.getLogger(__name__)


class PageScreenshotProvider(IScreenshotProvider):
    """
    Captures the visible viewport of a page as PNG.
    
    A failed capture yields None; the replay carries on without a screenshot.
    
    Example:
        >>> provider = PageScreenshotProvider(page, output_dir="./screenshots")
        >>> png = await provider.capture()
    """
    
    def __init__(
        self,
        page: "IPage",
        full_page: bool = False,
        output_dir: Optional[str | Path] = None,
    ):
        """
        Initialize the provider.
        
        Args:
            page: Page to capture
            full_page: Capture the full scrollable page instead of the viewport
            output_dir: Optional directory to also keep a local copy in
        """
        self._page = page
        self._full_page = full_page
        self._output_dir = Path(output_dir) if output_dir else None
        self._count = 0
    
    async def capture(self) -> Optional[bytes]:
        path = None
        if self._output_dir:
            self._count += 1
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path = self._output_dir / f"replay_{self._count:03d}.png"
        
        try:
            png = await self._page.screenshot(path=path, full_page=self._full_page)
        except Exception as e:
            logger.warning(f"Screenshot capture failed: {e}")
            return None
        
        logger.debug(f"Captured screenshot ({len(png)} bytes){f': {path}' if path else ''}")
        return png
