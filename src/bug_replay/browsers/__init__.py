"""
Browsers module - Browser automation implementations.
"""

from bug_replay.browsers.playwright_browser import (
    PlaywrightBrowser,
    PlaywrightElement,
    PlaywrightPage,
)

__all__ = [
    "PlaywrightBrowser",
    "PlaywrightElement",
    "PlaywrightPage",
]
