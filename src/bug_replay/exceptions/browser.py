"""
Errors raised by the browser layer the replay drives.
"""

from bug_replay.exceptions.base import BugReplayError


class BrowserError(BugReplayError):
    """The browser or one of its pages failed."""


class BrowserLaunchError(BrowserError):
    """Playwright could not start the browser (missing binaries, bad launch options)."""


class BrowserConnectionError(BrowserError):
    """A page was requested before launch() or after close()."""


class PageError(BrowserError):
    """An operation on the replay page failed."""


class NavigationError(PageError):
    """
    The report's page could not be opened.
    
    Attributes:
        url: The address that failed to load
    """
    
    def __init__(self, message: str, url: str | None = None):
        super().__init__(message, {"url": url})
        self.url = url


class ElementDetachedError(PageError):
    """
    The page removed a resolved element before the action reached it.
    
    Attributes:
        action_type: The interaction that was about to run ("click", "input")
    """
    
    def __init__(self, message: str, action_type: str | None = None):
        super().__init__(message, {"action_type": action_type})
        self.action_type = action_type
