"""
Settings - Validated configuration for a replay run.

One section per concern: the browser that hosts the page, replay timing and
retries, where reports are stored, and logging.

Example:
    >>> from bug_replay.config import load_config
    >>> settings = load_config()
    >>> print(settings.replay.max_attempts)
    3
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserSettings(BaseModel):
    """
    The browser the report's page is opened in.
    
    Attributes:
        headless: Hide the window; --visible turns this off to watch a replay
        browser_type: Playwright engine to launch
        channel: Branded Chromium build (chrome, msedge), if any
        timeout_ms: Navigation timeout when opening the report's page
        viewport_width: Page width, ideally the one the bug was recorded at
        viewport_height: Page height
    """
    headless: bool = True
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    channel: Optional[str] = None
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)


class ReplaySettings(BaseModel):
    """
    Replay engine settings.
    
    Attributes:
        max_attempts: Full strategy passes before an element is declared missing
        retry_backoff_ms: Pause between resolution attempts
        pacing: 'fixed' waits step_delay_ms before every step,
            'relative' waits for each step's recorded offset
        step_delay_ms: Wait before each step in fixed pacing
        max_step_wait_ms: Upper bound for a single wait in relative pacing
        scroll_settle_ms: Pause after scrolling the target into view
        action_settle_ms: Pause after dispatching an action
        final_settle_ms: Pause after the last step before the recording stops
        highlight_duration_ms: How long the replay highlight stays on an element
        highlight_color: Outline color of the replay highlight
        collaborator_timeout_ms: Time box for recording start/stop (0 disables)
    """
    max_attempts: int = Field(default=3, ge=1, le=20)
    retry_backoff_ms: int = Field(default=500, ge=0, le=30000)
    pacing: Literal["fixed", "relative"] = "fixed"
    step_delay_ms: int = Field(default=500, ge=0, le=60000)
    max_step_wait_ms: int = Field(default=10000, ge=0, le=300000)
    scroll_settle_ms: int = Field(default=200, ge=0, le=10000)
    action_settle_ms: int = Field(default=300, ge=0, le=10000)
    final_settle_ms: int = Field(default=1000, ge=0, le=60000)
    highlight_duration_ms: int = Field(default=500, ge=0, le=10000)
    highlight_color: str = "#4CAF50"
    collaborator_timeout_ms: int = Field(default=10000, ge=0, le=300000)


class StorageSettings(BaseModel):
    """
    Report storage settings.
    
    Attributes:
        backend: 'http' talks to the report storage service, 'file' edits
            bug_reports.json directly
        api_url: Base URL of the report storage service
        data_dir: Directory holding bug_reports.json for the file backend
        timeout: HTTP request timeout in seconds
        persist_retries: Automatic retries of a failed save (0 surfaces the fault)
        retry_delay_ms: Initial delay between save retries
    """
    backend: Literal["http", "file"] = "http"
    api_url: str = "http://127.0.0.1:4242"
    data_dir: str = "~/.pointa"
    timeout: float = Field(default=10.0, gt=0, le=300)
    persist_retries: int = Field(default=0, ge=0, le=5)
    retry_delay_ms: int = Field(default=1000, ge=0, le=60000)


class LoggingSettings(BaseModel):
    """
    Where log records go besides the console.
    
    Attributes:
        level: Root log level; --verbose forces DEBUG
        format: Line format of a plain log file
        file: Log file path, or None for the console only
        json_format: Write the log file as JSON lines
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    All configuration for bug-replay.
    
    Constructor values win over BUG_REPLAY__ environment variables, so
    ConfigLoader merges the file and environment layers itself before
    constructing the final instance.
    
    Example:
        >>> Settings().storage.backend
        'http'
        >>> Settings(replay=ReplaySettings(pacing="relative")).replay.pacing
        'relative'
    """
    
    model_config = SettingsConfigDict(
        env_prefix="BUG_REPLAY__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    replay: ReplaySettings = Field(default_factory=ReplaySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    
    def merge_with(self, overrides: dict) -> "Settings":
        """Return a copy with nested ``overrides`` applied; self is unchanged."""
        return Settings(**deep_merge(self.model_dump(), overrides))


def deep_merge(base: dict, updates: dict) -> dict:
    """Merge ``updates`` into ``base`` in place, section by section."""
    for key, value in updates.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base
