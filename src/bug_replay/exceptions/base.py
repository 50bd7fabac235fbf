"""
Base exceptions for bug-replay.
"""


class BugReplayError(Exception):
    """
    Root of every error raised by bug-replay.
    
    Attributes:
        message: What went wrong, suitable for showing to the user
        details: Context such as the report id or file path
    """
    
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} - Details: {self.details}"


class ConfigurationError(BugReplayError):
    """A config file, environment variable or CLI option is unusable."""
