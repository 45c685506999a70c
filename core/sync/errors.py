"""
Error types for the synchronization engine.

None of these are fatal to the host: the engine logs them and skips the
affected item instead of aborting a drain cycle or a propagation run.
"""


class SyncError(Exception):
    """Base class for synchronization errors"""
    pass


class TransientIOError(SyncError):
    """Raised when a file or directory could not be moved (locked, cross-volume)"""

    def __init__(self, source: str, destination: str, reason: str):
        super().__init__(f"Unable to move '{source}' to '{destination}': {reason}")
        self.source = source
        self.destination = destination
        self.reason = reason


class TypeResolutionFailure(SyncError):
    """Raised when a resource type cannot be determined during rename propagation"""

    def __init__(self, path: str):
        super().__init__(f"Could not determine resource type for file '{path}'")
        self.path = path


class ContentError(SyncError):
    """Raised by content caches when a resource cannot be provided"""

    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: '{path}'")
        self.path = path


class ContentNotFoundError(ContentError):
    """Raised when a resource file does not exist"""

    def __init__(self, path: str):
        super().__init__(path, "Resource file not found")


class ContentParseError(ContentError):
    """Raised when a resource file cannot be deserialized"""

    def __init__(self, path: str, reason: str):
        super().__init__(path, f"Unable to parse resource ({reason})")
        self.reason = reason
