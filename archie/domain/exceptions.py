"""Domain-layer exceptions.

Configuration and graph-construction errors are fatal and abort a command
before any thread starts. Runtime engine errors surface to the caller of
``Runner.start``/``Runner.resume``. The CLI maps ``ArchieError`` to exit
code 1; the API maps thread errors to HTTP status codes.
"""


class ArchieError(Exception):
    """Base class for all Archie errors."""


class ConfigurationError(ArchieError):
    """Missing credentials or invalid settings."""


class MemoryFileError(ArchieError):
    """Memory file exists but cannot be read or parsed."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Memory file {path}: {detail}")


class GraphValidationError(ArchieError):
    """Graph definition failed compile-time validation."""


class RoutingError(ArchieError):
    """A decision function returned a destination outside its path map."""

    def __init__(self, source: str, destination):
        self.source = source
        self.destination = destination
        super().__init__(f"Route from '{source}' returned unmapped destination {destination!r}")


class InvalidUpdateError(ArchieError):
    """A node returned an update for keys that are not state channels."""

    def __init__(self, keys):
        self.keys = list(keys)
        super().__init__(f"Update contains unknown channels: {', '.join(self.keys)}")


class ThreadNotFoundError(ArchieError):
    """No checkpoint exists for the thread id. Maps to HTTP 404."""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"Thread {thread_id} not found")


class ThreadNotSuspendedError(ArchieError):
    """Resume requested for a thread that is not waiting for input. Maps to HTTP 409."""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"Thread {thread_id} is not suspended")


class ThreadConflictError(ArchieError):
    """Start requested for a thread id that already suspended or finished. Maps to HTTP 409."""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"Thread {thread_id} already exists and is not resumable by start")


class RecursionLimitError(ArchieError):
    """Thread exceeded the configured step budget without suspending or finishing."""

    def __init__(self, thread_id: str, max_steps: int):
        self.thread_id = thread_id
        self.max_steps = max_steps
        super().__init__(f"Thread {thread_id} exceeded {max_steps} steps")


class LLMResponseError(ArchieError):
    """Language model call failed or returned no content."""


class WorkflowInputError(ArchieError):
    """A node is missing the state it cannot run without (e.g. no documents to build context from)."""
