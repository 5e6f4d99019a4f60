"""Exceptions raised by the grading sandbox."""


class SandboxError(Exception):
    """Base class for sandbox errors."""


class InvalidConfiguration(SandboxError):
    """Runtime configuration rejected before execution (bad image, file name or limits)."""


class RuntimeMissing(SandboxError):
    """No runtime is registered for the submission's language."""

    def __init__(self, language: str) -> None:
        self.language = language
        super().__init__(f"Runtime for language '{language}' not found")


class SandboxUnavailable(SandboxError):
    """The container runtime cannot be reached or refused the request."""


class WorkspaceError(SandboxError):
    """The workspace directory could not be prepared."""
