"""Error taxonomy for prockitty.

Every error is reported to the user and the session continues; only an
explicit exit ends the interactive program.
"""


class ProcessKittyError(Exception):
    """Base class for all errors reported to the user."""


class NotFoundError(ProcessKittyError):
    """The requested PID is absent from the process table."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Process {pid} not found.")
        self.pid = pid


class InvalidInputError(ProcessKittyError):
    """Malformed PID, threshold or attribute selection."""


class UnboundedChainError(ProcessKittyError):
    """A parentage walk revisited a PID or exceeded its depth bound."""

    def __init__(self, message: str, chain) -> None:
        super().__init__(message)
        self.chain = chain


class PrerequisiteMissingError(ProcessKittyError):
    """A required data source (process table, metrics) is unavailable."""
