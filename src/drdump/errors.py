"""Domain errors for drdump."""

from typing import Iterable, Tuple


class DumpError(RuntimeError):
    """Raised when a dump or provisioning workflow cannot continue safely."""


class InvalidRequestError(DumpError):
    """Raised when an incoming request payload is malformed."""


class InvalidCommandError(DumpError):
    """Raised when a command builder receives an invalid option."""


class ProcessLaunchError(DumpError):
    """Raised when an external executable cannot be started."""


class ToolFailure(DumpError):
    """Raised when an external tool exits without a zero status."""

    def __init__(self, tool: str, result):
        self.tool = tool
        self.result = result
        status = "timed out" if result.exit_code is None else f"exit {result.exit_code}"
        message = f"{tool} failed ({status})"
        output = (result.output or "").strip()
        if output:
            message = f"{message}: {output}"
        super().__init__(message)


class ValidationError(DumpError):
    """Raised when requested databases are missing from the server."""

    def __init__(self, missing: Iterable[str], message: str):
        self.missing: Tuple[str, ...] = tuple(missing)
        super().__init__(message)


class ConnectivityError(DumpError):
    """Raised when a database connection cannot be established."""


class QueryError(DumpError):
    """Raised when a metadata query fails on an open connection."""


class MissingRoleError(DumpError):
    """Raised when no execution role matches the expected prefix."""


class ProviderError(DumpError):
    """Raised when a cloud API call is rejected or does not settle."""


class StageError(DumpError):
    """Wraps the first failure of a workflow with the stage that raised it."""

    def __init__(self, stage, cause: BaseException):
        self.stage = stage
        self.cause = cause
        name = getattr(stage, "value", stage)
        super().__init__(f"Stage '{name}' failed: {cause}")
