from typing import Optional, Sequence

from .types import ErrorCategory, StepReport


class BrunoExecuteError(Exception):
    """Base exception class for bruno-execute errors."""

    category = ErrorCategory.UNDEFINED

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        category: Optional[ErrorCategory] = None,
    ) -> None:
        self.message = message
        self.cause = cause
        if category is not None:
            self.category = category
        super().__init__(f"{message}: {cause}" if cause is not None else message)


class InfrastructureError(BrunoExecuteError):
    """Raised when the node/npm toolchain is not usable."""

    category = ErrorCategory.INFRASTRUCTURE


class ConfigurationError(BrunoExecuteError):
    """Raised for install failures, invalid parameters and broken command templates."""

    category = ErrorCategory.CONFIGURATION


class ExecutionError(BrunoExecuteError):
    """Raised when the Bruno test run fails and failOnError is set."""


class CommandError(BrunoExecuteError):
    """Raised when an external program exits non-zero or cannot be launched."""

    def __init__(
        self,
        executable: str,
        args: Sequence[str] = (),
        exit_code: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.UNDEFINED,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.executable = executable
        self.arguments = list(args)
        self.exit_code = exit_code
        if exit_code is not None:
            message = f"running command '{executable}' failed with exit code {exit_code}"
        else:
            message = f"running command '{executable}' failed"
        super().__init__(message, cause, category)


class MissingContextError(BrunoExecuteError):
    """Raised when required context keys are missing."""

    def __init__(self, step_name: str, missing_keys: Optional[list[str]] = None) -> None:
        msg = f"Missing required keys for step '{step_name}'"
        if missing_keys:
            msg += f": {', '.join(missing_keys)}"
        super().__init__(msg)


class StepFailedError(BrunoExecuteError):
    """Raised when a step explicitly returns a failure."""

    def __init__(self, step_name: str, error: Optional[str] = None) -> None:
        msg = f"Step '{step_name}' failed"
        if error:
            msg += f": {error}"
        super().__init__(msg)


class StepFatalError(BrunoExecuteError):
    """Fatal failure signal for the surrounding pipeline."""

    def __init__(self, report: StepReport, cause: BrunoExecuteError) -> None:
        self.report = report
        super().__init__("step execution failed", cause, cause.category)
