from .callbacks import PipelineCallback, StepReportCallback, TimingCallback
from .config import StepConfig
from .decorators import stage
from .exceptions import (
    BrunoExecuteError,
    CommandError,
    ConfigurationError,
    ExecutionError,
    InfrastructureError,
    StepFatalError,
)
from .execute import bruno_execute, run_bruno_execute
from .options import build_bruno_options, define_collection_display_name, resolve_run_options
from .pipeline import Pipeline, PipelineStep
from .runner import CommandRunner, ExecUtils
from .types import ErrorCategory, ExecutionResult, StepReport, StepResult, StepStatus

__all__ = [
    "BrunoExecuteError",
    "CommandError",
    "CommandRunner",
    "ConfigurationError",
    "ErrorCategory",
    "ExecUtils",
    "ExecutionError",
    "ExecutionResult",
    "InfrastructureError",
    "Pipeline",
    "PipelineCallback",
    "PipelineStep",
    "StepConfig",
    "StepFatalError",
    "StepReport",
    "StepReportCallback",
    "StepResult",
    "StepStatus",
    "TimingCallback",
    "bruno_execute",
    "build_bruno_options",
    "define_collection_display_name",
    "resolve_run_options",
    "run_bruno_execute",
    "stage",
]
