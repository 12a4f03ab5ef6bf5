import logging
from typing import Optional

from .callbacks import PipelineCallback, StepReportCallback, TimingCallback
from .config import StepConfig
from .exceptions import BrunoExecuteError, StepFatalError
from .pipeline import Pipeline
from .runner import CommandRunner, ExecUtils
from .steps import BuildFlagsStep, ExecuteStep, InstallStep, LogVersionsStep, ResolveTemplateStep
from .types import ExecutionResult, StepReport

logger = logging.getLogger(__name__)


def build_pipeline(utils: ExecUtils, callbacks: Optional[list[PipelineCallback]] = None) -> Pipeline:
    return Pipeline(
        steps=[
            LogVersionsStep(utils),
            InstallStep(utils),
            ResolveTemplateStep(),
            BuildFlagsStep(),
            ExecuteStep(utils),
        ],
        callbacks=callbacks,
    )


async def run_bruno_execute(
    config: StepConfig,
    utils: ExecUtils,
    callbacks: Optional[list[PipelineCallback]] = None,
) -> ExecutionResult:
    """Install Bruno and run the configured collection.

    Raises the first stage error unchanged; a failed test run only raises
    when ``fail_on_error`` is set.
    """
    context = await build_pipeline(utils, callbacks).run(config)
    return context["result"]


async def bruno_execute(
    config: StepConfig,
    utils: Optional[ExecUtils] = None,
    callbacks: Optional[list[PipelineCallback]] = None,
) -> StepReport:
    """Step entry point: runs Bruno and fills the step report for the pipeline.

    Any failure is logged and turned into :class:`StepFatalError`, which
    carries the report.
    """
    utils = utils or CommandRunner()
    report = StepReport()
    report_callback = StepReportCallback(report)
    all_callbacks: list[PipelineCallback] = [TimingCallback(), report_callback, *(callbacks or [])]

    report.fields["bruno"] = False
    try:
        await run_bruno_execute(config, utils, all_callbacks)
    except BrunoExecuteError as e:
        report.category = e.category
        logger.error("step execution failed", extra={"category": e.category.value, "error": str(e)})
        raise StepFatalError(report, e) from e
    report.fields["bruno"] = True
    return report
