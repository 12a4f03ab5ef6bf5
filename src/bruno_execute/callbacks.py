import time
import logging
from typing import Dict, Optional
from bruno_execute.types import StepReport, StepResult, StepStatus

logger = logging.getLogger(__name__)

class PipelineCallback:
    """Interface for pipeline callbacks."""
    async def before_step(self, step_name: str) -> None:
        pass

    async def after_step(self, step_name: str, result: StepResult) -> None:
        pass

    async def on_error(self, step_name: str, error: Exception) -> None:
        pass

class TimingCallback(PipelineCallback):
    """Callback that tracks execution time for pipeline stages."""
    def __init__(self) -> None:
        self.step_timings: Dict[str, float] = {}
        self._current_start: float = 0.0

    async def before_step(self, step_name: str) -> None:
        self._current_start = time.monotonic()
        logger.debug("Starting stage", extra={"step": step_name})

    async def after_step(self, step_name: str, result: StepResult) -> None:
        duration = time.monotonic() - self._current_start
        self.step_timings[step_name] = duration
        logger.info("Finished stage", extra={"step": step_name, "duration": duration, "status": result.status.value})

    async def on_error(self, step_name: str, error: Exception) -> None:
        self.step_timings[step_name] = time.monotonic() - self._current_start

class StepReportCallback(PipelineCallback):
    """Records the status of every stage into a StepReport."""
    def __init__(self, report: Optional[StepReport] = None) -> None:
        self.report = report or StepReport()

    async def before_step(self, step_name: str) -> None:
        self.report.stages[step_name] = StepStatus.IN_PROGRESS

    async def after_step(self, step_name: str, result: StepResult) -> None:
        self.report.stages[step_name] = result.status

    async def on_error(self, step_name: str, error: Exception) -> None:
        self.report.stages[step_name] = StepStatus.FAILED
