import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .callbacks import PipelineCallback
from .config import StepConfig
from .decorators import stage_metadata
from .exceptions import MissingContextError, StepFailedError
from .types import StepResult, StepStatus

logger = logging.getLogger(__name__)


class PipelineStep(ABC):
    """Abstract base class for pipeline stages."""

    def __init__(self, name: Optional[str] = None) -> None:
        self._name = name or self.__class__.__name__
        self._required_context_keys: list[str] = []
        self._provided_context_keys: list[str] = []
        self._load_metadata()

    def _load_metadata(self) -> None:
        metadata = stage_metadata(getattr(self.__class__, "process", None))
        if metadata is not None:
            self._name = metadata.name
            self._required_context_keys = sorted(metadata.requires)
            self._provided_context_keys = sorted(metadata.provides)

    @property
    def name(self) -> str:
        return self._name

    @property
    def required_context_keys(self) -> list[str]:
        return self._required_context_keys

    @property
    def provided_context_keys(self) -> list[str]:
        return self._provided_context_keys

    def missing_context_keys(self, context: dict[str, Any]) -> list[str]:
        missing = [key for key in self.required_context_keys if key not in context]
        if missing:
            logger.warning(
                "Missing required keys",
                extra={"step": self.name, "missing": missing},
            )
        return missing

    @abstractmethod
    async def process(self, config: StepConfig, context: dict[str, Any]) -> StepResult:
        """Run the stage against the step configuration and the shared context."""
        pass


class Pipeline:
    """Runs stages strictly one after another; the first failure ends the run."""

    def __init__(
        self,
        steps: Optional[list[PipelineStep]] = None,
        callbacks: Optional[list[PipelineCallback]] = None,
    ) -> None:
        self.steps: list[PipelineStep] = list(steps or [])
        self.context: dict[str, Any] = {}
        self.callbacks: list[PipelineCallback] = list(callbacks or [])

    async def _run_step(self, step: PipelineStep, config: StepConfig) -> StepResult:
        for callback in self.callbacks:
            await callback.before_step(step.name)

        try:
            result = await step.process(config, self.context)
        except Exception as e:
            logger.debug("Stage raised", extra={"step": step.name}, exc_info=True)
            for callback in self.callbacks:
                await callback.on_error(step.name, e)
            raise

        for callback in self.callbacks:
            await callback.after_step(step.name, result)
        return result

    async def run(self, config: StepConfig, initial_context: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        self.context = dict(initial_context or {})
        for step in self.steps:
            missing = step.missing_context_keys(self.context)
            if missing:
                raise MissingContextError(step.name, missing)

            result = await self._run_step(step, config)

            if result.status == StepStatus.FAILED:
                raise StepFailedError(step.name, result.error)

            self.context.update(result.data)

        return self.context
