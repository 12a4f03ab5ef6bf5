"""The stages of a bruno execute run.

Each stage is a :class:`PipelineStep`; data flows between them through the
pipeline context (``run_options`` then ``command`` then ``result``).
"""

import logging
import os
from typing import Any

from .config import StepConfig
from .decorators import stage
from .exceptions import CommandError, ConfigurationError, ExecutionError, InfrastructureError
from .options import build_bruno_options, resolve_run_options
from .pipeline import PipelineStep
from .runner import ExecUtils
from .types import ExecutionResult, StepResult, StepStatus

logger = logging.getLogger(__name__)

NPM_PREFIX = "~/.npm-global"
BRUNO_BINARY = ".npm-global/bin/bru"
EXECUTION_FAILED_MESSAGE = "The execution of the Bruno tests failed, see the log for details."


class LogVersionsStep(PipelineStep):
    """Logs the node and npm versions of the build image."""

    def __init__(self, utils: ExecUtils) -> None:
        super().__init__()
        self.utils = utils

    @stage(name="log_versions")
    async def process(self, config: StepConfig, context: dict[str, Any]) -> StepResult:
        for tool in ("node", "npm"):
            try:
                await self.utils.run_executable(tool, "--version")
            except CommandError as e:
                raise InfrastructureError(f"error logging {tool} version", e) from e
        return StepResult(status=StepStatus.COMPLETED, data={})


class InstallStep(PipelineStep):
    """Installs the Bruno CLI into the user's npm prefix."""

    def __init__(self, utils: ExecUtils) -> None:
        super().__init__()
        self.utils = utils

    @stage(name="install")
    async def process(self, config: StepConfig, context: dict[str, Any]) -> StepResult:
        tokens = config.bruno_install_command.split(" ")
        tokens.append(f"--prefix={NPM_PREFIX}")
        try:
            await self.utils.run_executable(tokens[0], *tokens[1:])
        except CommandError as e:
            raise ConfigurationError("error installing Bruno CLI", e) from e
        return StepResult(status=StepStatus.COMPLETED, data={})


class ResolveTemplateStep(PipelineStep):
    @stage(name="resolve_template", provides=["run_options"])
    async def process(self, config: StepConfig, context: dict[str, Any]) -> StepResult:
        return StepResult(status=StepStatus.COMPLETED, data={"run_options": resolve_run_options(config)})


class BuildFlagsStep(PipelineStep):
    @stage(name="build_flags", requires=["run_options"], provides=["command"])
    async def process(self, config: StepConfig, context: dict[str, Any]) -> StepResult:
        command = tuple(context["run_options"]) + tuple(build_bruno_options(config))
        return StepResult(status=StepStatus.COMPLETED, data={"command": command})


class ExecuteStep(PipelineStep):
    """Runs ``bru`` and applies the failOnError policy."""

    def __init__(self, utils: ExecUtils) -> None:
        super().__init__()
        self.utils = utils

    def bruno_path(self) -> str:
        return os.path.join(self.utils.getenv("HOME") or os.sep, BRUNO_BINARY)

    @stage(name="execute", requires=["command"], provides=["result"])
    async def process(self, config: StepConfig, context: dict[str, Any]) -> StepResult:
        try:
            await self.utils.run_executable(self.bruno_path(), *context["command"])
        except CommandError as e:
            if not config.fail_on_error:
                logger.warning(
                    "Bruno tests failed, but failOnError is set to false",
                    extra={"error": str(e), "category": e.category.value},
                )
                return StepResult(
                    status=StepStatus.COMPLETED,
                    data={"result": ExecutionResult(success=True, error=str(e))},
                    error=str(e),
                )
            raise ExecutionError(EXECUTION_FAILED_MESSAGE, e, e.category) from e
        return StepResult(status=StepStatus.COMPLETED, data={"result": ExecutionResult(success=True)})
