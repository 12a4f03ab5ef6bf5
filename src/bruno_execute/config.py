"""Step configuration.

Values are layered: field defaults, then a ``.env`` file, then ``BRUNO_EXECUTE_*``
environment variables, then explicit parameters.  Pipeline parameters use
camelCase keys (``brunoCollection``); both spellings are accepted.
"""

from typing import Any, Literal, Mapping

from pydantic import Field, ValidationError
from pydantic.alias_generators import to_snake
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_INSTALL_COMMAND = "npm install @usebruno/cli --global --quiet"

DEFAULT_RUN_OPTIONS = [
    "run",
    "{{.BrunoCollection}}",
    "--reporter-junit",
    "target/bruno/TEST-{{.CollectionDisplayName}}.xml",
    "--reporter-html",
    "target/bruno/TEST-{{.CollectionDisplayName}}.html",
]


class StepConfig(BaseSettings):
    """Options of a single bruno execute invocation."""

    bruno_collection: str = ""
    bruno_install_command: str = DEFAULT_INSTALL_COMMAND
    run_options: list[str] = Field(default_factory=lambda: list(DEFAULT_RUN_OPTIONS))
    fail_on_error: bool = True

    # Environment
    bruno_environment: str = ""
    bruno_global_env: str = ""
    env_file: str = ""
    env_vars: list[str] = Field(default_factory=list)
    sandbox_mode: Literal["", "safe", "developer"] = "safe"

    # Execution
    recursive: bool = False
    bail: bool = False
    parallel: bool = False
    tests_only: bool = False
    insecure: bool = False
    delay: int = Field(default=0, ge=0)

    # Data-driven runs
    csv_file_path: str = ""
    json_file_path: str = ""
    iteration_count: int = Field(default=0, ge=0)

    # Tag filtering
    tags: str = ""
    exclude_tags: str = ""

    # Reporters
    reporter_json: str = ""
    reporter_junit: str = ""
    reporter_html: str = ""
    reporter_skip_all_headers: bool = False
    reporter_skip_headers: list[str] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="BRUNO_EXECUTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> "StepConfig":
        """Build a config from pipeline parameters, camelCase or snake_case."""
        try:
            return cls(**{to_snake(key): value for key, value in parameters.items()})
        except ValidationError as e:
            raise ConfigurationError("invalid step configuration", e) from e

    def lookup(self, name: str) -> Any:
        """Return the option called ``name`` (``BrunoEnvironment`` or ``bruno_environment``)."""
        key = to_snake(name)
        if key not in type(self).model_fields:
            raise KeyError(name)
        return getattr(self, key)
