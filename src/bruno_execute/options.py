import logging
import os
from typing import Callable, Optional

from .config import StepConfig
from .exceptions import ConfigurationError
from .template import Template, TemplateContext, TemplateExecutionError, TemplateSyntaxError

logger = logging.getLogger(__name__)


def define_collection_display_name(collection: str) -> str:
    """Turn a collection path into a name usable in report file names.

    ``tests/integration/api-tests`` becomes ``tests_integration_api-tests``; a
    leading hidden directory loses its dot (``.tests/api-tests`` becomes
    ``tests_api-tests``).
    """
    parts = collection.replace(os.sep, "_").split(".")
    if parts[0] == "" and len(parts) >= 2:
        return parts[1]
    return parts[0]


def resolve_run_options(config: StepConfig, getenv: Optional[Callable[[str], str]] = None) -> list[str]:
    """Render every ``run_options`` template, keeping their order."""
    extra = {"getenv": getenv} if getenv is not None else {}
    context = TemplateContext(
        collection_display_name=define_collection_display_name(config.bruno_collection),
        bruno_collection=config.bruno_collection,
        config=config,
        **extra,
    )

    resolved = []
    for run_option in config.run_options:
        try:
            template = Template(run_option)
        except TemplateSyntaxError as e:
            raise ConfigurationError("could not parse Bruno command template", e) from e
        try:
            resolved.append(template.render(context))
        except TemplateExecutionError as e:
            raise ConfigurationError("error on executing template", e) from e
    logger.debug("Resolved run options: %s", resolved)
    return resolved


def _mentions(run_options: list[str], flag: str) -> bool:
    return any(flag in option for option in run_options)


def build_bruno_options(config: StepConfig) -> list[str]:
    """Translate the structured step options into ``bru run`` flags."""
    options: list[str] = []

    # Environment
    if config.bruno_environment:
        options += ["--env", config.bruno_environment]
    if config.bruno_global_env:
        options += ["--global-env", config.bruno_global_env]
    if config.env_file:
        options += ["--env-file", config.env_file]
    for env_var in config.env_vars:
        options += ["--env-var", env_var]

    if config.sandbox_mode:
        options += ["--sandbox", config.sandbox_mode]

    # Execution
    if config.recursive:
        options.append("-r")
    if config.bail:
        options.append("--bail")
    if config.parallel:
        options.append("--parallel")
    if config.tests_only:
        options.append("--tests-only")
    if config.insecure:
        options.append("--insecure")
    if config.delay > 0:
        options += ["--delay", str(config.delay)]

    # Data-driven runs
    if config.csv_file_path:
        options += ["--csv-file-path", config.csv_file_path]
    if config.json_file_path:
        options += ["--json-file-path", config.json_file_path]
    if config.iteration_count > 0:
        options += ["--iteration-count", str(config.iteration_count)]

    # Tag filtering
    if config.tags:
        options += ["--tags", config.tags]
    if config.exclude_tags:
        options += ["--exclude-tags", config.exclude_tags]

    # Reporters; junit and html may already come from the templates
    if config.reporter_json:
        options += ["--reporter-json", config.reporter_json]
    if config.reporter_junit and not _mentions(config.run_options, "--reporter-junit"):
        options += ["--reporter-junit", config.reporter_junit]
    if config.reporter_html and not _mentions(config.run_options, "--reporter-html"):
        options += ["--reporter-html", config.reporter_html]
    if config.reporter_skip_all_headers:
        options.append("--reporter-skip-all-headers")
    for header in config.reporter_skip_headers:
        options += ["--reporter-skip-headers", header]

    return options
