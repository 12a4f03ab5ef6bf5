# main.py
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from bruno_execute.config import StepConfig
from bruno_execute.exceptions import BrunoExecuteError, ConfigurationError, StepFatalError
from bruno_execute.execute import bruno_execute

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bruno-execute", description="Install the Bruno CLI and run an API test collection")
    parser.add_argument("--config", type=Path, help="JSON file with step parameters (camelCase or snake_case keys)")
    parser.add_argument("--collection", help="Bruno collection to run, overrides the parameters file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> StepConfig:
    parameters: dict[str, Any] = {}
    if args.config is not None:
        try:
            parameters = json.loads(args.config.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"could not read step parameters from {args.config}", e) from e
        if not isinstance(parameters, dict):
            raise ConfigurationError(
                f"step parameters in {args.config} must be a JSON object, got {type(parameters).__name__}"
            )
    if args.collection:
        parameters["brunoCollection"] = args.collection
    return StepConfig.from_parameters(parameters)


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    try:
        config = load_config(args)
        report = await bruno_execute(config)
    except StepFatalError:
        return 1
    except BrunoExecuteError as e:
        logger.error("step execution failed: %s", e)
        return 1
    logger.info("Step finished", extra={"fields": report.fields})
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
