import logging
import sys

import pytest

from bruno_execute.config import StepConfig
from bruno_execute.exceptions import CommandError
from bruno_execute.runner import CommandRunner, categorize_output
from bruno_execute.steps import ExecuteStep
from bruno_execute.types import ErrorCategory, StepStatus


@pytest.mark.parametrize(
    "lines, expected",
    [
        (["all good"], ErrorCategory.UNDEFINED),
        (["error: collection not found"], ErrorCategory.CONFIGURATION),
        (["ENOENT: no such file or directory, open 'env.json'"], ErrorCategory.CONFIGURATION),
        (["   AssertionError: expected 200 to equal 404"], ErrorCategory.TEST),
        (["1 test failed"], ErrorCategory.TEST),
        (["1 test failed", "collection not found"], ErrorCategory.TEST),
    ],
)
def test_categorize_output(lines, expected):
    assert categorize_output(lines) == expected


def test_categorize_output_custom_mapping():
    mapping = {ErrorCategory.INFRASTRUCTURE: ["ECONNREFUSED"]}
    assert categorize_output(["connect ECONNREFUSED 127.0.0.1:80"], mapping) == ErrorCategory.INFRASTRUCTURE


@pytest.mark.asyncio
async def test_run_executable_forwards_output(caplog):
    runner = CommandRunner()
    with caplog.at_level(logging.INFO, logger="bruno_execute.runner"):
        await runner.run_executable(
            sys.executable, "-c", "import sys; print('hello'); print('oops', file=sys.stderr)"
        )

    records = {(record.levelno, record.getMessage()) for record in caplog.records}
    assert (logging.INFO, "hello") in records
    assert (logging.WARNING, "oops") in records


@pytest.mark.asyncio
async def test_run_executable_non_zero_exit():
    runner = CommandRunner()
    with pytest.raises(CommandError) as excinfo:
        await runner.run_executable(
            sys.executable, "-c", "print('AssertionError: status mismatch'); raise SystemExit(3)"
        )

    assert excinfo.value.exit_code == 3
    assert excinfo.value.category == ErrorCategory.TEST
    assert "exit code 3" in str(excinfo.value)


@pytest.mark.asyncio
async def test_run_executable_missing_program(tmp_path):
    runner = CommandRunner()
    with pytest.raises(CommandError) as excinfo:
        await runner.run_executable(str(tmp_path / "does-not-exist"))

    assert excinfo.value.exit_code is None
    assert isinstance(excinfo.value.cause, OSError)


def test_getenv(monkeypatch):
    monkeypatch.setenv("BRUNO_EXECUTE_TEST_VAR", "value")
    monkeypatch.delenv("BRUNO_EXECUTE_UNSET_VAR", raising=False)
    runner = CommandRunner()
    assert runner.getenv("BRUNO_EXECUTE_TEST_VAR") == "value"
    assert runner.getenv("BRUNO_EXECUTE_UNSET_VAR") == ""


def test_getenv_with_explicit_environment():
    runner = CommandRunner(env={"HOME": "/home/node"})
    assert runner.getenv("HOME") == "/home/node"
    assert runner.getenv("PATH") == ""


# ===== Long output lines =====


@pytest.mark.asyncio
async def test_run_executable_long_line(caplog):
    runner = CommandRunner()
    with caplog.at_level(logging.INFO, logger="bruno_execute.runner"):
        await runner.run_executable(sys.executable, "-c", "print('x' * 100000); print('done')")

    messages = [record.getMessage() for record in caplog.records]
    assert "x" * 100000 in messages
    assert "done" in messages


@pytest.mark.asyncio
async def test_run_executable_long_line_then_failure():
    runner = CommandRunner()
    with pytest.raises(CommandError) as excinfo:
        await runner.run_executable(sys.executable, "-c", "print('x' * 100000); raise SystemExit(1)")

    assert excinfo.value.exit_code == 1


@pytest.mark.asyncio
async def test_long_bruno_output_respects_fail_on_error(tmp_path):
    bru = tmp_path / ".npm-global" / "bin" / "bru"
    bru.parent.mkdir(parents=True)
    bru.write_text(f"#!{sys.executable}\nprint('{{' + 'x' * 100000 + '}}')\nraise SystemExit(1)\n")
    bru.chmod(0o755)
    step = ExecuteStep(CommandRunner(env={"HOME": str(tmp_path)}))

    result = await step.process(StepConfig(fail_on_error=False), {"command": ("run", "api-tests")})

    assert result.status == StepStatus.COMPLETED
    assert result.data["result"].success
    assert "exit code 1" in result.data["result"].error
