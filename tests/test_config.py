import pydantic
import pytest

from bruno_execute.config import DEFAULT_INSTALL_COMMAND, DEFAULT_RUN_OPTIONS, StepConfig
from bruno_execute.exceptions import ConfigurationError


def test_defaults():
    config = StepConfig()
    assert config.bruno_install_command == DEFAULT_INSTALL_COMMAND
    assert config.run_options == DEFAULT_RUN_OPTIONS
    assert config.fail_on_error is True
    assert config.sandbox_mode == "safe"
    assert config.env_vars == []
    assert config.delay == 0


def test_from_parameters_accepts_camel_case():
    config = StepConfig.from_parameters(
        {
            "brunoCollection": "api-tests",
            "failOnError": False,
            "jsonFilePath": "data.json",
            "reporterSkipHeaders": ["Authorization"],
            "iteration_count": 2,
            "unrelatedGeneralOption": "ignored",
        }
    )
    assert config.bruno_collection == "api-tests"
    assert config.fail_on_error is False
    assert config.json_file_path == "data.json"
    assert config.reporter_skip_headers == ["Authorization"]
    assert config.iteration_count == 2


@pytest.mark.parametrize(
    "parameters",
    [
        {"delay": -1},
        {"iterationCount": -5},
        {"sandboxMode": "unsafe"},
        {"envVars": "not-a-list"},
    ],
)
def test_from_parameters_rejects_invalid_values(parameters):
    with pytest.raises(ConfigurationError) as excinfo:
        StepConfig.from_parameters(parameters)
    assert "invalid step configuration" in str(excinfo.value)


def test_environment_layer(monkeypatch):
    monkeypatch.setenv("BRUNO_EXECUTE_BRUNO_COLLECTION", "from-env")
    monkeypatch.setenv("BRUNO_EXECUTE_ENV_VARS", '["A=1"]')
    monkeypatch.setenv("BRUNO_EXECUTE_BAIL", "true")

    config = StepConfig()
    assert config.bruno_collection == "from-env"
    assert config.env_vars == ["A=1"]
    assert config.bail is True


def test_parameters_override_environment(monkeypatch):
    monkeypatch.setenv("BRUNO_EXECUTE_BRUNO_COLLECTION", "from-env")
    config = StepConfig.from_parameters({"brunoCollection": "from-parameters"})
    assert config.bruno_collection == "from-parameters"


def test_config_is_immutable():
    config = StepConfig()
    with pytest.raises(pydantic.ValidationError):
        config.bruno_collection = "changed"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("BrunoEnvironment", "ci"),
        ("bruno_environment", "ci"),
        ("JSONFilePath", "data.json"),
        ("ReporterHtml", ""),
    ],
)
def test_lookup(name, expected):
    config = StepConfig(bruno_environment="ci", json_file_path="data.json")
    assert config.lookup(name) == expected


def test_lookup_unknown_option():
    with pytest.raises(KeyError):
        StepConfig().lookup("InvalidField")
