import logging

import pytest

from shape_predictor.config.settings import LoaderSettings
from shape_predictor.utils import config_loader
from shape_predictor.utils.config_loader import Config, ConfigSection, get_config
from shape_predictor.utils.exceptions import ConfigurationError
from shape_predictor.utils.logging_config import get_logger

CONFIG_TEXT = """
models:
  dlib_predictor: "data/sp68.dat"
  cache: "data/sp68.bin"
cache:
  enabled: false
  refresh: false
logging:
  level: "DEBUG"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_TEXT, encoding="utf-8")
    return path


def test_default_config_loads():
    config = get_config()
    assert config.get("cache.enabled") is True
    assert isinstance(config.logging, ConfigSection)
    assert config.logging.console.enabled is True


def test_dotted_get_and_attribute_access(config_file):
    config = Config(config_file)

    assert config.get("models.cache") == "data/sp68.bin"
    assert config.models.dlib_predictor == "data/sp68.dat"
    assert config.get("models.missing", "fallback") == "fallback"
    with pytest.raises(AttributeError):
        config.nonexistent


def test_env_var_overrides_default_path(config_file, monkeypatch):
    monkeypatch.setenv(config_loader.CONFIG_ENV_VAR, str(config_file))
    assert Config().config_path == config_file


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("models: [unclosed", encoding="utf-8")
    with pytest.raises(ValueError):
        Config(path)


def test_loader_settings_from_config(config_file):
    settings = LoaderSettings.from_config(Config(config_file))

    assert settings.dlib_model_path.name == "sp68.dat"
    assert settings.cache_path.name == "sp68.bin"
    assert settings.use_cache is False


def test_loader_settings_validation():
    with pytest.raises(ConfigurationError):
        LoaderSettings()
    with pytest.raises(ConfigurationError):
        LoaderSettings(dlib_model_path="a.dat", use_cache=True)
    with pytest.raises(ConfigurationError):
        LoaderSettings(cache_path="a.bin", refresh_cache=True)
    with pytest.raises(ConfigurationError):
        LoaderSettings(cache_path="a.bin", use_cache=False)


def test_get_logger_configures_once():
    logger = get_logger("shape_predictor.tests.logging")
    handlers = list(logger.handlers)

    assert get_logger("shape_predictor.tests.logging") is logger
    assert logger.handlers == handlers
    assert logger.level == logging.INFO
