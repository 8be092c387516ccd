"""
Tests unitaires du chargement de la configuration TOML.
"""
import pytest

from relay_proxy.config import loader
from relay_proxy.config.loader import get_config, load_config, load_settings, reload_config
from relay_proxy.core.exceptions import ConfigurationError

CONFIG = """
[server]
port = 4200

[providers.main]
base_url = "https://api.example.com/v1"
api_key = "${RELAY_TEST_KEY}"

[models.fast]
provider = "main"
model = "fast-upstream"

[routing.complexity]
enabled = true
simple = "fast"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def test_load_config_expands_env_vars(config_file, monkeypatch):
    monkeypatch.setenv("RELAY_TEST_KEY", "secret")
    config = load_config(str(config_file))
    assert config["providers"]["main"]["api_key"] == "secret"
    assert config["server"]["port"] == 4200


def test_unknown_env_var_is_left_untouched(config_file, monkeypatch):
    monkeypatch.delenv("RELAY_TEST_KEY", raising=False)
    config = load_config(str(config_file))
    assert config["providers"]["main"]["api_key"] == "${RELAY_TEST_KEY}"


def test_config_is_cached(config_file):
    first = load_config(str(config_file))
    config_file.write_text("[server]\nport = 1\n", encoding="utf-8")
    assert load_config(str(config_file)) is first
    assert get_config() is first

    reloaded = reload_config(str(config_file))
    assert reloaded["server"]["port"] == 1


def test_other_path_is_not_served_from_cache(tmp_path):
    first = tmp_path / "a.toml"
    second = tmp_path / "b.toml"
    first.write_text("[server]\nport = 1111\n", encoding="utf-8")
    second.write_text("[server]\nport = 2222\n", encoding="utf-8")

    assert load_settings(str(first)).server.port == 1111
    assert load_settings(str(second)).server.port == 2222
    assert get_config()["server"]["port"] == 2222
    assert load_config(str(first))["server"]["port"] == 1111


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(str(tmp_path / "absent.toml"))
    assert exc_info.value.code == "config_error"


def test_invalid_toml_raises(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[server\nport = ", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_env_var_selects_default_path(config_file, monkeypatch):
    monkeypatch.setenv("RELAY_PROXY_CONFIG", str(config_file))
    assert loader.default_config_path() == str(config_file)
    assert load_settings().server.port == 4200


def test_load_settings_without_file_uses_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "absent.toml"))
    assert settings.server.port == 4100
    assert settings.providers == {}


def test_load_settings_builds_dataclasses(config_file):
    settings = load_settings(str(config_file))
    assert settings.get_model("fast").model == "fast-upstream"
    assert settings.complexity.enabled is True
    assert settings.complexity.simple == "fast"
