import pytest

from tsdb_poller.config.context import ModuleConfig, PlatformConfig


def test_module_config_get_and_contains():
    config = ModuleConfig({"url": "http://x"})
    assert config.get("url") == "http://x"
    assert config.get("missing", "d") == "d"
    assert "url" in config
    assert "missing" not in config


def test_get_int():
    config = ModuleConfig({"n": "12", "m": 3, "empty": ""})
    assert config.get_int("n") == 12
    assert config.get_int("m") == 3
    assert config.get_int("empty", 7) == 7
    assert config.get_int("missing", 9) == 9


def test_get_int_rejects_garbage():
    with pytest.raises(ValueError):
        ModuleConfig({"n": "many"}).get_int("n")


def test_get_bool():
    config = ModuleConfig({"a": True, "b": "false", "c": "yes", "d": "0"})
    assert config.get_bool("a") is True
    assert config.get_bool("b") is False
    assert config.get_bool("c") is True
    assert config.get_bool("d") is False
    assert config.get_bool("missing", True) is True


def test_platform_config_overrides_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    config = PlatformConfig(overrides={"LOG_LEVEL": "DEBUG"})
    assert config.get("LOG_LEVEL") == "DEBUG"
    assert config.get("NOT_SET_ANYWHERE", "x") == "x"
