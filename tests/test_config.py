# tests/test_config.py
import pytest

from src.autofisher.config import (
    AutoFisherConfig,
    apply_env_overrides,
    load_config,
    parse_config,
)
from src.autofisher.run_bot import main
from src.autofisher.scenes import is_game_scene


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ("AUTOFISHER_ENABLED", "AUTOFISHER_REACTION_TIME_SEC", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    return str(tmp_path / "missing.env")


def test_defaults():
    config = AutoFisherConfig()
    assert config.enabled is True
    assert config.reaction_time_sec == 0.1
    assert config.bite_poll_interval_sec == 0.05
    assert "MainMenu" in config.excluded_scenes


def test_parse_nested_section():
    config = parse_config({
        "autofisher": {
            "enabled": "false",
            "reaction_time_sec": 0.2,
            "excluded_scenes": ["Title"],
            "log_level": "debug",
        }
    })
    assert config.enabled is False
    assert config.reaction_time_sec == 0.2
    assert config.excluded_scenes == ("Title",)
    assert config.log_level == "DEBUG"


def test_parse_rejects_invalid_values():
    with pytest.raises(ValueError):
        parse_config({"reaction_time_sec": 0})
    with pytest.raises(ValueError):
        parse_config({"log_level": "LOUD"})
    with pytest.raises(ValueError):
        parse_config({"enabled": "maybe"})
    with pytest.raises(ValueError):
        parse_config({"excluded_scenes": "MainMenu"})


def test_load_missing_file_uses_defaults(tmp_path):
    assert load_config(tmp_path / "nope.yaml") == AutoFisherConfig()


def test_load_yaml(tmp_path):
    path = tmp_path / "autofisher.yaml"
    path.write_text(
        "autofisher:\n"
        "  enabled: false\n"
        "  bite_poll_interval_sec: 0.02\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.enabled is False
    assert config.bite_poll_interval_sec == 0.02
    assert config.reaction_time_sec == 0.1


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_env_overrides(monkeypatch, clean_env):
    monkeypatch.setenv("AUTOFISHER_ENABLED", "0")
    monkeypatch.setenv("AUTOFISHER_REACTION_TIME_SEC", "0.25")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    config = apply_env_overrides(AutoFisherConfig(excluded_scenes=("Title",)), clean_env)
    assert config.enabled is False
    assert config.reaction_time_sec == 0.25
    assert config.log_level == "WARNING"
    assert config.excluded_scenes == ("Title",)


def test_no_env_keeps_config(clean_env):
    config = AutoFisherConfig(reaction_time_sec=0.3)
    assert apply_env_overrides(config, clean_env) is config


def test_is_game_scene():
    assert is_game_scene("Island") is True
    assert is_game_scene("MainMenu") is False
    assert is_game_scene("") is False
    assert is_game_scene("Title", excluded=["Title"]) is False


def test_main_reports_bad_config(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("autofisher:\n  reaction_time_sec: -1\n", encoding="utf-8")

    assert main(["--config", str(path)]) == 1
    assert "配置錯誤" in capsys.readouterr().err
