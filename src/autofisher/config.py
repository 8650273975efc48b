# src/autofisher/config.py
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "configs/autofisher.yaml"
DEFAULT_EXCLUDED_SCENES = ("MainMenu", "LoadingScreen", "Boot", "Intro")

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AutoFisherConfig:
    enabled: bool = True
    reaction_time_sec: float = 0.1
    bite_poll_interval_sec: float = 0.05
    controller_poll_interval_sec: float = 0.1
    excluded_scenes: Tuple[str, ...] = DEFAULT_EXCLUDED_SCENES
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("reaction_time_sec", "bite_poll_interval_sec", "controller_poll_interval_sec"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        level = self.log_level.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log_level '{self.log_level}'")
        object.__setattr__(self, "log_level", level)
        object.__setattr__(self, "excluded_scenes", tuple(self.excluded_scenes))


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for '{key}': {value!r}")


def parse_config(data: Optional[Dict[str, Any]]) -> AutoFisherConfig:
    """從字典建立配置；可接受帶有 autofisher: 區段的完整文件"""
    data = dict(data or {})
    if isinstance(data.get("autofisher"), dict):
        data = data["autofisher"]

    kwargs: Dict[str, Any] = {}
    if "enabled" in data:
        kwargs["enabled"] = _parse_bool(data["enabled"], "enabled")
    for key in ("reaction_time_sec", "bite_poll_interval_sec", "controller_poll_interval_sec"):
        if key in data:
            kwargs[key] = float(data[key])
    if "excluded_scenes" in data:
        scenes = data["excluded_scenes"] or []
        if not isinstance(scenes, (list, tuple)):
            raise ValueError("excluded_scenes must be a list")
        kwargs["excluded_scenes"] = tuple(str(s) for s in scenes)
    if "log_level" in data:
        kwargs["log_level"] = str(data["log_level"])
    return AutoFisherConfig(**kwargs)


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> AutoFisherConfig:
    """讀取 YAML 配置；檔案不存在時使用預設值"""
    path = Path(path)
    if not path.exists():
        logging.getLogger(__name__).info(f"配置檔不存在，使用預設值: {path}")
        return AutoFisherConfig()

    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return parse_config(data)


def apply_env_overrides(config: AutoFisherConfig, dotenv_path: Optional[str] = None) -> AutoFisherConfig:
    """以環境變數（含 .env）覆蓋配置"""
    load_dotenv(dotenv_path)

    overrides: Dict[str, Any] = {}
    if os.getenv("AUTOFISHER_ENABLED") is not None:
        overrides["enabled"] = os.environ["AUTOFISHER_ENABLED"]
    if os.getenv("AUTOFISHER_REACTION_TIME_SEC") is not None:
        overrides["reaction_time_sec"] = os.environ["AUTOFISHER_REACTION_TIME_SEC"]
    if os.getenv("LOG_LEVEL") is not None:
        overrides["log_level"] = os.environ["LOG_LEVEL"]

    if not overrides:
        return config

    merged = {
        "enabled": config.enabled,
        "reaction_time_sec": config.reaction_time_sec,
        "bite_poll_interval_sec": config.bite_poll_interval_sec,
        "controller_poll_interval_sec": config.controller_poll_interval_sec,
        "excluded_scenes": list(config.excluded_scenes),
        "log_level": config.log_level,
    }
    merged.update(overrides)
    return parse_config(merged)
