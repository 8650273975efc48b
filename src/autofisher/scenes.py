# src/autofisher/scenes.py
from typing import Iterable

from .config import DEFAULT_EXCLUDED_SCENES


def is_game_scene(scene_name: str, excluded: Iterable[str] = DEFAULT_EXCLUDED_SCENES) -> bool:
    """選單、載入、開機畫面不是可自動化的遊戲場景"""
    if not scene_name:
        return False
    return scene_name not in set(excluded)
