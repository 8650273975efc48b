# src/autofisher/automation/ports.py
"""
外部協作者介面

核心不直接存取遊戲引擎的全域單例，而是透過 EngineRegistry 取得
控制器與玩家；測試可用假物件替換，模擬器則提供實際的 Qt 實現。
"""

from typing import Any, Optional, Protocol, runtime_checkable

from ..core.event_bus import EventBus
from .models import LineState, MinigamePhase


class FishingControllerPort(Protocol):
    """釣魚小遊戲控制器"""

    # GAME_STATE_CHANGE: data["phase"] / FISHING_CRIT: data["crit"]
    events: EventBus

    @property
    def game_state(self) -> MinigamePhase: ...

    @property
    def line_state(self) -> LineState: ...

    def set_hooked(self) -> None:
        """設定上鉤旗標，控制器會因此離開 Pregame"""
        ...


@runtime_checkable
class Reelable(Protocol):
    """可收線的玩家狀態（只有在釣魚狀態下才成立）"""

    def reel(self) -> None: ...


class PlayerPort(Protocol):
    current_state: Any


class EngineRegistry(Protocol):
    """引擎物件登記處；物件尚未存在時返回 None"""

    def get_controller(self) -> Optional[FishingControllerPort]: ...

    def get_player(self) -> Optional[PlayerPort]: ...
