# src/autofisher/simulator.py
"""
模擬遊戲引擎 - 在沒有真實遊戲時驅動自動化

提供：
1. SimulatedFishingController: 以 QTimer 推進小遊戲階段並發布事件
   SETUP → PREGAME →（隨機延遲後咬鉤）→ ACTIVE（上鉤後）→ WIN/LOSE → INACTIVE
   咬鉤後未在時限內上鉤：CANCELED → INACTIVE
2. SimulatedPlayer / SimulatedFishingState: 提供 reel()
3. SimulatedEngine: EngineRegistry 實現（控制器需 spawn 後才存在）
4. SceneManager: 場景載入信號

時間配置（秒，可在實例上覆蓋以加快測試）：
- SETUP_DURATION: 準備期
- BITE_DELAY_RANGE: 進入 Pregame 到咬鉤的隨機延遲
- BITE_WINDOW: 咬鉤後可上鉤的時間
- CRIT_INTERVAL: ACTIVE 期間 crit 提示間隔
- CRIT_WINDOW: Good crit 之後收線有效的時間
- ACTIVE_TIMEOUT: ACTIVE 最長時間，超時判負
"""

import logging
import random
import time
from typing import Callable, Dict, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .automation.models import CritSignal, LineState, MinigamePhase
from .core.event_bus import EventBus, EventType

logger = logging.getLogger(__name__)


class SimulatedFishingController(QObject):

    # 信號：一輪釣魚結束 (outcome)
    cycle_finished = Signal(str)

    SETUP_DURATION = 0.3
    BITE_DELAY_RANGE = (0.5, 2.0)
    BITE_WINDOW = 1.0
    CRIT_INTERVAL = 0.4
    CRIT_WINDOW = 0.3
    ACTIVE_TIMEOUT = 8.0
    RESULT_DURATION = 0.3

    REELS_TO_WIN = 3
    MAX_TENSION = 2  # 錯誤收線次數上限

    CRIT_WEIGHTS = {
        CritSignal.GOOD: 0.5,
        CritSignal.BAD: 0.3,
        CritSignal.MISS: 0.2,
    }

    def __init__(self, seed: Optional[int] = None, parent=None):
        super().__init__(parent)
        self.events = EventBus()
        self._rng = random.Random(seed)

        self._game_state = MinigamePhase.INACTIVE
        self._line_state = LineState.IDLE
        self._progress = 0
        self._tension = 0
        self._last_good_at: Optional[float] = None
        self.casts_completed = 0
        self.hook_count = 0

        self._timers: Dict[str, QTimer] = {}

    @property
    def game_state(self) -> MinigamePhase:
        return self._game_state

    @property
    def line_state(self) -> LineState:
        return self._line_state

    def start_cast(self) -> bool:
        """拋竿，開始新一輪（只能在 INACTIVE 時）"""
        if self._game_state != MinigamePhase.INACTIVE:
            logger.warning(f"⚠️ 目前階段 {self._game_state.value}，無法拋竿")
            return False

        self._progress = 0
        self._tension = 0
        self._last_good_at = None
        self._set_phase(MinigamePhase.SETUP)
        self._start_timer("setup", self.SETUP_DURATION, self._enter_pregame)
        return True

    def set_hooked(self) -> None:
        if self._game_state != MinigamePhase.PREGAME or self._line_state != LineState.BITING:
            logger.warning("⚠️ 魚尚未咬鉤，上鉤無效")
            return

        self._stop_timer("escape")
        self.hook_count += 1
        self._line_state = LineState.IDLE
        self._set_phase(MinigamePhase.ACTIVE)
        self._start_timer("crit", self.CRIT_INTERVAL, self._emit_crit, single_shot=False)
        self._start_timer("timeout", self.ACTIVE_TIMEOUT, lambda: self._finish(MinigamePhase.LOSE))

    def register_reel(self) -> bool:
        """
        玩家收線

        Returns:
            是否為有效收線（Good crit 後 CRIT_WINDOW 秒內）
        """
        if self._game_state != MinigamePhase.ACTIVE:
            return False

        now = time.monotonic()
        if self._last_good_at is not None and now - self._last_good_at <= self.CRIT_WINDOW:
            self._last_good_at = None
            self._progress += 1
            logger.debug(f"有效收線 ({self._progress}/{self.REELS_TO_WIN})")
            if self._progress >= self.REELS_TO_WIN:
                self._finish(MinigamePhase.WIN)
            return True

        self._tension += 1
        logger.debug(f"無效收線，張力 {self._tension}/{self.MAX_TENSION}")
        if self._tension >= self.MAX_TENSION:
            self._finish(MinigamePhase.LOSE)
        return False

    def stop(self) -> None:
        for timer in self._timers.values():
            timer.stop()

    def _enter_pregame(self) -> None:
        self._line_state = LineState.WAITING
        self._set_phase(MinigamePhase.PREGAME)
        low, high = self.BITE_DELAY_RANGE
        self._start_timer("bite", self._rng.uniform(low, high), self._on_bite)

    def _on_bite(self) -> None:
        if self._game_state != MinigamePhase.PREGAME:
            return
        self._line_state = LineState.BITING
        logger.debug("模擬器: 魚咬鉤")
        self._start_timer("escape", self.BITE_WINDOW, self._on_escape)

    def _on_escape(self) -> None:
        if self._game_state != MinigamePhase.PREGAME:
            return
        logger.info("模擬器: 魚跑了")
        self._finish(MinigamePhase.CANCELED)

    def _emit_crit(self) -> None:
        if self._game_state != MinigamePhase.ACTIVE:
            return
        signals = list(self.CRIT_WEIGHTS.keys())
        crit = self._rng.choices(signals, weights=[self.CRIT_WEIGHTS[s] for s in signals])[0]
        if crit == CritSignal.GOOD:
            self._last_good_at = time.monotonic()
        self.events.emit(EventType.FISHING_CRIT, source="simulator", crit=crit.value)

    def _finish(self, outcome: MinigamePhase) -> None:
        self.stop()
        self._line_state = LineState.IDLE
        self._set_phase(outcome)
        self._start_timer("result", self.RESULT_DURATION, lambda: self._end_cycle(outcome))

    def _end_cycle(self, outcome: MinigamePhase) -> None:
        self._set_phase(MinigamePhase.INACTIVE)
        self.casts_completed += 1
        self.cycle_finished.emit(outcome.value)

    def _set_phase(self, phase: MinigamePhase) -> None:
        self._game_state = phase
        self.events.emit(EventType.GAME_STATE_CHANGE, source="simulator", phase=phase.value)

    def _start_timer(self, name: str, seconds: float, callback: Callable[[], None],
                     single_shot: bool = True) -> None:
        # 每個名稱一個計時器，重用時先斷開舊回調
        timer = self._timers.get(name)
        if timer is None:
            timer = QTimer(self)
            self._timers[name] = timer
        else:
            timer.stop()
            try:
                timer.timeout.disconnect()
            except (RuntimeError, TypeError):
                pass
        timer.setSingleShot(single_shot)
        timer.timeout.connect(callback)
        timer.start(int(seconds * 1000))

    def _stop_timer(self, name: str) -> None:
        if name in self._timers:
            self._timers[name].stop()


class SimulatedFishingState:
    def __init__(self, controller: SimulatedFishingController):
        self.controller = controller
        self.reel_count = 0

    def reel(self) -> None:
        self.reel_count += 1
        self.controller.register_reel()


class SimulatedPlayer:
    def __init__(self):
        self.current_state = None

    def enter_fishing(self, controller: SimulatedFishingController) -> SimulatedFishingState:
        self.current_state = SimulatedFishingState(controller)
        return self.current_state

    def leave_fishing(self) -> None:
        self.current_state = None


class SimulatedEngine:
    """EngineRegistry 實現：控制器在 spawn_controller() 之前不存在"""

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self.controller: Optional[SimulatedFishingController] = None
        self.player = SimulatedPlayer()

    def spawn_controller(self) -> SimulatedFishingController:
        if self.controller is None:
            self.controller = SimulatedFishingController(seed=self._seed)
            logger.info("模擬器: FishingController 已建立")
        return self.controller

    def despawn_controller(self) -> None:
        if self.controller is not None:
            self.controller.stop()
            self.controller = None
        self.player.leave_fishing()

    def get_controller(self) -> Optional[SimulatedFishingController]:
        return self.controller

    def get_player(self) -> SimulatedPlayer:
        return self.player


class SceneManager(QObject):

    # 信號：場景載入 (scene_name)
    scene_loaded = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.current_scene: Optional[str] = None

    def load_scene(self, scene_name: str) -> None:
        self.current_scene = scene_name
        logger.debug(f"模擬器: 載入場景 {scene_name}")
        self.scene_loaded.emit(scene_name)
