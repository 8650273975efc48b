# src/autofisher/automation/reaction_responder.py
"""
反應器 - 對 crit 提示做出延遲回應

規則：
1. 只在自動化啟用且階段為 ACTIVE 時處理
2. GOOD: 延遲 REACTION_TIME（模擬人類反應）後收線
3. BAD: 刻意不操作（避免輸入）
4. MISS: 不需要操作

延遲任務在觸發時重新檢查 epoch 與階段，過期就靜默丟棄。
每個任務各自捕捉 epoch，多個任務重疊時互不影響。
"""

import logging
from typing import Callable, Optional

from ..core.scheduler import TickScheduler
from .models import AutomationSession, CritSignal, MinigamePhase, WaitTask
from .ports import EngineRegistry, Reelable

logger = logging.getLogger(__name__)


class ReactionResponder:

    REACTION_TIME = 0.1  # 100ms

    def __init__(
        self,
        registry: EngineRegistry,
        session: AutomationSession,
        scheduler: TickScheduler,
        is_enabled: Callable[[], bool],
        reaction_time_sec: Optional[float] = None,
    ):
        self.registry = registry
        self.session = session
        self.scheduler = scheduler
        self._is_enabled = is_enabled
        if reaction_time_sec is not None:
            self.REACTION_TIME = reaction_time_sec

    def on_crit_signal(self, signal: CritSignal) -> Optional[WaitTask]:
        """
        處理 crit 提示

        Returns:
            GOOD 時返回已排程的任務，其他情況返回 None
        """
        if not self._is_enabled() or not self._is_active():
            return None

        logger.info(f"釣魚 crit 提示: {signal.value}")

        if signal == CritSignal.GOOD:
            task = WaitTask(kind="reaction", epoch=self.session.epoch)
            self.scheduler.call_later(self.REACTION_TIME, lambda: self._delayed_response(task))
            return task
        elif signal == CritSignal.BAD:
            logger.info("偵測到 Bad crit - 避免輸入")
        elif signal == CritSignal.MISS:
            logger.info("偵測到 Miss crit - 不需要操作")
        return None

    def _is_active(self) -> bool:
        controller = self.registry.get_controller()
        return controller is not None and controller.game_state == MinigamePhase.ACTIVE

    def _delayed_response(self, task: WaitTask) -> None:
        if task.is_stale(self.session) or not self._is_active():
            self.session.stats.reels_dropped += 1
            logger.debug(f"反應任務已過期，丟棄 (task epoch={task.epoch}, now={self.session.epoch})")
            return

        if self.simulate_player_input():
            logger.info("✅ 已回應 Good crit")

    def simulate_player_input(self) -> bool:
        """
        呼叫玩家釣魚狀態的 reel()

        Returns:
            是否成功收線
        """
        try:
            player = self.registry.get_player()
            state = getattr(player, "current_state", None)
            if player is not None and isinstance(state, Reelable):
                state.reel()
                self.session.stats.reels_committed += 1
                return True

            logger.warning("⚠️ 嘗試收線時玩家不在釣魚狀態")
            return False
        except Exception as e:
            self.session.stats.reel_failures += 1
            logger.error(f"❌ 模擬玩家輸入失敗: {e}")
            return False
