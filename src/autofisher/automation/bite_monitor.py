# src/autofisher/automation/bite_monitor.py
"""
咬鉤監視器 - Pregame 期間輪詢魚線狀態

魚線「咬鉤」只以可輪詢的狀態暴露，沒有事件通知，因此需要定時檢查。
每次進入 Pregame 啟動一次；偵測到咬鉤後設定上鉤旗標並結束，不會自行重新啟動。
"""

import logging
from typing import Callable, Optional

from ..core.scheduler import TickScheduler
from .models import AutomationSession, LineState, MinigamePhase, WaitTask
from .ports import EngineRegistry

logger = logging.getLogger(__name__)


class BiteMonitor:
    """
    咬鉤輪詢任務

    繼續條件（每次檢查都重新判斷）：
    - 任務 epoch 與會話一致
    - session.waiting_for_bite 為 True
    - 自動化仍啟用
    - 控制器仍回報 PREGAME
    任一不成立即靜默退出，不觸發上鉤。
    """

    POLL_INTERVAL = 0.05  # 50ms

    def __init__(
        self,
        registry: EngineRegistry,
        session: AutomationSession,
        scheduler: TickScheduler,
        is_enabled: Callable[[], bool],
        poll_interval_sec: Optional[float] = None,
    ):
        self.registry = registry
        self.session = session
        self.scheduler = scheduler
        self._is_enabled = is_enabled
        if poll_interval_sec is not None:
            self.POLL_INTERVAL = poll_interval_sec

    def run_bite_watch(self) -> WaitTask:
        """啟動一次咬鉤監視（第一次檢查在下一個 tick 執行）"""
        task = WaitTask(kind="bite_watch", epoch=self.session.epoch)
        logger.debug(f"🎣 開始監視咬鉤 (epoch={task.epoch}, interval={self.POLL_INTERVAL}s)")
        self.scheduler.call_later(0, lambda: self._check(task))
        return task

    def _should_continue(self, task: WaitTask) -> bool:
        if task.is_stale(self.session):
            logger.debug(f"咬鉤監視已過期 (task epoch={task.epoch}, now={self.session.epoch})")
            return False
        if not self.session.waiting_for_bite:
            logger.debug("已不在等待咬鉤，監視結束")
            return False
        if not self._is_enabled():
            logger.info("自動化已停用，停止監視咬鉤")
            self.session.waiting_for_bite = False
            return False

        controller = self.registry.get_controller()
        if controller is None or controller.game_state != MinigamePhase.PREGAME:
            logger.debug("階段已離開 Pregame，監視結束")
            return False
        return True

    def _check(self, task: WaitTask) -> None:
        if not self._should_continue(task):
            return

        controller = self.registry.get_controller()
        try:
            if controller.line_state == LineState.BITING:
                controller.set_hooked()
                self.session.waiting_for_bite = False
                self.session.stats.bites_hooked += 1
                logger.info("🐟 魚咬鉤了，已設定上鉤")
                return
        except Exception as e:
            logger.error(f"❌ 咬鉤監視失敗: {e}", exc_info=True)
            self.session.waiting_for_bite = False
            return

        self.scheduler.call_later(self.POLL_INTERVAL, lambda: self._check(task))
