# src/autofisher/automation/phase_tracker.py
"""
階段追蹤器 - 反應引擎送來的小遊戲階段

追蹤器不決定階段，只對變化做出反應：
- PREGAME: 開始等待咬鉤（已在等待時忽略）
- ACTIVE: 停止等待咬鉤
- 其他階段: 只記錄結果
"""

import logging
from typing import Callable

from .bite_monitor import BiteMonitor
from .models import AutomationSession, MinigamePhase

logger = logging.getLogger(__name__)


class PhaseTracker:

    def __init__(
        self,
        session: AutomationSession,
        monitor: BiteMonitor,
        is_enabled: Callable[[], bool],
    ):
        self.session = session
        self.monitor = monitor
        self._is_enabled = is_enabled

    def on_phase_changed(self, phase: MinigamePhase) -> None:
        logger.info(f"釣魚狀態變更為: {phase.value}")

        # 只有實際變化才推進 epoch，重複通知不作廢進行中的任務
        if phase != self.session.last_phase:
            self.session.last_phase = phase
            self.session.advance_epoch()
            # 離開 Pregame（上鉤、魚跑掉、重置）都結束本輪等待，下一次 Pregame 重新監視
            if phase != MinigamePhase.PREGAME:
                self.session.waiting_for_bite = False

        handler = {
            MinigamePhase.SETUP: self._on_setup,
            MinigamePhase.PREGAME: self._on_pregame,
            MinigamePhase.ACTIVE: self._on_active,
            MinigamePhase.WIN: self._on_win,
            MinigamePhase.LOSE: self._on_lose,
            MinigamePhase.CANCELED: self._on_canceled,
            MinigamePhase.INACTIVE: self._on_inactive,
        }[phase]
        handler()

    def _on_setup(self) -> None:
        logger.info("偵測到釣魚小遊戲準備中")

    def _on_pregame(self) -> None:
        if self.session.waiting_for_bite:
            logger.debug("已在等待咬鉤，忽略重複的 Pregame")
            return
        if not self._is_enabled():
            logger.debug("自動化已停用，不監視咬鉤")
            return

        logger.info("釣魚 Pregame - 等待魚咬鉤")
        self.session.waiting_for_bite = True
        self.monitor.run_bite_watch()

    def _on_active(self) -> None:
        self.session.waiting_for_bite = False
        logger.info("釣魚小遊戲進行中 - 自動化就緒")

    def _on_win(self) -> None:
        self.session.stats.wins += 1
        logger.info("🏆 釣魚小遊戲勝利！")

    def _on_lose(self) -> None:
        self.session.stats.losses += 1
        logger.warning("⚠️ 釣魚小遊戲失敗 - 自動化下不應該發生")

    def _on_canceled(self) -> None:
        self.session.stats.canceled += 1
        logger.info("釣魚小遊戲已取消")

    def _on_inactive(self) -> None:
        logger.info("釣魚小遊戲結束")
