# src/autofisher/automation/session_gate.py
"""
會話閘門 - 管理控制器事件的訂閱生命週期

職責：
1. 場景切換時一律先清理（取消訂閱、停止等待咬鉤）
2. 有效場景且自動化啟用時，等待控制器出現後訂閱兩個事件
3. 保證任何時刻最多只有一組訂閱

訂閱與取消訂閱視為同一個資源的取得與釋放，兩者皆可重複呼叫。
"""

import logging
from typing import Callable, Optional

from PySide6.QtCore import QTimer

from ..core.event_bus import Event, EventType
from ..core.scheduler import TickScheduler
from .models import AutomationSession, CritSignal, MinigamePhase, WaitTask
from .phase_tracker import PhaseTracker
from .ports import EngineRegistry, FishingControllerPort
from .reaction_responder import ReactionResponder

logger = logging.getLogger(__name__)


class SessionGate:

    CONTROLLER_POLL_INTERVAL = 0.1

    def __init__(
        self,
        registry: EngineRegistry,
        session: AutomationSession,
        scheduler: TickScheduler,
        tracker: PhaseTracker,
        responder: ReactionResponder,
        is_enabled: Callable[[], bool],
        controller_poll_interval_sec: Optional[float] = None,
    ):
        self.registry = registry
        self.session = session
        self.scheduler = scheduler
        self.tracker = tracker
        self.responder = responder
        self._is_enabled = is_enabled
        if controller_poll_interval_sec is not None:
            self.CONTROLLER_POLL_INTERVAL = controller_poll_interval_sec

        # 實際訂閱的控制器（取消訂閱時使用同一個）
        self._controller: Optional[FishingControllerPort] = None
        self._pending_wait: Optional[QTimer] = None

    @property
    def is_waiting_for_controller(self) -> bool:
        return self._pending_wait is not None

    def on_session_boundary(self, is_valid_context: bool) -> None:
        """
        場景/會話邊界

        Args:
            is_valid_context: 新場景是否允許自動化
        """
        self.release()

        if is_valid_context:
            self.acquire()

    def acquire(self) -> None:
        """等待控制器出現後訂閱事件（已訂閱或已在等待時不做事）"""
        if not self._is_enabled():
            logger.debug("自動化已停用，不訂閱控制器事件")
            return
        if self.session.subscribed or self._pending_wait is not None:
            return

        if self.registry.get_controller() is None:
            logger.warning("⚠️ 尚未找到 FishingController，等待其出現")

        task = WaitTask(kind="controller_wait", epoch=self.session.epoch)
        self._pending_wait = self.scheduler.wait_until(
            lambda: self.registry.get_controller() is not None,
            lambda: self._on_controller_ready(task),
            self.CONTROLLER_POLL_INTERVAL,
        )

    def release(self) -> None:
        """取消訂閱並重置會話（未訂閱時也可安全呼叫）"""
        if self._pending_wait is not None:
            self.scheduler.cancel(self._pending_wait)
            self._pending_wait = None

        if self.session.subscribed and self._controller is not None:
            self._controller.events.unsubscribe(EventType.GAME_STATE_CHANGE, self._handle_state_change)
            self._controller.events.unsubscribe(EventType.FISHING_CRIT, self._handle_fishing_crit)
            logger.info("已取消訂閱 FishingController 事件")

        self._controller = None
        self.session.reset()

    def _on_controller_ready(self, task: WaitTask) -> None:
        self._pending_wait = None

        # 防止重複訂閱
        if task.is_stale(self.session) or self.session.subscribed:
            return
        if not self._is_enabled():
            logger.debug("控制器已出現，但自動化已停用")
            return

        controller = self.registry.get_controller()
        if controller is None:
            return

        logger.info("找到 FishingController 實例，訂閱事件")
        controller.events.subscribe(EventType.GAME_STATE_CHANGE, self._handle_state_change)
        controller.events.subscribe(EventType.FISHING_CRIT, self._handle_fishing_crit)
        self._controller = controller
        self.session.subscribed = True

    def _handle_state_change(self, event: Event) -> None:
        if not self.session.subscribed:
            return
        self.tracker.on_phase_changed(MinigamePhase(event.data["phase"]))

    def _handle_fishing_crit(self, event: Event) -> None:
        if not self.session.subscribed:
            return
        self.responder.on_crit_signal(CritSignal(event.data["crit"]))
