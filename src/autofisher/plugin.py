# src/autofisher/plugin.py
"""
AutoFisher 插件 - 組裝自動化核心並接上宿主

職責：
1. 讀取配置，建立會話與四個核心組件
2. 監聽場景載入，判斷是否為遊戲場景並交給 SessionGate
3. 提供啟用/停用開關（每次反應前讀取）
4. 銷毀時清理訂閱與計時器
"""

import logging
from typing import Any, Dict, Optional

from .automation import (
    AutomationSession,
    BiteMonitor,
    EngineRegistry,
    PhaseTracker,
    ReactionResponder,
    SessionGate,
)
from .config import AutoFisherConfig
from .core.scheduler import TickScheduler
from .scenes import is_game_scene

logger = logging.getLogger(__name__)

PLUGIN_NAME = "AutoFisher"
PLUGIN_VERSION = "1.0.0"


class AutoFisherPlugin:

    def __init__(
        self,
        registry: EngineRegistry,
        config: Optional[AutoFisherConfig] = None,
        scheduler: Optional[TickScheduler] = None,
    ):
        self.config = config or AutoFisherConfig()
        self.registry = registry
        self.scheduler = scheduler or TickScheduler()
        self.session = AutomationSession()
        self.in_game_scene = False
        self._enabled = self.config.enabled
        self._scene_manager = None

        self.monitor = BiteMonitor(
            registry, self.session, self.scheduler, self.is_enabled,
            poll_interval_sec=self.config.bite_poll_interval_sec,
        )
        self.tracker = PhaseTracker(self.session, self.monitor, self.is_enabled)
        self.responder = ReactionResponder(
            registry, self.session, self.scheduler, self.is_enabled,
            reaction_time_sec=self.config.reaction_time_sec,
        )
        self.gate = SessionGate(
            registry, self.session, self.scheduler, self.tracker, self.responder, self.is_enabled,
            controller_poll_interval_sec=self.config.controller_poll_interval_sec,
        )

    def awake(self, scene_manager=None) -> None:
        logger.info(f"Plugin {PLUGIN_NAME} {PLUGIN_VERSION} is loaded! (enabled={self._enabled})")
        if scene_manager is not None:
            scene_manager.scene_loaded.connect(self.on_scene_loaded)
            self._scene_manager = scene_manager

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, flag: bool) -> None:
        if self._enabled == flag:
            return
        self._enabled = flag
        logger.info(f"AutoFisher {'已啟用' if flag else '已停用'}")
        if flag and self.in_game_scene:
            self.gate.acquire()

    def on_scene_loaded(self, scene_name: str) -> None:
        self.in_game_scene = is_game_scene(scene_name, self.config.excluded_scenes)
        logger.info(f"場景載入: {scene_name} (game_scene={self.in_game_scene})")
        self.gate.on_session_boundary(self.in_game_scene)

    def destroy(self) -> None:
        if self._scene_manager is not None:
            self._scene_manager.scene_loaded.disconnect(self.on_scene_loaded)
            self._scene_manager = None
        self.gate.release()
        self.scheduler.cancel_all()
        logger.info(f"🛑 {PLUGIN_NAME} 已停止")

    def get_status(self) -> Dict[str, Any]:
        """獲取狀態信息（用於調試）"""
        return {
            "enabled": self._enabled,
            "in_game_scene": self.in_game_scene,
            "subscribed": self.session.subscribed,
            "waiting_for_controller": self.gate.is_waiting_for_controller,
            "waiting_for_bite": self.session.waiting_for_bite,
            "epoch": self.session.epoch,
            "last_phase": self.session.last_phase.value if self.session.last_phase else None,
            "pending_tasks": self.scheduler.pending_count(),
            "stats": self.session.stats.to_dict(),
        }
