# tests/conftest.py
"""
共用測試工具

- qapp: Qt 應用程序（QTimer 需要事件循環）
- process_events: 運行事件循環一段時間，讓計時器觸發
- Fake*: 取代遊戲引擎的假協作者
"""

import pytest
from PySide6.QtCore import QCoreApplication, QEvent, QTimer

from src.autofisher.automation.models import AutomationSession, LineState, MinigamePhase
from src.autofisher.config import AutoFisherConfig
from src.autofisher.core.event_bus import EventBus, EventType
from src.autofisher.core.scheduler import TickScheduler


def process_events(qapp, timeout_ms=100):
    """處理 Qt 事件循環（等待計時器觸發）"""
    QTimer.singleShot(timeout_ms, qapp.quit)
    qapp.exec()


class FakeController:
    """假控制器：line_states 依序返回，用完後一律 WAITING"""

    def __init__(self, phase=MinigamePhase.INACTIVE, line_states=None):
        self.events = EventBus()
        self.game_state = phase
        self._line_states = list(line_states or [])
        self.line_reads = 0
        self.hooked_calls = 0

    @property
    def line_state(self):
        self.line_reads += 1
        if self._line_states:
            return self._line_states.pop(0)
        return LineState.WAITING

    def set_hooked(self):
        self.hooked_calls += 1

    def emit_phase(self, phase):
        self.game_state = phase
        self.events.emit(EventType.GAME_STATE_CHANGE, source="fake", phase=phase.value)

    def emit_crit(self, crit):
        self.events.emit(EventType.FISHING_CRIT, source="fake", crit=crit.value)


class FakeFishingState:
    def __init__(self):
        self.reel_count = 0

    def reel(self):
        self.reel_count += 1


class BrokenFishingState:
    def reel(self):
        raise RuntimeError("rod snapped")


class FakePlayer:
    def __init__(self, state=None):
        self.current_state = state


class FakeRegistry:
    def __init__(self, controller=None, player=None):
        self.controller = controller
        self.player = player

    def get_controller(self):
        return self.controller

    def get_player(self):
        return self.player


@pytest.fixture
def qapp():
    """創建 Qt 應用程序（測試 QTimer 需要）"""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def scheduler(qapp):
    sched = TickScheduler()
    yield sched
    sched.cancel_all()
    # 先處理已排入的 deleteLater，避免排程器被回收時子計時器仍待刪除
    QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)


@pytest.fixture
def session():
    return AutomationSession()


@pytest.fixture
def fast_config():
    """縮短所有時間以加快測試速度"""
    return AutoFisherConfig(
        reaction_time_sec=0.05,
        bite_poll_interval_sec=0.01,
        controller_poll_interval_sec=0.01,
    )
