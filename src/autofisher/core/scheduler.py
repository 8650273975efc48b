# src/autofisher/core/scheduler.py
"""
協作式排程器 - 以 Qt 事件循環取代協程的「等待並恢復」

兩種暫停：
1. call_later: 固定延遲（咬鉤輪詢間隔、反應時間）
2. wait_until: 等待條件成立（等待控制器出現，無超時）

所有回調都在 Qt 主執行緒上執行，因此共享狀態不需要鎖。
"""

import logging
from typing import Callable, Set

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class TickScheduler(QObject):
    """
    以 QTimer 實現的排程器

    每個待執行的任務對應一個 QTimer，保存在 _timers 中避免被回收；
    單次計時器觸發後自動釋放。
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._timers: Set[QTimer] = set()

    def call_later(self, delay_sec: float, callback: Callable[[], None]) -> QTimer:
        """
        在 delay_sec 秒後執行 callback（單次）

        Returns:
            計時器句柄，可傳給 cancel()
        """
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda: self._fire_once(timer, callback))
        self._timers.add(timer)
        timer.start(max(0, int(delay_sec * 1000)))
        return timer

    def wait_until(
        self,
        predicate: Callable[[], bool],
        callback: Callable[[], None],
        poll_interval_sec: float,
    ) -> QTimer:
        """
        每個 tick 檢查一次 predicate，成立時停止並執行 callback

        沒有超時：條件不成立就一直等，直到被 cancel()。
        """
        timer = QTimer(self)
        timer.setInterval(max(1, int(poll_interval_sec * 1000)))
        timer.timeout.connect(lambda: self._poll(timer, predicate, callback))
        self._timers.add(timer)
        timer.start()
        return timer

    def cancel(self, timer: QTimer) -> bool:
        """取消任務（已觸發或已取消的任務返回 False）"""
        if timer not in self._timers:
            return False
        self._release(timer)
        return True

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            self._release(timer)

    def pending_count(self) -> int:
        return len(self._timers)

    def _fire_once(self, timer: QTimer, callback: Callable[[], None]) -> None:
        if timer not in self._timers:
            return
        self._release(timer)
        self._run(callback)

    def _poll(self, timer: QTimer, predicate: Callable[[], bool], callback: Callable[[], None]) -> None:
        if timer not in self._timers:
            return
        try:
            ready = predicate()
        except Exception as e:
            logger.error(f"❌ 等待條件檢查失敗: {e}", exc_info=True)
            return
        if ready:
            self._release(timer)
            self._run(callback)

    def _run(self, callback: Callable[[], None]) -> None:
        # 回調錯誤只記錄，不能打斷 Qt 事件循環
        try:
            callback()
        except Exception as e:
            logger.error(f"❌ 排程任務執行錯誤: {e}", exc_info=True)

    def _release(self, timer: QTimer) -> None:
        timer.stop()
        self._timers.discard(timer)
        timer.deleteLater()
