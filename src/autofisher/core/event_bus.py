# src/autofisher/core/event_bus.py
"""
事件總線 - 控制器事件的觀察者註冊

用途：
1. 遊戲控制器透過它發布階段變化（GAME_STATE_CHANGE）與 crit 提示（FISHING_CRIT）
2. SessionGate 以 subscribe / unsubscribe 成對管理訂閱
3. 單個回調出錯不影響其他訂閱者

設計原則：
- 同一回調對同一事件只會註冊一次（避免重複訂閱）
- 取消訂閱可重複呼叫（冪等）
- 所有分發都在呼叫者所在的執行緒同步完成
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """事件類型"""
    # 小遊戲階段變化
    GAME_STATE_CHANGE = "game_state_change"

    # crit 提示（Good / Bad / Miss）
    FISHING_CRIT = "fishing_crit"


@dataclass
class Event:
    """事件基類"""
    type: EventType
    timestamp: float
    source: str  # 事件來源組件
    data: Dict[str, Any] = field(default_factory=dict)

    event_id: Optional[str] = None


class EventBus:
    """
    事件總線 - 單一控制器的事件分發

    功能：
    - subscribe / unsubscribe: 註冊與取消回調
    - publish: 同步分發給所有訂閱者
    - 事件歷史: 保留最近的事件，方便調試
    - 循環檢測: 防止回調中無限巢狀發布
    """

    def __init__(self, max_history: int = 200):
        # 訂閱者: {EventType: [callback, ...]}
        self._subscribers: Dict[EventType, List[Callable[[Event], None]]] = {}

        self._event_history: List[Event] = []
        self._max_history = max_history

        # 循環檢測：追蹤當前正在處理的事件類型
        self._processing_stack: List[EventType] = []
        self._max_depth = 10

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> bool:
        """
        訂閱事件

        Args:
            event_type: 事件類型
            callback: 回調函數，接收 Event 參數

        Returns:
            是否新增了訂閱（重複訂閱返回 False）
        """
        subscribers = self._subscribers.setdefault(event_type, [])

        if callback in subscribers:
            logger.warning(f"⚠️ 重複訂閱: {_callback_name(callback)} → {event_type.value}")
            return False

        subscribers.append(callback)
        logger.debug(f"📌 訂閱: {_callback_name(callback)} → {event_type.value}")
        return True

    def unsubscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> bool:
        """
        取消訂閱事件

        Returns:
            是否成功取消訂閱（未訂閱時返回 False，不拋錯）
        """
        subscribers = self._subscribers.get(event_type, [])
        if callback not in subscribers:
            logger.debug(f"未找到訂閱: {_callback_name(callback)} → {event_type.value}")
            return False

        subscribers.remove(callback)
        logger.debug(f"✂️ 取消訂閱: {_callback_name(callback)} → {event_type.value}")
        return True

    def publish(self, event: Event) -> None:
        """發布事件"""
        if len(self._processing_stack) >= self._max_depth:
            logger.error(
                f"❌ 事件循環檢測: 嵌套深度超過 {self._max_depth} | "
                f"stack={[e.value for e in self._processing_stack]}"
            )
            return

        if not event.event_id:
            event.event_id = f"{event.type.value}-{int(event.timestamp * 1000)}"

        self._event_history.append(event)
        if len(self._event_history) > self._max_history:
            self._event_history = self._event_history[-self._max_history:]

        self._processing_stack.append(event.type)
        try:
            # 複製列表：回調中可能取消訂閱
            for callback in list(self._subscribers.get(event.type, [])):
                self._dispatch_to_callback(event, callback)
        finally:
            self._processing_stack.pop()

    def emit(self, event_type: EventType, source: str, **data: Any) -> Event:
        """建立並發布事件的便捷方法"""
        event = Event(type=event_type, timestamp=time.time(), source=source, data=data)
        self.publish(event)
        return event

    def _dispatch_to_callback(self, event: Event, callback: Callable[[Event], None]) -> None:
        try:
            callback(event)
        except Exception as e:
            logger.error(
                f"❌ 事件處理錯誤: {_callback_name(callback)} | "
                f"event={event.type.value} | error={e}",
                exc_info=True
            )

    def get_history(self, event_type: Optional[EventType] = None, limit: int = 100) -> List[Event]:
        """
        獲取事件歷史（最新的在前）
        """
        history = self._event_history[::-1]
        if event_type:
            history = [e for e in history if e.type == event_type]
        return history[:limit]

    def clear_history(self) -> None:
        self._event_history.clear()

    def get_subscriber_count(self, event_type: Optional[EventType] = None) -> int:
        """
        獲取訂閱者數量

        Args:
            event_type: 事件類型（可選，不指定則返回總數）
        """
        if event_type:
            return len(self._subscribers.get(event_type, []))
        return sum(len(subs) for subs in self._subscribers.values())


def _callback_name(callback: Callable) -> str:
    return getattr(callback, "__name__", repr(callback))
