# src/autofisher/automation/models.py
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, Optional


class MinigamePhase(str, Enum):
    SETUP = "setup"
    PREGAME = "pregame"
    ACTIVE = "active"
    WIN = "win"
    LOSE = "lose"
    CANCELED = "canceled"
    INACTIVE = "inactive"


class CritSignal(str, Enum):
    GOOD = "good"
    BAD = "bad"
    MISS = "miss"


class LineState(str, Enum):
    """魚線狀態（只能輪詢，沒有事件通知）"""
    IDLE = "idle"
    WAITING = "waiting"
    BITING = "biting"


@dataclass
class AutomationStats:
    bites_hooked: int = 0
    reels_committed: int = 0
    reels_dropped: int = 0
    reel_failures: int = 0
    wins: int = 0
    losses: int = 0
    canceled: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class AutomationSession:
    """
    自動化會話狀態

    subscribed 為 True 當且僅當控制器上註冊著我們的回調；
    epoch 在每次會話邊界與實際階段變化時遞增，用於作廢過期任務。
    """
    subscribed: bool = False
    waiting_for_bite: bool = False
    epoch: int = 0
    last_phase: Optional[MinigamePhase] = None
    stats: AutomationStats = field(default_factory=AutomationStats)

    def advance_epoch(self) -> int:
        self.epoch += 1
        return self.epoch

    def reset(self) -> None:
        self.subscribed = False
        self.waiting_for_bite = False
        self.last_phase = None
        self.advance_epoch()


@dataclass(frozen=True)
class WaitTask:
    kind: str
    epoch: int
    created_at: float = field(default_factory=time.time)

    def is_stale(self, session: AutomationSession) -> bool:
        return session.epoch != self.epoch
