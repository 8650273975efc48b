"""
Fishing minigame automation core.

Exposes the session gate, phase tracker, bite monitor and reaction responder
together with the data model and the collaborator contracts they depend on.
"""

from .models import (
    AutomationSession,
    AutomationStats,
    CritSignal,
    LineState,
    MinigamePhase,
    WaitTask,
)
from .ports import EngineRegistry, FishingControllerPort, PlayerPort, Reelable
from .bite_monitor import BiteMonitor
from .phase_tracker import PhaseTracker
from .reaction_responder import ReactionResponder
from .session_gate import SessionGate

__all__ = [
    "AutomationSession",
    "AutomationStats",
    "CritSignal",
    "LineState",
    "MinigamePhase",
    "WaitTask",
    "EngineRegistry",
    "FishingControllerPort",
    "PlayerPort",
    "Reelable",
    "BiteMonitor",
    "PhaseTracker",
    "ReactionResponder",
    "SessionGate",
]
