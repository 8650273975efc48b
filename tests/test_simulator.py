# tests/test_simulator.py
"""
模擬引擎測試（含與插件的整合）
"""

import pytest

from conftest import process_events
from src.autofisher.automation.models import CritSignal, LineState, MinigamePhase
from src.autofisher.core.event_bus import EventType
from src.autofisher.plugin import AutoFisherPlugin
from src.autofisher.simulator import SceneManager, SimulatedEngine, SimulatedFishingController


def speed_up(controller):
    """縮短計時器時間以加快測試速度"""
    controller.SETUP_DURATION = 0.02
    controller.BITE_DELAY_RANGE = (0.03, 0.05)
    controller.BITE_WINDOW = 0.5
    controller.CRIT_INTERVAL = 0.06
    controller.CRIT_WINDOW = 0.2
    controller.ACTIVE_TIMEOUT = 3.0
    controller.RESULT_DURATION = 0.02
    return controller


@pytest.fixture
def controller(qapp):
    ctrl = speed_up(SimulatedFishingController(seed=7))
    phases = []
    ctrl.events.subscribe(EventType.GAME_STATE_CHANGE, lambda e: phases.append(e.data["phase"]))
    ctrl.phases = phases
    yield ctrl
    ctrl.stop()


class TestSimulatedController:

    def test_cast_reaches_pregame_and_bites(self, qapp, controller):
        assert controller.start_cast() is True
        assert controller.game_state == MinigamePhase.SETUP

        process_events(qapp, 120)
        assert controller.game_state == MinigamePhase.PREGAME
        assert controller.line_state == LineState.BITING

    def test_cannot_cast_twice(self, qapp, controller):
        controller.start_cast()
        assert controller.start_cast() is False

    def test_fish_escapes_without_hook(self, qapp, controller):
        controller.BITE_WINDOW = 0.05
        finished = []
        controller.cycle_finished.connect(lambda outcome: finished.append(outcome))

        controller.start_cast()
        process_events(qapp, 250)

        assert finished == ["canceled"]
        assert controller.phases == ["setup", "pregame", "canceled", "inactive"]

    def test_hook_before_bite_is_ignored(self, qapp, controller):
        controller.BITE_DELAY_RANGE = (1.0, 1.0)
        controller.start_cast()
        process_events(qapp, 80)
        assert controller.line_state == LineState.WAITING

        controller.set_hooked()
        assert controller.game_state == MinigamePhase.PREGAME
        assert controller.hook_count == 0

    def test_wrong_reels_lose(self, qapp, controller):
        controller.start_cast()
        process_events(qapp, 120)
        controller.set_hooked()
        assert controller.game_state == MinigamePhase.ACTIVE

        controller._last_good_at = None
        assert controller.register_reel() is False
        controller._last_good_at = None
        controller.register_reel()

        assert controller.game_state == MinigamePhase.LOSE

    def test_emits_crits_while_active(self, qapp, controller):
        crits = []
        controller.events.subscribe(EventType.FISHING_CRIT, lambda e: crits.append(e.data["crit"]))

        controller.start_cast()
        process_events(qapp, 120)
        controller.set_hooked()
        process_events(qapp, 200)

        assert len(crits) >= 2
        assert set(crits) <= {c.value for c in CritSignal}


class TestIntegration:

    def test_plugin_wins_a_cast(self, qapp, fast_config):
        """測試插件在模擬引擎上完成一輪並獲勝"""
        engine = SimulatedEngine(seed=3)
        scenes = SceneManager()
        plugin = AutoFisherPlugin(engine, fast_config)
        plugin.awake(scenes)
        try:
            scenes.load_scene("Island")
            process_events(qapp, 30)
            assert plugin.session.subscribed is False

            controller = speed_up(engine.spawn_controller())
            controller.CRIT_WEIGHTS = {CritSignal.GOOD: 1.0}
            state = engine.player.enter_fishing(controller)
            finished = []
            controller.cycle_finished.connect(lambda outcome: finished.append(outcome))

            process_events(qapp, 40)
            assert plugin.session.subscribed is True

            controller.start_cast()
            process_events(qapp, 1200)

            assert finished == ["win"]
            stats = plugin.get_status()["stats"]
            assert stats["bites_hooked"] == 1
            assert stats["wins"] == 1
            assert stats["losses"] == 0
            assert state.reel_count >= controller.REELS_TO_WIN
        finally:
            plugin.destroy()
            engine.despawn_controller()

    def test_bad_crits_are_never_reeled(self, qapp, fast_config):
        engine = SimulatedEngine(seed=5)
        controller = speed_up(engine.spawn_controller())
        controller.CRIT_WEIGHTS = {CritSignal.BAD: 1.0}
        controller.ACTIVE_TIMEOUT = 0.3
        state = engine.player.enter_fishing(controller)

        plugin = AutoFisherPlugin(engine, fast_config)
        try:
            plugin.on_scene_loaded("Island")
            process_events(qapp, 40)

            controller.start_cast()
            process_events(qapp, 700)

            assert state.reel_count == 0
            # 超時判負，插件記錄為異常
            assert plugin.session.stats.losses == 1
        finally:
            plugin.destroy()
            engine.despawn_controller()
