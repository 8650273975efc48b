#!/usr/bin/env python3
"""
AutoFisher 主入口 - 讀取配置、啟動模擬引擎並運行自動釣魚
"""

import os
import sys
import logging
import argparse
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QTimer

# 添加專案根目錄到 Python 路徑
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from src.autofisher.config import DEFAULT_CONFIG_PATH, apply_env_overrides, load_config
from src.autofisher.plugin import AutoFisherPlugin
from src.autofisher.simulator import SceneManager, SimulatedEngine

CONTROLLER_SPAWN_DELAY_MS = 500
NEXT_CAST_DELAY_MS = 300
MAX_SECONDS_PER_CAST = 15


def setup_logging(log_level: str = "INFO"):
    """設置日誌"""
    os.makedirs('data/logs', exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler('data/logs/autofisher.log', encoding='utf-8')
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AutoFisher 自動釣魚（模擬引擎）")
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='配置檔案路徑')
    parser.add_argument('--casts', type=int, default=5, help='拋竿次數')
    parser.add_argument('--seed', type=int, default=None, help='模擬器隨機種子')
    parser.add_argument('--scene', default='Island', help='要載入的遊戲場景名稱')
    parser.add_argument('--disabled', action='store_true', help='以停用狀態啟動（觀察用）')
    return parser


def main(argv=None):
    """主函數"""
    args = build_parser().parse_args(argv)

    try:
        config = apply_env_overrides(load_config(args.config))
    except (ValueError, KeyError) as e:
        print(f"配置錯誤: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    logger.info("AutoFisher 啟動")
    logger.info(f"配置: reaction={config.reaction_time_sec}s, poll={config.bite_poll_interval_sec}s")

    try:
        return run_simulation(args, config)
    except KeyboardInterrupt:
        logger.info("用戶中斷，程式結束")
        return 0
    except Exception as e:
        logger.error(f"程式錯誤: {e}", exc_info=True)
        return 1


def run_simulation(args, config):
    """以模擬引擎運行指定次數的拋竿"""
    logger = logging.getLogger(__name__)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    engine = SimulatedEngine(seed=args.seed)
    scenes = SceneManager()

    plugin = AutoFisherPlugin(engine, config)
    if args.disabled:
        plugin.set_enabled(False)
    plugin.awake(scenes)

    scenes.load_scene("MainMenu")
    scenes.load_scene(args.scene)

    casts = max(1, args.casts)

    def start_next_cast():
        controller = engine.get_controller()
        if controller is not None:
            controller.start_cast()

    def on_cycle_finished(outcome: str):
        controller = engine.get_controller()
        logger.info(f"第 {controller.casts_completed}/{casts} 輪結束: {outcome}")
        if controller.casts_completed >= casts:
            app.quit()
        else:
            QTimer.singleShot(NEXT_CAST_DELAY_MS, start_next_cast)

    def spawn():
        controller = engine.spawn_controller()
        engine.player.enter_fishing(controller)
        controller.cycle_finished.connect(on_cycle_finished)
        start_next_cast()

    # 控制器延後出現，模擬遊戲載入
    QTimer.singleShot(CONTROLLER_SPAWN_DELAY_MS, spawn)
    QTimer.singleShot(casts * MAX_SECONDS_PER_CAST * 1000, app.quit)

    app.exec()

    status = plugin.get_status()
    plugin.destroy()
    engine.despawn_controller()

    stats = status["stats"]
    logger.info(
        f"完成: 勝 {stats['wins']} / 負 {stats['losses']} / 取消 {stats['canceled']} | "
        f"上鉤 {stats['bites_hooked']} | 收線 {stats['reels_committed']} | "
        f"丟棄 {stats['reels_dropped']} | 失敗 {stats['reel_failures']}"
    )
    logger.info("程式正常結束")
    return 0


if __name__ == "__main__":
    sys.exit(main())
