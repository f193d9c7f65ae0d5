"""
indoor_nav 主程序入口
室内步行导航：路径规划、录制回放和实时传感器导航

使用方法：
    indoor-nav plan --start 1,1 --end 18,18 --algorithm dijkstra
    indoor-nav replay data/recordings/walk_20250101_120000.json --start 1,1 --end 5,1
    indoor-nav live --port /dev/rfcomm0 --record walk
    indoor-nav config
"""

import argparse
import signal
import sys
import time

from indoor_nav import config
from indoor_nav.grid.grid_model import Cell
from indoor_nav.navigation.controller import NavigationController, StepResult
from indoor_nav.navigation.path_planner import Algorithm
from indoor_nav.navigation.session import NavigationSession
from indoor_nav.sensors.motion_tracker import MotionTracker
from indoor_nav.sensors.protocol import AccelSample
from indoor_nav.sensors.sensor_link import SensorLink
from indoor_nav.storage.codec import cell_to_pixel
from indoor_nav.storage.store import JsonFileStore, MemoryStore
from indoor_nav.utils.data_recorder import DataRecorder
from indoor_nav.utils.dispatcher import EffectDispatcher
from indoor_nav.utils.logger import setup_all_loggers
from indoor_nav.voice.speech import create_voice


def parse_cell(text: str) -> Cell:
    """解析 'x,y' 形式的栅格坐标"""
    try:
        x, y = (int(v) for v in text.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"坐标格式应为 x,y: {text}")
    return Cell(x, y)


def render_path(session: NavigationSession) -> str:
    """字符画：# 墙, S 起点, E 终点, * 路径, . 空闲"""
    path = set(session.path)
    lines = []
    for y in range(session.grid.size()):
        row = []
        for x in range(session.grid.size()):
            cell = Cell(x, y)
            if cell == session.start:
                row.append('S')
            elif cell == session.end:
                row.append('E')
            elif session.grid.is_wall(cell):
                row.append('#')
            elif cell in path:
                row.append('*')
            else:
                row.append('.')
        lines.append(' '.join(row))
    return '\n'.join(lines)


def build_session(args, background: bool) -> NavigationSession:
    store = MemoryStore() if args.dry_run else JsonFileStore(args.data_dir, config.APP_ID)
    session = NavigationSession(
        store=store,
        user_id=args.user,
        voice=create_voice(args.voice),
        dispatcher=EffectDispatcher(background=background)
    )

    if getattr(args, 'algorithm', None) and Algorithm(args.algorithm) is not session.algorithm:
        session.toggle_algorithm()

    if getattr(args, 'start', None) and getattr(args, 'end', None):
        # 已有起点但没有终点时，下一次点击会设终点；先补一次点击让循环回到“设起点”
        if session.start is not None and session.end is None:
            session.set_point(cell_to_pixel(args.start, session.cell_size))
        session.set_point(cell_to_pixel(args.start, session.cell_size))
        session.set_point(cell_to_pixel(args.end, session.cell_size))

    return session


def cmd_plan(args) -> int:
    session = build_session(args, background=False)
    path = session.path

    print(f"算法: {session.algorithm.display_name}")
    if not path:
        print("未找到路径")
        return 1

    print(f"路径: {len(path)} 格 ({len(path) - 1} 步)")
    print(' -> '.join(f"({c.x},{c.y})" for c in path))
    print()
    print(render_path(session))
    return 0


def cmd_replay(args) -> int:
    recorder = DataRecorder()
    if not recorder.load_recording(args.recording):
        return 1

    session = build_session(args, background=False)
    if not session.start_navigation():
        return 1

    tracker = MotionTracker()
    session.attach(tracker)

    results = {}

    def on_step_result(result: StepResult, state):
        results[result] = results.get(result, 0) + 1

    session.controller.on_step_result = on_step_result

    for sample in recorder.iter_samples(speed=args.speed):
        if isinstance(sample, AccelSample):
            tracker.on_acceleration(sample)
        else:
            tracker.on_magnetic(sample)
        session.controller.process_pending()

    state = session.state
    print(f"回放完成: 状态={state.status.name}, 位置={state.current_cell}, 步数={state.step_count}")
    for result, count in results.items():
        print(f"  {result.value}: {count}")
    session.close()
    return 0


def cmd_live(args) -> int:
    session = build_session(args, background=True)
    controller: NavigationController = session.controller

    tracker = MotionTracker()
    session.attach(tracker)

    recorder = None
    link = SensorLink(port=args.port, baudrate=args.baudrate)

    if args.record:
        recorder = DataRecorder()
        recorder.start_recording(args.record)

        def on_accel(sample):
            recorder.record_accel(sample)
            tracker.on_acceleration(sample)

        def on_mag(sample):
            recorder.record_mag(sample)
            tracker.on_magnetic(sample)

        link.on_accel_update = on_accel
        link.on_mag_update = on_mag
    else:
        link.on_accel_update = tracker.on_acceleration
        link.on_mag_update = tracker.on_magnetic

    def shutdown(sig=None, frame=None):
        print("\n[系统] 正在安全退出...")
        link.stop()
        if recorder:
            recorder.stop_recording()
        session.close()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)

    controller.start_worker()
    if not link.start():
        print("[错误] 无法连接串口，请检查:")
        print(f"  1. 串口设备是否存在: ls {args.port}")
        print("  2. 手机是否已配对并开启传感器推送")
        session.close()
        return 1

    session.start_navigation()
    print("[系统] 已连接，按 Ctrl+C 退出")

    while True:
        time.sleep(1.0)
        state = controller.state
        print(f"[导航] {state.status.name} 位置={state.current_cell} "
              f"航向={state.heading:5.1f}° 步数={state.step_count}")


def cmd_config(args) -> int:
    print(config.get_config_summary())
    return 0 if config.validate_config() else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='indoor-nav', description='室内步行导航')
    parser.add_argument('--user', default=config.DEFAULT_USER_ID, help='用户ID')
    parser.add_argument('--data-dir', default=config.DATA_DIR, help='数据目录')
    parser.add_argument('--voice', default=config.VOICE_ENGINE,
                        choices=['log', 'espeak', 'memory'], help='语音引擎')
    parser.add_argument('--dry-run', action='store_true', help='使用内存存储，不写文件')
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_route_args(sub):
        sub.add_argument('--start', type=parse_cell, help='起点 x,y')
        sub.add_argument('--end', type=parse_cell, help='终点 x,y')
        sub.add_argument('--algorithm', choices=[a.value for a in Algorithm])

    plan = subparsers.add_parser('plan', help='规划并打印路径')
    add_route_args(plan)
    plan.set_defaults(func=cmd_plan)

    replay = subparsers.add_parser('replay', help='用录制数据驱动导航')
    replay.add_argument('recording', help='录制文件')
    replay.add_argument('--speed', type=float, default=0.0, help='回放倍率（0=不等待）')
    add_route_args(replay)
    replay.set_defaults(func=cmd_replay)

    live = subparsers.add_parser('live', help='串口实时导航')
    live.add_argument('--port', default=config.SERIAL_PORT)
    live.add_argument('--baudrate', type=int, default=config.BAUDRATE)
    live.add_argument('--record', help='同时录制传感器数据（文件名）')
    add_route_args(live)
    live.set_defaults(func=cmd_live)

    show = subparsers.add_parser('config', help='显示并验证配置')
    show.set_defaults(func=cmd_config)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_all_loggers()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
