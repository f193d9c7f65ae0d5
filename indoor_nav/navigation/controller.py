"""
导航控制器模块
步伐事件 -> 航向分区 -> 候选栅格 -> 地图校验 -> 更新位置 -> 到达检测/语音指令
"""

import logging
import queue
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from indoor_nav.grid.grid_model import Cell, GridModel
from indoor_nav.sensors.protocol import HeadingUpdate, StepDetected
from indoor_nav.utils.dispatcher import EffectDispatcher
from indoor_nav.voice.speech import LoggingVoice, VoiceSink
from .instructions import InstructionGenerator

logger = logging.getLogger(__name__)


class NavigationStatus(Enum):
    """导航状态枚举"""
    IDLE = 0          # 初始状态
    NAVIGATING = 1    # 导航中
    ARRIVED = 2       # 已到达
    STOPPED = 3       # 已停止


class StepResult(Enum):
    """单次步伐的处理结果"""
    IGNORED = 'ignored'                  # 未在导航中
    MOVED = 'moved'                      # 前进一格
    BOUNDARY_REACHED = 'boundary'        # 前方越界，位置不变
    WALL_AHEAD = 'wall'                  # 前方是墙，位置不变
    ARRIVED = 'arrived'                  # 到达终点


@dataclass
class NavigationState:
    """导航状态快照"""
    status: NavigationStatus = NavigationStatus.IDLE
    current_cell: Optional[Cell] = None
    heading: float = 0.0
    step_count: int = 0


class Phrase:
    """播报文本"""
    STARTED = "Navigation started."
    STOPPED = "Navigation stopped."
    NEED_PATH = "Please set a start and end point first."
    BOUNDARY = "Boundary reached"
    WALL = "Wall ahead"
    ARRIVED = "You have arrived at your destination!"


def heading_to_direction(heading: float) -> Tuple[int, int]:
    """航向分区 -> 栅格移动方向 (dx, dy)

    (315, 360] ∪ [0, 45] 北 (y-1)；(45, 135] 东 (x+1)；
    (135, 225] 南 (y+1)；(225, 315] 西 (x-1)。
    """
    heading = heading % 360.0
    if heading > 315.0 or heading <= 45.0:
        return (0, -1)
    if heading <= 135.0:
        return (1, 0)
    if heading <= 225.0:
        return (0, 1)
    return (-1, 0)


class NavigationController:
    """导航控制器（状态机）

    IDLE --start()--> NAVIGATING --stop()--> STOPPED
    NAVIGATING --到达终点--> ARRIVED
    STOPPED / ARRIVED --start()--> NAVIGATING（步数清零）

    位置完全由航向推算：每一步沿当前航向所在分区移动一格，不会自动
    沿路径前进。所有状态读写都在同一把锁内完成；传感器事件可以放入
    队列，由单个消费线程按到达顺序处理。

    Attributes:
        grid: 栅格地图
        path: 当前路径（最后一次 set_path 生效）
        on_location_changed: 位置提交后的持久化回调（通过分发器执行；默认分发器在
            调用线程内同步执行，实时导航时由会话传入后台分发器）
        on_step_result: 每一步处理完成后的回调 (StepResult, NavigationState)

    Example:
        >>> controller = NavigationController(grid, voice=voice)
        >>> controller.set_path(path)
        >>> controller.start()
        >>> controller.update_heading(10.0)
        >>> controller.handle_step()
        <StepResult.MOVED: 'moved'>
    """

    def __init__(self,
                 grid: GridModel,
                 instruction_generator: InstructionGenerator = None,
                 voice: VoiceSink = None,
                 on_location_changed: Optional[Callable[[Cell], None]] = None,
                 dispatcher: EffectDispatcher = None):
        self.grid = grid
        self.instructions = instruction_generator if instruction_generator else InstructionGenerator()
        self.voice = voice if voice else LoggingVoice()
        self.on_location_changed = on_location_changed
        self.on_step_result: Optional[Callable[[StepResult, NavigationState], None]] = None
        self.dispatcher = dispatcher if dispatcher else EffectDispatcher(background=False)

        self._lock = threading.RLock()
        self._state = NavigationState()
        self._path: Tuple[Cell, ...] = ()

        # 事件队列（单消费者）
        self._events: queue.Queue = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._worker_running = False

    # ========== 状态访问 ==========

    @property
    def state(self) -> NavigationState:
        """当前状态快照（副本）"""
        with self._lock:
            return replace(self._state)

    @property
    def status(self) -> NavigationStatus:
        with self._lock:
            return self._state.status

    @property
    def path(self) -> Tuple[Cell, ...]:
        with self._lock:
            return self._path

    def set_path(self, path: Optional[Sequence[Cell]]):
        """替换当前路径（后写入者覆盖）"""
        with self._lock:
            self._path = tuple(Cell(*c) for c in path) if path else ()
        logger.debug(f"路径已更新: {len(self._path)} 格")

    def set_grid(self, grid: GridModel):
        with self._lock:
            self.grid = grid

    def set_current_cell(self, cell: Optional[Cell]):
        """恢复持久化的位置（不触发回调）"""
        with self._lock:
            self._state.current_cell = Cell(*cell) if cell is not None else None

    # ========== 状态迁移 ==========

    def start(self) -> bool:
        """开始导航：位置置于路径起点，步数清零

        Returns:
            成功进入NAVIGATING返回True
        """
        with self._lock:
            if self._state.status is NavigationStatus.NAVIGATING:
                logger.warning("已在导航中，忽略 start()")
                return False

            if not self._path:
                logger.warning("路径为空，无法开始导航")
                self._speak(Phrase.NEED_PATH)
                return False

            self._state.status = NavigationStatus.NAVIGATING
            self._state.step_count = 0
            self._state.current_cell = self._path[0]
            self._notify_location(self._path[0])

            logger.info(f"开始导航: {tuple(self._path[0])} -> {tuple(self._path[-1])}")
            self._speak(Phrase.STARTED)
            self._give_instruction()
            return True

    def stop(self) -> bool:
        """停止导航，之后的步伐事件被忽略直到下一次 start()

        Returns:
            原来处于NAVIGATING返回True
        """
        with self._lock:
            if self._state.status is not NavigationStatus.NAVIGATING:
                return False

            self._state.status = NavigationStatus.STOPPED
            logger.info(f"导航已停止 (步数={self._state.step_count})")
            self._speak(Phrase.STOPPED)
            return True

    # ========== 传感器事件 ==========

    def update_heading(self, heading: float):
        with self._lock:
            self._state.heading = heading % 360.0

    def handle_heading(self, update: HeadingUpdate):
        self.update_heading(update.heading)

    def handle_step(self, event: StepDetected = None) -> StepResult:
        """处理一次步伐事件

        Returns:
            StepResult
        """
        with self._lock:
            state = self._state
            if state.status is not NavigationStatus.NAVIGATING or state.current_cell is None:
                return StepResult.IGNORED

            state.step_count += 1

            dx, dy = heading_to_direction(state.heading)
            current = state.current_cell
            candidate = Cell(current.x + dx, current.y + dy)

            if not self.grid.in_bounds(candidate):
                logger.warning(f"前方越界: {tuple(candidate)} (航向={state.heading:.1f}°)")
                self._speak(Phrase.BOUNDARY)
                result = StepResult.BOUNDARY_REACHED

            elif self.grid.is_wall(candidate):
                logger.warning(f"前方是墙: {tuple(candidate)} (航向={state.heading:.1f}°)")
                self._speak(Phrase.WALL)
                result = StepResult.WALL_AHEAD

            else:
                state.current_cell = candidate
                self._notify_location(candidate)
                logger.info(f"第{state.step_count}步: {tuple(current)} -> {tuple(candidate)}")

                if self._path and candidate == self._path[-1]:
                    state.status = NavigationStatus.ARRIVED
                    logger.info(f"已到达终点: {tuple(candidate)}")
                    self._speak(Phrase.ARRIVED)
                    result = StepResult.ARRIVED
                else:
                    self._give_instruction()
                    result = StepResult.MOVED

            snapshot = replace(state)

        if self.on_step_result:
            self.on_step_result(result, snapshot)
        return result

    # ========== 事件队列 ==========

    def submit_heading(self, update: HeadingUpdate):
        """航向事件入队（传感器线程调用）"""
        self._events.put(update)

    def submit_step(self, event: StepDetected):
        """步伐事件入队（传感器线程调用）"""
        self._events.put(event)

    def process_pending(self) -> int:
        """在调用线程中依次处理队列中的全部事件

        Returns:
            处理的事件数
        """
        count = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return count
            self._dispatch_event(event)
            count += 1

    def start_worker(self):
        """启动单消费者线程"""
        if self._worker and self._worker.is_alive():
            return

        self._worker_running = True
        self._worker = threading.Thread(
            target=self._worker_loop,
            daemon=True,
            name="NavigationController-Events"
        )
        self._worker.start()
        logger.info("事件处理线程已启动")

    def stop_worker(self, timeout: float = 2.0):
        """处理完已入队事件后停止消费者线程"""
        if not self._worker:
            return

        self._worker_running = False
        self._events.put(None)
        self._worker.join(timeout=timeout)
        self._worker = None
        logger.info("事件处理线程已停止")

    def _worker_loop(self):
        while self._worker_running or not self._events.empty():
            event = self._events.get()
            if event is None:
                continue
            try:
                self._dispatch_event(event)
            except Exception as e:
                logger.warning(f"事件处理失败 {type(event).__name__}: {e}")

    def _dispatch_event(self, event):
        if isinstance(event, HeadingUpdate):
            self.handle_heading(event)
        elif isinstance(event, StepDetected):
            self.handle_step(event)
        else:
            logger.warning(f"未知事件类型: {type(event).__name__}")

    # ========== 副作用 ==========

    def _give_instruction(self):
        instruction = self.instructions.next_instruction(
            self._path, self._state.current_cell, self._state.heading)
        if instruction is not None:
            self._speak(instruction.phrase)

    def _speak(self, text: str):
        self.dispatcher.dispatch(self.voice.speak, text)

    def _notify_location(self, cell: Cell):
        if self.on_location_changed:
            self.dispatcher.dispatch(self.on_location_changed, cell)
