"""
导航会话模块
集成地图、路径规划、运动跟踪、导航控制、持久化和语音输出，
处理用户输入事件（设点、切换算法、开始/停止导航）
"""

import logging
import threading
from typing import Optional, Sequence, Tuple, Union

from indoor_nav import config
from indoor_nav.grid.grid_model import Cell, GridModel, create_default_grid
from indoor_nav.sensors.motion_tracker import MotionTracker
from indoor_nav.storage.codec import (
    NavigationRecord, decode_grid, encode_grid, encode_path, encode_point, pixel_to_cell
)
from indoor_nav.storage.store import DocumentStore, MemoryStore
from indoor_nav.utils.dispatcher import EffectDispatcher
from indoor_nav.voice.speech import LoggingVoice, VoiceSink
from .controller import NavigationController, NavigationState
from .errors import InvalidEndpoint, NoPathFound
from .instructions import InstructionGenerator
from .path_planner import Algorithm, Path, PathPlanner, is_path_valid

logger = logging.getLogger(__name__)


class SessionPhrase:
    """会话层播报文本"""
    NO_PATH = "No path could be found to the destination."
    INVALID_ENDPOINT = "Start or end point is inside a wall."
    ALGORITHM = "Using {name} algorithm."


class NavigationSession:
    """导航会话

    用户输入事件：
    1. set_point(pixel)：第一次设起点，第二次设终点，第三次重设起点并清空终点
    2. toggle_algorithm()：在 A* 和 Dijkstra 之间切换并重新规划
    3. start_navigation() / stop_navigation()

    起点、终点或地图变化时重新规划路径，最新结果覆盖旧路径并持久化
    （无路径时持久化空路径）。

    Attributes:
        grid: 栅格地图
        controller: NavigationController对象
        planner: PathPlanner对象
        algorithm: 当前搜索算法
        start: 起点（None表示未设置）
        end: 终点（None表示未设置）

    Example:
        >>> session = NavigationSession(JsonFileStore(), user_id='user-1')
        >>> session.set_point((60.0, 60.0))
        >>> session.set_point((700.0, 700.0))
        >>> session.start_navigation()
    """

    def __init__(self,
                 store: DocumentStore = None,
                 user_id: str = config.DEFAULT_USER_ID,
                 voice: VoiceSink = None,
                 planner: PathPlanner = None,
                 instruction_generator: InstructionGenerator = None,
                 dispatcher: EffectDispatcher = None,
                 grid_size: int = config.GRID_SIZE,
                 cell_size: float = config.CELL_SIZE):
        """初始化会话并加载用户数据

        Args:
            store: 文档存储，None则使用内存存储
            user_id: 用户ID（文档键）
            voice: 语音输出，None则只写日志
            planner: 路径规划器
            instruction_generator: 指令生成器
            dispatcher: 副作用分发器，None则在调用线程内执行
            grid_size: 默认地图边长
            cell_size: 像素坐标空间中的栅格尺寸
        """
        self.store = store if store is not None else MemoryStore()
        self.user_id = user_id
        self.voice = voice if voice else LoggingVoice()
        self.planner = planner if planner else PathPlanner()
        self.dispatcher = dispatcher if dispatcher else EffectDispatcher(background=False)
        self.cell_size = cell_size
        self.algorithm: Algorithm = self.planner.config.algorithm

        self._lock = threading.RLock()

        # 地图
        self.grid = self._load_grid(grid_size)

        # 导航记录
        record = NavigationRecord.from_document(self.store.load_state(user_id), cell_size)
        self.start = self._valid_point(record.start)
        self.end = self._valid_point(record.end)

        path = record.path
        if path and not is_path_valid(self.grid, path):
            logger.warning("持久化的路径与地图不一致，已丢弃")
            path = ()

        self.controller = NavigationController(
            self.grid,
            instruction_generator=instruction_generator,
            voice=self.voice,
            on_location_changed=self._save_location,
            dispatcher=self.dispatcher
        )
        self.controller.set_path(path)
        self.controller.set_current_cell(self._valid_point(record.current_location))

        logger.info(f"会话已加载: 用户={user_id}, 地图={self.grid}, 路径={len(path)}格")

    def _load_grid(self, grid_size: int) -> GridModel:
        document = self.store.load_grid(self.user_id)
        if document is None:
            grid = create_default_grid(grid_size)
            self.store.save_grid(self.user_id, encode_grid(grid))
            logger.info("未找到地图，已创建默认地图")
            return grid
        return decode_grid(document, grid_size)

    def _valid_point(self, cell: Optional[Cell]) -> Optional[Cell]:
        if cell is not None and not self.grid.in_bounds(cell):
            logger.warning(f"持久化坐标超出地图范围，视为未设置: {tuple(cell)}")
            return None
        return cell

    # ========== 状态访问 ==========

    @property
    def path(self) -> Path:
        return self.controller.path

    @property
    def state(self) -> NavigationState:
        return self.controller.state

    def record(self) -> NavigationRecord:
        """当前导航记录快照"""
        state = self.controller.state
        return NavigationRecord(
            start=self.start,
            end=self.end,
            current_location=state.current_cell,
            path=self.controller.path
        )

    # ========== 用户输入事件 ==========

    def set_point(self, position: Tuple[float, float]) -> Optional[Cell]:
        """在像素坐标处设置起点/终点（两次点击一个循环）

        Args:
            position: 像素坐标 (dx, dy)

        Returns:
            设置的栅格，位置超出地图时返回None
        """
        cell = pixel_to_cell(position[0], position[1], self.cell_size)
        if not self.grid.in_bounds(cell):
            logger.warning(f"设点超出地图范围: {position} -> {tuple(cell)}")
            return None

        self.controller.stop()

        with self._lock:
            if self.start is None or self.end is not None:
                self.start = cell
                self.end = None
                logger.info(f"起点已设置: {tuple(cell)}")
            else:
                self.end = cell
                logger.info(f"终点已设置: {tuple(cell)}")

            self._persist({
                'start': encode_point(self.start, self.cell_size),
                'end': encode_point(self.end, self.cell_size),
            })
            self.recompute_path()

        return cell

    def toggle_algorithm(self) -> Algorithm:
        """切换搜索算法并重新规划"""
        with self._lock:
            self.algorithm = self.algorithm.toggled()
            logger.info(f"切换算法: {self.algorithm.value}")
            self.recompute_path()

        self._speak(SessionPhrase.ALGORITHM.format(name=self.algorithm.display_name))
        return self.algorithm

    def start_navigation(self) -> bool:
        return self.controller.start()

    def stop_navigation(self) -> bool:
        return self.controller.stop()

    def reload_grid(self, grid: Union[GridModel, Sequence[Sequence[int]]]):
        """整体替换地图（停止导航、保存并重新规划）

        Raises:
            ValueError: 矩阵格式错误
        """
        if not isinstance(grid, GridModel):
            grid = GridModel.from_matrix(grid)

        self.controller.stop()

        with self._lock:
            self.grid = grid
            self.controller.set_grid(grid)
            self.dispatcher.dispatch(self.store.save_grid, self.user_id, encode_grid(grid))
            logger.info(f"地图已替换: {grid}")

            if self.start is not None and not grid.in_bounds(self.start):
                self.start = None
            if self.end is not None and not grid.in_bounds(self.end):
                self.end = None
            self.recompute_path()

    def recompute_path(self) -> Path:
        """按当前起点、终点、算法和地图重新规划并持久化路径

        Returns:
            新路径（无路径时为空元组）
        """
        with self._lock:
            path: Path = ()
            if self.start is not None and self.end is not None:
                try:
                    path = self.planner.find_path(self.grid, self.start, self.end, self.algorithm)
                except NoPathFound as e:
                    logger.warning(str(e))
                    self._speak(SessionPhrase.NO_PATH)
                except InvalidEndpoint as e:
                    logger.warning(str(e))
                    self._speak(SessionPhrase.INVALID_ENDPOINT)

            self.controller.set_path(path)
            self._persist({'path': encode_path(path, self.cell_size)})
            return path

    # ========== 传感器接入 ==========

    def attach(self, tracker: MotionTracker):
        """把运动跟踪器的两路事件接入控制器事件队列"""
        tracker.on_heading_update = self.controller.submit_heading
        tracker.on_step_detected = self.controller.submit_step

    def close(self):
        """停止事件线程并等待副作用完成"""
        self.controller.stop_worker()
        self.dispatcher.shutdown()

    # ========== 副作用 ==========

    def _speak(self, text: str):
        self.dispatcher.dispatch(self.voice.speak, text)

    def _persist(self, fields):
        self.dispatcher.dispatch(self.store.merge_state, self.user_id, fields)

    def _save_location(self, cell: Cell):
        self.store.merge_state(self.user_id,
                               {'currentLocation': encode_point(cell, self.cell_size)})
