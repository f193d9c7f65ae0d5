"""
路径规划模块
在二值栅格上实现 A* 与 Dijkstra 最短路径搜索（4邻域，单位代价）
"""

import heapq
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Set, Tuple

from indoor_nav import config
from indoor_nav.grid.grid_model import Cell, GridModel
from .errors import InvalidEndpoint, NoPathFound

logger = logging.getLogger(__name__)

# 路径：起点到终点（含两端）的栅格序列，相邻两格4连通
Path = Tuple[Cell, ...]


class Algorithm(Enum):
    """搜索算法"""
    ASTAR = 'astar'
    DIJKSTRA = 'dijkstra'

    @property
    def display_name(self) -> str:
        """语音播报用名称"""
        return 'A Star' if self is Algorithm.ASTAR else 'Dijkstra'

    def toggled(self) -> 'Algorithm':
        return Algorithm.DIJKSTRA if self is Algorithm.ASTAR else Algorithm.ASTAR


@dataclass
class PlannerConfig:
    """路径规划配置"""
    algorithm: Algorithm = Algorithm(config.PATH_ALGORITHM)  # 默认算法
    precheck_connectivity: bool = config.PATH_PRECHECK_CONNECTIVITY  # 连通域预检


@dataclass
class SearchNode:
    """搜索节点

    只属于单次 find_path 调用，调用结束即丢弃；parent 只用于回溯路径。
    """
    cell: Cell
    g_cost: float = math.inf
    h_cost: float = math.inf
    parent: Optional['SearchNode'] = None

    @property
    def f_cost(self) -> float:
        return self.g_cost + self.h_cost


def manhattan(a: Cell, b: Cell) -> float:
    """曼哈顿距离（A* 启发式）"""
    return float(abs(a[0] - b[0]) + abs(a[1] - b[1]))


def path_length(path: Sequence[Cell]) -> int:
    """路径边数（格数 - 1）"""
    return max(len(path) - 1, 0)


def is_path_valid(grid: GridModel, path: Sequence[Cell]) -> bool:
    """检查路径是否有效：非空、在地图内、不穿墙、相邻两格4连通"""
    if not path:
        return False

    for cell in path:
        if not grid.in_bounds(cell) or grid.is_wall(cell):
            return False

    for a, b in zip(path, path[1:]):
        if abs(a[0] - b[0]) + abs(a[1] - b[1]) != 1:
            return False

    return True


class PathPlanner:
    """栅格路径规划器

    实现全局路径规划功能：
    1. A* 搜索（f = g + 曼哈顿距离）
    2. Dijkstra 搜索（h 固定为 0）
    3. 端点校验（越界/墙内直接失败）
    4. 连通域预检（scipy 连通域标记，不可达时提前返回）

    每次调用都新建节点表（坐标 -> SearchNode），开放集使用二叉堆，
    代价相同时按插入顺序出队，保证结果确定。

    Attributes:
        config: PlannerConfig配置对象

    Example:
        >>> planner = PathPlanner()
        >>> path = planner.find_path(grid, Cell(0, 0), Cell(4, 4))
        >>> len(path)
        9
    """

    # 4邻域偏移：上、下、左、右
    NEIGHBORS_4 = [
        ( 0, -1),  # 上 (北)
        ( 0,  1),  # 下 (南)
        (-1,  0),  # 左 (西)
        ( 1,  0),  # 右 (东)
    ]

    def __init__(self, config: PlannerConfig = None):
        """初始化路径规划器

        Args:
            config: 路径规划配置，None则使用默认配置
        """
        self.config = config if config else PlannerConfig()

    def find_path(self,
                  grid: GridModel,
                  start: Cell,
                  end: Cell,
                  algorithm: Algorithm = None) -> Path:
        """规划从起点到终点的最短路径

        Args:
            grid: 栅格地图（调用期间不得修改）
            start: 起点栅格坐标
            end: 终点栅格坐标
            algorithm: 搜索算法，None则使用配置中的默认算法

        Returns:
            路径（栅格坐标元组），首元素为起点、末元素为终点

        Raises:
            InvalidEndpoint: 起点或终点越界或位于墙内
            NoPathFound: 终点不可达
        """
        start = Cell(*start)
        end = Cell(*end)
        if algorithm is None:
            algorithm = self.config.algorithm

        self._check_endpoint(grid, start, '起点')
        self._check_endpoint(grid, end, '终点')

        if start == end:
            return (start,)

        if self.config.precheck_connectivity and not grid.connected(start, end):
            logger.info(f"起点与终点不连通: {tuple(start)} -> {tuple(end)}")
            raise NoPathFound(start, end)

        path = self._search(grid, start, end, algorithm)
        if path is None:
            logger.info(f"未找到路径: {tuple(start)} -> {tuple(end)} ({algorithm.value})")
            raise NoPathFound(start, end)

        logger.info(f"找到路径: {len(path)} 格 ({algorithm.value})")
        return path

    def _check_endpoint(self, grid: GridModel, cell: Cell, role: str):
        if not grid.in_bounds(cell):
            raise InvalidEndpoint(cell, role, '超出地图范围')
        if grid.is_wall(cell):
            raise InvalidEndpoint(cell, role, '位于墙内')

    def _heuristic(self, cell: Cell, goal: Cell, algorithm: Algorithm) -> float:
        if algorithm is Algorithm.DIJKSTRA:
            return 0.0
        return manhattan(cell, goal)

    def _search(self,
                grid: GridModel,
                start: Cell,
                goal: Cell,
                algorithm: Algorithm) -> Optional[Path]:
        """A* / Dijkstra 共用的搜索循环

        Returns:
            路径，如果不存在则返回None
        """
        # 本次调用独占的节点表
        nodes: Dict[Cell, SearchNode] = {}
        start_node = SearchNode(start, g_cost=0.0,
                                h_cost=self._heuristic(start, goal, algorithm))
        nodes[start] = start_node

        # 优先队列：(priority, counter, cell)
        # counter 用于打破 priority 相同的平局（先入先出）
        open_set = []
        counter = 0
        heapq.heappush(open_set, (start_node.f_cost, counter, start))
        counter += 1

        closed_set: Set[Cell] = set()

        while open_set:
            priority, _, current = heapq.heappop(open_set)
            node = nodes[current]

            # 过期条目（节点已出队或已有更优代价）
            if current in closed_set or priority > node.f_cost:
                continue

            if current == goal:
                return self._reconstruct_path(node)

            closed_set.add(current)

            for dx, dy in self.NEIGHBORS_4:
                neighbor = Cell(current.x + dx, current.y + dy)

                if not grid.in_bounds(neighbor) or grid.is_wall(neighbor):
                    continue
                if neighbor in closed_set:
                    continue

                tentative_g = node.g_cost + 1.0
                neighbor_node = nodes.get(neighbor)
                if neighbor_node is None:
                    neighbor_node = SearchNode(neighbor)
                    nodes[neighbor] = neighbor_node

                if tentative_g < neighbor_node.g_cost:
                    neighbor_node.g_cost = tentative_g
                    neighbor_node.h_cost = self._heuristic(neighbor, goal, algorithm)
                    neighbor_node.parent = node
                    heapq.heappush(open_set, (neighbor_node.f_cost, counter, neighbor))
                    counter += 1

        return None

    def _reconstruct_path(self, node: SearchNode) -> Path:
        """沿 parent 回溯到起点后反转"""
        path = []
        while node is not None:
            path.append(node.cell)
            node = node.parent
        path.reverse()
        return tuple(path)
