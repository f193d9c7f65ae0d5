"""
路径规划测试
"""

import math
from collections import deque

import pytest
import numpy as np

from indoor_nav.grid.grid_model import Cell, CellType, GridModel, create_default_grid
from indoor_nav.navigation.errors import InvalidEndpoint, NoPathFound
from indoor_nav.navigation.path_planner import (
    Algorithm, PathPlanner, PlannerConfig, SearchNode, is_path_valid, manhattan, path_length
)


def bfs_distance(grid, start, end):
    """参考实现：BFS 最短步数，不可达返回None"""
    queue = deque([(start, 0)])
    seen = {start}
    while queue:
        cell, dist = queue.popleft()
        if cell == end:
            return dist
        for dx, dy in ((0, -1), (0, 1), (-1, 0), (1, 0)):
            nxt = Cell(cell.x + dx, cell.y + dy)
            if grid.in_bounds(nxt) and not grid.is_wall(nxt) and nxt not in seen:
                seen.add(nxt)
                queue.append((nxt, dist + 1))
    return None


@pytest.fixture
def planner():
    return PathPlanner()


@pytest.fixture
def empty_5x5():
    return GridModel(5)


@pytest.fixture
def barrier_grid():
    """中间一整列墙，左右不连通"""
    grid = GridModel(7)
    for y in range(7):
        grid.set_cell(Cell(3, y), CellType.WALL)
    return grid


# ============================================================================
# 基本行为
# ============================================================================

def test_planner_init():
    """测试PathPlanner初始化"""
    planner = PathPlanner()
    assert isinstance(planner.config, PlannerConfig)
    assert planner.config.algorithm is Algorithm.ASTAR
    assert len(PathPlanner.NEIGHBORS_4) == 4


@pytest.mark.parametrize('algorithm', list(Algorithm))
def test_empty_grid_scenario(planner, empty_5x5, algorithm):
    """5x5 空地图 (0,0)->(4,4)：9格（8步）"""
    path = planner.find_path(empty_5x5, Cell(0, 0), Cell(4, 4), algorithm)

    assert len(path) == 9
    assert path[0] == Cell(0, 0)
    assert path[-1] == Cell(4, 4)
    assert is_path_valid(empty_5x5, path)


def test_toggle_recompute_same_length(planner, empty_5x5):
    """切换算法后路径长度相同"""
    algorithm = Algorithm.ASTAR
    first = planner.find_path(empty_5x5, (0, 0), (4, 4), algorithm)
    second = planner.find_path(empty_5x5, (0, 0), (4, 4), algorithm.toggled())
    assert len(first) == len(second) == 9


@pytest.mark.parametrize('algorithm', list(Algorithm))
def test_start_equals_end(planner, algorithm):
    grid = create_default_grid()
    path = planner.find_path(grid, Cell(3, 3), Cell(3, 3), algorithm)
    assert path == (Cell(3, 3),)


def test_path_is_immutable_tuple_of_cells(planner, empty_5x5):
    path = planner.find_path(empty_5x5, (0, 0), (2, 0))
    assert isinstance(path, tuple)
    assert all(isinstance(c, Cell) for c in path)
    assert path == (Cell(0, 0), Cell(1, 0), Cell(2, 0))


@pytest.mark.parametrize('algorithm', list(Algorithm))
def test_deterministic_output(planner, algorithm):
    """相同输入得到完全相同的路径（平局按插入顺序）"""
    grid = create_default_grid()
    a = planner.find_path(grid, Cell(2, 2), Cell(17, 15), algorithm)
    b = planner.find_path(grid, Cell(2, 2), Cell(17, 15), algorithm)
    assert a == b


def test_no_state_leaks_between_calls(planner, empty_5x5):
    """每次调用使用独立的节点表"""
    first = planner.find_path(empty_5x5, Cell(0, 0), Cell(4, 4))
    reverse = planner.find_path(empty_5x5, Cell(4, 4), Cell(0, 0))
    short = planner.find_path(empty_5x5, Cell(2, 2), Cell(2, 3))

    assert len(first) == 9
    assert len(reverse) == 9
    assert reverse[0] == Cell(4, 4)
    assert short == (Cell(2, 2), Cell(2, 3))


# ============================================================================
# 不可达与端点校验
# ============================================================================

@pytest.mark.parametrize('algorithm', list(Algorithm))
def test_no_path_through_barrier(planner, barrier_grid, algorithm):
    with pytest.raises(NoPathFound):
        planner.find_path(barrier_grid, Cell(0, 0), Cell(6, 6), algorithm)


@pytest.mark.parametrize('algorithm', list(Algorithm))
def test_no_path_without_precheck(barrier_grid, algorithm):
    """关闭连通预检时由搜索本身耗尽开放集"""
    planner = PathPlanner(PlannerConfig(precheck_connectivity=False))
    with pytest.raises(NoPathFound):
        planner.find_path(barrier_grid, Cell(0, 3), Cell(6, 3), algorithm)


def test_wall_endpoint_rejected(planner):
    grid = create_default_grid()
    with pytest.raises(InvalidEndpoint) as info:
        planner.find_path(grid, Cell(5, 8), Cell(0, 0))
    assert info.value.cell == Cell(5, 8)

    with pytest.raises(InvalidEndpoint):
        planner.find_path(grid, Cell(0, 0), Cell(12, 10))


def test_out_of_bounds_endpoint_rejected(planner, empty_5x5):
    with pytest.raises(InvalidEndpoint):
        planner.find_path(empty_5x5, Cell(0, 0), Cell(5, 0))
    with pytest.raises(InvalidEndpoint):
        planner.find_path(empty_5x5, Cell(-1, 0), Cell(0, 0))


# ============================================================================
# 最短路径性质
# ============================================================================

def test_detour_around_default_walls(planner):
    """绕过默认地图的横墙"""
    grid = create_default_grid()
    start, end = Cell(8, 7), Cell(8, 9)

    for algorithm in Algorithm:
        path = planner.find_path(grid, start, end, algorithm)
        assert is_path_valid(grid, path)
        assert path_length(path) == bfs_distance(grid, start, end)
        assert path_length(path) > manhattan(start, end)


def test_random_grids_match_bfs():
    """随机地图上 A* 与 Dijkstra 都给出最短路径，且不可达时一致报错"""
    rng = np.random.RandomState(42)
    planners = [PathPlanner(PlannerConfig(precheck_connectivity=flag)) for flag in (True, False)]

    for _ in range(30):
        matrix = (rng.rand(12, 12) < 0.3).astype(int)
        grid = GridModel.from_matrix(matrix)
        free = grid.free_cells()
        if len(free) < 2:
            continue

        i, j = rng.choice(len(free), size=2, replace=False)
        start, end = free[i], free[j]
        expected = bfs_distance(grid, start, end)

        for planner in planners:
            for algorithm in Algorithm:
                if expected is None:
                    with pytest.raises(NoPathFound):
                        planner.find_path(grid, start, end, algorithm)
                else:
                    path = planner.find_path(grid, start, end, algorithm)
                    assert path[0] == start
                    assert path[-1] == end
                    assert is_path_valid(grid, path)
                    assert path_length(path) == expected


# ============================================================================
# 辅助函数
# ============================================================================

def test_manhattan():
    assert manhattan(Cell(0, 0), Cell(3, 4)) == 7.0
    assert isinstance(manhattan(Cell(1, 1), Cell(1, 1)), float)


def test_path_length():
    assert path_length(()) == 0
    assert path_length((Cell(0, 0),)) == 0
    assert path_length((Cell(0, 0), Cell(1, 0), Cell(1, 1))) == 2


def test_is_path_valid_rejects_bad_paths():
    grid = GridModel(4)
    grid.set_cell(Cell(1, 1), CellType.WALL)

    assert not is_path_valid(grid, ())
    assert not is_path_valid(grid, (Cell(0, 0), Cell(1, 1)))               # 穿墙
    assert not is_path_valid(grid, (Cell(0, 0), Cell(1, 0), Cell(2, 1)))   # 对角
    assert not is_path_valid(grid, (Cell(3, 0), Cell(4, 0)))               # 越界
    assert is_path_valid(grid, (Cell(0, 0), Cell(1, 0), Cell(2, 0)))


def test_search_node_defaults():
    node = SearchNode(Cell(0, 0))
    assert math.isinf(node.g_cost)
    assert math.isinf(node.h_cost)
    assert node.parent is None

    node.g_cost, node.h_cost = 2.0, 3.0
    assert node.f_cost == 5.0


def test_algorithm_toggle_and_names():
    assert Algorithm.ASTAR.toggled() is Algorithm.DIJKSTRA
    assert Algorithm.DIJKSTRA.toggled() is Algorithm.ASTAR
    assert Algorithm.ASTAR.display_name == 'A Star'
    assert Algorithm.DIJKSTRA.display_name == 'Dijkstra'
    assert Algorithm('dijkstra') is Algorithm.DIJKSTRA
