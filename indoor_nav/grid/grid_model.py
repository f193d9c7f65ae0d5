"""
栅格地图模块
二值占据栅格（空闲/墙），供路径规划与步伐校验使用
"""

import numpy as np
from enum import IntEnum
from typing import List, NamedTuple, Sequence
from scipy.ndimage import label

from indoor_nav import config


class Cell(NamedTuple):
    """栅格坐标 (x, y)，按值比较和哈希"""
    x: int
    y: int


class CellType(IntEnum):
    """栅格状态（持久化时 0=空闲, 1=墙）"""
    FREE = 0
    WALL = 1


class GridModel:
    """N x N 二值占据栅格地图

    内部使用 numpy 数组存储，索引顺序为 grid[y, x]。

    Attributes:
        grid: 状态矩阵 (size x size)，元素为 CellType 的整数值

    Example:
        >>> grid = GridModel(20)
        >>> grid.set_cell(Cell(3, 4), CellType.WALL)
        >>> grid.is_wall(Cell(3, 4))
        True
    """

    def __init__(self, size: int = config.GRID_SIZE):
        """初始化地图（全部空闲）

        Args:
            size: 地图边长（栅格数）
        """
        if size <= 0:
            raise ValueError(f"地图尺寸必须大于0: {size}")
        self.grid = np.full((size, size), int(CellType.FREE), dtype=np.int8)

    @classmethod
    def from_matrix(cls, matrix: Sequence[Sequence[int]]) -> 'GridModel':
        """从 0/1 二维矩阵构建地图

        Args:
            matrix: 行优先的二维矩阵，matrix[y][x]

        Returns:
            GridModel对象

        Raises:
            ValueError: 矩阵不是方阵或包含 0/1 以外的值
        """
        try:
            array = np.asarray(matrix)
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"地图矩阵格式错误: {e}") from e

        if array.ndim != 2 or array.shape[0] != array.shape[1] or array.shape[0] == 0:
            raise ValueError(f"地图矩阵必须是非空方阵，实际形状: {array.shape}")

        # 小数、字符串、超出 int64 的大整数（object）都不接受，不做截断
        if array.dtype == np.bool_:
            array = array.astype(np.int8)
        if not np.issubdtype(array.dtype, np.integer):
            raise ValueError(f"地图矩阵元素必须是整数，实际类型: {array.dtype}")
        if not np.isin(array, (int(CellType.FREE), int(CellType.WALL))).all():
            raise ValueError("地图矩阵只能包含 0（空闲）和 1（墙）")

        grid = cls(array.shape[0])
        grid.grid[:, :] = array
        return grid

    def size(self) -> int:
        """地图边长 N"""
        return self.grid.shape[0]

    def in_bounds(self, cell: Cell) -> bool:
        """检查栅格坐标是否在地图范围内"""
        n = self.grid.shape[0]
        return 0 <= cell[0] < n and 0 <= cell[1] < n

    def is_wall(self, cell: Cell) -> bool:
        """检查栅格是否为墙

        调用方需先用 in_bounds() 检查范围。

        Raises:
            IndexError: 坐标越界
        """
        if not self.in_bounds(cell):
            raise IndexError(f"栅格越界: {tuple(cell)} (size={self.size()})")
        return bool(self.grid[cell[1], cell[0]] == CellType.WALL)

    def get_cell(self, cell: Cell) -> CellType:
        if not self.in_bounds(cell):
            raise IndexError(f"栅格越界: {tuple(cell)} (size={self.size()})")
        return CellType(int(self.grid[cell[1], cell[0]]))

    def set_cell(self, cell: Cell, cell_type: CellType):
        """设置栅格状态

        Raises:
            IndexError: 坐标越界
        """
        if not self.in_bounds(cell):
            raise IndexError(f"栅格越界: {tuple(cell)} (size={self.size()})")
        self.grid[cell[1], cell[0]] = int(CellType(cell_type))

    def to_matrix(self) -> List[List[int]]:
        """导出为嵌套列表（用于序列化）"""
        return self.grid.astype(int).tolist()

    def copy(self) -> 'GridModel':
        clone = GridModel(self.size())
        clone.grid[:, :] = self.grid
        return clone

    def wall_count(self) -> int:
        return int(np.count_nonzero(self.grid == CellType.WALL))

    def free_cells(self) -> List[Cell]:
        """所有空闲栅格（按行优先顺序）"""
        ys, xs = np.nonzero(self.grid == CellType.FREE)
        return [Cell(int(x), int(y)) for y, x in zip(ys, xs)]

    def connected(self, a: Cell, b: Cell) -> bool:
        """判断两个空闲栅格是否4连通

        使用 scipy.ndimage.label 对空闲区域做连通域标记（默认结构元素
        即为十字形4邻域）。任一端点越界或为墙时返回False。
        """
        if not (self.in_bounds(a) and self.in_bounds(b)):
            return False
        if self.is_wall(a) or self.is_wall(b):
            return False

        labels, _ = label(self.grid == CellType.FREE)
        return bool(labels[a[1], a[0]] == labels[b[1], b[0]])

    def __eq__(self, other):
        if not isinstance(other, GridModel):
            return NotImplemented
        return np.array_equal(self.grid, other.grid)

    def __repr__(self):
        return f"GridModel(size={self.size()}, walls={self.wall_count()})"


def create_default_grid(size: int = config.GRID_SIZE) -> GridModel:
    """生成默认地图：一条横墙和一条竖墙交叉

    横墙位于第 DEFAULT_WALL_ROW 行，竖墙位于第 DEFAULT_WALL_COLUMN 列，
    两者都覆盖 DEFAULT_WALL_SPAN 范围。超出地图的部分被截断。
    """
    grid = GridModel(size)
    start, end = config.DEFAULT_WALL_SPAN
    row = config.DEFAULT_WALL_ROW
    column = config.DEFAULT_WALL_COLUMN

    for i in range(start, min(end, size)):
        if row < size:
            grid.grid[row, i] = int(CellType.WALL)
        if column < size:
            grid.grid[i, column] = int(CellType.WALL)

    return grid
