"""
持久化编解码模块
栅格地图 <-> 0/1 矩阵（JSON字符串），导航记录 <-> 像素坐标 {dx, dy}

所有解码函数遇到格式错误都退化为安全默认值（全空闲地图/None/空路径），
只记录警告，不抛出异常。
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from indoor_nav import config
from indoor_nav.grid.grid_model import Cell, GridModel

logger = logging.getLogger(__name__)


# ========== 坐标转换 ==========

def cell_to_pixel(cell: Cell, cell_size: float = config.CELL_SIZE) -> Tuple[float, float]:
    """栅格坐标 -> 栅格中心像素坐标"""
    return (cell[0] * cell_size + cell_size / 2,
            cell[1] * cell_size + cell_size / 2)


def pixel_to_cell(dx: float, dy: float, cell_size: float = config.CELL_SIZE) -> Cell:
    """像素坐标 -> 所在栅格（向下取整）"""
    return Cell(int(math.floor(dx / cell_size)), int(math.floor(dy / cell_size)))


# ========== 地图 ==========

def encode_grid(grid: GridModel) -> Dict[str, str]:
    """地图文档：{'grid': '<0/1矩阵的JSON字符串>'}"""
    return {'grid': json.dumps(grid.to_matrix())}


def decode_grid(document: Optional[Dict[str, Any]],
                size: int = config.GRID_SIZE) -> GridModel:
    """解析地图文档，格式错误时返回全空闲地图

    'grid' 字段既可以是JSON字符串，也可以直接是嵌套列表。
    """
    if not document or 'grid' not in document:
        logger.warning("地图文档缺少 'grid' 字段，使用全空闲地图")
        return GridModel(size)

    raw = document['grid']
    try:
        matrix = json.loads(raw) if isinstance(raw, str) else raw
        return GridModel.from_matrix(matrix)
    except (ValueError, OverflowError) as e:
        # json.JSONDecodeError 是 ValueError 的子类
        logger.warning(f"地图数据格式错误，使用全空闲地图: {e}")
        return GridModel(size)


# ========== 导航记录 ==========

def encode_point(cell: Optional[Cell],
                 cell_size: float = config.CELL_SIZE) -> Optional[Dict[str, float]]:
    """栅格 -> {'dx', 'dy'}，None 保持为 None"""
    if cell is None:
        return None
    dx, dy = cell_to_pixel(cell, cell_size)
    return {'dx': float(dx), 'dy': float(dy)}


def decode_point(value: Any, cell_size: float = config.CELL_SIZE) -> Optional[Cell]:
    """{'dx', 'dy'} -> 栅格，缺失或格式错误返回None"""
    if value is None:
        return None
    try:
        return pixel_to_cell(float(value['dx']), float(value['dy']), cell_size)
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        logger.warning(f"坐标格式错误，视为未设置: {value!r} ({e})")
        return None


def encode_path(path, cell_size: float = config.CELL_SIZE) -> List[Dict[str, float]]:
    return [encode_point(cell, cell_size) for cell in (path or ())]


def decode_path(value: Any, cell_size: float = config.CELL_SIZE) -> Tuple[Cell, ...]:
    """解析路径列表，任一点格式错误则整条路径视为空"""
    if not value:
        return ()
    if not isinstance(value, list):
        logger.warning(f"路径格式错误，使用空路径: {type(value).__name__}")
        return ()

    cells = []
    for item in value:
        cell = decode_point(item, cell_size)
        if cell is None:
            logger.warning("路径包含无效坐标，使用空路径")
            return ()
        cells.append(cell)
    return tuple(cells)


@dataclass
class NavigationRecord:
    """持久化的导航记录（栅格坐标）

    Attributes:
        start: 起点
        end: 终点
        current_location: 当前位置
        path: 路径
    """
    start: Optional[Cell] = None
    end: Optional[Cell] = None
    current_location: Optional[Cell] = None
    path: Tuple[Cell, ...] = field(default_factory=tuple)

    def to_document(self, cell_size: float = config.CELL_SIZE) -> Dict[str, Any]:
        return {
            'start': encode_point(self.start, cell_size),
            'end': encode_point(self.end, cell_size),
            'currentLocation': encode_point(self.current_location, cell_size),
            'path': encode_path(self.path, cell_size),
        }

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]],
                      cell_size: float = config.CELL_SIZE) -> 'NavigationRecord':
        if not isinstance(document, dict):
            if document is not None:
                logger.warning(f"导航记录格式错误，使用空记录: {type(document).__name__}")
            return cls()

        return cls(
            start=decode_point(document.get('start'), cell_size),
            end=decode_point(document.get('end'), cell_size),
            current_location=decode_point(document.get('currentLocation'), cell_size),
            path=decode_path(document.get('path'), cell_size),
        )
