"""
栅格地图模块
包含二值占据栅格和默认地图生成
"""

from .grid_model import Cell, CellType, GridModel, create_default_grid

__all__ = ['Cell', 'CellType', 'GridModel', 'create_default_grid']
