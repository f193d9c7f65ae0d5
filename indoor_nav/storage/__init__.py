"""
持久化模块
包含地图/导航记录的编解码和按用户存储的文档库
"""

from .codec import (
    NavigationRecord, cell_to_pixel, pixel_to_cell,
    encode_grid, decode_grid, encode_point, decode_point, encode_path, decode_path
)
from .store import DocumentStore, MemoryStore, JsonFileStore

__all__ = [
    'NavigationRecord',
    'cell_to_pixel',
    'pixel_to_cell',
    'encode_grid',
    'decode_grid',
    'encode_point',
    'decode_point',
    'encode_path',
    'decode_path',
    'DocumentStore',
    'MemoryStore',
    'JsonFileStore',
]
