"""
工具模块
"""

from .logger import setup_logger, setup_all_loggers
from .dispatcher import EffectDispatcher
from .data_recorder import DataRecorder

__all__ = ['setup_logger', 'setup_all_loggers', 'EffectDispatcher', 'DataRecorder']
