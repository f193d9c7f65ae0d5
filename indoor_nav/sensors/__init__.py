"""
传感器模块
包含手机传感器数据结构、运动跟踪器和串口链路
"""

from .protocol import AccelSample, MagSample, HeadingUpdate, StepDetected, SampleType
from .motion_tracker import MotionTracker, MotionConfig, heading_from_magnetometer
from .sensor_link import SensorLink, parse_line

__all__ = [
    'AccelSample',
    'MagSample',
    'HeadingUpdate',
    'StepDetected',
    'SampleType',
    'MotionTracker',
    'MotionConfig',
    'heading_from_magnetometer',
    'SensorLink',
    'parse_line',
]
