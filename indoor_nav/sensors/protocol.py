"""
传感器数据类定义
定义手机传感器上报的数据结构以及运动跟踪器输出的事件
"""

from dataclasses import dataclass


@dataclass
class AccelSample:
    """三轴加速度采样

    Attributes:
        timestamp: 毫秒时间戳
        x, y, z: 三轴加速度（传感器原生单位，约 m/s²，含重力）
    """
    timestamp: int
    x: float
    y: float
    z: float

    @property
    def magnitude(self) -> float:
        """加速度向量的模"""
        return (self.x**2 + self.y**2 + self.z**2) ** 0.5


@dataclass
class MagSample:
    """磁场采样（二轴或三轴，航向只使用水平面 x/y）

    Attributes:
        timestamp: 毫秒时间戳
        x, y, z: 磁场强度（μT）
    """
    timestamp: int
    x: float
    y: float
    z: float = 0.0


@dataclass
class HeadingUpdate:
    """航向更新事件

    Attributes:
        timestamp: 毫秒时间戳
        heading: 航向角（度，[0, 360)）
    """
    timestamp: int
    heading: float


@dataclass
class StepDetected:
    """步伐事件

    Attributes:
        timestamp: 毫秒时间戳
        step_index: 跟踪器累计步数（从1开始）
    """
    timestamp: int
    step_index: int = 0


class SampleType:
    """串口行协议中的数据类型前缀"""
    ACCEL = "ACC"
    MAGNETIC = "MAG"
