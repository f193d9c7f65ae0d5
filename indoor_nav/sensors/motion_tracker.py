"""
运动跟踪模块
磁力计 -> 航向，加速度计 -> 步伐事件（阈值峰值检测 + 不应期）
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from indoor_nav import config
from .protocol import AccelSample, HeadingUpdate, MagSample, StepDetected

logger = logging.getLogger(__name__)


@dataclass
class MotionConfig:
    """运动跟踪配置"""
    step_threshold: float = config.STEP_THRESHOLD  # 加速度模长阈值
    refractory_ms: int = config.STEP_REFRACTORY_MS  # 两步最小间隔（毫秒）


def heading_from_magnetometer(mx: float, my: float) -> float:
    """由水平面磁场分量计算航向

    航向 = normalize360(atan2(my, mx) * 180/π)，不做滤波。
    """
    degrees = float(np.degrees(np.arctan2(my, mx)))
    return (degrees + 360.0) % 360.0


class MotionTracker:
    """手机运动跟踪器

    两路输入互相独立：
    - 磁力计采样：每个采样都产生一次 HeadingUpdate
    - 加速度采样：施密特触发式峰值检测

    步伐判定：模长超过阈值且当前不在峰内时，若距上一步超过不应期则
    产生 StepDetected；只要超过阈值就进入峰内。模长回落到阈值以下时
    退出峰内。

    Attributes:
        heading: 最新航向（度）
        is_peak: 是否处于峰内
        last_step_time: 上一次计步的时间戳（毫秒），None表示尚未计步
        step_count: 累计步数

    Example:
        >>> tracker = MotionTracker()
        >>> tracker.on_step_detected = lambda e: print(f"第{e.step_index}步")
        >>> tracker.on_acceleration(AccelSample(1000, 0.0, 0.0, 12.0))
    """

    def __init__(self, config: MotionConfig = None):
        """初始化运动跟踪器

        Args:
            config: 运动跟踪配置，None则使用默认配置
        """
        self.config = config if config else MotionConfig()

        # 运动状态
        self.heading = 0.0
        self.is_peak = False
        self.last_step_time: Optional[int] = None
        self.step_count = 0

        # 回调函数
        self.on_heading_update: Optional[Callable[[HeadingUpdate], None]] = None
        self.on_step_detected: Optional[Callable[[StepDetected], None]] = None

        # 统计信息
        self.mag_samples = 0
        self.accel_samples = 0
        self.rejected_steps = 0

    def on_magnetic(self, sample: MagSample) -> HeadingUpdate:
        """处理一个磁力计采样

        Returns:
            HeadingUpdate事件
        """
        self.heading = heading_from_magnetometer(sample.x, sample.y)
        self.mag_samples += 1

        update = HeadingUpdate(timestamp=sample.timestamp, heading=self.heading)
        if self.on_heading_update:
            self.on_heading_update(update)
        return update

    def on_acceleration(self, sample: AccelSample) -> Optional[StepDetected]:
        """处理一个加速度采样

        Returns:
            检测到步伐时返回StepDetected，否则返回None
        """
        self.accel_samples += 1
        magnitude = sample.magnitude
        threshold = self.config.step_threshold

        event = None
        if magnitude > threshold and not self.is_peak:
            if self._refractory_elapsed(sample.timestamp):
                self.last_step_time = sample.timestamp
                self.step_count += 1
                event = StepDetected(timestamp=sample.timestamp,
                                     step_index=self.step_count)
                logger.debug(f"检测到步伐 #{self.step_count} (模长={magnitude:.2f})")
            else:
                self.rejected_steps += 1
                logger.debug(f"不应期内的峰值被忽略 (模长={magnitude:.2f})")
            self.is_peak = True
        elif magnitude < threshold:
            self.is_peak = False

        if event is not None and self.on_step_detected:
            self.on_step_detected(event)
        return event

    def _refractory_elapsed(self, timestamp: int) -> bool:
        if self.last_step_time is None:
            return True
        return timestamp - self.last_step_time > self.config.refractory_ms

    def reset(self):
        """重置运动状态（航向保留）"""
        self.is_peak = False
        self.last_step_time = None
        self.step_count = 0
        self.rejected_steps = 0

    def get_statistics(self):
        """获取统计信息"""
        return {
            'heading': self.heading,
            'step_count': self.step_count,
            'rejected_steps': self.rejected_steps,
            'mag_samples': self.mag_samples,
            'accel_samples': self.accel_samples,
        }

    def __repr__(self):
        return f"MotionTracker(heading={self.heading:.1f}°, steps={self.step_count})"
