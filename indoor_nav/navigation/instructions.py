"""
语音指令生成模块
根据当前路径、当前栅格和手机航向生成转向指令
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from indoor_nav import config
from indoor_nav.grid.grid_model import Cell

logger = logging.getLogger(__name__)


class Instruction(Enum):
    """转向指令"""
    STRAIGHT = 'straight'
    RIGHT = 'right'
    LEFT = 'left'
    TURN_AROUND = 'turn_around'

    @property
    def phrase(self) -> str:
        """播报文本"""
        return _PHRASES[self]


_PHRASES = {
    Instruction.STRAIGHT: 'Continue straight',
    Instruction.RIGHT: 'Turn right',
    Instruction.LEFT: 'Turn left',
    Instruction.TURN_AROUND: 'Turn around',
}


@dataclass
class InstructionConfig:
    """指令分类阈值（度）"""
    straight_tolerance: float = config.INSTRUCTION_STRAIGHT_TOLERANCE
    turn_limit: float = config.INSTRUCTION_TURN_LIMIT


def normalize360(angle: float) -> float:
    """角度归一化到 [0, 360)"""
    angle = angle % 360.0
    # -1e-20 % 360 会得到 360.0
    return 0.0 if angle >= 360.0 else angle


def normalize180(angle: float) -> float:
    """角度归一化到 (-180, 180]"""
    angle = normalize360(angle)
    return angle - 360.0 if angle > 180.0 else angle


def bearing(current: Cell, target: Cell) -> float:
    """栅格坐标系下从 current 指向 target 的方位角

    atan2(Δy, Δx)，归一化到 [0, 360)。y 轴向下（屏幕坐标）。
    """
    return normalize360(math.degrees(math.atan2(target[1] - current[1],
                                                target[0] - current[0])))


def required_heading(bearing_deg: float) -> float:
    """方位角转换为需要的手机航向：-(bearing - 90)，归一化到 [0, 360)"""
    return normalize360(-(bearing_deg - 90.0))


def classify(diff: float, config: InstructionConfig = None) -> Instruction:
    """按带符号差角分类

    |diff| < 30 直行；30 <= diff < 150 右转；-150 < diff <= -30 左转；
    其余掉头。
    """
    if config is None:
        config = InstructionConfig()

    if abs(diff) < config.straight_tolerance:
        return Instruction.STRAIGHT
    if config.straight_tolerance <= diff < config.turn_limit:
        return Instruction.RIGHT
    if -config.turn_limit < diff <= -config.straight_tolerance:
        return Instruction.LEFT
    return Instruction.TURN_AROUND


class InstructionGenerator:
    """转向指令生成器

    在路径中精确查找当前栅格；找不到（偏离路径）或已是最后一格时
    不产生指令。

    Example:
        >>> generator = InstructionGenerator()
        >>> generator.next_instruction(path, Cell(5, 5), heading=90.0)
        <Instruction.STRAIGHT: 'straight'>
    """

    def __init__(self, config: InstructionConfig = None):
        self.config = config if config else InstructionConfig()

    def heading_difference(self, path: Sequence[Cell], current: Cell,
                           heading: float) -> Optional[float]:
        """当前航向与下一格所需航向的差角，范围 (-180, 180]

        Returns:
            差角（度），偏离路径或位于终点时返回None
        """
        if not path or current is None:
            return None

        try:
            index = list(path).index(current)
        except ValueError:
            logger.debug(f"当前位置不在路径上: {tuple(current)}")
            return None

        if index + 1 >= len(path):
            return None

        target = path[index + 1]
        required = required_heading(bearing(current, target))
        return normalize180(required - heading)

    def next_instruction(self, path: Sequence[Cell], current: Cell,
                         heading: float) -> Optional[Instruction]:
        """生成下一条指令

        Args:
            path: 当前路径
            current: 当前栅格
            heading: 当前航向（度，[0, 360)）

        Returns:
            Instruction，偏离路径或已在终点时返回None
        """
        diff = self.heading_difference(path, current, heading)
        if diff is None:
            return None

        instruction = classify(diff, self.config)
        logger.debug(f"指令: {instruction.phrase} (差角={diff:.1f}°)")
        return instruction
