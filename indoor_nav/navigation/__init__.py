"""
导航模块
包含路径规划、导航控制、语音指令生成和会话管理
"""

from .errors import NavigationError, PathPlanningError, NoPathFound, InvalidEndpoint
from .path_planner import PathPlanner, PlannerConfig, Algorithm, SearchNode
from .instructions import Instruction, InstructionGenerator, InstructionConfig
from .controller import (
    NavigationController, NavigationStatus, NavigationState, StepResult, heading_to_direction
)
from .session import NavigationSession

__all__ = [
    'NavigationError',
    'PathPlanningError',
    'NoPathFound',
    'InvalidEndpoint',
    'PathPlanner',
    'PlannerConfig',
    'Algorithm',
    'SearchNode',
    'Instruction',
    'InstructionGenerator',
    'InstructionConfig',
    'NavigationController',
    'NavigationStatus',
    'NavigationState',
    'StepResult',
    'heading_to_direction',
    'NavigationSession',
]
