"""
导航异常定义
"""


class NavigationError(Exception):
    """导航模块异常基类"""


class PathPlanningError(NavigationError):
    """路径规划失败"""


class NoPathFound(PathPlanningError):
    """终点从起点不可达（开放集耗尽）"""

    def __init__(self, start, end):
        super().__init__(f"未找到路径: {tuple(start)} -> {tuple(end)}")
        self.start = start
        self.end = end


class InvalidEndpoint(PathPlanningError):
    """起点或终点越界或位于墙内"""

    def __init__(self, cell, role: str, reason: str):
        super().__init__(f"{role}无效: {tuple(cell)} ({reason})")
        self.cell = cell
        self.role = role
        self.reason = reason
