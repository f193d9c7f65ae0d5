"""
indoor_nav - 室内步行导航引擎
栅格最短路径规划 + 手机传感器航位推算 + 语音转向指令
"""

__version__ = '0.1.0'
