"""
传感器串口链路模块
接收手机（蓝牙SPP/串口桥接）推送的加速度计和磁力计数据

行协议（每行一个采样，逗号分隔）：
    ACC,<timestamp_ms>,<x>,<y>,<z>
    MAG,<timestamp_ms>,<x>,<y>[,<z>]
"""

import logging
import threading
import time
from typing import Callable, Optional, Union

import serial

from indoor_nav import config
from .protocol import AccelSample, MagSample, SampleType

logger = logging.getLogger(__name__)


def parse_line(line: str) -> Optional[Union[AccelSample, MagSample]]:
    """解析一行传感器数据

    Args:
        line: 接收到的一行数据

    Returns:
        AccelSample或MagSample，无法识别或格式错误时返回None
    """
    line = line.strip()
    if not line:
        return None

    parts = line.split(',')
    data_type = parts[0].upper()

    try:
        if data_type == SampleType.ACCEL and len(parts) == 5:
            return AccelSample(
                timestamp=int(parts[1]),
                x=float(parts[2]),
                y=float(parts[3]),
                z=float(parts[4])
            )

        if data_type == SampleType.MAGNETIC and len(parts) in (4, 5):
            return MagSample(
                timestamp=int(parts[1]),
                x=float(parts[2]),
                y=float(parts[3]),
                z=float(parts[4]) if len(parts) == 5 else 0.0
            )

    except ValueError as e:
        logger.warning(f"CSV解析错误: {line} - {e}")
        return None

    logger.debug(f"未知数据行: {line[:50]}")
    return None


class SensorLink:
    """传感器串口链路

    后台线程按行读取串口数据，解析后通过回调分发。两路数据按到达
    顺序依次回调。

    Example:
        >>> link = SensorLink(port='/dev/rfcomm0')
        >>> link.on_accel_update = tracker.on_acceleration
        >>> link.on_mag_update = tracker.on_magnetic
        >>> link.start()
        >>> time.sleep(10)
        >>> link.stop()
    """

    def __init__(self, port: str = config.SERIAL_PORT, baudrate: int = config.BAUDRATE):
        """初始化链路

        Args:
            port: 串口设备路径 (Linux: '/dev/rfcomm0', Windows: 'COM5')
            baudrate: 波特率
        """
        self.port = port
        self.baudrate = baudrate
        self.serial: Optional[serial.Serial] = None
        self.running = False
        self.receive_thread: Optional[threading.Thread] = None

        # 最新数据缓存
        self.latest_accel: Optional[AccelSample] = None
        self.latest_mag: Optional[MagSample] = None

        # 回调函数
        self.on_accel_update: Optional[Callable[[AccelSample], None]] = None
        self.on_mag_update: Optional[Callable[[MagSample], None]] = None

        # 统计信息
        self.lines_received = 0
        self.parse_errors = 0

    def connect(self) -> bool:
        """连接串口

        Returns:
            连接成功返回True，失败返回False
        """
        try:
            self.serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=config.TIMEOUT
            )
            logger.info(f"串口已连接: {self.port} @ {self.baudrate}")
            return True
        except serial.SerialException as e:
            logger.error(f"串口连接失败: {e}")
            return False

    def start(self) -> bool:
        """启动接收线程

        Returns:
            启动成功返回True
        """
        if not self.serial or not self.serial.is_open:
            if not self.connect():
                return False

        self.running = True
        self.receive_thread = threading.Thread(
            target=self._receive_loop,
            daemon=True,
            name="SensorLink-Receiver"
        )
        self.receive_thread.start()
        logger.info("接收线程已启动")
        return True

    def stop(self):
        """停止接收并关闭串口"""
        self.running = False

        if self.receive_thread and self.receive_thread.is_alive():
            self.receive_thread.join(timeout=2.0)
            logger.info("接收线程已停止")

        if self.serial and self.serial.is_open:
            self.serial.close()
            logger.info("串口已关闭")

    def _receive_loop(self):
        """接收循环（在独立线程中运行）"""
        buffer = ""

        while self.running:
            try:
                if self.serial and self.serial.in_waiting:
                    data = self.serial.read(self.serial.in_waiting)
                    buffer += data.decode('utf-8', errors='ignore')

                    # 按行处理
                    while '\n' in buffer:
                        line, buffer = buffer.split('\n', 1)
                        self.feed_line(line)
                else:
                    # 没有数据时短暂休眠，避免CPU占用过高
                    time.sleep(0.001)

            except serial.SerialException as e:
                logger.error(f"串口读取错误: {e}")
                time.sleep(0.1)
            except Exception as e:
                logger.error(f"接收循环错误: {e}")
                time.sleep(0.1)

    def feed_line(self, line: str):
        """处理一行数据（接收线程和回放共用）"""
        if not line.strip():
            return

        self.lines_received += 1
        sample = parse_line(line)

        if isinstance(sample, AccelSample):
            self.latest_accel = sample
            if self.on_accel_update:
                self.on_accel_update(sample)
        elif isinstance(sample, MagSample):
            self.latest_mag = sample
            if self.on_mag_update:
                self.on_mag_update(sample)
        else:
            self.parse_errors += 1

    def is_connected(self) -> bool:
        return self.serial is not None and self.serial.is_open
