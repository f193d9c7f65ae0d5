"""
数据记录与回放模块
记录手机传感器采样，支持离线回放驱动导航会话
"""

import json
import logging
import pickle
import time
from datetime import datetime
from pathlib import Path
from typing import Iterator, Union

from indoor_nav import config
from indoor_nav.sensors.protocol import AccelSample, MagSample

logger = logging.getLogger(__name__)


class DataRecorder:
    """传感器数据记录器

    功能：
    - 记录加速度计、磁力计采样
    - 保存为JSON或pickle格式
    - 按采样时间顺序回放

    Example:
        >>> recorder = DataRecorder()
        >>> recorder.start_recording('corridor_walk', format='json')
        >>> recorder.record_accel(accel_sample)
        >>> recorder.record_mag(mag_sample)
        >>> recorder.stop_recording()
        >>>
        >>> # 回放
        >>> recorder.load_recording('data/recordings/corridor_walk_20250101_120000.json')
        >>> for sample in recorder.iter_samples():
        >>>     print(sample)
    """

    VERSION = '1.0'

    def __init__(self, data_dir: str = config.RECORDING_DIR):
        """初始化数据记录器

        Args:
            data_dir: 数据保存目录
        """
        self.data_dir = Path(data_dir)

        self.recording = False
        self.current_file = None
        self.format = 'json'
        self.start_time = 0

        # 数据缓冲区
        self.frames = []

        # 统计信息
        self.stats = {
            'accel_count': 0,
            'mag_count': 0,
            'duration': 0
        }

    def start_recording(self, filename: str, format: str = 'json') -> bool:
        """开始记录

        Args:
            filename: 文件名（会追加时间戳）
            format: 'pickle' 或 'json'
        """
        if self.recording:
            logger.warning("已在记录中，请先停止")
            return False
        if format not in ('json', 'pickle'):
            raise ValueError(f"不支持的格式: {format}，请使用'json'或'pickle'")

        self.data_dir.mkdir(parents=True, exist_ok=True)

        # 添加时间戳到文件名
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        base_name = Path(filename).stem
        ext = '.pkl' if format == 'pickle' else '.json'

        self.current_file = self.data_dir / f"{base_name}_{timestamp}{ext}"
        self.format = format
        self.recording = True
        self.start_time = time.time()
        self.frames = []

        # 重置统计
        for key in self.stats:
            self.stats[key] = 0

        logger.info(f"开始记录: {self.current_file}")
        return True

    def record_accel(self, sample: AccelSample):
        """记录加速度采样"""
        if not self.recording:
            return

        self.frames.append({
            'type': 'accel',
            'timestamp': time.time() - self.start_time,
            'data': {
                'timestamp': sample.timestamp,
                'x': sample.x,
                'y': sample.y,
                'z': sample.z
            }
        })
        self.stats['accel_count'] += 1

    def record_mag(self, sample: MagSample):
        """记录磁力计采样"""
        if not self.recording:
            return

        self.frames.append({
            'type': 'mag',
            'timestamp': time.time() - self.start_time,
            'data': {
                'timestamp': sample.timestamp,
                'x': sample.x,
                'y': sample.y,
                'z': sample.z
            }
        })
        self.stats['mag_count'] += 1

    def stop_recording(self) -> bool:
        """停止记录并保存"""
        if not self.recording:
            logger.warning("未在记录中")
            return False

        self.recording = False
        self.stats['duration'] = time.time() - self.start_time
        self.save(self.current_file)

        logger.info(f"记录完成: {self.current_file} "
                    f"(时长={self.stats['duration']:.1f}秒, "
                    f"加速度={self.stats['accel_count']}帧, "
                    f"磁力计={self.stats['mag_count']}帧)")
        return True

    def save(self, filepath: Union[str, Path]):
        """把当前缓冲区写入文件（格式由扩展名决定）"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        data_to_save = {
            'version': self.VERSION,
            'start_time': self.start_time,
            'duration': self.stats['duration'],
            'stats': self.stats,
            'frames': self.frames
        }

        if filepath.suffix == '.pkl':
            with open(filepath, 'wb') as f:
                pickle.dump(data_to_save, f)
        else:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(data_to_save, f, indent=2)

    def load_recording(self, filename: Union[str, Path]) -> bool:
        """加载录制文件

        Args:
            filename: 文件路径（不存在时在data_dir中查找）
        """
        filepath = Path(filename)
        if not filepath.exists():
            filepath = self.data_dir / filename

        if not filepath.exists():
            logger.error(f"文件不存在: {filename}")
            return False

        try:
            if filepath.suffix == '.pkl':
                with open(filepath, 'rb') as f:
                    data = pickle.load(f)
            else:
                with open(filepath, 'r', encoding='utf-8') as f:
                    data = json.load(f)

            self.frames = data['frames']
            self.stats = data['stats']
        except (OSError, ValueError, KeyError, TypeError, pickle.UnpicklingError) as e:
            logger.error(f"加载失败: {e}")
            return False

        logger.info(f"加载成功: {filepath} (总帧数={len(self.frames)})")
        return True

    def replay(self, speed: float = 0.0) -> Iterator[dict]:
        """回放数据帧

        Args:
            speed: 回放速度倍率（1.0=实时，0=不等待）

        Yields:
            数据帧
        """
        if not self.frames:
            logger.warning("没有数据可回放")
            return

        last_time = self.frames[0]['timestamp']
        for frame in self.frames:
            if speed > 0:
                delay = (frame['timestamp'] - last_time) / speed
                if delay > 0:
                    time.sleep(delay)
            last_time = frame['timestamp']
            yield frame

    def iter_samples(self, speed: float = 0.0) -> Iterator[Union[AccelSample, MagSample]]:
        """回放并把数据帧还原为采样对象（未知类型或缺少字段的帧被跳过）"""
        for frame in self.replay(speed):
            data = frame.get('data', {})
            try:
                if frame.get('type') == 'accel':
                    sample = AccelSample(data['timestamp'], data['x'], data['y'], data['z'])
                elif frame.get('type') == 'mag':
                    sample = MagSample(data['timestamp'], data['x'], data['y'], data.get('z', 0.0))
                else:
                    logger.debug(f"跳过未知帧: {frame.get('type')}")
                    continue
            except (KeyError, TypeError) as e:
                logger.warning(f"跳过不完整的帧: {frame!r} ({e})")
                continue
            yield sample

    def get_statistics(self):
        """获取统计信息"""
        return self.stats.copy()
