"""
语音输出模块
导航核心只调用 speak(text)，不关心返回值；播报失败不影响导航状态
"""

import logging
import shutil
import subprocess
import threading
from typing import List

from indoor_nav import config

logger = logging.getLogger(__name__)


class VoiceSink:
    """语音输出基类"""

    def speak(self, text: str):
        raise NotImplementedError


class LoggingVoice(VoiceSink):
    """只写日志的语音输出（无音频设备时使用）"""

    def speak(self, text: str):
        logger.info(f"[语音] {text}")


class RecordingVoice(VoiceSink):
    """把播报内容保存在内存中（测试和回放统计用）"""

    def __init__(self):
        self.phrases: List[str] = []
        self._lock = threading.Lock()

    def speak(self, text: str):
        with self._lock:
            self.phrases.append(text)

    @property
    def last(self):
        with self._lock:
            return self.phrases[-1] if self.phrases else None

    def clear(self):
        with self._lock:
            self.phrases.clear()


class EspeakVoice(VoiceSink):
    """espeak 语音输出

    每条播报启动一个 espeak 子进程，不等待播放结束。
    """

    def __init__(self, voice: str = config.ESPEAK_VOICE, rate: int = config.ESPEAK_RATE):
        self.voice = voice
        self.rate = rate
        self.executable = shutil.which('espeak') or shutil.which('espeak-ng')

        if self.executable:
            logger.info(f"espeak 可用: {self.executable}")
        else:
            logger.warning("未找到 espeak，播报内容只写入日志")

    def speak(self, text: str):
        if not self.executable:
            logger.info(f"[语音] {text}")
            return

        try:
            subprocess.Popen(
                [self.executable, '-v', self.voice, '-s', str(self.rate), text],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
        except OSError as e:
            logger.error(f"espeak 播报失败: {e}")


def create_voice(engine: str = config.VOICE_ENGINE) -> VoiceSink:
    """工厂函数：创建语音输出对象

    Args:
        engine: 'log' | 'espeak' | 'memory'

    Returns:
        VoiceSink对象
    """
    engine = engine.lower()
    if engine == 'log':
        return LoggingVoice()
    if engine == 'espeak':
        return EspeakVoice()
    if engine == 'memory':
        return RecordingVoice()
    raise ValueError(f"不支持的语音引擎: {engine}，请使用'log'、'espeak'或'memory'")
