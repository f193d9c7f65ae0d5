"""
副作用分发模块
持久化写入和语音播报在状态更新之后派发；后台模式下调用方不等待完成，
同步模式（默认）在调用线程内立即执行；
副作用抛出的异常只记录日志
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

logger = logging.getLogger(__name__)


class EffectDispatcher:
    """副作用分发器

    background=True 时使用单工作线程按提交顺序执行；False 时在调用
    线程内立即执行（测试和离线回放使用）。

    Example:
        >>> dispatcher = EffectDispatcher()
        >>> dispatcher.dispatch(voice.speak, "Wall ahead")
        >>> dispatcher.shutdown()
    """

    def __init__(self, background: bool = True):
        self.background = background
        self._executor = None
        if background:
            self._executor = ThreadPoolExecutor(max_workers=1,
                                                thread_name_prefix='EffectDispatcher')
        self.failures = 0

    def dispatch(self, func: Callable, *args, **kwargs):
        """派发一个副作用"""
        if self._executor is not None:
            self._executor.submit(self._run, func, *args, **kwargs)
        else:
            self._run(func, *args, **kwargs)

    def _run(self, func: Callable, *args, **kwargs):
        try:
            func(*args, **kwargs)
        except Exception as e:
            self.failures += 1
            name = getattr(func, '__qualname__', repr(func))
            logger.warning(f"副作用执行失败 {name}: {e}")

    def flush(self):
        """等待已提交的副作用全部完成"""
        if self._executor is not None:
            self._executor.submit(lambda: None).result()

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
