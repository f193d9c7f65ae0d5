"""
副作用分发器测试
"""

import threading

from indoor_nav.utils.dispatcher import EffectDispatcher


def test_inline_dispatch_runs_immediately():
    calls = []
    dispatcher = EffectDispatcher(background=False)
    dispatcher.dispatch(calls.append, threading.current_thread().name)
    assert calls == [threading.current_thread().name]


def test_background_dispatch_runs_on_worker_thread():
    """后台模式在单独线程中按提交顺序执行"""
    names, order = [], []
    dispatcher = EffectDispatcher(background=True)

    for i in range(5):
        dispatcher.dispatch(order.append, i)
    dispatcher.dispatch(lambda: names.append(threading.current_thread().name))
    dispatcher.flush()

    assert order == [0, 1, 2, 3, 4]
    assert names[0] != threading.current_thread().name
    assert names[0].startswith('EffectDispatcher')
    dispatcher.shutdown()


def test_failures_are_logged_not_raised():
    def broken():
        raise IOError("disk full")

    for background in (False, True):
        dispatcher = EffectDispatcher(background=background)
        dispatcher.dispatch(broken)
        dispatcher.flush()
        assert dispatcher.failures == 1
        dispatcher.shutdown()
