"""
传感器串口链路测试（不打开真实串口）
"""

import threading

import pytest

from indoor_nav.sensors.protocol import AccelSample, MagSample
from indoor_nav.sensors.sensor_link import SensorLink, parse_line


def test_parse_accel_line():
    sample = parse_line("ACC,1200,0.12,-0.5,9.81\r\n")
    assert isinstance(sample, AccelSample)
    assert sample.timestamp == 1200
    assert sample.z == pytest.approx(9.81)


def test_parse_mag_line():
    sample = parse_line("MAG,1300,21.5,-3.0")
    assert isinstance(sample, MagSample)
    assert sample.x == pytest.approx(21.5)
    assert sample.z == 0.0

    sample = parse_line("mag,1300,21.5,-3.0,40.2")
    assert sample.z == pytest.approx(40.2)


@pytest.mark.parametrize('line', [
    "",
    "   ",
    "GPS,1,2,3",
    "ACC,1200,0.1,0.2",
    "ACC,abc,0.1,0.2,0.3",
    "MAG,1300,x,1.0",
    "MAG,1300",
])
def test_parse_rejects_bad_lines(line):
    assert parse_line(line) is None


def test_feed_line_dispatches_callbacks():
    link = SensorLink(port='/dev/null-test')
    accels, mags = [], []
    link.on_accel_update = accels.append
    link.on_mag_update = mags.append

    link.feed_line("ACC,0,0,0,12")
    link.feed_line("MAG,5,0,1")
    link.feed_line("ACC,10,0,0,9")
    link.feed_line("garbage")
    link.feed_line("")

    assert [s.timestamp for s in accels] == [0, 10]
    assert [s.timestamp for s in mags] == [5]
    assert link.latest_accel.timestamp == 10
    assert link.latest_mag.timestamp == 5
    assert link.lines_received == 4
    assert link.parse_errors == 1


def test_not_connected_by_default():
    link = SensorLink(port='/dev/null-test')
    assert not link.is_connected()


class FakeSerial:
    """按块返回预置数据的串口替身"""

    def __init__(self, chunks):
        self.chunks = [c.encode('utf-8') for c in chunks]
        self.is_open = True
        self._lock = threading.Lock()

    @property
    def in_waiting(self):
        with self._lock:
            return len(self.chunks[0]) if self.chunks else 0

    def read(self, size):
        with self._lock:
            return self.chunks.pop(0)

    def close(self):
        self.is_open = False


def test_receive_loop_survives_callback_error():
    """回调抛出异常后接收线程继续运行，后续采样照常分发"""
    link = SensorLink(port='/dev/null-test')
    link.serial = FakeSerial(["ACC,1,0,0,12\n", "ACC,2,0,0,9\n"])

    seen = []
    second = threading.Event()

    def on_accel(sample):
        seen.append(sample.timestamp)
        if sample.timestamp == 1:
            raise RuntimeError("tracker failure")
        second.set()

    link.on_accel_update = on_accel
    assert link.start()
    try:
        assert second.wait(timeout=2.0)
        assert link.receive_thread.is_alive()
    finally:
        link.stop()

    assert seen == [1, 2]
    assert not link.is_connected()
