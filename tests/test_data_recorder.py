"""
传感器数据记录与回放测试
"""

import pytest

from indoor_nav.sensors.protocol import AccelSample, MagSample
from indoor_nav.utils.data_recorder import DataRecorder


@pytest.fixture
def recorder(tmp_path):
    return DataRecorder(data_dir=str(tmp_path))


def record_walk(recorder):
    recorder.record_mag(MagSample(0, 0.0, 1.0))
    recorder.record_accel(AccelSample(0, 0.0, 0.0, 12.0))
    recorder.record_accel(AccelSample(100, 0.0, 0.0, 9.0))


@pytest.mark.parametrize('fmt, suffix', [('json', '.json'), ('pickle', '.pkl')])
def test_record_and_replay(recorder, fmt, suffix):
    assert recorder.start_recording('walk', format=fmt)
    record_walk(recorder)
    assert recorder.stop_recording()

    path = recorder.current_file
    assert path.suffix == suffix
    assert path.exists()

    loaded = DataRecorder(data_dir=str(path.parent))
    assert loaded.load_recording(str(path))

    samples = list(loaded.iter_samples())
    assert samples == [
        MagSample(0, 0.0, 1.0, 0.0),
        AccelSample(0, 0.0, 0.0, 12.0),
        AccelSample(100, 0.0, 0.0, 9.0),
    ]
    stats = loaded.get_statistics()
    assert stats['accel_count'] == 2
    assert stats['mag_count'] == 1


def test_load_by_name_from_data_dir(recorder):
    recorder.start_recording('corridor')
    record_walk(recorder)
    recorder.stop_recording()

    other = DataRecorder(data_dir=str(recorder.data_dir))
    assert other.load_recording(recorder.current_file.name)


def test_missing_or_corrupt_file(recorder, tmp_path):
    assert not recorder.load_recording('does_not_exist.json')

    broken = tmp_path / 'broken.json'
    broken.write_text('{"frames": ', encoding='utf-8')
    assert not recorder.load_recording(str(broken))


def test_not_recording_is_noop(recorder):
    recorder.record_accel(AccelSample(0, 0.0, 0.0, 12.0))
    assert recorder.frames == []
    assert recorder.stop_recording() is False


def test_double_start_and_bad_format(recorder):
    assert recorder.start_recording('a')
    assert recorder.start_recording('b') is False
    recorder.stop_recording()

    with pytest.raises(ValueError):
        recorder.start_recording('c', format='csv')


def test_unknown_frames_skipped(recorder):
    recorder.frames = [
        {'type': 'gps', 'timestamp': 0.0, 'data': {}},
        {'type': 'accel', 'timestamp': 0.1, 'data': {'timestamp': 5, 'x': 0, 'y': 0, 'z': 1}},
    ]
    samples = list(recorder.iter_samples())
    assert samples == [AccelSample(5, 0, 0, 1)]


def test_replay_empty(recorder):
    assert list(recorder.replay()) == []


def test_incomplete_frames_skipped(recorder):
    """缺少字段的帧被跳过，回放继续"""
    recorder.frames = [
        {'type': 'accel', 'timestamp': 0.0, 'data': {'x': 1}},
        {'type': 'mag', 'timestamp': 0.1, 'data': None},
        {'type': 'mag', 'timestamp': 0.2, 'data': {'timestamp': 7, 'x': 0.0, 'y': 1.0}},
    ]
    samples = list(recorder.iter_samples())
    assert samples == [MagSample(7, 0.0, 1.0, 0.0)]
