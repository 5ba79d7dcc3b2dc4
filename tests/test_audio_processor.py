import pytest

from processors.audio_processor import extract_basic_features


def test_features_from_bytes(make_wav):
    summary = extract_basic_features(make_wav(seconds=1.0))['summary']
    assert summary['sample_rate'] == 16000
    assert summary['duration_sec'] == pytest.approx(1.0, abs=0.01)
    assert summary['silent'] is False


def test_silent_recording(make_wav):
    assert extract_basic_features(make_wav(amplitude=0.0))['summary']['silent'] is True


def test_too_short_recording(make_wav):
    assert extract_basic_features(make_wav(seconds=0.1))['summary']['silent'] is True


def test_features_from_path(tmp_path, make_wav):
    path = tmp_path / 'take.wav'
    path.write_bytes(make_wav())
    assert extract_basic_features(str(path))['summary']['silent'] is False


def test_unsupported_input():
    with pytest.raises(TypeError):
        extract_basic_features(12345)
