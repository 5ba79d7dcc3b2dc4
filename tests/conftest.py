from __future__ import annotations

import io

import numpy as np
import pytest
import soundfile as sf

from db_connector import SentenceRepository
from processors.tts import TTSError, TTSService


class FakeTTS(TTSService):
    def __init__(self, audio_dir, fail: bool = False):
        super().__init__(audio_dir)
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    def generate_audio(self, text, accent):
        self.calls.append((text, accent))
        if self.fail:
            raise TTSError('TTS generation failed with status: 503')
        path = self.audio_dir / f'{len(self.calls)}-{accent}.mp3'
        path.write_bytes(b'ID3fake')
        return path


@pytest.fixture
def repo(tmp_path):
    repository = SentenceRepository(tmp_path / 'test.db')
    repository.init_schema()
    return repository


@pytest.fixture
def fake_tts(tmp_path):
    return FakeTTS(tmp_path / 'audio')


def wav_bytes(seconds: float = 1.0, amplitude: float = 0.3, sr: int = 16000) -> bytes:
    t = np.linspace(0, seconds, int(sr * seconds), endpoint=False)
    wave = (amplitude * np.sin(2 * np.pi * 220 * t)).astype(np.float32)
    buf = io.BytesIO()
    sf.write(buf, wave, sr, format='WAV')
    return buf.getvalue()


@pytest.fixture
def failing_tts(tmp_path):
    return FakeTTS(tmp_path / 'audio', fail=True)


@pytest.fixture
def make_wav():
    return wav_bytes
