from __future__ import annotations

import io
import logging
import os
import subprocess
import tempfile
from typing import Any

import librosa
import numpy as np
import soundfile as sf

from configs.thresholds import MIN_SPEECH_SEC, SILENCE_RMS

logger = logging.getLogger(__name__)


class AudioConversionError(RuntimeError):
    ...


def convert_to_wav(src_path: str) -> str:
    """Re-encode a browser recording (webm/ogg/mp3) as 16 kHz mono WAV."""
    with tempfile.NamedTemporaryFile(delete=False, suffix='.wav') as wtmp:
        wav_path = wtmp.name
    cmd = ['ffmpeg', '-y', '-i', src_path, '-ac', '1', '-ar', '16000', wav_path]
    logger.debug('ffmpeg cmd: %s', ' '.join(cmd))
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError) as error:
        os.remove(wav_path)
        raise AudioConversionError(f'ffmpeg convert failed: {error}') from error
    return wav_path


def extract_basic_features(file) -> dict[str, Any]:
    data: bytes | None = None
    if hasattr(file, 'getvalue'):
        data = file.getvalue()
    elif hasattr(file, 'read'):
        data = file.read()
    elif isinstance(file, bytes | bytearray):
        data = bytes(file)
    elif isinstance(file, str | os.PathLike):
        value_y, sr = librosa.load(str(file), sr=None, mono=True)
        return _features_from_wave(value_y, int(sr))
    else:
        raise TypeError('extract_basic_features: ожидаются bytes/UploadedFile/путь к файлу')
    value_y, sr = sf.read(io.BytesIO(data), dtype='float32', always_2d=True)
    value_y = np.mean(value_y, axis=1).astype(np.float32)
    return _features_from_wave(value_y, int(sr))


def _features_from_wave(value_y: np.ndarray, sr: int) -> dict[str, Any]:
    duration = float(len(value_y) / max(sr, 1))
    if len(value_y) == 0:
        rms = 0.0
        peak = 0.0
    else:
        rms = float(np.mean(librosa.feature.rms(y=value_y)))
        peak = float(np.max(np.abs(value_y)))
    silent = rms < SILENCE_RMS or duration < MIN_SPEECH_SEC
    return {
        'summary': {
            'duration_sec': round(duration, 3),
            'sample_rate': sr,
            'rms': rms,
            'peak': peak,
            'silent': bool(silent),
        }
    }
