from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from configs.thresholds import RECOGNITION_TIMEOUT_SEC


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_path: Path = Path('englishecho.db')
    audio_dir: Path = Path('audio')
    admin_username: str = 'admin'
    admin_password: str = 'admin123'
    session_ttl_hours: float = 24.0
    model_size: str = 'base'
    recognition_timeout_sec: float = RECOGNITION_TIMEOUT_SEC
    max_file_mb: float = 20.0
    tts_timeout_sec: float = 15.0
    debug: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            database_path=Path(os.getenv('DATABASE_PATH', 'englishecho.db')),
            audio_dir=Path(os.getenv('AUDIO_DIR', 'audio')),
            admin_username=os.getenv('ADMIN_USERNAME', 'admin'),
            admin_password=os.getenv('ADMIN_PASSWORD', 'admin123'),
            session_ttl_hours=_env_float('SESSION_TTL_HOURS', 24.0),
            model_size=os.getenv('MODEL_SIZE', 'base'),
            recognition_timeout_sec=_env_float(
                'RECOGNITION_TIMEOUT_SEC', RECOGNITION_TIMEOUT_SEC
            ),
            max_file_mb=_env_float('MAX_FILE_MB', 20.0),
            tts_timeout_sec=_env_float('TTS_TIMEOUT_SEC', 15.0),
            debug=os.getenv('API_DEBUG', '0') in {'1', 'true', 'True'},
        )
