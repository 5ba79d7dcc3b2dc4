from __future__ import annotations

import logging
import os
import pathlib
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class TranscriptionError(RuntimeError):
    ...


class RecognizerUnavailable(TranscriptionError):
    ...


@dataclass
class Transcript:
    text: str
    words: list[dict[str, Any]] = field(default_factory=list)


class SpeechRecognizer:
    """Whisper transcription of a practice recording (stable-ts).

    The model is loaded on first use and kept for the life of the object.
    """

    def __init__(self, model_size: str = 'base', language: str | None = 'en'):
        self.model_size = model_size
        self.language = language
        self._model = None
        self._lock = threading.Lock()

    def _load_model(self):
        if shutil.which('ffmpeg') is None:
            raise RecognizerUnavailable('FFmpeg не найден в PATH')
        with self._lock:
            if self._model is None:
                try:
                    import stable_whisper

                    logger.info('loading whisper model size=%s', self.model_size)
                    self._model = stable_whisper.load_model(self.model_size)
                except Exception as error:
                    raise RecognizerUnavailable(
                        f'Не удалось загрузить stable-whisper ({error})'
                    ) from error
        return self._model

    def load(self):
        """Load the model ahead of the first transcription."""
        return self._load_model()

    def transcribe(self, file, suffix: str = '.wav') -> Transcript:
        model = self._load_model()
        tmp_path = None
        try:
            if hasattr(file, 'getvalue'):
                data = file.getvalue()
                name = getattr(file, 'name', f'audio{suffix}')
                suffix = pathlib.Path(name).suffix or suffix
            elif hasattr(file, 'read'):
                data = file.read()
            elif isinstance(file, (bytes, bytearray)):
                data = bytes(file)
            elif isinstance(file, (str, os.PathLike)):
                data = None
            else:
                raise TranscriptionError('Неподдерживаемый тип входа для аудио.')
            if data is not None:
                with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
                    tmp.write(data)
                    tmp_path = tmp.name
                audio_input = tmp_path
            else:
                audio_input = str(file)
            result = model.transcribe(
                audio_input, language=self.language, vad=True, word_timestamps=True
            )
            rd = result.to_dict() if hasattr(result, 'to_dict') else result
            if not isinstance(rd, dict):
                rd = {}
            text = (rd.get('text') or getattr(result, 'text', '') or '').strip()
            words: list[dict[str, Any]] = []
            for seg in rd.get('segments') or []:
                for item_w in seg.get('words', []) or []:
                    words.append(
                        {
                            'word': (item_w.get('word') or '').strip(),
                            'start': float(item_w.get('start', 0.0)),
                            'end': float(item_w.get('end', 0.0)),
                            'prob': float(item_w.get('probability', 0.0)),
                        }
                    )
            return Transcript(text=text, words=words)
        except TranscriptionError:
            raise
        except Exception as error:
            raise TranscriptionError(str(error)) from error
        finally:
            if tmp_path:
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.debug('temp cleanup failed: %s', tmp_path)
