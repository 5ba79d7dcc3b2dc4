from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import requests

logger = logging.getLogger(__name__)

TTS_URL = 'https://translate.google.com/translate_tts'
ACCENTS = ('en-GB', 'en-US')
USER_AGENT = 'Mozilla/5.0 (EnglishEcho pronunciation trainer) Python/3'


class TTSError(RuntimeError):
    ...


class TTSService:
    """British and American reference audio via the Google Translate TTS endpoint."""

    def __init__(
        self,
        audio_dir: str | Path = 'audio',
        session: requests.Session | None = None,
        timeout: float = 15.0,
    ):
        self.audio_dir = Path(audio_dir)
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})
        self.timeout = timeout

    def generate_audio(self, text: str, accent: str) -> Path:
        if accent not in ACCENTS:
            raise ValueError(f'Unknown accent: {accent}')
        path = self.audio_dir / f'{uuid.uuid4()}-{accent}.mp3'
        params = {
            'ie': 'UTF-8',
            'q': text,
            'tl': accent,
            'total': 1,
            'idx': 0,
            'textlen': len(text),
            'client': 'tw-ob',
        }
        try:
            response = self.session.get(TTS_URL, params=params, timeout=self.timeout)
            if response.status_code != 200:
                raise TTSError(
                    f'TTS generation failed with status: {response.status_code}'
                )
            path.write_bytes(response.content)
        except requests.exceptions.RequestException as error:
            path.unlink(missing_ok=True)
            raise TTSError(f'TTS request failed: {error}') from error
        except OSError as error:
            path.unlink(missing_ok=True)
            raise TTSError(f'Could not save TTS audio: {error}') from error
        except TTSError:
            path.unlink(missing_ok=True)
            raise
        logger.debug('tts saved accent=%s bytes=%d path=%s', accent, len(response.content), path)
        return path

    def generate_both_accents(self, text: str) -> tuple[Path, Path]:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix='tts') as pool:
            british = pool.submit(self.generate_audio, text, 'en-GB')
            american = pool.submit(self.generate_audio, text, 'en-US')
            try:
                return british.result(), american.result()
            except TTSError:
                for future in (british, american):
                    if future.exception() is None:
                        self.delete_audio(future.result())
                raise

    @staticmethod
    def audio_url(path: str | Path | None) -> str | None:
        if not path:
            return None
        return f'/api/audio/{Path(path).name}'

    def delete_audio(self, path: str | Path | None) -> None:
        if not path:
            return
        try:
            Path(path).unlink(missing_ok=True)
        except OSError:
            logger.exception('Error deleting audio file: %s', path)


def generate_audio_for_sentence(repository, tts: TTSService, sentence_id: int, text: str) -> bool:
    try:
        british, american = tts.generate_both_accents(text)
    except TTSError as error:
        logger.error('Error generating audio for sentence %s: %s', sentence_id, error)
        repository.set_status(sentence_id, 'failed')
        return False
    repository.set_audio(sentence_id, str(british), str(american), status='completed')
    logger.info('Audio generated for sentence %s', sentence_id)
    return True
