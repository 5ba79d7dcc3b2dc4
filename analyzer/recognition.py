from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable

from analyzer.speech_recognizer import RecognizerUnavailable, Transcript
from configs.thresholds import FALLBACK_RANGES, RECOGNITION_TIMEOUT_SEC

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recognized:
    text: str


@dataclass(frozen=True)
class Unavailable:
    reason: str = ''


@dataclass(frozen=True)
class RecognitionFailed:
    reason: str = ''


@dataclass(frozen=True)
class TimedOut:
    seconds: float = RECOGNITION_TIMEOUT_SEC


RecognitionOutcome = Recognized | Unavailable | RecognitionFailed | TimedOut


def outcome_kind(outcome: RecognitionOutcome) -> str:
    if isinstance(outcome, Recognized):
        return 'recognized'
    if isinstance(outcome, Unavailable):
        return 'unavailable'
    if isinstance(outcome, TimedOut):
        return 'timeout'
    return 'error'


def fallback_range(outcome: RecognitionOutcome) -> tuple[int, int]:
    if isinstance(outcome, Recognized):
        raise ValueError('recognized outcome has a real transcript')
    if isinstance(outcome, Unavailable):
        return FALLBACK_RANGES['unavailable']
    # принудительно остановленная сессия считается ошибкой распознавания
    return FALLBACK_RANGES['error']


def fallback_score(outcome: RecognitionOutcome, rng: random.Random | None = None) -> int:
    lo, hi = fallback_range(outcome)
    return (rng or random).randint(lo, hi)


def recognize_with_timeout(
    transcribe: Callable[[Any], Transcript | str],
    audio: Any,
    timeout: float = RECOGNITION_TIMEOUT_SEC,
    load: Callable[[], Any] | None = None,
    on_finish: Callable[[], None] | None = None,
) -> RecognitionOutcome:
    """Run ``transcribe(audio)`` with a deadline.

    ``load`` prepares the recognizer before the deadline starts, so a cold
    model load is never reported as a timeout. ``on_finish`` runs once the
    recording is no longer read, which after a timeout is when the abandoned
    worker returns.
    """
    if load is not None:
        try:
            load()
        except RecognizerUnavailable as error:
            logger.warning('recognition unavailable: %s', error)
            _finish(on_finish)
            return Unavailable(reason=str(error))
        except Exception as error:
            logger.exception('recognizer load failed')
            _finish(on_finish)
            return RecognitionFailed(reason=str(error))
    abandoned = threading.Event()

    def _done(done: Future) -> None:
        if abandoned.is_set() and not done.cancelled() and done.exception() is not None:
            logger.warning('abandoned recognition failed: %s', done.exception())
        _finish(on_finish)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='recognition')
    future = executor.submit(transcribe, audio)
    try:
        result = future.result(timeout=timeout)
    except FutureTimeout:
        abandoned.set()
        future.cancel()
        logger.warning('recognition timed out after %.1fs', timeout)
        return TimedOut(seconds=timeout)
    except RecognizerUnavailable as error:
        logger.warning('recognition unavailable: %s', error)
        return Unavailable(reason=str(error))
    except Exception as error:
        logger.exception('recognition failed')
        return RecognitionFailed(reason=str(error))
    finally:
        future.add_done_callback(_done)
        executor.shutdown(wait=False)
    text = result.text if isinstance(result, Transcript) else str(result or '')
    return Recognized(text=text)


def _finish(on_finish: Callable[[], None] | None) -> None:
    if on_finish is None:
        return
    try:
        on_finish()
    except Exception:
        logger.exception('recognition cleanup failed')
