import pytest

from analyzer import speech_recognizer
from analyzer.speech_recognizer import (
    RecognizerUnavailable,
    SpeechRecognizer,
    TranscriptionError,
)


class _Result:
    def __init__(self, payload):
        self.payload = payload

    def to_dict(self):
        return self.payload


class _Model:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.inputs = []

    def transcribe(self, audio, **kwargs):
        self.inputs.append((audio, kwargs))
        if self.error:
            raise self.error
        return _Result(self.payload)


@pytest.fixture
def with_ffmpeg(monkeypatch):
    monkeypatch.setattr(speech_recognizer.shutil, 'which', lambda name: '/usr/bin/ffmpeg')


def test_missing_ffmpeg_is_unavailable(monkeypatch):
    monkeypatch.setattr(speech_recognizer.shutil, 'which', lambda name: None)
    with pytest.raises(RecognizerUnavailable):
        SpeechRecognizer().transcribe(b'data')


def test_transcribe_bytes(with_ffmpeg):
    payload = {
        'text': ' Hello there. ',
        'segments': [
            {'words': [{'word': ' Hello', 'start': 0.0, 'end': 0.4, 'probability': 0.9}]}
        ],
    }
    recognizer = SpeechRecognizer()
    recognizer._model = _Model(payload)
    tr = recognizer.transcribe(b'RIFFdata')
    assert tr.text == 'Hello there.'
    assert tr.words == [{'word': 'Hello', 'start': 0.0, 'end': 0.4, 'prob': 0.9}]
    audio, kwargs = recognizer._model.inputs[0]
    assert audio.endswith('.wav')
    assert kwargs['language'] == 'en'


def test_transcribe_path_is_passed_through(with_ffmpeg, tmp_path):
    recognizer = SpeechRecognizer()
    recognizer._model = _Model({'text': 'hi', 'segments': []})
    recognizer.transcribe(str(tmp_path / 'take.wav'))
    assert recognizer._model.inputs[0][0] == str(tmp_path / 'take.wav')


def test_model_errors_become_transcription_errors(with_ffmpeg):
    recognizer = SpeechRecognizer()
    recognizer._model = _Model(error=RuntimeError('CUDA out of memory'))
    with pytest.raises(TranscriptionError, match='CUDA'):
        recognizer.transcribe(b'data')


def test_unsupported_input(with_ffmpeg):
    recognizer = SpeechRecognizer()
    recognizer._model = _Model({'text': ''})
    with pytest.raises(TranscriptionError):
        recognizer.transcribe(12345)
