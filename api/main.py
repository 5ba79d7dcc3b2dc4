from __future__ import annotations

import logging
import math
import os
import pathlib
import shutil
import tempfile
import time
from datetime import timedelta
from typing import Any, Literal

from fastapi import (
    BackgroundTasks,
    Depends,
    FastAPI,
    File,
    Form,
    Header,
    HTTPException,
    Query,
    Request,
    UploadFile,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from analyzer.assessment import assess
from analyzer.recognition import (
    RecognitionFailed,
    RecognitionOutcome,
    Recognized,
    Unavailable,
    recognize_with_timeout,
)
from analyzer.speech_recognizer import SpeechRecognizer
from api.sessions import Session, SessionStore, verify_credentials
from configs.settings import Settings
from db_connector import Sentence, SentenceRepository
from processors.audio_processor import (
    AudioConversionError,
    convert_to_wav,
    extract_basic_features,
)
from processors.tts import TTSService, generate_audio_for_sentence
from text import normalize_text

settings = Settings.from_env()
logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger('englishecho_api')

app = FastAPI(title='EnglishEcho REST API', version='1.0.0')

# CORS для фронта на другом порту
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*', 'null'],
    allow_origin_regex='.*',
    allow_credentials=False,
    allow_methods=['*'],
    allow_headers=['*'],
)
app.state.sessions = SessionStore(ttl=timedelta(hours=settings.session_ttl_hours))


class _ServiceHolder:
    _repository: SentenceRepository | None = None
    _tts: TTSService | None = None
    _recognizer: SpeechRecognizer | None = None

    @classmethod
    def repository(cls) -> SentenceRepository:
        if cls._repository is None:
            repo = SentenceRepository(settings.database_path)
            repo.init_schema()
            cls._repository = repo
        return cls._repository

    @classmethod
    def tts(cls) -> TTSService:
        if cls._tts is None:
            cls._tts = TTSService(settings.audio_dir, timeout=settings.tts_timeout_sec)
        return cls._tts

    @classmethod
    def recognizer(cls) -> SpeechRecognizer:
        if cls._recognizer is None:
            cls._recognizer = SpeechRecognizer(model_size=settings.model_size)
        return cls._recognizer


def get_repository() -> SentenceRepository:
    return _ServiceHolder.repository()


def get_tts() -> TTSService:
    return _ServiceHolder.tts()


def get_recognizer() -> SpeechRecognizer:
    return _ServiceHolder.recognizer()


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    return authorization.replace('Bearer ', '', 1).strip() or None


def require_admin(
    authorization: str | None = Header(None),
    sessions: SessionStore = Depends(get_sessions),
) -> Session:
    session = sessions.get(_bearer(authorization))
    if session is None:
        raise HTTPException(status_code=401, detail='Требуется вход администратора')
    return session


def sentence_to_dict(sentence: Sentence) -> dict[str, Any]:
    return {
        'id': sentence.id,
        'text': sentence.text,
        'category': sentence.category,
        'difficulty': sentence.difficulty,
        'audioBritish': TTSService.audio_url(sentence.audio_british),
        'audioAmerican': TTSService.audio_url(sentence.audio_american),
        'audioStatus': sentence.audio_status,
        'createdAt': sentence.created_at,
        'updatedAt': sentence.updated_at,
    }


class LoginRequest(BaseModel):
    username: str = ''
    password: str = ''


class SentenceIn(BaseModel):
    text: str | None = None
    category: str | None = None
    difficulty: int | None = None


class BulkRequest(BaseModel):
    sentences: list[SentenceIn] = []


class ScoreRequest(BaseModel):
    target: str
    recognized: str | None = None
    alignment: Literal['positional', 'sequence'] = 'positional'


@app.get('/api/health')
def health() -> dict[str, Any]:
    ffmpeg_ok = shutil.which('ffmpeg') is not None
    return {'status': 'ok' if ffmpeg_ok else 'degraded', 'ffmpeg': ffmpeg_ok}


@app.get('/api/version')
def version() -> dict[str, Any]:
    return {
        'api': app.version,
        'model_env': {
            'MODEL_SIZE': settings.model_size,
            'RECOGNITION_TIMEOUT_SEC': settings.recognition_timeout_sec,
        },
    }


@app.post('/api/auth/login')
def login(req: LoginRequest, sessions: SessionStore = Depends(get_sessions)):
    if not req.username or not req.password:
        raise HTTPException(status_code=400, detail='Нужны имя пользователя и пароль')
    if not verify_credentials(
        req.username, req.password, settings.admin_username, settings.admin_password
    ):
        logger.warning('failed admin login user=%s', req.username)
        raise HTTPException(status_code=401, detail='Неверные учётные данные')
    session = sessions.create(req.username)
    return {
        'message': 'Login successful',
        'sessionId': session.token,
        'username': session.username,
        'expiresAt': session.expires_at.isoformat(),
    }


@app.post('/api/auth/logout')
def logout(
    authorization: str | None = Header(None),
    sessions: SessionStore = Depends(get_sessions),
):
    sessions.revoke(_bearer(authorization))
    return {'message': 'Logout successful'}


@app.get('/api/auth/verify')
def verify(
    authorization: str | None = Header(None),
    sessions: SessionStore = Depends(get_sessions),
):
    session = sessions.get(_bearer(authorization))
    if session is None:
        return JSONResponse({'authenticated': False}, status_code=401)
    return {'authenticated': True, 'username': session.username}


@app.get('/api/stats')
def stats(repo: SentenceRepository = Depends(get_repository)):
    return repo.stats()


@app.get('/api/sentences')
def list_sentences(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    category: str | None = None,
    repo: SentenceRepository = Depends(get_repository),
):
    rows, total = repo.list_sentences(page=page, limit=limit, category=category or None)
    return {
        'data': [sentence_to_dict(s) for s in rows],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit),
        },
    }


@app.get('/api/sentences/categories')
def categories(repo: SentenceRepository = Depends(get_repository)):
    return repo.categories()


@app.get('/api/sentences/{sentence_id}')
def get_sentence(sentence_id: int, repo: SentenceRepository = Depends(get_repository)):
    sentence = repo.get(sentence_id)
    if sentence is None:
        raise HTTPException(status_code=404, detail='Предложение не найдено')
    return sentence_to_dict(sentence)


@app.post('/api/sentences', status_code=201)
def create_sentence(
    req: SentenceIn,
    background_tasks: BackgroundTasks,
    repo: SentenceRepository = Depends(get_repository),
    tts: TTSService = Depends(get_tts),
    _admin: Session = Depends(require_admin),
):
    text = normalize_text(req.text)
    if not text:
        raise HTTPException(status_code=400, detail='Текст обязателен')
    sentence = repo.create(text, req.category or 'general', req.difficulty or 1)
    background_tasks.add_task(generate_audio_for_sentence, repo, tts, sentence.id, text)
    return sentence_to_dict(sentence)


@app.post('/api/sentences/bulk', status_code=201)
def bulk_create(
    req: BulkRequest,
    background_tasks: BackgroundTasks,
    repo: SentenceRepository = Depends(get_repository),
    tts: TTSService = Depends(get_tts),
    _admin: Session = Depends(require_admin),
):
    if not req.sentences:
        raise HTTPException(status_code=400, detail='Нужен массив предложений')
    created: list[Sentence] = []
    for item in req.sentences:
        text = normalize_text(item.text)
        if not text:
            continue
        sentence = repo.create(text, item.category or 'general', item.difficulty or 1)
        created.append(sentence)
        background_tasks.add_task(
            generate_audio_for_sentence, repo, tts, sentence.id, text
        )
    return {
        'message': f'Created {len(created)} sentences',
        'data': [sentence_to_dict(s) for s in created],
    }


@app.put('/api/sentences/{sentence_id}')
def update_sentence(
    sentence_id: int,
    req: SentenceIn,
    background_tasks: BackgroundTasks,
    repo: SentenceRepository = Depends(get_repository),
    tts: TTSService = Depends(get_tts),
    _admin: Session = Depends(require_admin),
):
    text = normalize_text(req.text) or None
    sentence, text_changed = repo.update(
        sentence_id, text=text, category=req.category, difficulty=req.difficulty
    )
    if sentence is None:
        raise HTTPException(status_code=404, detail='Предложение не найдено')
    if text_changed:
        background_tasks.add_task(
            generate_audio_for_sentence, repo, tts, sentence.id, sentence.text
        )
    return sentence_to_dict(sentence)


@app.delete('/api/sentences/{sentence_id}')
def delete_sentence(
    sentence_id: int,
    repo: SentenceRepository = Depends(get_repository),
    _admin: Session = Depends(require_admin),
):
    if not repo.soft_delete(sentence_id):
        raise HTTPException(status_code=404, detail='Предложение не найдено')
    return {'message': 'Sentence deleted successfully'}


@app.post('/api/sentences/{sentence_id}/generate-audio')
def regenerate_audio(
    sentence_id: int,
    background_tasks: BackgroundTasks,
    repo: SentenceRepository = Depends(get_repository),
    tts: TTSService = Depends(get_tts),
    _admin: Session = Depends(require_admin),
):
    sentence = repo.get(sentence_id)
    if sentence is None:
        raise HTTPException(status_code=404, detail='Предложение не найдено')
    repo.set_status(sentence_id, 'processing')
    background_tasks.add_task(
        generate_audio_for_sentence, repo, tts, sentence.id, sentence.text
    )
    return {'message': 'Audio generation started'}


@app.get('/api/audio/{filename}')
def audio_file(filename: str, tts: TTSService = Depends(get_tts)):
    if pathlib.Path(filename).name != filename or not filename.endswith('.mp3'):
        raise HTTPException(status_code=404, detail='Файл не найден')
    path = tts.audio_dir / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail='Файл не найден')
    return FileResponse(path, media_type='audio/mpeg')


@app.post('/api/score')
def score_text(req: ScoreRequest):
    outcome = Recognized(text=req.recognized or '')
    return assess(req.target, outcome, alignment=req.alignment).to_dict()


def _remove_files(*paths: str | None) -> None:
    for path in paths:
        if path:
            try:
                os.remove(path)
            except OSError:
                logger.debug('temp cleanup failed: %s', path)


def _recognize_recording(
    recognizer: SpeechRecognizer, src_path: str, suffix: str
) -> tuple[RecognitionOutcome, dict[str, Any]]:
    # src_path переходит во владение: удаляется, когда распознавание его больше не читает
    wav_path = None
    handed_off = False
    try:
        use_path = src_path
        if suffix.lower() != '.wav':
            try:
                wav_path = convert_to_wav(src_path)
            except AudioConversionError as error:
                logger.warning('recording conversion failed: %s', error)
                return Unavailable(reason=str(error)), {}
            use_path = wav_path
        try:
            feats = extract_basic_features(use_path)
        except Exception:
            logger.exception('feature extraction failed')
            feats = {}
        if feats.get('summary', {}).get('silent'):
            return RecognitionFailed(reason='no-speech'), feats
        t0 = time.time()
        handed_off = True
        outcome = recognize_with_timeout(
            recognizer.transcribe,
            use_path,
            timeout=settings.recognition_timeout_sec,
            load=recognizer.load,
            on_finish=lambda: _remove_files(src_path, wav_path),
        )
        logger.info(
            'timings_ms recognition=%.0f outcome=%s',
            (time.time() - t0) * 1000.0,
            type(outcome).__name__,
        )
        return outcome, feats
    finally:
        if not handed_off:
            _remove_files(src_path, wav_path)


@app.post('/api/voice/analyze')
async def analyze_voice(
    file: UploadFile = File(..., description='Запись голоса webm/ogg/wav/mp3'),
    sentence_id: int | None = Form(None, description='Предложение из базы'),
    reference: str = Form('', description='Эталонный текст, если нет sentence_id'),
    alignment: Literal['positional', 'sequence'] = Form('positional'),
    repo: SentenceRepository = Depends(get_repository),
    recognizer: SpeechRecognizer = Depends(get_recognizer),
):
    req_started = time.time()
    try:
        if sentence_id is not None:
            sentence = repo.get(sentence_id)
            if sentence is None:
                raise HTTPException(status_code=404, detail='Предложение не найдено')
            target = sentence.text
        else:
            target = normalize_text(reference)
        if not target:
            raise HTTPException(status_code=400, detail='Нужен sentence_id или эталонный текст')
        content = await file.read()
        logger.info(
            'analyze start name=%s size_kb=%.1f sentence=%s',
            file.filename,
            len(content) / 1024.0,
            sentence_id,
        )
        if not content:
            raise HTTPException(status_code=400, detail='Пустой файл')
        if len(content) / (1024 * 1024) > settings.max_file_mb:
            raise HTTPException(
                status_code=413,
                detail=f'Файл превышает ограничение {settings.max_file_mb:.0f} МБ',
            )
        suffix = pathlib.Path(file.filename or 'audio.webm').suffix or '.webm'
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
            tmp.write(content)
            tmp_path = tmp.name
        outcome, feats = await run_in_threadpool(
            _recognize_recording, recognizer, tmp_path, suffix
        )
        result = assess(target, outcome, alignment=alignment)
        if feats:
            result.details['audio'] = feats.get('summary', {})
        logger.info(
            'analyze done score=%d source=%s total_ms=%.0f',
            result.score,
            result.source,
            (time.time() - req_started) * 1000.0,
        )
        return JSONResponse({'target': target, **result.to_dict()})
    except HTTPException:
        raise
    except Exception as error:
        logger.exception('Unhandled')
        if settings.debug:
            return JSONResponse({'error': str(error)}, status_code=500)
        raise HTTPException(status_code=500, detail=f'Внутренняя ошибка: {error}')
