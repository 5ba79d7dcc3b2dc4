from __future__ import annotations

from datetime import timedelta

import streamlit as st

from analyzer.speech_recognizer import SpeechRecognizer
from api.sessions import SessionStore
from configs.settings import Settings
from db_connector import SentenceRepository
from processors.tts import TTSService


@st.cache_resource
def get_settings() -> Settings:
    return Settings.from_env()


@st.cache_resource
def get_repository() -> SentenceRepository:
    repo = SentenceRepository(get_settings().database_path)
    repo.init_schema()
    return repo


@st.cache_resource
def get_tts() -> TTSService:
    settings = get_settings()
    return TTSService(settings.audio_dir, timeout=settings.tts_timeout_sec)


@st.cache_resource
def get_recognizer() -> SpeechRecognizer:
    return SpeechRecognizer(model_size=get_settings().model_size)


@st.cache_resource
def get_sessions() -> SessionStore:
    return SessionStore(ttl=timedelta(hours=get_settings().session_ttl_hours))
