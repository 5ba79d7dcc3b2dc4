import hashlib
import html
from pathlib import Path

import streamlit as st

from analyzer.assessment import Assessment, assess
from analyzer.recognition import RecognitionFailed, recognize_with_timeout
from processors.audio_processor import extract_basic_features
from utils.services import get_recognizer, get_repository, get_settings

BAND_COLORS = {'excellent': '#2e7d32', 'good': '#f0ad4e', 'poor': '#d32f2f'}
ACCENTS = {'british': '🇬🇧 Британский', 'american': '🇺🇸 Американский'}


def _reset_result():
    st.session_state.pop('assessment', None)
    st.session_state.pop('assessment_key', None)


def _move(step: int, total: int):
    idx = st.session_state.get('practice_idx', 0) + step
    st.session_state['practice_idx'] = max(0, min(total - 1, idx))
    _reset_result()


def _analyze(target: str, recording, alignment: str) -> Assessment:
    try:
        feats = extract_basic_features(recording)
    except (RuntimeError, ValueError):
        feats = {}
    if feats.get('summary', {}).get('silent'):
        outcome = RecognitionFailed(reason='no-speech')
    else:
        recognizer = get_recognizer()
        outcome = recognize_with_timeout(
            recognizer.transcribe,
            recording,
            timeout=get_settings().recognition_timeout_sec,
            load=recognizer.load,
        )
    result = assess(target, outcome, alignment=alignment)
    if feats:
        result.details['audio'] = feats['summary']
    return result


def _render(result: Assessment):
    color = BAND_COLORS[result.band]
    data = result.to_dict()
    st.markdown(
        f"<div style='font-size:48px;font-weight:700;color:{color}'>{result.score}%</div>",
        unsafe_allow_html=True,
    )
    st.write(data['message'])
    if result.simulated:
        st.info(f'Речь не распознана ({result.source}), оценка приблизительная.')
    elif result.recognized_text is not None:
        st.caption(f'Распознано: «{result.recognized_text or "—"}»')
    chunks = []
    for ws in result.word_scores:
        style = (
            'background:#e8f5e9;color:#2e7d32'
            if ws.is_correct
            else 'background:#ffe0e0;color:#d32f2f'
        )
        chunks.append(
            f"<span style='{style};padding:2px 6px;border-radius:4px;margin:2px;display:inline-block'>{html.escape(ws.word)}</span>"
        )
    st.markdown(' '.join(chunks), unsafe_allow_html=True)
    table = result.details.get('alignment')
    if table:
        with st.expander(f"Выравнивание слов (WER {table['wer']:.2f})"):
            st.markdown(table['diff_html'], unsafe_allow_html=True)


def main():
    st.title('🎯 Тренировка произношения')
    sentences, _ = get_repository().list_sentences(page=1, limit=50)
    if not sentences:
        st.warning('Нет предложений. Добавьте их в панели администратора.')
        return
    total = len(sentences)
    idx = min(st.session_state.get('practice_idx', 0), total - 1)
    sentence = sentences[idx]

    with st.container(border=True):
        st.markdown(f'### {sentence.text}')
        st.caption(
            f'{sentence.category.capitalize()} · уровень {sentence.difficulty} · {idx + 1} / {total}'
        )

    accent = st.radio(
        'Акцент', list(ACCENTS), format_func=ACCENTS.get, horizontal=True, key='accent'
    )
    audio_path = sentence.audio_british if accent == 'british' else sentence.audio_american
    if audio_path and Path(audio_path).is_file():
        st.audio(audio_path, format='audio/mpeg')
    else:
        st.caption(f'Аудио не готово (статус: {sentence.audio_status})')

    with st.expander('⚙️ Настройки оценки'):
        alignment = st.selectbox(
            'Сопоставление слов',
            ['positional', 'sequence'],
            format_func=lambda a: 'по позиции' if a == 'positional' else 'по содержанию',
        )

    recording = st.audio_input('Запишите своё произношение', key=f'rec_{sentence.id}')
    if recording is not None:
        digest = hashlib.sha1(recording.getvalue()).hexdigest()
        key = (sentence.id, digest, alignment)
        if st.session_state.get('assessment_key') != key:
            with st.spinner('Анализируем запись...'):
                st.session_state['assessment'] = _analyze(sentence.text, recording, alignment)
            st.session_state['assessment_key'] = key
    else:
        _reset_result()

    result = st.session_state.get('assessment')
    if result is not None:
        _render(result)

    cols = st.columns(2)
    with cols[0]:
        st.button(
            '← Предыдущее',
            disabled=idx == 0,
            on_click=_move,
            args=(-1, total),
            use_container_width=True,
        )
    with cols[1]:
        st.button(
            'Следующее →',
            type='primary',
            disabled=idx == total - 1,
            on_click=_move,
            args=(1, total),
            use_container_width=True,
        )


if __name__ == '__main__':
    main()
