import math

import pandas as pd
import streamlit as st

from api.sessions import verify_credentials
from processors.tts import generate_audio_for_sentence
from text import normalize_text, split_bulk_lines
from utils.services import get_repository, get_sessions, get_settings, get_tts

PAGE_SIZE = 10


def _current_session():
    return get_sessions().get(st.session_state.get('admin_token'))


def _login_form():
    st.subheader('Вход администратора')
    with st.form('login'):
        username = st.text_input('Имя пользователя')
        password = st.text_input('Пароль', type='password')
        submitted = st.form_submit_button('Войти', type='primary', use_container_width=True)
    if not submitted:
        return
    settings = get_settings()
    if not username or not password:
        st.error('Нужны имя пользователя и пароль')
    elif verify_credentials(
        username, password, settings.admin_username, settings.admin_password
    ):
        st.session_state['admin_token'] = get_sessions().create(username).token
        st.rerun()
    else:
        st.error('Неверные учётные данные')


def _generate(sentence_id: int, text: str):
    with st.spinner('Генерируем аудио...'):
        ok = generate_audio_for_sentence(get_repository(), get_tts(), sentence_id, text)
    if not ok:
        st.warning('Не удалось сгенерировать аудио, статус: failed')


def _stats():
    stats = get_repository().stats()
    cols = st.columns(1 + len(stats['audioStatus']))
    cols[0].metric('Всего предложений', stats['totalSentences'])
    for col, item in zip(cols[1:], stats['audioStatus']):
        col.metric(f'Аудио: {item["status"]}', item['count'])
    return stats


def _table(stats):
    repo = get_repository()
    total_pages = max(1, math.ceil(stats['totalSentences'] / PAGE_SIZE))
    page = st.number_input('Страница', min_value=1, max_value=total_pages, value=1)
    rows, _ = repo.list_sentences(page=int(page), limit=PAGE_SIZE)
    if not rows:
        st.info('Предложений пока нет.')
        return []
    df = pd.DataFrame(
        [
            {
                'id': s.id,
                'text': s.text,
                'category': s.category,
                'difficulty': s.difficulty,
                'audio': s.audio_status,
            }
            for s in rows
        ]
    )
    st.dataframe(df, hide_index=True, use_container_width=True)
    return rows


def _add_form():
    with st.form('add_sentence', clear_on_submit=True):
        text = st.text_area('Текст', height=80)
        category = st.text_input('Категория', value='general')
        difficulty = st.slider('Сложность', 1, 5, 1)
        submitted = st.form_submit_button('Добавить', type='primary')
    if submitted:
        text = normalize_text(text)
        if not text:
            st.error('Текст обязателен')
            return
        sentence = get_repository().create(text, category or 'general', difficulty)
        _generate(sentence.id, sentence.text)
        st.success(f'Добавлено: {sentence.text}')


def _edit_form(rows):
    if not rows:
        return
    by_id = {s.id: s for s in rows}
    selected = st.selectbox(
        'Предложение', list(by_id), format_func=lambda i: f'#{i} {by_id[i].text}'
    )
    sentence = by_id[selected]
    with st.form(f'edit_{sentence.id}'):
        text = st.text_area('Текст', value=sentence.text, height=80)
        category = st.text_input('Категория', value=sentence.category)
        difficulty = st.slider('Сложность', 1, 5, min(5, max(1, sentence.difficulty)))
        saved = st.form_submit_button('Сохранить', type='primary')
    if saved:
        updated, text_changed = get_repository().update(
            sentence.id,
            text=normalize_text(text) or None,
            category=category or None,
            difficulty=difficulty,
        )
        if updated is not None and text_changed:
            _generate(updated.id, updated.text)
        st.rerun()
    cols = st.columns(2)
    with cols[0]:
        if st.button('🔊 Перегенерировать аудио', use_container_width=True):
            get_repository().set_status(sentence.id, 'processing')
            _generate(sentence.id, sentence.text)
            st.rerun()
    with cols[1]:
        confirm = st.checkbox('Подтверждаю удаление', key=f'confirm_{sentence.id}')
        if st.button('🗑️ Удалить', disabled=not confirm, use_container_width=True):
            get_repository().soft_delete(sentence.id)
            st.rerun()


def _bulk_form():
    with st.form('bulk', clear_on_submit=True):
        raw = st.text_area('По одному предложению на строку', height=160)
        category = st.text_input('Категория', value='general', key='bulk_category')
        difficulty = st.slider('Сложность', 1, 5, 1, key='bulk_difficulty')
        submitted = st.form_submit_button('Импортировать')
    if not submitted:
        return
    lines = split_bulk_lines(raw)
    if not lines:
        st.error('Нужен хотя бы один текст')
        return
    repo = get_repository()
    for line in lines:
        sentence = repo.create(line, category or 'general', difficulty)
        _generate(sentence.id, sentence.text)
    st.success(f'Создано предложений: {len(lines)}')


def main():
    st.title('🛠️ Панель администратора')
    session = _current_session()
    if session is None:
        _login_form()
        return
    cols = st.columns([4, 1])
    cols[0].caption(f'Вы вошли как {session.username}')
    if cols[1].button('Выйти', use_container_width=True):
        get_sessions().revoke(st.session_state.pop('admin_token', None))
        st.rerun()
    stats = _stats()
    rows = _table(stats)
    tab_add, tab_edit, tab_bulk = st.tabs(['➕ Добавить', '✏️ Изменить', '📥 Импорт'])
    with tab_add:
        _add_form()
    with tab_edit:
        _edit_form(rows)
    with tab_bulk:
        _bulk_form()


if __name__ == '__main__':
    main()
