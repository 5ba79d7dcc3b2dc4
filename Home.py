import sys
from pathlib import Path

import streamlit as st

_THIS = Path(__file__).resolve()
_ROOT = _THIS.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from utils.services import get_repository  # noqa: E402

st.set_page_config(page_title='EnglishEcho', page_icon='🎙️', layout='wide')
st.title('🎙️ EnglishEcho — тренажёр английского произношения')
st.caption(
    'Слушайте британский и американский вариант, записывайте себя и получайте оценку с подсветкой слов.'
)
st.page_link('pages/1_practice.py', label='🎯 Начать тренировку')

repo = get_repository()
stats = repo.stats()
cols = st.columns(4)
cols[0].metric('Всего предложений', stats['totalSentences'])
for col, cat in zip(cols[1:], stats['byCategory'][:3]):
    col.metric(cat['category'].capitalize(), cat['count'])

st.subheader('Предложения для тренировки')
sentences, _ = repo.list_sentences(page=1, limit=3)
if not sentences:
    st.info('Предложений пока нет. Добавьте их в панели администратора.')
for sentence in sentences:
    with st.container(border=True):
        st.markdown(f'**{sentence.text}**')
        st.caption(
            f'{sentence.category.capitalize()} · уровень {sentence.difficulty} · аудио: {sentence.audio_status}'
        )
        if sentence.audio_british and Path(sentence.audio_british).is_file():
            st.audio(sentence.audio_british, format='audio/mpeg')

st.page_link('pages/2_admin.py', label='🛠️ Панель администратора')
