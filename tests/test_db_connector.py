import pytest


def test_create_and_get(repo):
    s = repo.create('Hello, how are you today?', 'greeting', 1)
    assert s.id > 0
    assert s.audio_status == 'pending'
    assert s.audio_british is None
    assert repo.get(s.id).text == 'Hello, how are you today?'


def test_create_defaults(repo):
    s = repo.create('The weather is beautiful.', '', None)
    assert s.category == 'general'
    assert s.difficulty == 1


def test_list_newest_first_with_pagination(repo):
    ids = [repo.create(f'Sentence number {i}.').id for i in range(5)]
    rows, total = repo.list_sentences(page=1, limit=2)
    assert total == 5
    assert [r.id for r in rows] == [ids[4], ids[3]]
    rows, _ = repo.list_sentences(page=3, limit=2)
    assert [r.id for r in rows] == [ids[0]]


def test_list_by_category(repo):
    repo.create('What time does the meeting start?', 'business', 2)
    repo.create('She sells seashells by the seashore.', 'tongue-twister', 3)
    rows, total = repo.list_sentences(category='business')
    assert total == 1
    assert rows[0].category == 'business'


def test_soft_delete_hides_row(repo):
    s = repo.create('The project deadline is next Friday.', 'business', 3)
    assert repo.soft_delete(s.id)
    assert repo.get(s.id) is None
    assert repo.list_sentences()[1] == 0
    assert not repo.soft_delete(s.id)
    assert repo.count_all() == 1


def test_update_text_marks_processing(repo):
    s = repo.create('Old text.', 'general', 1)
    updated, changed = repo.update(s.id, text='New text.')
    assert changed
    assert updated.text == 'New text.'
    assert updated.audio_status == 'processing'


def test_update_metadata_only(repo):
    s = repo.create('Same text.', 'general', 1)
    updated, changed = repo.update(s.id, text='Same text.', category='formal', difficulty=4)
    assert not changed
    assert updated.category == 'formal'
    assert updated.difficulty == 4
    assert updated.audio_status == 'pending'


def test_update_missing(repo):
    assert repo.update(999, text='x') == (None, False)


def test_set_audio_and_status(repo):
    s = repo.create('Could you help me?')
    repo.set_audio(s.id, '/tmp/a-en-GB.mp3', '/tmp/a-en-US.mp3')
    row = repo.get(s.id)
    assert row.audio_status == 'completed'
    assert row.audio_american == '/tmp/a-en-US.mp3'
    repo.set_status(s.id, 'failed')
    assert repo.get(s.id).audio_status == 'failed'
    with pytest.raises(ValueError):
        repo.set_status(s.id, 'exploded')


def test_categories_and_stats(repo):
    repo.create('A.', 'business', 2)
    repo.create('B.', 'business', 3)
    repo.create('C.', 'casual', 2)
    gone = repo.create('D.', 'formal', 5)
    repo.soft_delete(gone.id)
    assert repo.categories() == ['business', 'casual']
    stats = repo.stats()
    assert stats['totalSentences'] == 3
    assert {'category': 'business', 'count': 2} in stats['byCategory']
    assert {'difficulty': 2, 'count': 2} in stats['byDifficulty']
    assert stats['audioStatus'] == [{'status': 'pending', 'count': 3}]
