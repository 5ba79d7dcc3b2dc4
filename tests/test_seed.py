from seed import SEED_SENTENCES, seed


def test_seed_populates_empty_store(repo, fake_tts):
    assert seed(repo, fake_tts) == len(SEED_SENTENCES)
    stats = repo.stats()
    assert stats['totalSentences'] == 10
    assert stats['audioStatus'] == [{'status': 'completed', 'count': 10}]


def test_seed_without_audio(repo):
    seed(repo, None)
    assert repo.stats()['audioStatus'] == [{'status': 'pending', 'count': 10}]


def test_seed_skips_populated_store(repo, fake_tts):
    repo.create('Existing sentence.')
    assert seed(repo, fake_tts) == 0
    assert repo.count_all() == 1


def test_seed_marks_failed_audio(repo, failing_tts):
    seed(repo, failing_tts)
    assert repo.stats()['audioStatus'] == [{'status': 'failed', 'count': 10}]
