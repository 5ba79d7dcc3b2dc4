from __future__ import annotations

import argparse
import logging

from configs.settings import Settings
from db_connector import SentenceRepository
from processors.tts import TTSService, generate_audio_for_sentence

logger = logging.getLogger('englishecho_seed')

SEED_SENTENCES = [
    {'text': 'Hello, how are you today?', 'category': 'greeting', 'difficulty': 1},
    {'text': 'The weather is beautiful.', 'category': 'casual', 'difficulty': 1},
    {'text': 'I would like a cup of coffee, please.', 'category': 'ordering', 'difficulty': 2},
    {'text': 'Could you help me find the nearest station?', 'category': 'asking', 'difficulty': 2},
    {'text': 'What time does the meeting start?', 'category': 'business', 'difficulty': 2},
    {'text': 'The project deadline is next Friday.', 'category': 'business', 'difficulty': 3},
    {
        'text': 'I completely understand your perspective on this matter.',
        'category': 'formal',
        'difficulty': 4,
    },
    {
        'text': 'The economic situation has significantly improved over the past year.',
        'category': 'formal',
        'difficulty': 5,
    },
    {'text': 'She sells seashells by the seashore.', 'category': 'tongue-twister', 'difficulty': 3},
    {
        'text': 'The quick brown fox jumps over the lazy dog.',
        'category': 'pangram',
        'difficulty': 2,
    },
]


def seed(repo: SentenceRepository, tts: TTSService | None) -> int:
    existing = repo.count_all()
    if existing > 0:
        logger.info('Database already has %d sentences. Skipping seed.', existing)
        return 0
    for item in SEED_SENTENCES:
        sentence = repo.create(item['text'], item['category'], item['difficulty'])
        if tts is None:
            continue
        logger.info('Generating audio for: "%s"', item['text'])
        generate_audio_for_sentence(repo, tts, sentence.id, sentence.text)
    logger.info('Seed complete: %d sentences', len(SEED_SENTENCES))
    return len(SEED_SENTENCES)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Наполнить пустую базу стартовыми предложениями')
    parser.add_argument('--no-audio', action='store_true', help='не генерировать TTS-аудио')
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    settings = Settings.from_env()
    repo = SentenceRepository(settings.database_path)
    repo.init_schema()
    tts = None if args.no_audio else TTSService(settings.audio_dir, timeout=settings.tts_timeout_sec)
    seed(repo, tts)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
