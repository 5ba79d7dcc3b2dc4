SCORE_BANDS = {'excellent': 80, 'good': 60}
BAND_MESSAGES = {
    'excellent': 'Отлично! Так держать!',
    'good': 'Хорошо! Продолжайте тренироваться!',
    'poor': 'Попробуйте ещё раз: послушайте и повторите.',
}
WORD_MISS_PENALTY = 20
FALLBACK_RANGES = {'unavailable': (70, 99), 'error': (60, 89)}
RECOGNITION_TIMEOUT_SEC = 10.0
SILENCE_RMS = 0.005
MIN_SPEECH_SEC = 0.3
