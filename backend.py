import os
import json
import time
import logging
import unicodedata
from datetime import datetime

log = logging.getLogger(__name__)

WORD_LENGTH = 5

PRIMARY = "en"
SECONDARY = "uk"
LANGUAGES = (PRIMARY, SECONDARY)

ALPHABETS = {
    PRIMARY: "ABCDEFGHIJKLMNOPQRSTUVWXYZ",
    SECONDARY: "АБВГҐДЕЄЖЗИІЇЙКЛМНОПРСТУФХЦЧШЩЬЮЯ",
}

ABSENT, PRESENT, CORRECT = 0, 1, 2
STATUS_NAMES = {ABSENT: "absent", PRESENT: "present", CORRECT: "correct"}
SHARE_EMOJI = {ABSENT: "⬛", PRESENT: "🟨", CORRECT: "🟩"}

SECONDS_PER_DAY = 86400
EPOCH_DAY = 20089  # 2025-01-01 UTC
MIX_MULTIPLIER = 1103515245
MIX_INCREMENT = 12345
UINT32 = 2 ** 32


class GuessMosaicError(Exception):
    pass


class EmptyListError(GuessMosaicError, ValueError):
    """No words to pick a puzzle from."""


class LengthMismatchError(GuessMosaicError, ValueError):
    pass


class UnknownLanguageError(GuessMosaicError, ValueError):
    pass


class WordListError(GuessMosaicError, RuntimeError):
    """A bundled vocabulary file is not in the expected shape."""


def check_lang(lang):
    if lang not in LANGUAGES:
        raise UnknownLanguageError(f"Unknown language tag: {lang!r}")
    return lang


def normalize(word: str) -> str:
    return unicodedata.normalize("NFC", word.strip()).upper()


def _keep(word, lang):
    alphabet = ALPHABETS[lang]
    return len(word) == WORD_LENGTH and all(ch in alphabet for ch in word)


def load_words(lang):
    """Load the bundled word lists for ``lang``.

    Returns ``(solutions, allowed)``: the ordered solution list and the set of
    acceptable guesses. Solution order is kept as-is since the daily pick
    indexes into it.
    """
    check_lang(lang)
    base = os.path.dirname(__file__)
    path = os.path.join(base, 'data', f'vocabulary_{lang}.json')
    if not os.path.exists(path):
        raise FileNotFoundError(f"Required vocabulary file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise WordListError(f"Malformed vocabulary file {path}: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("solutions"), list):
        raise WordListError(f"Unexpected vocabulary format in {path}")
    solutions = [normalize(w) for w in data["solutions"] if isinstance(w, str)]
    solutions = [w for w in solutions if _keep(w, lang)]
    if not solutions:
        raise EmptyListError(f"No valid {WORD_LENGTH}-letter words found in {path}")
    allowed = {normalize(w) for w in data.get("allowed", []) if isinstance(w, str)}
    allowed = {w for w in allowed if _keep(w, lang)}
    allowed.update(solutions)
    log.info("Loaded %d solutions and %d allowed words for %s", len(solutions), len(allowed), lang)
    return solutions, allowed


_WORDS_CACHE = {}


def get_words(lang, reload: bool = False):
    if reload or lang not in _WORDS_CACHE:
        _WORDS_CACHE[lang] = load_words(lang)
    return _WORDS_CACHE[lang]


def is_allowed(guess, target, allowed):
    guess = normalize(guess)
    return not allowed or guess in allowed or guess == normalize(target)


def _seconds(now):
    if now is None:
        return time.time()
    if isinstance(now, datetime):
        if now.tzinfo is None:
            raise ValueError("Naive datetime has no UTC offset; pass an aware datetime")
        return now.timestamp()
    return float(now)


def day_id(now=None) -> int:
    """Whole UTC days elapsed since the Unix epoch."""
    return int(_seconds(now) // SECONDS_PER_DAY)


def day_number(now=None) -> int:
    return day_id(now) - EPOCH_DAY


def lang_hash(lang: str) -> int:
    h = 0
    for ch in lang:
        h = (h * 31 + ord(ch)) % UINT32
    return h


def daily_index(words, lang, now=None) -> int:
    """Index of today's word, identical for every player of ``lang`` on the same UTC day."""
    if not words:
        raise EmptyListError(f"No words to choose from for {lang!r}")
    mix = (day_number(now) * MIX_MULTIPLIER + MIX_INCREMENT + lang_hash(lang)) % UINT32
    return mix % len(words)


def pick_daily_word(words, lang, now=None):
    word = words[daily_index(words, lang, now)]
    log.debug("Daily word index picked for %s on day %d", lang, day_id(now))
    return word


class Judge:
    @staticmethod
    def evaluate(guess: str, answer: str):
        guess = guess.upper()
        answer = answer.upper()
        if len(guess) != len(answer):
            raise LengthMismatchError(
                f"Guess has {len(guess)} letters, answer has {len(answer)}"
            )
        res = [ABSENT] * len(guess)
        remaining = {}
        for ch in answer:
            remaining[ch] = remaining.get(ch, 0) + 1
        # greens first so they claim their letters before any yellow does
        for i, (g, a) in enumerate(zip(guess, answer)):
            if g == a:
                res[i] = CORRECT
                remaining[g] -= 1
        for i, g in enumerate(guess):
            if res[i] == ABSENT and remaining.get(g, 0) > 0:
                res[i] = PRESENT
                remaining[g] -= 1
        return res


def key_states(attempts, answer):
    """Best known status per letter across every attempt so far."""
    states = {}
    for guess in attempts:
        for ch, s in zip(guess.upper(), Judge.evaluate(guess, answer)):
            states[ch] = max(states.get(ch, ABSENT), s)
    return states


def share_text(lang, attempts, answer, max_attempts=6, game_over=True):
    rows = [g.upper() for g in attempts if len(g) == len(answer)]
    solved = game_over and bool(rows) and rows[-1] == answer.upper()
    score = len(rows) if solved else "X"
    lines = [f"Guess Mosaic ({lang.upper()}) {score}/{max_attempts}"]
    for guess in rows:
        lines.append("".join(SHARE_EMOJI[s] for s in Judge.evaluate(guess, answer)))
    return "\n".join(lines)
