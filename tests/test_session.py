import json
from datetime import timedelta

import pytest

import backend
from session import (
    GameSession,
    InvalidGuessError,
    load_state,
    save_state,
    start_session,
)


@pytest.fixture
def game(provider, day_zero):
    return start_session("en", now=day_zero, provider=provider)


def type_word(game, word):
    for ch in word:
        game.add_letter(ch)


def test_fresh_session(game):
    assert game.lang == "en"
    assert game.day_id == backend.EPOCH_DAY
    assert game.solution == "APPLE"
    assert game.attempts == []
    assert not game.game_over


def test_add_and_delete_letters(game):
    assert game.add_letter("c")
    assert not game.add_letter("1")
    assert not game.add_letter("Ж")
    type_word(game, "RANEX")
    assert game.current_guess == "CRANE"
    assert game.delete_letter()
    assert game.current_guess == "CRAN"


def test_submit_too_short(game):
    type_word(game, "CRA")
    with pytest.raises(InvalidGuessError, match="Not enough letters"):
        game.submit()
    assert game.attempts == []


def test_submit_unknown_word(game):
    type_word(game, "ZZZZZ")
    with pytest.raises(InvalidGuessError, match="Not in word list"):
        game.submit()
    assert game.current_guess == "ZZZZZ"


def test_submit_scores_guess(game):
    type_word(game, "PAPAL")
    states = game.submit()
    assert states == [backend.PRESENT, backend.PRESENT, backend.CORRECT, backend.ABSENT, backend.PRESENT]
    assert game.attempts == ["PAPAL"]
    assert game.current_guess == ""
    assert game.key_states()["P"] == backend.CORRECT


def test_target_accepted_when_not_in_allowed(provider):
    _, allowed = provider("en")
    g = GameSession("en", backend.EPOCH_DAY, "APPLE", allowed=frozenset(allowed - {"APPLE"}))
    type_word(g, "APPLE")
    assert g.submit() == [backend.CORRECT] * 5


def test_empty_allowed_accepts_anything():
    g = GameSession("en", backend.EPOCH_DAY, "APPLE")
    type_word(g, "QQQQQ")
    assert g.submit() == [backend.ABSENT] * 5


def test_win_ends_game(game):
    type_word(game, "APPLE")
    game.submit()
    assert game.game_over and game.won and not game.lost
    assert not game.add_letter("A")
    assert game.submit() is None
    assert game.share_text().startswith("Guess Mosaic (EN) 1/6")


def test_running_out_of_attempts(provider, day_zero):
    g = start_session("en", now=day_zero, max_attempts=2, provider=provider)
    for word in ("CRANE", "HOUSE"):
        type_word(g, word)
        g.submit()
    assert g.game_over and g.lost
    assert not g.add_letter("A")
    assert g.share_text().splitlines()[0] == "Guess Mosaic (EN) X/2"


def test_nothing_to_share(game):
    with pytest.raises(InvalidGuessError, match="Nothing to share"):
        game.share_text()


def test_ukrainian_session(provider, day_zero):
    g = start_session("uk", now=day_zero, provider=provider)
    assert g.solution == "КАЗКА"
    assert not g.add_letter("Q")
    type_word(g, "книга")
    assert g.current_guess == "КНИГА"
    assert g.submit() == [backend.CORRECT, backend.ABSENT, backend.ABSENT, backend.ABSENT, backend.CORRECT]


def test_unknown_language(provider, day_zero):
    with pytest.raises(backend.UnknownLanguageError):
        start_session("de", now=day_zero, provider=provider)


def test_empty_word_list(day_zero):
    with pytest.raises(backend.EmptyListError):
        start_session("en", now=day_zero, provider=lambda lang: ([], set()))


class TestRestore:
    def played(self, game):
        type_word(game, "CRANE")
        game.submit()
        type_word(game, "PA")
        return game.to_dict()

    def test_restores_same_day(self, game, provider, day_zero):
        saved = self.played(game)
        later = day_zero + timedelta(hours=20)
        g = start_session("en", now=later, restored=saved, provider=provider)
        assert g.attempts == ["CRANE"]
        assert g.current_guess == "PA"
        assert not g.game_over

    def test_new_day_starts_fresh(self, game, provider, day_zero):
        saved = self.played(game)
        g = start_session("en", now=day_zero + timedelta(days=1), restored=saved, provider=provider)
        assert g.attempts == []
        assert g.current_guess == ""

    def test_different_solution_starts_fresh(self, game, provider, day_zero):
        saved = self.played(game)
        saved["solution"] = "HOUSE"
        g = start_session("en", now=day_zero, restored=saved, provider=provider)
        assert g.attempts == []

    def test_other_language_starts_fresh(self, game, provider, day_zero):
        saved = self.played(game)
        g = start_session("uk", now=day_zero, restored=saved, provider=provider)
        assert g.lang == "uk"
        assert g.attempts == []

    def test_prefers_saved_language(self, provider, day_zero):
        uk = start_session("uk", now=day_zero, provider=provider)
        type_word(uk, "КНИГА")
        uk.submit()
        g = start_session("en", now=day_zero, restored=uk.to_dict(), prefer_saved_lang=True, provider=provider)
        assert g.lang == "uk"
        assert g.attempts == ["КНИГА"]

    def test_saved_language_ignored_on_other_day(self, provider, day_zero):
        saved = {"dayId": backend.EPOCH_DAY - 1, "lang": "uk"}
        g = start_session("en", now=day_zero, restored=saved, prefer_saved_lang=True, provider=provider)
        assert g.lang == "en"

    def test_truncates_oversized_state(self, provider, day_zero):
        saved = {
            "dayId": backend.EPOCH_DAY,
            "lang": "en",
            "solution": "APPLE",
            "attempts": ["CRANE", "HOUSE", "GHOST"],
            "currentGuess": "BRAVEST",
            "gameOver": False,
        }
        g = start_session("en", now=day_zero, restored=saved, max_attempts=2, provider=provider)
        assert g.attempts == ["CRANE", "HOUSE"]
        assert g.current_guess == "BRAVE"

    def test_restores_finished_game(self, game, provider, day_zero):
        type_word(game, "APPLE")
        game.submit()
        g = start_session("en", now=day_zero, restored=game.to_dict(), provider=provider)
        assert g.game_over and g.won


class TestPersistence:
    def test_missing_file(self, tmp_path):
        assert load_state(tmp_path / "nope.json") is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_state(path) is None

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_state(path) is None

    def test_save_and_load(self, tmp_path, provider, day_zero):
        g = start_session("uk", now=day_zero, provider=provider)
        type_word(g, "ВІКНО")
        g.submit()
        path = tmp_path / "nested" / "state.json"
        save_state(path, g)

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["dayId"] == backend.EPOCH_DAY
        assert raw["lang"] == "uk"
        assert raw["attempts"] == ["ВІКНО"]
        assert raw["gameOver"] is False

        again = start_session("uk", now=day_zero, restored=load_state(path), provider=provider)
        assert again.attempts == ["ВІКНО"]


class TestFromDict:
    def test_round_trip(self, game):
        type_word(game, "CRANE")
        game.submit()
        type_word(game, "PAP")
        again = GameSession.from_dict(game.to_dict(), allowed=game.allowed)
        assert again == game
        assert again.allowed == game.allowed

    def test_drops_guesses_of_the_wrong_length(self, provider, day_zero):
        saved = {
            "dayId": backend.EPOCH_DAY,
            "lang": "en",
            "solution": "APPLE",
            "attempts": ["CRANES", "CRANE", "CRÄNE", 42],
            "currentGuess": "P1A",
            "gameOver": False,
        }
        g = start_session("en", now=day_zero, restored=saved, provider=provider)
        assert g.attempts == ["CRANE"]
        assert g.current_guess == "PA"
        assert g.statuses() == [backend.Judge.evaluate("CRANE", "APPLE")]
        assert g.key_states()["E"] == backend.CORRECT

    def test_exhausted_attempts_end_the_game(self):
        saved = {
            "dayId": backend.EPOCH_DAY,
            "lang": "en",
            "solution": "APPLE",
            "attempts": ["CRANE", "HOUSE"],
            "gameOver": False,
        }
        g = GameSession.from_dict(saved, max_attempts=2)
        assert g.game_over and g.lost

    def test_rejects_unknown_language(self):
        with pytest.raises(backend.UnknownLanguageError):
            GameSession.from_dict({"dayId": 1, "lang": "xx", "solution": "APPLE"})

    def test_rejects_missing_solution(self):
        with pytest.raises(ValueError):
            GameSession.from_dict({"dayId": 1, "lang": "en"})
