"""
Per-player game state for one day's puzzle.

Everything the window needs to draw a game lives on a ``GameSession`` so it
can be created, driven and checked without pygame or a saved file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import backend
from backend import GuessMosaicError

log = logging.getLogger(__name__)

STATE_VERSION = "guessmosaic-state-v1"


class InvalidGuessError(GuessMosaicError):
    """Raised with a message meant to be shown to the player."""


@dataclass
class GameSession:
    lang: str
    day_id: int
    solution: str
    attempts: List[str] = field(default_factory=list)
    current_guess: str = ""
    game_over: bool = False
    max_attempts: int = 6
    allowed: frozenset = field(default_factory=frozenset, repr=False, compare=False)

    @property
    def won(self) -> bool:
        return bool(self.attempts) and self.attempts[-1] == self.solution

    @property
    def lost(self) -> bool:
        return self.game_over and not self.won

    @property
    def has_progress(self) -> bool:
        return bool(self.attempts or self.current_guess)

    def add_letter(self, ch: str) -> bool:
        if self.game_over or len(self.attempts) >= self.max_attempts:
            return False
        if len(self.current_guess) >= len(self.solution):
            return False
        ch = backend.normalize(ch)
        if len(ch) != 1 or ch not in backend.ALPHABETS[self.lang]:
            return False
        self.current_guess += ch
        return True

    def delete_letter(self) -> bool:
        if self.game_over or not self.current_guess:
            return False
        self.current_guess = self.current_guess[:-1]
        return True

    def submit(self):
        """Finalize the current guess and return its statuses.

        Returns None when the game is already finished. Raises
        ``InvalidGuessError`` when the guess is too short or unknown.
        """
        if self.game_over:
            return None
        guess = self.current_guess
        if len(guess) != len(self.solution):
            raise InvalidGuessError("Not enough letters")
        if not backend.is_allowed(guess, self.solution, self.allowed):
            raise InvalidGuessError("Not in word list")
        states = backend.Judge.evaluate(guess, self.solution)
        self.attempts.append(guess)
        self.current_guess = ""
        if guess == self.solution:
            self.game_over = True
            log.info("Solved %s puzzle in %d/%d", self.lang, len(self.attempts), self.max_attempts)
        elif len(self.attempts) >= self.max_attempts:
            self.game_over = True
            log.info("Out of attempts on %s puzzle", self.lang)
        return states

    def statuses(self):
        return [backend.Judge.evaluate(g, self.solution) for g in self.attempts]

    def key_states(self):
        return backend.key_states(self.attempts, self.solution)

    def share_text(self) -> str:
        if not self.attempts:
            raise InvalidGuessError("Nothing to share yet")
        return backend.share_text(
            self.lang, self.attempts, self.solution, self.max_attempts, self.game_over
        )

    def to_dict(self) -> dict:
        return {
            "version": STATE_VERSION,
            "dayId": self.day_id,
            "lang": self.lang,
            "solution": self.solution,
            "attempts": list(self.attempts),
            "currentGuess": self.current_guess,
            "gameOver": self.game_over,
        }

    @classmethod
    def from_dict(cls, data: dict, allowed=frozenset(), max_attempts: int = 6) -> "GameSession":
        """Rebuild a session from ``to_dict`` output.

        Saved guesses that could not have been submitted against the saved
        solution (wrong length or letters outside the alphabet) are dropped.
        """
        lang = backend.check_lang(data.get("lang"))
        solution = data.get("solution")
        day = data.get("dayId")
        if not isinstance(solution, str) or not solution or not isinstance(day, int):
            raise ValueError("Saved state is missing its solution or day")
        alphabet = backend.ALPHABETS[lang]
        solution = backend.normalize(solution)

        attempts = data.get("attempts")
        if not isinstance(attempts, list):
            attempts = []
        attempts = [backend.normalize(a) for a in attempts if isinstance(a, str)]
        kept = [
            a for a in attempts
            if len(a) == len(solution) and all(ch in alphabet for ch in a)
        ]
        if len(kept) < len(attempts):
            log.warning("Dropped %d unplayable saved guess(es)", len(attempts) - len(kept))
        kept = kept[:max_attempts]

        current = data.get("currentGuess")
        current = backend.normalize(current) if isinstance(current, str) else ""
        current = "".join(ch for ch in current if ch in alphabet)[: len(solution)]

        session = cls(
            lang=lang,
            day_id=day,
            solution=solution,
            attempts=kept,
            current_guess=current,
            max_attempts=max_attempts,
            allowed=frozenset(allowed),
        )
        session.game_over = (
            bool(data.get("gameOver")) or session.won or len(kept) >= max_attempts
        )
        return session


def _matches(restored: Optional[dict], day: int, lang: str, solution: str) -> bool:
    return (
        isinstance(restored, dict)
        and restored.get("dayId") == day
        and restored.get("lang") == lang
        and restored.get("solution") == solution
    )


def start_session(
    lang: str,
    now=None,
    restored: Optional[dict] = None,
    prefer_saved_lang: bool = False,
    max_attempts: int = 6,
    provider: Callable = backend.get_words,
) -> GameSession:
    """Build today's session for ``lang``, picking up saved progress when it fits.

    Saved progress is only reused when it was made on the same UTC day, in the
    same language, against the same solution. ``prefer_saved_lang`` lets the
    first launch of the day reopen whichever language was last played.
    """
    today = backend.day_id(now)
    if (
        prefer_saved_lang
        and isinstance(restored, dict)
        and restored.get("dayId") == today
        and restored.get("lang") in backend.LANGUAGES
    ):
        lang = restored["lang"]
    backend.check_lang(lang)

    solutions, allowed = provider(lang)
    solution = backend.pick_daily_word(solutions, lang, now)
    if _matches(restored, today, lang, solution):
        session = GameSession.from_dict(restored, allowed=allowed, max_attempts=max_attempts)
        log.info("Restored %s progress: %d attempt(s)", lang, len(session.attempts))
        return session
    return GameSession(
        lang=lang,
        day_id=today,
        solution=solution,
        max_attempts=max_attempts,
        allowed=frozenset(allowed),
    )


def load_state(path: Path) -> Optional[dict]:
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Ignoring unreadable saved state %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        log.warning("Ignoring saved state with unexpected shape in %s", path)
        return None
    return data


def save_state(path: Path, session: GameSession) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(session.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
