import os
from datetime import datetime, timezone

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

# 2025-01-01 00:00 UTC, the first puzzle day
DAY_ZERO = datetime(2025, 1, 1, tzinfo=timezone.utc)

EN_WORDS = ["ALLOY", "BRAVE", "CRANE", "DREAM", "EAGLE", "FLAME", "APPLE", "GHOST", "HOUSE", "LLAMA"]
UK_WORDS = ["КНИГА", "МІСТО", "РІЧКА", "ЗЕМЛЯ", "ВІКНО", "СОНЦЕ", "ПІСНЯ", "ОСІНЬ", "ВЕСНА", "КАЗКА"]
EN_ALLOWED = {"PAPAL", "CRANE", "HOUSE", "GHOST", "BRAVE", "PLATE", "SPELL"}


@pytest.fixture
def day_zero():
    return DAY_ZERO


@pytest.fixture
def provider():
    calls = []

    def _provide(lang):
        calls.append(lang)
        if lang == "uk":
            return list(UK_WORDS), set(UK_WORDS)
        return list(EN_WORDS), set(EN_ALLOWED)

    _provide.calls = calls
    return _provide
