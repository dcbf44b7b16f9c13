"""
Request-scoped sources of wall-clock time and randomness.

Routes depend on these instead of calling datetime.now()/random directly so
tests can pin both through app.dependency_overrides.
"""
import random
from datetime import datetime


def get_now() -> datetime:
    """Current local wall-clock time (time-of-day settings are local)."""
    return datetime.now()


def get_rng() -> random.Random:
    return random.Random()
