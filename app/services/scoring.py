"""
Scoring engine: guess validation and time-distance points.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

from app.core.aot_logger import AotLogger
from app.core.config import Settings
from app.core.exceptions import (
    AlreadyGuessed,
    DayNotReleased,
    InvalidFormat,
    StoreConflictError,
    StoreError,
)
from app.db.base import UserStore
from app.db.picture_store import JsonPictureStore
from app.models.user import GuessEntry, User
from app.services.release import is_released

logger = AotLogger.get_logger(__name__)

HourMinute = Tuple[int, int]

MAX_GUESS_ATTEMPTS = 3

GUESS_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")


@dataclass(frozen=True)
class ScoreConfig:
    """Shape parameters of the reward curve."""

    max_reward: int
    divider: int
    exponent: float

    def __post_init__(self):
        if self.max_reward < 0:
            raise ValueError("max_reward must not be negative")
        if self.divider <= 0:
            raise ValueError("divider must be positive")
        if self.exponent <= 0:
            raise ValueError("exponent must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoreConfig":
        return cls(
            max_reward=settings.score_max_reward,
            divider=settings.score_divider,
            exponent=settings.score_exponent,
        )


def time_distance(guess_hm: HourMinute, truth_hm: HourMinute) -> int:
    """Absolute distance in minutes within one calendar day (no wraparound)."""
    return abs((guess_hm[0] * 60 + guess_hm[1]) - (truth_hm[0] * 60 + truth_hm[1]))


def score(guess_hm: HourMinute, truth_hm: HourMinute, config: ScoreConfig) -> int:
    """``max_reward * (1 - (d / divider) ** exponent)``, rounded and clamped.

    Exact match earns ``max_reward``; ``d >= divider`` earns nothing.
    """
    d = time_distance(guess_hm, truth_hm)
    if d >= config.divider:
        return 0

    points = round(config.max_reward * (1 - (d / config.divider) ** config.exponent))
    return max(0, min(config.max_reward, points))


def parse_guess(raw_guess: str) -> HourMinute:
    """Parse ``HH:MM`` (hour may be a single digit)."""
    match = GUESS_PATTERN.match(raw_guess.strip()) if isinstance(raw_guess, str) else None
    if match is None:
        raise InvalidFormat("guess value does not denote a valid time")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23:
        raise InvalidFormat(f"invalid hour: {hour}")
    if minute > 59:
        raise InvalidFormat(f"invalid minute: {minute}")
    return hour, minute


class ScoringEngine:
    """Scores guesses against the picture ground truth."""

    def __init__(self, config: ScoreConfig, pictures: JsonPictureStore):
        self.config = config
        self._pictures = pictures

    def score(self, guess_hm: HourMinute, truth_hm: HourMinute) -> int:
        return score(guess_hm, truth_hm, self.config)

    def ground_truth(self) -> Dict[int, HourMinute]:
        return {picture.day: picture.hm for picture in self._pictures.list()}

    def points_for(self, user: User, day: int, truth: Optional[Dict[int, HourMinute]] = None) -> int:
        entry = user.guesses[day]
        truth = truth if truth is not None else self.ground_truth()
        if day not in truth:
            raise StoreError(f"no picture registered for day {day}")
        return self.score(entry.hm, truth[day])

    def total_score(self, user: User, truth: Optional[Dict[int, HourMinute]] = None) -> int:
        """Sum of points; guesses for days without a picture count as zero."""
        truth = truth if truth is not None else self.ground_truth()
        total = 0
        for day in user.guesses:
            if day not in truth:
                logger.warning(f"no picture for day {day}, guess of user {user.id} scores 0")
                continue
            total += self.points_for(user, day, truth)
        return total

    def accuracy(self, user: User, truth: Optional[Dict[int, HourMinute]] = None) -> Optional[int]:
        """Mean points per guess, ``None`` without guesses."""
        if not user.guesses:
            return None
        return self.total_score(user, truth) // len(user.guesses)

    def submit_guess(self, user: User, day: int, raw_guess: str, now: datetime) -> int:
        """Validate and record a guess on ``user``; return its points.

        The caller persists the user. Rejections raise a
        ``GuessValidationError`` and leave the user untouched.
        """
        if not is_released(now, day):
            raise DayNotReleased(day)
        if user.has_guessed(day):
            raise AlreadyGuessed(day)

        guess_hm = parse_guess(raw_guess)
        truth = self._pictures.require(day)
        points = self.score(guess_hm, truth.hm)

        user.guesses[day] = GuessEntry(
            submitted_at=now,
            guessed_hour=guess_hm[0],
            guessed_minute=guess_hm[1],
        )
        logger.info(
            f"user {user.id} guessed {guess_hm[0]:02}:{guess_hm[1]:02} for day {day}: {points} points"
        )
        return points

    def record_guess(
        self, store: UserStore, user: User, day: int, raw_guess: str, now: datetime
    ) -> int:
        """Submit and persist a guess, re-reading the player on a write conflict.

        A conflicting write that was itself a guess for ``day`` surfaces as
        ``AlreadyGuessed`` on the re-read; any other write (login, refresh,
        logout) is kept and the guess is recorded on top of it.
        """
        for attempt in range(1, MAX_GUESS_ATTEMPTS + 1):
            points = self.submit_guess(user, day, raw_guess, now)
            try:
                store.upsert(user)
                return points
            except StoreConflictError:
                if attempt == MAX_GUESS_ATTEMPTS:
                    raise
                logger.info(f"user {user.id} changed while guessing day {day}, retrying")
                fresh = store.get(user.id)
                if fresh is None:
                    raise
                user = fresh
