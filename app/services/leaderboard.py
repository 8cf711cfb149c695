"""
Leaderboard ranking.
"""

from typing import Iterable, List

from app.models.user import User
from app.schemas.game import LeaderboardEntry
from app.services.scoring import ScoringEngine


def rank(users: Iterable[User], engine: ScoringEngine) -> List[LeaderboardEntry]:
    """Rank visible players who have guessed at least once.

    Order: total score descending, then whoever reached that score first
    (earliest latest-guess time), then display name, then id. Rank is the
    1-based position in the result.
    """
    truth = engine.ground_truth()
    scored = [
        (user, engine.total_score(user, truth))
        for user in users
        if not user.hidden and user.guesses
    ]
    scored.sort(key=lambda item: (-item[1], item[0].last_guess_at(), item[0].display_name, item[0].id))

    return [
        LeaderboardEntry(
            rank=position,
            username=user.display_name,
            guesses=len(user.guesses),
            score=total,
            accuracy=total // len(user.guesses),
        )
        for position, (user, total) in enumerate(scored, start=1)
    ]
