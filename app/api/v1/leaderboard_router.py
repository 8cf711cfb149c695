"""
Leaderboard and profile router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from starlette.responses import RedirectResponse

from app.api.deps import get_clock, get_current_user_optional, get_scoring_engine, get_user_store
from app.core.constants import FIRST_DAY
from app.db.base import UserStore
from app.models.user import User
from app.schemas.game import LeaderboardResponse, ProfileDay, ProfileResponse
from app.services.leaderboard import rank
from app.services.release import released_days
from app.services.scoring import ScoringEngine
from app.services.session import Clock

router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
def leaderboard(
    store: UserStore = Depends(get_user_store),
    engine: ScoringEngine = Depends(get_scoring_engine),
    clock: Clock = Depends(get_clock),
):
    """Ranking of every visible player with at least one guess."""
    return LeaderboardResponse(
        total_days=released_days(clock()),
        users=rank(store.list(), engine),
    )


@router.get("/profile", response_model=ProfileResponse)
def profile(
    current_user: Optional[User] = Depends(get_current_user_optional),
    engine: ScoringEngine = Depends(get_scoring_engine),
    clock: Clock = Depends(get_clock),
):
    """Per-day breakdown of the logged-in player's guesses."""
    if current_user is None:
        return RedirectResponse(url="/auth/login", status_code=status.HTTP_302_FOUND)

    truth = engine.ground_truth()
    days = []
    for day in range(FIRST_DAY, FIRST_DAY + released_days(clock())):
        entry = current_user.guesses.get(day)
        if entry is None or day not in truth:
            days.append(ProfileDay(day=day, guessed=entry is not None))
            continue
        hour, minute = truth[day]
        days.append(
            ProfileDay(
                day=day,
                guessed=True,
                time=entry.time(),
                real_time=f"{hour:02}:{minute:02}",
                points=engine.points_for(current_user, day, truth),
            )
        )

    return ProfileResponse(
        username=current_user.display_name,
        account_name=current_user.provider_username,
        days=days,
        total_score=sum(d.points for d in days),
    )
