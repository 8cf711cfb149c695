"""
Game router: calendar, daily pictures and guess submission.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import FileResponse

from app.api.deps import (
    get_clock,
    get_current_user_optional,
    get_current_user_required,
    get_picture_store,
    get_scoring_engine,
    get_user_store,
)
from app.core.aot_logger import AotLogger
from app.core.constants import FIRST_DAY, LAST_DAY
from app.core.exceptions import InvalidFormat
from app.db.base import UserStore
from app.db.picture_store import JsonPictureStore
from app.models.user import User
from app.schemas.game import CalendarEntry, DayView, GuessRequest, GuessResponse, GuessSummary
from app.services.release import is_released
from app.services.scoring import ScoringEngine
from app.services.session import Clock

logger = AotLogger.get_logger(__name__)

router = APIRouter(tags=["game"])


def _released_or_404(clock: Clock, day: int) -> None:
    if not is_released(clock(), day):
        logger.debug(f"unreleased day requested: {day}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Day not found")


@router.get("/calendar", response_model=List[CalendarEntry])
def calendar(
    current_user: Optional[User] = Depends(get_current_user_optional),
    clock: Clock = Depends(get_clock),
):
    """All days of the season with their release and guess status."""
    now = clock()
    return [
        CalendarEntry(
            day=day,
            released=is_released(now, day),
            guessed=current_user is not None and current_user.has_guessed(day),
        )
        for day in range(FIRST_DAY, LAST_DAY + 1)
    ]


@router.get("/day/{day}", response_model=DayView)
def get_day(
    day: int = Path(..., description="Day of the season"),
    current_user: Optional[User] = Depends(get_current_user_optional),
    pictures: JsonPictureStore = Depends(get_picture_store),
    engine: ScoringEngine = Depends(get_scoring_engine),
    clock: Clock = Depends(get_clock),
):
    """Hints for a released day; the solution once the player has guessed."""
    _released_or_404(clock, day)
    picture = pictures.get(day)
    if picture is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Day not found")

    guess_data = None
    if current_user is not None and current_user.has_guessed(day):
        guess_data = GuessSummary(
            time=current_user.guesses[day].time(),
            points=engine.score(current_user.guesses[day].hm, picture.hm),
        )

    return DayView(
        id=day,
        img_src=f"/day-pic/{day}",
        img_alt=f"Image for day {day}",
        date_hint=picture.original_date,
        location_hint=picture.location,
        authenticated=current_user is not None,
        guess_data=guess_data,
        real_time=picture.time_taken if guess_data else None,
    )


@router.get("/day-pic/{day}")
def get_day_picture(
    day: int = Path(..., description="Day of the season"),
    pictures: JsonPictureStore = Depends(get_picture_store),
    clock: Clock = Depends(get_clock),
):
    """Raw picture file of a released day."""
    _released_or_404(clock, day)
    picture = pictures.get(day)
    if picture is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Picture not found")

    path = pictures.file_for(picture)
    if not path.is_file():
        logger.warning(f"picture file missing for day {day}: {path}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Picture not found")
    return FileResponse(path)


@router.post("/guess/{day}", response_model=GuessResponse)
def post_guess(
    guess: GuessRequest,
    day: int = Path(..., description="Day of the season"),
    current_user: User = Depends(get_current_user_required),
    engine: ScoringEngine = Depends(get_scoring_engine),
    store: UserStore = Depends(get_user_store),
    clock: Clock = Depends(get_clock),
):
    """Submit the one and only guess of the player for a day."""
    if guess.day != day:
        raise InvalidFormat(f"day {guess.day} in body does not match day {day} in URL")

    points = engine.record_guess(store, current_user, day, guess.guess, clock())
    return GuessResponse(points=points)
