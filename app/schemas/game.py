"""
Schemas for the guessing game endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel


class GuessRequest(BaseModel):
    day: int
    guess: str


class GuessResponse(BaseModel):
    points: int


class CalendarEntry(BaseModel):
    day: int
    released: bool
    guessed: bool


class GuessSummary(BaseModel):
    time: str
    points: int


class DayView(BaseModel):
    id: int
    img_src: str
    img_alt: str
    date_hint: str
    location_hint: Optional[str] = None
    authenticated: bool
    guess_data: Optional[GuessSummary] = None
    real_time: Optional[str] = None


class ProfileDay(BaseModel):
    day: int
    guessed: bool
    time: str = ""
    real_time: Optional[str] = None
    points: int = 0


class ProfileResponse(BaseModel):
    username: str
    account_name: str
    days: List[ProfileDay]
    total_score: int


class LeaderboardEntry(BaseModel):
    rank: int
    username: str
    guesses: int
    score: int
    accuracy: Optional[int] = None


class LeaderboardResponse(BaseModel):
    total_days: int
    users: List[LeaderboardEntry]
