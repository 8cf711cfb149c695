"""
Picture metadata: the ground truth a guess is scored against.
"""

from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from app.core.constants import FIRST_DAY, LAST_DAY


class Picture(BaseModel):
    """Read-only metadata of the photo unlocked on a given day."""

    day: int = Field(ge=FIRST_DAY, le=LAST_DAY)
    path: str
    original_date: str = ""
    time_taken: str
    location: Optional[str] = None

    @field_validator("time_taken", mode="after")
    @classmethod
    def check_time_taken(cls, v: str) -> str:
        hour, sep, minute = v.partition(":")
        if not sep or not hour.isdigit() or not minute.isdigit():
            raise ValueError(f"time_taken must be HH:MM, got {v!r}")
        if int(hour) > 23 or int(minute) > 59:
            raise ValueError(f"time_taken out of range: {v!r}")
        return v

    @property
    def true_hour(self) -> int:
        return int(self.time_taken.split(":", 1)[0])

    @property
    def true_minute(self) -> int:
        return int(self.time_taken.split(":", 1)[1])

    @property
    def hm(self) -> Tuple[int, int]:
        return self.true_hour, self.true_minute

    def full_path(self, pictures_dir: str) -> Path:
        return Path(pictures_dir) / self.path
