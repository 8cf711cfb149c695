"""
Read-only picture metadata store (``pictures.json``).
"""

from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from app.core.exceptions import StoreError
from app.models.picture import Picture

_PICTURES = TypeAdapter(List[Picture])


class JsonPictureStore:
    """Ground truth for each day, owned by whoever curates the pictures."""

    def __init__(self, path: str, pictures_dir: str):
        self.path = Path(path)
        self.pictures_dir = pictures_dir

    def list(self) -> List[Picture]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StoreError(f"cannot read {self.path}: {e}") from e

        try:
            return _PICTURES.validate_json(raw)
        except ValidationError as e:
            raise StoreError(f"corrupt picture store {self.path}: {e}") from e

    def get(self, day: int) -> Optional[Picture]:
        return next((p for p in self.list() if p.day == day), None)

    def require(self, day: int) -> Picture:
        picture = self.get(day)
        if picture is None:
            raise StoreError(f"no picture registered for day {day}")
        return picture

    def file_for(self, picture: Picture) -> Path:
        return picture.full_path(self.pictures_dir)
