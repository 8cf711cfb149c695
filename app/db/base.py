"""
SQLAlchemy base configuration and the user store contract.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.orm import DeclarativeBase

from app.models.user import User


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UserStore(ABC):
    """Persistence contract for players.

    ``upsert`` is a compare-and-swap on ``User.version``: the write only
    succeeds when the stored record still has the version the caller read
    (0 for a record that does not exist yet). On success the caller's
    object receives the new version.
    """

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_by_access_token(self, access_token: str) -> Optional[User]:
        ...

    @abstractmethod
    def list(self) -> List[User]:
        ...

    @abstractmethod
    def upsert(self, user: User) -> User:
        ...
