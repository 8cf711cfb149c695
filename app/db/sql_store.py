"""
SQL-backed user store with per-row optimistic concurrency.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.aot_logger import AotLogger
from app.core.exceptions import StoreConflictError, StoreError
from app.db.base import Base, UserStore
from app.models.user import User

logger = AotLogger.get_logger(__name__)


class UserRow(Base):
    """Persisted player record."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    display_name = Column(String, nullable=False)
    provider_username = Column(String, nullable=False)
    oauth_provider = Column(String, nullable=False)
    access_token = Column(String, nullable=False, default="", index=True)
    refresh_token = Column(String, nullable=True)
    access_token_expire_at = Column(DateTime(timezone=True), nullable=True)
    guesses = Column(JSON, nullable=False, default=dict)
    hidden = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<UserRow(id={self.id}, provider={self.oauth_provider}, v{self.version})>"


def _row_values(user: User) -> Dict[str, Any]:
    data = user.model_dump(mode="json", exclude={"version", "access_token_expire_at"})
    data["access_token_expire_at"] = user.access_token_expire_at
    return data


def _to_user(row: UserRow) -> User:
    try:
        return User.model_validate(
            {
                "id": row.id,
                "display_name": row.display_name,
                "provider_username": row.provider_username,
                "oauth_provider": row.oauth_provider,
                "access_token": row.access_token,
                "refresh_token": row.refresh_token,
                "access_token_expire_at": row.access_token_expire_at,
                "guesses": row.guesses or {},
                "hidden": row.hidden,
                "version": row.version,
            }
        )
    except ValidationError as e:
        raise StoreError(f"corrupt user row {row.id}: {e}") from e


class SqlUserStore(UserStore):
    """User store where each write touches only its own row.

    Updates are a single ``UPDATE ... WHERE id = :id AND version = :version``
    so a concurrent writer is detected instead of silently overwritten.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, user_id: str) -> Optional[User]:
        try:
            with self._session_factory() as session:
                row = session.get(UserRow, user_id)
                return _to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"cannot load user {user_id}: {e}") from e

    def get_by_access_token(self, access_token: str) -> Optional[User]:
        if not access_token:
            return None
        try:
            with self._session_factory() as session:
                row = session.scalars(
                    select(UserRow).where(UserRow.access_token == access_token)
                ).first()
                return _to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"cannot look up session: {e}") from e

    def list(self) -> List[User]:
        try:
            with self._session_factory() as session:
                rows = session.scalars(select(UserRow)).all()
                return [_to_user(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"cannot list users: {e}") from e

    def upsert(self, user: User) -> User:
        values = _row_values(user)
        new_version = user.version + 1
        try:
            with self._session_factory() as session:
                if user.version == 0:
                    session.add(UserRow(**values, version=new_version))
                else:
                    result = session.execute(
                        update(UserRow)
                        .where(UserRow.id == user.id, UserRow.version == user.version)
                        .values(**values, version=new_version)
                    )
                    if result.rowcount != 1:
                        raise StoreConflictError(user.id)
                session.commit()
        except IntegrityError as e:
            raise StoreConflictError(user.id) from e
        except SQLAlchemyError as e:
            raise StoreError(f"cannot save user {user.id}: {e}") from e

        user.version = new_version
        logger.debug(f"saved user {user.id} (v{new_version})")
        return user
