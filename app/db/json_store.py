"""
Whole-collection JSON file store.

Every operation reads the complete ``users.json`` array; writes replace the
whole file. Read-modify-write cycles are serialised per file inside one
process and guarded by the version check, but the store offers no
cross-process transaction: two processes writing different users at the
same instant can still lose one of the writes.
"""

import os
import threading
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from app.core.aot_logger import AotLogger
from app.core.exceptions import StoreConflictError, StoreError
from app.db.base import UserStore
from app.models.user import User

logger = AotLogger.get_logger(__name__)

_USERS = TypeAdapter(List[User])

_file_locks: Dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _file_locks_guard:
        if key not in _file_locks:
            _file_locks[key] = threading.Lock()
        return _file_locks[key]


class JsonUserStore(UserStore):
    """User store backed by a single JSON array on disk."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def initialize(self) -> None:
        """Create an empty collection if the file does not exist yet."""
        with self._lock:
            if self.path.exists():
                return
            self._write_all([])
            logger.info(f"Created empty user store at {self.path}")

    def get(self, user_id: str) -> Optional[User]:
        return next((u for u in self._read_all() if u.id == user_id), None)

    def get_by_access_token(self, access_token: str) -> Optional[User]:
        if not access_token:
            return None
        return next((u for u in self._read_all() if u.access_token == access_token), None)

    def list(self) -> List[User]:
        return self._read_all()

    def upsert(self, user: User) -> User:
        with self._lock:
            users = self._read_all()
            existing = next((u for u in users if u.id == user.id), None)
            stored_version = existing.version if existing else 0
            if stored_version != user.version:
                raise StoreConflictError(user.id)

            user.version = stored_version + 1
            users = [u for u in users if u.id != user.id]
            users.append(user)
            try:
                self._write_all(users)
            except StoreError:
                user.version = stored_version
                raise

        logger.debug(f"{'updated' if existing else 'created'} user {user.id} (v{user.version})")
        return user

    def _read_all(self) -> List[User]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StoreError(f"cannot read {self.path}: {e}") from e

        try:
            return _USERS.validate_json(raw)
        except ValidationError as e:
            raise StoreError(f"corrupt user store {self.path}: {e}") from e

    def _write_all(self, users: List[User]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(_USERS.dump_json(users))
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"cannot write {self.path}: {e}") from e
