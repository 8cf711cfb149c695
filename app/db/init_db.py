"""
Store construction and initialization utilities.
"""

from app.core.config import Settings
from app.db.base import UserStore
from app.db.json_store import JsonUserStore
from app.db.picture_store import JsonPictureStore
from app.db.session import create_db_engine, create_session_factory, create_tables
from app.db.sql_store import SqlUserStore


def build_user_store(settings: Settings, initialize: bool = False) -> UserStore:
    """Create the configured user store backend.

    With ``initialize`` the backing storage is created when missing
    (empty JSON array, or the ``users`` table).
    """
    if settings.user_store_backend == "sql":
        engine = create_db_engine(settings.database_url, echo=settings.debug)
        if initialize:
            create_tables(engine)
        return SqlUserStore(create_session_factory(engine))

    store = JsonUserStore(settings.users_file)
    if initialize:
        store.initialize()
    return store


def build_picture_store(settings: Settings) -> JsonPictureStore:
    return JsonPictureStore(settings.pictures_file, settings.pictures_dir)


def init_db(settings: Settings) -> UserStore:
    """Initialize storage at startup."""
    return build_user_store(settings, initialize=True)
