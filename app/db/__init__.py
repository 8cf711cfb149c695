from .base import Base, UserStore
from .init_db import build_picture_store, build_user_store, init_db
from .json_store import JsonUserStore
from .picture_store import JsonPictureStore
from .sql_store import SqlUserStore

__all__ = [
    "Base",
    "UserStore",
    "JsonUserStore",
    "SqlUserStore",
    "JsonPictureStore",
    "build_user_store",
    "build_picture_store",
    "init_db",
]
