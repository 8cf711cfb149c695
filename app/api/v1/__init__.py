from app.api.v1.auth_router import router as auth_router
from app.api.v1.game_router import router as game_router
from app.api.v1.leaderboard_router import router as leaderboard_router

__all__ = [
    "auth_router",
    "game_router",
    "leaderboard_router",
]
