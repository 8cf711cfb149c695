"""
Services package for the Advent of Time backend.

Game rules (release window, scoring, ranking) and the OAuth2 session lifecycle.
"""

from .identity import IdentityResolver
from .leaderboard import rank
from .release import current_day, is_released, released_days
from .scoring import ScoreConfig, ScoringEngine, parse_guess, score
from .session import KeyedLocks, ResolvedSession, SessionManager, SessionState, utc_now
from .token_exchange import TokenExchangeClient, create_http_client
from .usernames import generate_display_name

__all__ = [
    "IdentityResolver",
    "rank",
    "current_day",
    "is_released",
    "released_days",
    "ScoreConfig",
    "ScoringEngine",
    "parse_guess",
    "score",
    "KeyedLocks",
    "ResolvedSession",
    "SessionManager",
    "SessionState",
    "utc_now",
    "TokenExchangeClient",
    "create_http_client",
    "generate_display_name",
]
