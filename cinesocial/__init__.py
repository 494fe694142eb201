"""
cinesocial - social movie tracking backend

Users like, watch and watchlist TMDB movies, write reviews, like each
other's reviews and follow friends to see what they think of a movie.
"""

__version__ = "1.0.0"

from .errors import (
    ActivityError,
    AlreadyExists,
    ErrorKind,
    InvalidRequest,
    RecordNotFound,
    Unauthenticated,
    UpstreamUnavailable,
)

__all__ = [
    "ActivityError",
    "AlreadyExists",
    "ErrorKind",
    "InvalidRequest",
    "RecordNotFound",
    "Unauthenticated",
    "UpstreamUnavailable",
]
