"""
Request/response schemas for cinesocial.

Pydantic models validate inbound payloads (camelCase on the wire, snake_case
in Python) and shape the composite views returned by the services.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from cinesocial.errors import InvalidRequest


class ActivityStatus(str, Enum):
    """A followed user's relation to a movie, in precedence order."""
    LIKED = "LIKED"
    WATCHED = "WATCHED"
    WATCHLIST = "WATCHLIST"


def _as_text(value: Any) -> Any:
    # Movie ids and years arrive as numbers from some clients
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise ValueError("expected a string or number")
    if isinstance(value, (int, float)):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


class MovieSnapshot(BaseModel):
    """
    Movie metadata copied onto a Like/Watched/Watchlist row at creation time.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, description="Movie title")
    poster_path: Optional[str] = Field(None, alias="posterPath", description="TMDB poster path")
    vote_average: float = Field(0.0, alias="voteAverage", description="TMDB vote average (0-10)")
    release_date: Optional[str] = Field(None, alias="releaseDate", description="Release date, e.g. '2010-07-15'")

    @field_validator("vote_average", mode="before")
    @classmethod
    def default_vote_average(cls, v):
        return 0.0 if v is None else v


class MovieEntryPayload(MovieSnapshot):
    """Body of POST /api/likes, /api/watched and /api/watchlist."""
    movie_id: str = Field(..., alias="movieId", min_length=1)

    @field_validator("movie_id", mode="before")
    @classmethod
    def coerce_movie_id(cls, v):
        v = _as_text(v)
        return v.strip() if isinstance(v, str) else v


class ReviewPayload(BaseModel):
    """
    Body of POST /api/reviews.

    ``viewer_liked_movie`` is the author's own "I liked this movie" toggle.
    It is reconciled against the Like table; ``None`` leaves the Like alone.
    """
    model_config = ConfigDict(populate_by_name=True)

    movie_id: str = Field(..., alias="movieId", min_length=1)
    movie_title: Optional[str] = Field(None, alias="movieTitle")
    movie_year: Optional[str] = Field(None, alias="movieYear")
    movie_poster_url: Optional[str] = Field(None, alias="moviePosterUrl")
    content: Optional[str] = Field(None, alias="review", max_length=5000)
    rating: Optional[float] = Field(None, ge=0, le=10)
    is_rewatch: bool = Field(False, alias="isRewatch")
    contains_spoiler: bool = Field(False, alias="containsSpoiler")
    watched_date: Optional[date] = Field(None, alias="watchedDate")
    tags: List[str] = Field(default_factory=list)
    viewer_liked_movie: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("viewerLikedMovie", "isLiked", "viewer_liked_movie"),
    )
    vote_average: float = Field(0.0, alias="voteAverage")
    release_date: Optional[str] = Field(None, alias="releaseDate")

    @field_validator("movie_id", "movie_year", mode="before")
    @classmethod
    def coerce_text(cls, v):
        v = _as_text(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("is_rewatch", "contains_spoiler", mode="before")
    @classmethod
    def default_flags(cls, v):
        return False if v is None else v

    @field_validator("vote_average", mode="before")
    @classmethod
    def default_vote_average(cls, v):
        return 0.0 if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError("tags must be a list of strings")
        return [str(tag).strip() for tag in v if tag is not None and str(tag).strip()]


class FriendActivity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    name: str
    avatar_url: str = Field("", alias="avatarUrl")
    status: ActivityStatus

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def parse_payload(model: type, data: Optional[Dict[str, Any]]):
    """
    Validate a JSON body against ``model``.

    Raises:
        InvalidRequest: when the body is missing or fails validation
    """
    if not isinstance(data, dict):
        raise InvalidRequest("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        raise InvalidRequest(f"Invalid fields: {', '.join(fields)}", fields=fields) from e
