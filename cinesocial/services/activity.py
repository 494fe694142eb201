"""
State reconciliation for a user's records on a single movie.

A user holds at most one Like, Watched, Watchlist and Review per movie.
The rules that keep them consistent live here:

- toggle-on fails with AlreadyExists when the row is present
- toggle-off is an idempotent delete
- adding to Watched removes the Watchlist row for the same movie
- saving a review is an upsert that may also add or remove the Like

Every write runs inside ``store.atomic`` so the existence check, the insert
and any side effect commit (or roll back) together. The unique constraints
on (user_id, movie_id) turn a concurrent duplicate into AlreadyExists.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from cinesocial.errors import AlreadyExists, InvalidRequest
from cinesocial.logging_config import get_logger
from cinesocial.metrics import track_activity_write
from cinesocial.models import Like, Review, Watched, Watchlist, db
from cinesocial.schemas import MovieSnapshot, ReviewPayload, parse_payload
from cinesocial.services import review_social
from cinesocial import store

logger = get_logger(__name__)

ENTRY_MODELS = {
    "like": Like,
    "watched": Watched,
    "watchlist": Watchlist,
}

DUPLICATE_MESSAGES = {
    "like": "Movie already liked",
    "watched": "Movie already in watched list",
    "watchlist": "Movie already in watchlist",
}

SnapshotLike = Union[MovieSnapshot, Mapping[str, Any], None]


def normalize_movie_id(movie_id: Any) -> str:
    if movie_id is None:
        movie_id = ""
    if isinstance(movie_id, bool) or not isinstance(movie_id, (str, int)):
        raise InvalidRequest("movieId must be a string or integer", fields=["movieId"])
    movie_id = str(movie_id).strip()
    if not movie_id:
        raise InvalidRequest("movieId is required")
    return movie_id


def _as_snapshot(snapshot: SnapshotLike) -> MovieSnapshot:
    if isinstance(snapshot, MovieSnapshot):
        return snapshot
    return parse_payload(MovieSnapshot, dict(snapshot or {}))


def _create_entry(kind: str, user_id: int, movie_id: Any, snapshot: SnapshotLike,
                  after_insert: Optional[Callable[[int, str], None]] = None):
    model = ENTRY_MODELS[kind]
    movie_id = normalize_movie_id(movie_id)
    snapshot = _as_snapshot(snapshot)
    message = DUPLICATE_MESSAGES[kind]

    try:
        with store.atomic(f"add_{kind}", conflict_message=message, user_id=user_id, movie_id=movie_id):
            if store.exists(model, user_id=user_id, movie_id=movie_id):
                raise AlreadyExists(message, user_id=user_id, movie_id=movie_id)

            entry = model(
                user_id=user_id,
                movie_id=movie_id,
                title=snapshot.title,
                poster_path=snapshot.poster_path,
                vote_average=snapshot.vote_average,
                release_date=snapshot.release_date,
            )
            db.session.add(entry)
            db.session.flush()

            if after_insert is not None:
                after_insert(user_id, movie_id)
    except AlreadyExists:
        track_activity_write(kind, "duplicate")
        raise

    track_activity_write(kind, "created")
    logger.info(f"{kind}_created", user_id=user_id, movie_id=movie_id)
    return entry


def _remove_entry(kind: str, user_id: int, movie_id: Any) -> bool:
    model = ENTRY_MODELS[kind]
    movie_id = normalize_movie_id(movie_id)

    with store.atomic(f"remove_{kind}", user_id=user_id, movie_id=movie_id):
        removed = store.delete_where(model, user_id=user_id, movie_id=movie_id)

    if removed:
        track_activity_write(kind, "removed")
        logger.info(f"{kind}_removed", user_id=user_id, movie_id=movie_id)
    return bool(removed)


def _supersede_watchlist(user_id: int, movie_id: str) -> None:
    removed = store.delete_where(Watchlist, user_id=user_id, movie_id=movie_id)
    if removed:
        track_activity_write("watchlist", "removed")
        logger.info("watchlist_superseded", user_id=user_id, movie_id=movie_id)


# --- Like -----------------------------------------------------------------

def toggle_like(user_id: int, movie_id: Any, snapshot: SnapshotLike = None) -> Like:
    """
    Like a movie.

    Raises:
        AlreadyExists: the user already likes this movie
    """
    return _create_entry("like", user_id, movie_id, snapshot)


def remove_like(user_id: int, movie_id: Any) -> bool:
    """Unlike a movie. Returns whether a row was removed; never fails on absence."""
    return _remove_entry("like", user_id, movie_id)


# --- Watched --------------------------------------------------------------

def toggle_watched(user_id: int, movie_id: Any, snapshot: SnapshotLike = None) -> Watched:
    """
    Mark a movie as watched and drop it from the user's watchlist.

    Raises:
        AlreadyExists: already marked watched (the watchlist is left untouched)
    """
    return _create_entry("watched", user_id, movie_id, snapshot, after_insert=_supersede_watchlist)


def remove_watched(user_id: int, movie_id: Any) -> bool:
    return _remove_entry("watched", user_id, movie_id)


# --- Watchlist ------------------------------------------------------------

def toggle_watchlist(user_id: int, movie_id: Any, snapshot: SnapshotLike = None) -> Watchlist:
    return _create_entry("watchlist", user_id, movie_id, snapshot)


def remove_watchlist(user_id: int, movie_id: Any) -> bool:
    return _remove_entry("watchlist", user_id, movie_id)


# --- Reads ----------------------------------------------------------------

def exists_entry(kind: str, user_id: int, movie_id: Any) -> bool:
    return store.exists(ENTRY_MODELS[kind], user_id=user_id, movie_id=normalize_movie_id(movie_id))


def exists_like(user_id: int, movie_id: Any) -> bool:
    return exists_entry("like", user_id, movie_id)


def exists_watched(user_id: int, movie_id: Any) -> bool:
    return exists_entry("watched", user_id, movie_id)


def exists_watchlist(user_id: int, movie_id: Any) -> bool:
    return exists_entry("watchlist", user_id, movie_id)


def list_entries(kind: str, user_id: int) -> List:
    """A user's rows of one kind, newest first."""
    return store.find_all_by_user_desc(ENTRY_MODELS[kind], user_id)


def list_likes(user_id: int) -> List[Like]:
    return list_entries("like", user_id)


def list_watched(user_id: int) -> List[Watched]:
    return list_entries("watched", user_id)


def list_watchlist(user_id: int) -> List[Watchlist]:
    return list_entries("watchlist", user_id)


# --- Reviews --------------------------------------------------------------

def _as_review_payload(payload: Union[ReviewPayload, Mapping[str, Any], None], movie_id: str) -> ReviewPayload:
    if isinstance(payload, ReviewPayload):
        return payload
    data = dict(payload or {})
    data["movieId"] = movie_id
    return parse_payload(ReviewPayload, data)


def _collapse_duplicates(reviews: List[Review]) -> Optional[Review]:
    """
    Keep the oldest review and delete the rest.

    The unique constraint on (user_id, movie_id) prevents new duplicates;
    this only cleans rows written before the constraint existed.
    """
    if not reviews:
        return None

    keep, extras = reviews[0], reviews[1:]
    for extra in extras:
        db.session.delete(extra)
    if extras:
        logger.warning(
            "duplicate_reviews_removed",
            user_id=keep.user_id,
            movie_id=keep.movie_id,
            kept_review_id=keep.id,
            removed=len(extras),
        )
    return keep


def _apply_review_fields(review: Review, payload: ReviewPayload) -> None:
    review.movie_title = payload.movie_title
    review.movie_year = payload.movie_year
    review.movie_poster_url = payload.movie_poster_url
    review.content = payload.content
    if payload.rating is not None:
        review.rating = payload.rating
    review.is_rewatch = payload.is_rewatch
    review.contains_spoiler = payload.contains_spoiler
    if payload.watched_date is not None:
        review.watched_date = payload.watched_date
    review.tags = payload.tags


def _reconcile_like(user_id: int, movie_id: str, review: Review, payload: ReviewPayload) -> None:
    currently_liked = store.exists(Like, user_id=user_id, movie_id=movie_id)

    if payload.viewer_liked_movie and not currently_liked:
        db.session.add(Like(
            user_id=user_id,
            movie_id=movie_id,
            title=review.movie_title,
            poster_path=review.movie_poster_url,
            vote_average=payload.vote_average,
            release_date=payload.release_date or review.movie_year,
        ))
        track_activity_write("like", "created")
        logger.info("like_created", user_id=user_id, movie_id=movie_id, via="review")
    elif not payload.viewer_liked_movie and currently_liked:
        store.delete_where(Like, user_id=user_id, movie_id=movie_id)
        track_activity_write("like", "removed")
        logger.info("like_removed", user_id=user_id, movie_id=movie_id, via="review")


def upsert_review(user_id: int, movie_id: Any, payload: Union[ReviewPayload, Mapping[str, Any], None]) -> Review:
    """
    Create or overwrite the user's review of a movie.

    Overwrites title, year, poster, content, rewatch and spoiler flags and
    tags from the payload. Rating and watched date are only replaced when
    the payload carries them. When ``viewer_liked_movie`` is set, the Like
    table is brought in line with it in the same transaction.

    Raises:
        InvalidRequest: payload fails validation
    """
    movie_id = normalize_movie_id(movie_id)
    payload = _as_review_payload(payload, movie_id)

    # One retry covers a concurrent first save winning the insert race
    for attempt in range(2):
        try:
            with store.atomic("upsert_review", user_id=user_id, movie_id=movie_id):
                review = _collapse_duplicates(store.find_all(Review, user_id=user_id, movie_id=movie_id))
                created = review is None
                if created:
                    review = Review(user_id=user_id, movie_id=movie_id)
                    db.session.add(review)

                _apply_review_fields(review, payload)

                if payload.viewer_liked_movie is not None:
                    _reconcile_like(user_id, movie_id, review, payload)
            break
        except AlreadyExists:
            if attempt:
                raise
            logger.info("review_upsert_retry", user_id=user_id, movie_id=movie_id)

    track_activity_write("review", "created" if created else "updated")
    logger.info("review_upserted", user_id=user_id, movie_id=movie_id, review_id=review.id, created=created)
    return review


def find_review(user_id: int, movie_id: Any) -> Optional[Review]:
    return store.find_one(Review, user_id=user_id, movie_id=normalize_movie_id(movie_id))


# --- Composite status -----------------------------------------------------

def check_status(user_id: int, movie_id: Any, viewer_id: Optional[int] = None) -> Dict[str, Any]:
    """
    Read-only view of a user's like and review state for a movie.

    Args:
        user_id: Whose state to report
        movie_id: TMDB movie id
        viewer_id: Caller identity; drives ``isReviewLiked`` (False when None)

    Returns:
        ``isLiked``, ``likeDate`` (when liked) and ``hasReview``; when a review
        exists also ``rating``, ``reviewId``, ``review``, ``isReviewLiked`` and
        ``reviewLikeCount``.
    """
    movie_id = normalize_movie_id(movie_id)

    like = store.find_one(Like, user_id=user_id, movie_id=movie_id)
    status: Dict[str, Any] = {"isLiked": like is not None}
    if like is not None:
        status["likeDate"] = like.created_at.isoformat()

    review = store.find_one(Review, user_id=user_id, movie_id=movie_id)
    if review is None:
        status["hasReview"] = False
        return status

    status.update({
        "hasReview": True,
        "rating": review.rating,
        "reviewId": review.id,
        "review": review.to_dict(),
        "isReviewLiked": review_social.is_review_liked(viewer_id, review.id),
        "reviewLikeCount": review_social.count_review_likes(review.id),
    })
    return status
