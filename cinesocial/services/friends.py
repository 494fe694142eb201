"""
Friend-facing views: what followed users did with a movie, and their reviews.
"""

from typing import Any, Dict, List, Optional

from cinesocial.logging_config import get_logger
from cinesocial.models import Like, Review, Watched, Watchlist, db
from cinesocial.schemas import ActivityStatus, FriendActivity
from cinesocial.services import review_social, users
from cinesocial.services.activity import normalize_movie_id
from cinesocial import store

logger = get_logger(__name__)

# Checked in order; the first table holding a row decides the status
STATUS_PRECEDENCE = (
    (ActivityStatus.LIKED, Like),
    (ActivityStatus.WATCHED, Watched),
    (ActivityStatus.WATCHLIST, Watchlist),
)


def _users_with_entry(model, user_ids: List[int], movie_id: str) -> set:
    rows = (
        db.session.query(model.user_id)
        .filter(model.user_id.in_(user_ids), model.movie_id == movie_id)
        .all()
    )
    return {row[0] for row in rows}


def get_friend_activity(viewer_id: Optional[int], movie_id: Any) -> List[Dict[str, Any]]:
    """
    Status of each followed user toward a movie.

    Followed users are visited in ascending id order. Each gets the first
    matching status of LIKED, WATCHED, WATCHLIST; users with none are left
    out. An anonymous or unknown viewer gets an empty list.
    """
    if viewer_id is None:
        return []
    viewer = users.find_by_id(viewer_id)
    if viewer is None:
        logger.warning("friend_activity_unknown_viewer", user_id=viewer_id)
        return []

    movie_id = normalize_movie_id(movie_id)
    following = users.get_following(viewer.id)
    if not following:
        return []

    friend_ids = [friend.id for friend in following]
    holders = [
        (status, _users_with_entry(model, friend_ids, movie_id))
        for status, model in STATUS_PRECEDENCE
    ]

    activity = []
    for friend in following:
        status = next((status for status, ids in holders if friend.id in ids), None)
        if status is None:
            continue
        activity.append(FriendActivity(
            user_id=friend.id,
            name=friend.name,
            avatar_url=friend.avatar_url or "",
            status=status,
        ).to_dict())
    return activity


def review_entry(review: Review, viewer_id: Optional[int], with_likes_count: bool = False) -> Dict[str, Any]:
    """
    Serialize a review for a listing.

    ``reviewerLikedMovie`` is whether the review's author likes the movie;
    ``isReviewLiked`` is whether the viewer likes the review.
    """
    entry = review.to_dict()
    entry["reviewerLikedMovie"] = store.exists(Like, user_id=review.user_id, movie_id=review.movie_id)
    entry["isReviewLiked"] = review_social.is_review_liked(viewer_id, review.id)
    if with_likes_count:
        entry["likesCount"] = review_social.count_review_likes(review.id)
    return entry


def get_friend_reviews(viewer_id: int) -> List[Dict[str, Any]]:
    """Reviews written by users the viewer follows, newest first."""
    friend_ids = users.following_ids(viewer_id)
    if not friend_ids:
        return []

    reviews = (
        Review.query.filter(Review.user_id.in_(friend_ids))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return [review_entry(review, viewer_id) for review in reviews]


def get_user_reviews(author_id: int, viewer_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """A user's reviews, newest first, each with its like count."""
    reviews = store.find_all_by_user_desc(Review, author_id)
    return [review_entry(review, viewer_id, with_likes_count=True) for review in reviews]
