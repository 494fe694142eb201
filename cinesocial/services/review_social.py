"""
Review likes: one endorsement per (user, review), plus tag search.
"""

from typing import List, Optional

from sqlalchemy import func, select

from cinesocial.errors import AlreadyExists, RecordNotFound
from cinesocial.logging_config import get_logger
from cinesocial.metrics import track_activity_write
from cinesocial.models import Review, ReviewLike, ReviewTag, db
from cinesocial import store

logger = get_logger(__name__)


def get_review(review_id: int) -> Review:
    review = db.session.get(Review, review_id)
    if review is None:
        raise RecordNotFound("Review not found", review_id=review_id)
    return review


def like_review(user_id: int, review_id: int) -> ReviewLike:
    """
    Raises:
        RecordNotFound: the review does not exist
        AlreadyExists: the user already liked this review
    """
    try:
        with store.atomic("like_review", conflict_message="Review already liked",
                          user_id=user_id, review_id=review_id):
            get_review(review_id)
            if store.exists(ReviewLike, user_id=user_id, review_id=review_id):
                raise AlreadyExists("Review already liked", user_id=user_id, review_id=review_id)
            review_like = ReviewLike(user_id=user_id, review_id=review_id)
            db.session.add(review_like)
    except AlreadyExists:
        track_activity_write("review_like", "duplicate")
        raise

    track_activity_write("review_like", "created")
    logger.info("review_liked", user_id=user_id, review_id=review_id)
    return review_like


def unlike_review(user_id: int, review_id: int) -> bool:
    with store.atomic("unlike_review", user_id=user_id, review_id=review_id):
        removed = store.delete_where(ReviewLike, user_id=user_id, review_id=review_id)

    if removed:
        track_activity_write("review_like", "removed")
        logger.info("review_unliked", user_id=user_id, review_id=review_id)
    return bool(removed)


def count_review_likes(review_id: int) -> int:
    return store.count(ReviewLike, review_id=review_id)


def is_review_liked(user_id: Optional[int], review_id: int) -> bool:
    if user_id is None:
        return False
    return store.exists(ReviewLike, user_id=user_id, review_id=review_id)


def search_reviews_by_tag(tag: str) -> List[Review]:
    """Reviews carrying ``tag`` (case-insensitive exact match), newest first."""
    tag = (tag or "").strip().lower()
    if not tag:
        return []
    tagged = select(ReviewTag.review_id).where(func.lower(ReviewTag.tag) == tag)
    return (
        Review.query.filter(Review.id.in_(tagged))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
