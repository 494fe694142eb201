"""
User directory: identity lookup, profiles and the follow graph.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash

from cinesocial.errors import AlreadyExists, InvalidRequest, RecordNotFound
from cinesocial.logging_config import get_logger
from cinesocial.metrics import track_activity_write
from cinesocial.models import Follow, Review, User, db
from cinesocial import store

logger = get_logger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(name: str, email: str, password: Optional[str] = None, **profile) -> User:
    """
    Register a user record.

    Args:
        name: Display name
        email: Unique email address (case-insensitive)
        password: Optional plain-text password, stored hashed
        **profile: avatar_url, bio, gender, provider, provider_id

    Raises:
        InvalidRequest: name or email missing
        AlreadyExists: email already registered
    """
    email = _normalize_email(email)
    if not name or not email:
        raise InvalidRequest("name and email are required")

    with store.atomic("create_user", conflict_message="Email already registered"):
        if store.exists(User, email=email):
            raise AlreadyExists("Email already registered")
        user = User(
            name=name.strip(),
            email=email,
            password_hash=generate_password_hash(password) if password else None,
            avatar_url=profile.get("avatar_url"),
            bio=profile.get("bio"),
            gender=profile.get("gender"),
            provider=profile.get("provider"),
            provider_id=profile.get("provider_id"),
        )
        db.session.add(user)

    logger.info("user_created", user_id=user.id)
    return user


def find_by_email(email: Optional[str]) -> Optional[User]:
    if not email:
        return None
    return User.query.filter_by(email=_normalize_email(email)).first()


def find_by_id(user_id: Optional[int]) -> Optional[User]:
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def get_user(user_id: int) -> User:
    """Like find_by_id, but raises RecordNotFound."""
    user = find_by_id(user_id)
    if user is None:
        raise RecordNotFound("User not found", user_id=user_id)
    return user


def following_ids(user_id: int) -> List[int]:
    """Ids of the users ``user_id`` follows, ascending."""
    rows = (
        db.session.query(Follow.followee_id)
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.followee_id.asc())
        .all()
    )
    return [row[0] for row in rows]


def get_following(user_id: int) -> List[User]:
    return (
        User.query.join(Follow, Follow.followee_id == User.id)
        .filter(Follow.follower_id == user_id)
        .order_by(User.id.asc())
        .all()
    )


def get_followers(user_id: int) -> List[User]:
    return (
        User.query.join(Follow, Follow.follower_id == User.id)
        .filter(Follow.followee_id == user_id)
        .order_by(User.id.asc())
        .all()
    )


def is_following(follower_id: Optional[int], followee_id: int) -> bool:
    if follower_id is None:
        return False
    return store.exists(Follow, follower_id=follower_id, followee_id=followee_id)


def follow(follower_id: int, followee_id: int) -> Follow:
    """
    Make ``follower_id`` follow ``followee_id``. Following twice is a no-op.

    Raises:
        InvalidRequest: self-follow
        RecordNotFound: target user missing
    """
    if follower_id == followee_id:
        raise InvalidRequest("Users cannot follow themselves")
    get_user(followee_id)

    existing = store.find_one(Follow, follower_id=follower_id, followee_id=followee_id)
    if existing is not None:
        return existing

    try:
        with store.atomic("follow", follower_id=follower_id, followee_id=followee_id):
            edge = Follow(follower_id=follower_id, followee_id=followee_id)
            db.session.add(edge)
    except AlreadyExists:
        # A concurrent request created the same edge
        return store.find_one(Follow, follower_id=follower_id, followee_id=followee_id)

    track_activity_write("follow", "created")
    logger.info("follow_created", follower_id=follower_id, followee_id=followee_id)
    return edge


def unfollow(follower_id: int, followee_id: int) -> None:
    with store.atomic("unfollow", follower_id=follower_id, followee_id=followee_id):
        removed = store.delete_where(Follow, follower_id=follower_id, followee_id=followee_id)
    if removed:
        track_activity_write("follow", "removed")
        logger.info("follow_removed", follower_id=follower_id, followee_id=followee_id)


def search_users(query: str, limit: int = 20) -> List[User]:
    query = (query or "").strip()
    if not query:
        return []
    return (
        User.query.filter(User.name.ilike(f"%{query}%"))
        .order_by(User.name.asc(), User.id.asc())
        .limit(limit)
        .all()
    )


def get_profile(user_id: int, viewer_id: Optional[int] = None) -> Dict[str, Any]:
    """Public profile with follow counts and review statistics."""
    user = get_user(user_id)
    start_of_year = datetime(datetime.now().year, 1, 1)

    profile = user.to_dict(include_email=viewer_id == user.id)
    profile.update({
        "followersCount": store.count(Follow, followee_id=user.id),
        "followingCount": store.count(Follow, follower_id=user.id),
        "reviewCount": store.count(Review, user_id=user.id),
        "reviewsThisYear": Review.query.filter(
            Review.user_id == user.id, Review.created_at >= start_of_year
        ).count(),
        "isFollowing": is_following(viewer_id, user.id),
    })
    return profile
