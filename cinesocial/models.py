"""
Database models for cinesocial.

- User / Follow: accounts and the directed follow graph
- Like, Watched, Watchlist: per-(user, movie) presence facts with a movie snapshot
- Review / ReviewTag: one rating + critique per (user, movie)
- ReviewLike: one endorsement per (user, review)
"""

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import declared_attr

db = SQLAlchemy()


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo anyway."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    provider = db.Column(db.String(50), nullable=True)
    provider_id = db.Column(db.String(255), nullable=True)
    avatar_url = db.Column(db.String(2048), nullable=True)
    bio = db.Column(db.String(1000), nullable=True)
    gender = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self, include_email=False):
        """Public profile fields. The password hash is never serialized."""
        data = {
            'id': self.id,
            'name': self.name,
            'avatarUrl': self.avatar_url or '',
            'bio': self.bio,
            'gender': self.gender,
            'provider': self.provider,
            'createdAt': _iso(self.created_at),
        }
        if include_email:
            data['email'] = self.email
        return data

    def __repr__(self):
        return f'<User {self.id} {self.name}>'


class Follow(db.Model):
    """
    A directed follow edge: follower_id follows followee_id.

    A user's ``following`` set is the rows where they are the follower and
    their ``followers`` set is the rows where they are the followee, so a
    single insert or delete keeps both views consistent.
    """
    __tablename__ = 'follows'

    id = db.Column(db.Integer, primary_key=True)
    follower_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    followee_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('follower_id', 'followee_id', name='uq_follow_edge'),
        db.CheckConstraint('follower_id <> followee_id', name='ck_follow_not_self'),
    )


class MovieEntryMixin:
    """Columns shared by Like, Watched and Watchlist."""

    id = db.Column(db.Integer, primary_key=True)
    movie_id = db.Column(db.String(64), nullable=False)
    title = db.Column(db.String(512), nullable=True)
    poster_path = db.Column(db.String(512), nullable=True)
    vote_average = db.Column(db.Float, default=0.0, nullable=False)
    release_date = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    @declared_attr
    def __table_args__(cls):
        return (
            db.UniqueConstraint('user_id', 'movie_id', name=f'uq_{cls.__tablename__}_user_movie'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'movieId': self.movie_id,
            'title': self.title,
            'posterPath': self.poster_path,
            'voteAverage': self.vote_average,
            'releaseDate': self.release_date,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<{type(self).__name__} user={self.user_id} movie={self.movie_id}>'


class Like(MovieEntryMixin, db.Model):
    __tablename__ = 'likes'


class Watched(MovieEntryMixin, db.Model):
    __tablename__ = 'watched'


class Watchlist(MovieEntryMixin, db.Model):
    __tablename__ = 'watchlist'


class ReviewTag(db.Model):
    __tablename__ = 'review_tags'

    id = db.Column(db.Integer, primary_key=True)
    review_id = db.Column(db.Integer, db.ForeignKey('reviews.id', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    tag = db.Column(db.String(100), nullable=False, index=True)


class Review(db.Model):
    __tablename__ = 'reviews'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    movie_id = db.Column(db.String(64), nullable=False)
    movie_title = db.Column(db.String(512), nullable=True)
    movie_year = db.Column(db.String(10), nullable=True)
    movie_poster_url = db.Column(db.String(512), nullable=True)
    content = db.Column(db.Text, nullable=True)
    rating = db.Column(db.Float, default=0.0, nullable=False)
    is_rewatch = db.Column(db.Boolean, default=False, nullable=False)
    contains_spoiler = db.Column(db.Boolean, default=False, nullable=False)
    watched_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    author = db.relationship('User', lazy='joined')
    tag_rows = db.relationship(
        'ReviewTag',
        order_by='ReviewTag.position',
        cascade='all, delete-orphan',
        lazy='selectin',
    )
    likes = db.relationship('ReviewLike', cascade='all, delete-orphan', passive_deletes=True)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'movie_id', name='uq_review_user_movie'),
    )

    @property
    def tags(self):
        return [row.tag for row in self.tag_rows]

    @tags.setter
    def tags(self, values):
        self.tag_rows = [
            ReviewTag(tag=value, position=position)
            for position, value in enumerate(values or [])
        ]

    def to_dict(self):
        return {
            'id': self.id,
            'movieId': self.movie_id,
            'movieTitle': self.movie_title,
            'movieYear': self.movie_year,
            'moviePosterUrl': self.movie_poster_url,
            'content': self.content,
            'rating': self.rating,
            'isRewatch': self.is_rewatch,
            'containsSpoiler': self.contains_spoiler,
            'watchedDate': _iso(self.watched_date),
            'tags': self.tags,
            'createdAt': _iso(self.created_at),
            'user': self.author.to_dict() if self.author else None,
        }

    def __repr__(self):
        return f'<Review {self.id} user={self.user_id} movie={self.movie_id}>'


class ReviewLike(db.Model):
    __tablename__ = 'review_likes'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    review_id = db.Column(db.Integer, db.ForeignKey('reviews.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'review_id', name='uq_review_like_user_review'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'reviewId': self.review_id,
            'createdAt': _iso(self.created_at),
        }
