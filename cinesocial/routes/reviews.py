from flask import Blueprint, jsonify, request

from cinesocial.identity import optional_user, require_user
from cinesocial.schemas import ReviewPayload, parse_payload
from cinesocial.services import activity, friends, review_social

bp = Blueprint("reviews", __name__)


@bp.route("", methods=["POST"])
def save_review():
    """
    POST /api/reviews
    Create or overwrite the caller's review of a movie.

    Expected JSON body:
    {
        "movieId": "27205",
        "movieTitle": "Inception",
        "movieYear": "2010",
        "moviePosterUrl": "/poster.jpg",
        "review": "Goat",
        "rating": 9.5,
        "isRewatch": false,
        "containsSpoiler": false,
        "watchedDate": "2024-05-01",
        "tags": ["heist"],
        "viewerLikedMovie": true
    }
    """
    user = require_user()
    payload = parse_payload(ReviewPayload, request.get_json(silent=True))
    review = activity.upsert_review(user.id, payload.movie_id, payload)
    return jsonify(review.to_dict())


@bp.route("/<int:review_id>/like", methods=["POST"])
def like_review(review_id):
    user = require_user()
    review_social.like_review(user.id, review_id)
    return jsonify({"status": "success", "message": "Review liked"})


@bp.route("/<int:review_id>/like", methods=["DELETE"])
def unlike_review(review_id):
    user = require_user()
    review_social.unlike_review(user.id, review_id)
    return jsonify({"status": "success", "message": "Review unliked"})


@bp.route("/friends", methods=["GET"])
def friend_reviews():
    user = require_user()
    return jsonify({"status": "success", "reviews": friends.get_friend_reviews(user.id)})


@bp.route("/user/<int:user_id>", methods=["GET"])
def user_reviews(user_id):
    viewer = optional_user()
    reviews = friends.get_user_reviews(user_id, viewer.id if viewer else None)
    return jsonify({"status": "success", "reviews": reviews})


@bp.route("/movie/<movie_id>/check", methods=["GET"])
def my_review_status(movie_id):
    """GET /api/reviews/movie/<movie_id>/check - the caller's like and review state."""
    user = require_user()
    return jsonify(activity.check_status(user.id, movie_id, viewer_id=user.id))


@bp.route("/user/<int:user_id>/movie/<movie_id>", methods=["GET"])
def user_review_status(user_id, movie_id):
    """Another user's like and review state; isReviewLiked reflects the caller."""
    viewer = optional_user()
    return jsonify(activity.check_status(user_id, movie_id, viewer_id=viewer.id if viewer else None))


@bp.route("/search/tags", methods=["GET"])
def search_by_tag():
    tag = request.args.get("tag", "").strip()
    if not tag:
        return jsonify({"status": "error", "error": "Missing tag parameter."}), 400
    reviews = review_social.search_reviews_by_tag(tag)
    return jsonify({"status": "success", "reviews": [review.to_dict() for review in reviews]})
