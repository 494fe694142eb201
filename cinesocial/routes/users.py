from flask import Blueprint, jsonify, request

from cinesocial.identity import optional_user, require_user
from cinesocial.services import users

bp = Blueprint("users", __name__)


@bp.route("/search", methods=["GET"])
def search():
    query = request.args.get("query", "").strip()
    if not query:
        return jsonify({"status": "error", "error": "Missing query parameter."}), 400
    return jsonify([user.to_dict() for user in users.search_users(query)])


@bp.route("/<int:user_id>", methods=["GET"])
def profile(user_id):
    viewer = optional_user()
    return jsonify(users.get_profile(user_id, viewer.id if viewer else None))


@bp.route("/<int:user_id>/followers", methods=["GET"])
def followers(user_id):
    users.get_user(user_id)
    return jsonify([user.to_dict() for user in users.get_followers(user_id)])


@bp.route("/<int:user_id>/following", methods=["GET"])
def following(user_id):
    users.get_user(user_id)
    return jsonify([user.to_dict() for user in users.get_following(user_id)])


@bp.route("/<int:user_id>/follow", methods=["POST"])
def follow(user_id):
    user = require_user()
    users.follow(user.id, user_id)
    return jsonify({"status": "success", "message": "Followed", "isFollowing": True})


@bp.route("/<int:user_id>/unfollow", methods=["POST"])
def unfollow(user_id):
    user = require_user()
    users.unfollow(user.id, user_id)
    return jsonify({"status": "success", "message": "Unfollowed", "isFollowing": False})
