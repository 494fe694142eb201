"""
Likes, watched and watchlist endpoints.

The three collections share one route layout, built by create_entry_blueprint:

    GET    /api/<collection>                  caller's rows, newest first
    POST   /api/<collection>                  toggle on (400 when present)
    GET    /api/<collection>/user/<user_id>   any user's rows (public)
    GET    /api/<collection>/<movie_id>/check
    DELETE /api/<collection>/<movie_id>       idempotent toggle off
"""

from flask import Blueprint, jsonify, request

from cinesocial.identity import require_user
from cinesocial.schemas import MovieEntryPayload, parse_payload
from cinesocial.services import activity

# kind -> (collection, check key, added message, removed message)
ENTRY_ROUTES = {
    "like": ("likes", "isLiked", "Added to likes", "Removed from likes"),
    "watched": ("watched", "isWatched", "Added to watched list", "Removed from watched list"),
    "watchlist": ("watchlist", "inWatchlist", "Added to watchlist", "Removed from watchlist"),
}

_TOGGLE_ON = {
    "like": activity.toggle_like,
    "watched": activity.toggle_watched,
    "watchlist": activity.toggle_watchlist,
}

_TOGGLE_OFF = {
    "like": activity.remove_like,
    "watched": activity.remove_watched,
    "watchlist": activity.remove_watchlist,
}


def create_entry_blueprint(kind: str) -> Blueprint:
    collection, check_key, added_message, removed_message = ENTRY_ROUTES[kind]
    bp = Blueprint(collection, __name__)

    @bp.route("", methods=["GET"])
    def list_own():
        user = require_user()
        entries = activity.list_entries(kind, user.id)
        return jsonify({"status": "success", collection: [entry.to_dict() for entry in entries]})

    @bp.route("/user/<int:user_id>", methods=["GET"])
    def list_for_user(user_id):
        entries = activity.list_entries(kind, user_id)
        return jsonify({"status": "success", collection: [entry.to_dict() for entry in entries]})

    @bp.route("/<movie_id>/check", methods=["GET"])
    def check(movie_id):
        user = require_user()
        return jsonify({check_key: activity.exists_entry(kind, user.id, movie_id)})

    @bp.route("", methods=["POST"])
    def add():
        user = require_user()
        payload = parse_payload(MovieEntryPayload, request.get_json(silent=True))
        entry = _TOGGLE_ON[kind](user.id, payload.movie_id, payload)
        return jsonify({"status": "success", "message": added_message, "entry": entry.to_dict()})

    @bp.route("/<movie_id>", methods=["DELETE"])
    def remove(movie_id):
        user = require_user()
        _TOGGLE_OFF[kind](user.id, movie_id)
        return jsonify({"status": "success", "message": removed_message})

    return bp


likes_bp = create_entry_blueprint("like")
watched_bp = create_entry_blueprint("watched")
watchlist_bp = create_entry_blueprint("watchlist")
