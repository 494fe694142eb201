"""
Movie catalogue proxy and per-movie friend activity.

TMDB failures never surface as errors here: lists come back empty and
single documents come back as 404.
"""

from flask import Blueprint, jsonify, request

from cinesocial import tmdb
from cinesocial.identity import optional_user
from cinesocial.services import friends

bp = Blueprint("movies", __name__)


def _query_arg():
    return request.args.get("query", "").strip()


def _page_arg():
    return request.args.get("page", 1, type=int) or 1


def _missing_query():
    return jsonify({"status": "error", "error": "Missing query parameter."}), 400


def _not_found(what):
    return jsonify({"status": "error", "error": f"{what} not found"}), 404


def _empty_page(page):
    return {"page": page, "results": [], "total_pages": 0, "total_results": 0}


@bp.route("/trending", methods=["GET"])
def trending():
    return jsonify(tmdb.get_trending())


@bp.route("/top-rated", methods=["GET"])
def top_rated():
    return jsonify(tmdb.get_top_rated())


@bp.route("/search", methods=["GET"])
def search():
    query = _query_arg()
    if not query:
        return _missing_query()
    return jsonify(tmdb.search_results(tmdb.search_movies(query, 1)))


@bp.route("/search/paginated", methods=["GET"])
def search_paginated():
    query = _query_arg()
    if not query:
        return _missing_query()
    page = _page_arg()
    return jsonify(tmdb.search_movies(query, page) or _empty_page(page))


@bp.route("/people/search", methods=["GET"])
def search_people():
    query = _query_arg()
    if not query:
        return _missing_query()
    return jsonify(tmdb.search_results(tmdb.search_people(query, 1)))


@bp.route("/people/search/paginated", methods=["GET"])
def search_people_paginated():
    query = _query_arg()
    if not query:
        return _missing_query()
    page = _page_arg()
    return jsonify(tmdb.search_people(query, page) or _empty_page(page))


@bp.route("/person/<person_id>", methods=["GET"])
def person(person_id):
    document = tmdb.get_person(person_id)
    if document is None:
        return _not_found("Person")
    return jsonify(document)


@bp.route("/person/<person_id>/movie_credits", methods=["GET"])
def person_credits(person_id):
    document = tmdb.get_person_credits(person_id)
    if document is None:
        return _not_found("Credits")
    return jsonify(document)


@bp.route("/<movie_id>", methods=["GET"])
def movie(movie_id):
    document = tmdb.get_movie(movie_id)
    if document is None:
        return _not_found("Movie")
    return jsonify(document)


@bp.route("/<movie_id>/friend-activity", methods=["GET"])
def friend_activity(movie_id):
    """Anonymous callers get an empty list rather than 401."""
    viewer = optional_user()
    return jsonify(friends.get_friend_activity(viewer.id if viewer else None, movie_id))
