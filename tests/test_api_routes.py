"""
Tests for API routes.
"""

import json

import pytest
from unittest.mock import patch

from cinesocial.services import activity, users


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


class TestAuthentication:

    @pytest.mark.parametrize("method, path", [
        ("get", "/api/likes"),
        ("post", "/api/likes"),
        ("delete", "/api/watched/27205"),
        ("get", "/api/watchlist/27205/check"),
        ("post", "/api/reviews"),
        ("get", "/api/reviews/friends"),
        ("post", "/api/reviews/1/like"),
        ("post", "/api/users/1/follow"),
    ])
    def test_requires_identity(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        data = json.loads(response.data)
        assert data["status"] == "error"
        assert data["error_type"] == "unauthenticated"

    def test_unknown_user(self, client, app):
        response = client.get("/api/likes", headers={"X-User-Email": "ghost@example.com"})
        assert response.status_code == 401
        assert json.loads(response.data)["error"] == "Unknown user"


class TestEntryRoutes:

    def test_like_flow(self, client, alice, auth_headers):
        body = {"movieId": 27205, "title": "Inception", "voteAverage": 8.4}

        response = client.post("/api/likes", json=body, headers=auth_headers(alice))
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "success"
        assert data["entry"]["movieId"] == "27205"

        response = client.post("/api/likes", json=body, headers=auth_headers(alice))
        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "Movie already liked"

        response = client.get("/api/likes/27205/check", headers=auth_headers(alice))
        assert json.loads(response.data) == {"isLiked": True}

        response = client.delete("/api/likes/27205", headers=auth_headers(alice))
        assert response.status_code == 200
        response = client.delete("/api/likes/27205", headers=auth_headers(alice))
        assert response.status_code == 200

        response = client.get("/api/likes", headers=auth_headers(alice))
        assert json.loads(response.data) == {"status": "success", "likes": []}

    def test_watched_clears_watchlist(self, client, alice, auth_headers):
        body = {"movieId": "27205", "title": "Inception"}
        client.post("/api/watchlist", json=body, headers=auth_headers(alice))
        client.post("/api/watched", json=body, headers=auth_headers(alice))

        response = client.get("/api/watchlist/27205/check", headers=auth_headers(alice))
        assert json.loads(response.data) == {"inWatchlist": False}
        response = client.get("/api/watched/27205/check", headers=auth_headers(alice))
        assert json.loads(response.data) == {"isWatched": True}

    def test_missing_movie_id(self, client, alice, auth_headers):
        response = client.post("/api/watchlist", json={"title": "Inception"}, headers=auth_headers(alice))
        assert response.status_code == 400
        assert "movieId" in json.loads(response.data)["error"]

    def test_non_json_body(self, client, alice, auth_headers):
        response = client.post("/api/likes", data="nope", headers=auth_headers(alice))
        assert response.status_code == 400

    def test_public_user_list(self, client, alice):
        activity.toggle_watched(alice.id, "27205", {"title": "Inception"})

        response = client.get(f"/api/watched/user/{alice.id}")

        data = json.loads(response.data)
        assert [entry["movieId"] for entry in data["watched"]] == ["27205"]


class TestReviewRoutes:

    def test_save_and_check(self, client, alice, auth_headers):
        body = {"movieId": "27205", "movieTitle": "Inception", "review": "Goat", "rating": 9.5,
                "viewerLikedMovie": True, "tags": ["heist"]}

        response = client.post("/api/reviews", json=body, headers=auth_headers(alice))
        assert response.status_code == 200
        review = json.loads(response.data)
        assert review["rating"] == 9.5
        assert review["tags"] == ["heist"]

        response = client.get("/api/reviews/movie/27205/check", headers=auth_headers(alice))
        status = json.loads(response.data)
        assert status["isLiked"] is True
        assert status["hasReview"] is True
        assert status["reviewId"] == review["id"]

    def test_invalid_rating(self, client, alice, auth_headers):
        response = client.post("/api/reviews", json={"movieId": "1", "rating": 42}, headers=auth_headers(alice))
        assert response.status_code == 400
        assert json.loads(response.data)["error_type"] == "invalid"

    @pytest.mark.parametrize("movie_id", [True, [1], {"id": 1}])
    def test_invalid_movie_id_type(self, client, alice, auth_headers, movie_id):
        response = client.post("/api/reviews", json={"movieId": movie_id, "review": "Goat"},
                               headers=auth_headers(alice))
        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["error_type"] == "invalid"
        assert "movieId" in data["error"]

    def test_like_review(self, client, alice, bob, auth_headers):
        review = activity.upsert_review(alice.id, "27205", {"review": "Goat"})

        response = client.post(f"/api/reviews/{review.id}/like", headers=auth_headers(bob))
        assert response.status_code == 200
        response = client.post(f"/api/reviews/{review.id}/like", headers=auth_headers(bob))
        assert response.status_code == 400
        response = client.delete(f"/api/reviews/{review.id}/like", headers=auth_headers(bob))
        assert response.status_code == 200

    def test_like_missing_review(self, client, bob, auth_headers):
        response = client.post("/api/reviews/9999/like", headers=auth_headers(bob))
        assert response.status_code == 404
        assert json.loads(response.data)["error"] == "Review not found"

    def test_friend_feed(self, client, alice, bob, auth_headers):
        users.follow(bob.id, alice.id)
        activity.upsert_review(alice.id, "27205", {"review": "Goat"})

        response = client.get("/api/reviews/friends", headers=auth_headers(bob))

        reviews = json.loads(response.data)["reviews"]
        assert [r["user"]["name"] for r in reviews] == ["Alice"]

    def test_other_user_status(self, client, alice, bob, auth_headers):
        review = activity.upsert_review(alice.id, "27205", {"review": "Goat"})
        client.post(f"/api/reviews/{review.id}/like", headers=auth_headers(bob))

        response = client.get(f"/api/reviews/user/{alice.id}/movie/27205", headers=auth_headers(bob))

        status = json.loads(response.data)
        assert status["hasReview"] is True
        assert status["isReviewLiked"] is True

    def test_tag_search(self, client, alice):
        activity.upsert_review(alice.id, "27205", {"review": "Goat", "tags": ["Heist"]})

        response = client.get("/api/reviews/search/tags?tag=heist")
        assert len(json.loads(response.data)["reviews"]) == 1

        response = client.get("/api/reviews/search/tags")
        assert response.status_code == 400


class TestMovieRoutes:

    @patch("cinesocial.routes.movies.tmdb.get_movie")
    def test_movie_found(self, mock_movie, client):
        mock_movie.return_value = {"id": 27205, "title": "Inception"}

        response = client.get("/api/movies/27205")

        assert response.status_code == 200
        assert json.loads(response.data)["title"] == "Inception"
        mock_movie.assert_called_once_with("27205")

    @patch("cinesocial.routes.movies.tmdb.get_movie", return_value=None)
    def test_movie_not_found(self, mock_movie, client):
        response = client.get("/api/movies/0")
        assert response.status_code == 404
        assert json.loads(response.data)["error"] == "Movie not found"

    @patch("cinesocial.routes.movies.tmdb.get_trending", return_value=[])
    def test_trending_degrades_to_empty(self, mock_trending, client):
        response = client.get("/api/movies/trending")
        assert response.status_code == 200
        assert json.loads(response.data) == []

    def test_search_requires_query(self, client):
        response = client.get("/api/movies/search")
        assert response.status_code == 400
        assert "Missing query" in json.loads(response.data)["error"]

    @patch("cinesocial.routes.movies.tmdb.search_movies", return_value=None)
    def test_paginated_search_empty_page(self, mock_search, client):
        response = client.get("/api/movies/search/paginated?query=x&page=3")
        assert json.loads(response.data) == {"page": 3, "results": [], "total_pages": 0, "total_results": 0}

    def test_friend_activity(self, client, alice, bob, auth_headers):
        users.follow(bob.id, alice.id)
        activity.toggle_like(alice.id, "27205", {"title": "Inception"})

        response = client.get("/api/movies/27205/friend-activity", headers=auth_headers(bob))

        assert json.loads(response.data) == [
            {"userId": alice.id, "name": "Alice", "avatarUrl": "", "status": "LIKED"}
        ]

    def test_friend_activity_anonymous(self, client, alice):
        activity.toggle_like(alice.id, "27205", {"title": "Inception"})
        response = client.get("/api/movies/27205/friend-activity")
        assert response.status_code == 200
        assert json.loads(response.data) == []


class TestUserRoutes:

    def test_follow_and_profile(self, client, alice, bob, auth_headers):
        response = client.post(f"/api/users/{alice.id}/follow", headers=auth_headers(bob))
        assert json.loads(response.data)["isFollowing"] is True

        response = client.get(f"/api/users/{alice.id}", headers=auth_headers(bob))
        profile = json.loads(response.data)
        assert profile["followersCount"] == 1
        assert profile["isFollowing"] is True

        response = client.post(f"/api/users/{alice.id}/unfollow", headers=auth_headers(bob))
        assert json.loads(response.data)["isFollowing"] is False

    def test_self_follow(self, client, alice, auth_headers):
        response = client.post(f"/api/users/{alice.id}/follow", headers=auth_headers(alice))
        assert response.status_code == 400

    def test_missing_profile(self, client, app):
        response = client.get("/api/users/9999")
        assert response.status_code == 404

    def test_search(self, client, alice, bob):
        response = client.get("/api/users/search?query=ali")
        assert [u["name"] for u in json.loads(response.data)] == ["Alice"]


class TestHealthAndErrors:

    def test_health(self, client):
        response = client.get("/health")
        assert json.loads(response.data) == {"status": "healthy", "service": "cinesocial"}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    @patch("cinesocial.routes.movies.tmdb.get_top_rated", side_effect=RuntimeError("boom"))
    def test_unexpected_error_is_generic(self, mock_top, client):
        response = client.get("/api/movies/top-rated")
        assert response.status_code == 500
        assert json.loads(response.data) == {
            "status": "error",
            "error": "An error occurred while processing your request."
        }

    def test_unknown_route_is_404(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
