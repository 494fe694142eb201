import pytest

from cinesocial.errors import AlreadyExists, InvalidRequest, RecordNotFound
from cinesocial.models import Follow
from cinesocial.services import activity, users
from cinesocial import store


class TestCreateUser:

    def test_email_is_normalized(self, app):
        user = users.create_user("Alice", "  Alice@Example.COM ")
        assert user.email == "alice@example.com"
        assert users.find_by_email("ALICE@example.com").id == user.id

    def test_duplicate_email(self, app):
        users.create_user("Alice", "alice@example.com")
        with pytest.raises(AlreadyExists):
            users.create_user("Other Alice", "ALICE@example.com")

    def test_password_is_hashed(self, app):
        user = users.create_user("Alice", "alice@example.com", password="s3cret")
        assert user.password_hash
        assert user.password_hash != "s3cret"
        assert "password_hash" not in user.to_dict()

    def test_name_required(self, app):
        with pytest.raises(InvalidRequest):
            users.create_user("", "alice@example.com")


class TestFollowGraph:

    def test_follow_and_unfollow(self, make_user):
        alice, bob = make_user(), make_user()

        users.follow(alice.id, bob.id)
        assert users.is_following(alice.id, bob.id)
        assert not users.is_following(bob.id, alice.id)
        assert [u.id for u in users.get_following(alice.id)] == [bob.id]
        assert [u.id for u in users.get_followers(bob.id)] == [alice.id]

        users.unfollow(alice.id, bob.id)
        assert not users.is_following(alice.id, bob.id)
        assert users.get_followers(bob.id) == []

    def test_follow_twice_is_noop(self, make_user):
        alice, bob = make_user(), make_user()
        first = users.follow(alice.id, bob.id)
        second = users.follow(alice.id, bob.id)
        assert first.id == second.id
        assert store.count(Follow, follower_id=alice.id) == 1

    def test_unfollow_without_edge(self, make_user):
        alice, bob = make_user(), make_user()
        users.unfollow(alice.id, bob.id)
        assert store.count(Follow) == 0

    def test_self_follow_rejected(self, make_user):
        alice = make_user()
        with pytest.raises(InvalidRequest):
            users.follow(alice.id, alice.id)

    def test_follow_missing_user(self, make_user):
        alice = make_user()
        with pytest.raises(RecordNotFound):
            users.follow(alice.id, 9999)

    def test_following_ids_ascending(self, make_user):
        alice, bob, carol = make_user(), make_user(), make_user()
        users.follow(alice.id, carol.id)
        users.follow(alice.id, bob.id)
        assert users.following_ids(alice.id) == [bob.id, carol.id]


class TestProfile:

    def test_counts(self, make_user):
        alice, bob, carol = make_user(), make_user(), make_user()
        users.follow(bob.id, alice.id)
        users.follow(carol.id, alice.id)
        users.follow(alice.id, bob.id)
        activity.upsert_review(alice.id, "27205", {"review": "Great"})

        profile = users.get_profile(alice.id, viewer_id=bob.id)

        assert profile["followersCount"] == 2
        assert profile["followingCount"] == 1
        assert profile["reviewCount"] == 1
        assert profile["reviewsThisYear"] == 1
        assert profile["isFollowing"] is True
        assert "email" not in profile

    def test_own_profile_includes_email(self, make_user):
        alice = make_user()
        profile = users.get_profile(alice.id, viewer_id=alice.id)
        assert profile["email"] == alice.email
        assert profile["isFollowing"] is False

    def test_missing_user(self, app):
        with pytest.raises(RecordNotFound):
            users.get_profile(9999)


class TestSearch:

    def test_substring_match(self, make_user):
        make_user("Alice Smith")
        make_user("Bob Jones")
        make_user("Alicia Keys")

        names = [u.name for u in users.search_users("ali")]

        assert names == ["Alice Smith", "Alicia Keys"]

    def test_blank_query(self, make_user):
        make_user("Alice")
        assert users.search_users("   ") == []
