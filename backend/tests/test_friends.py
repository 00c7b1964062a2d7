import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from social_chat import user_service
from social_chat.models import Friend, FriendRequest


@pytest.fixture()
def pair(make_user):
    return make_user("alice"), make_user("bob")


def edges(db_session):
    friends = {(f.user_id, f.friend_id) for f in db_session.query(Friend).all()}
    pending = {(r.from_user_id, r.to_user_id) for r in db_session.query(FriendRequest).all()}
    return friends, pending


# --- State machine (service level) ---

def test_send_request_creates_pending_edge(db_session, pair):
    alice, bob = pair
    assert user_service.send_friend_request(db_session, alice.id, bob.id) == "pending_sent"
    assert user_service.friendship_state(db_session, alice.id, bob.id) == "pending_sent"
    assert user_service.friendship_state(db_session, bob.id, alice.id) == "pending_received"


def test_mutual_request_becomes_friendship(db_session, pair):
    alice, bob = pair
    user_service.send_friend_request(db_session, alice.id, bob.id)
    assert user_service.send_friend_request(db_session, bob.id, alice.id) == "friends"

    friends, pending = edges(db_session)
    assert friends == {(alice.id, bob.id), (bob.id, alice.id)}
    assert pending == set()

    alice = user_service.get_user(db_session, alice.id, friends=True)
    assert [u.id for u in alice.friends] == [bob.id]
    assert alice.friend_requests_sent == []
    assert alice.friend_requests_received == []


def test_request_to_self_is_rejected(db_session, pair):
    alice, _ = pair
    with pytest.raises(HTTPException) as exc:
        user_service.send_friend_request(db_session, alice.id, alice.id)
    assert exc.value.status_code == 400


def test_request_requires_friend_id(db_session, pair):
    alice, _ = pair
    with pytest.raises(HTTPException) as exc:
        user_service.send_friend_request(db_session, alice.id, None)
    assert exc.value.detail == "friendId is required"


def test_request_to_unknown_user(db_session, pair):
    alice, _ = pair
    with pytest.raises(HTTPException) as exc:
        user_service.send_friend_request(db_session, alice.id, "nobody")
    assert exc.value.status_code == 404


def test_duplicate_request_is_rejected(db_session, pair):
    alice, bob = pair
    user_service.send_friend_request(db_session, alice.id, bob.id)
    with pytest.raises(HTTPException) as exc:
        user_service.send_friend_request(db_session, alice.id, bob.id)
    assert exc.value.detail == "Request already sent"


def test_request_to_friend_is_rejected(db_session, pair):
    alice, bob = pair
    user_service.send_friend_request(db_session, alice.id, bob.id)
    user_service.accept_friend_request(db_session, bob.id, alice.id)
    with pytest.raises(HTTPException) as exc:
        user_service.send_friend_request(db_session, bob.id, alice.id)
    assert exc.value.detail == "You cannot send a friend request to a friend"


def test_accept_reject_cancel(db_session, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    user_service.send_friend_request(db_session, alice.id, bob.id)
    user_service.send_friend_request(db_session, carol.id, bob.id)
    user_service.send_friend_request(db_session, alice.id, carol.id)

    user_service.accept_friend_request(db_session, bob.id, alice.id)
    user_service.reject_friend_request(db_session, bob.id, carol.id)
    user_service.cancel_friend_request(db_session, alice.id, carol.id)

    assert user_service.friendship_state(db_session, alice.id, bob.id) == "friends"
    assert user_service.friendship_state(db_session, bob.id, carol.id) == "none"
    assert user_service.friendship_state(db_session, alice.id, carol.id) == "none"
    assert edges(db_session)[1] == set()


def test_answering_missing_request_fails(db_session, pair):
    alice, bob = pair
    for action in (user_service.accept_friend_request, user_service.reject_friend_request,
                   user_service.cancel_friend_request):
        with pytest.raises(HTTPException) as exc:
            action(db_session, alice.id, bob.id)
        assert exc.value.status_code == 400


def test_remove_friend_is_idempotent(db_session, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    user_service.send_friend_request(db_session, alice.id, bob.id)
    user_service.send_friend_request(db_session, bob.id, alice.id)
    user_service.send_friend_request(db_session, alice.id, carol.id)

    user_service.remove_friend(db_session, alice.id, bob.id)
    once = edges(db_session)
    user_service.remove_friend(db_session, alice.id, bob.id)
    assert edges(db_session) == once
    assert once == (set(), {(alice.id, carol.id)})


def test_remove_friend_clears_pending_edges_both_ways(db_session, pair):
    alice, bob = pair
    user_service.send_friend_request(db_session, bob.id, alice.id)
    user_service.remove_friend(db_session, alice.id, bob.id)
    assert user_service.friendship_state(db_session, alice.id, bob.id) == "none"


# --- HTTP ---

def test_friend_routes(client: TestClient, pair, auth_headers):
    alice, bob = pair
    resp = client.post("/friends", json={"friendId": bob.id}, headers=auth_headers(alice))
    assert resp.status_code == 200
    assert resp.json()["state"] == "pending_sent"
    assert resp.json()["user"]["id"] == bob.id

    incoming = client.get("/friends/requests", headers=auth_headers(bob)).json()
    assert [u["id"] for u in incoming["received"]] == [alice.id]
    assert incoming["sent"] == []

    resp = client.post(f"/friends/requests/{alice.id}/respond", json={"action": "accept"}, headers=auth_headers(bob))
    assert resp.status_code == 200
    assert resp.json()["state"] == "friends"

    friends = client.get("/friends", headers=auth_headers(alice)).json()
    assert [u["username"] for u in friends] == ["bob"]

    resp = client.request("DELETE", "/friends", json={"friendId": bob.id}, headers=auth_headers(alice))
    assert resp.status_code == 204
    assert client.get("/friends", headers=auth_headers(bob)).json() == []


def test_friend_routes_reject_and_cancel(client: TestClient, pair, auth_headers):
    alice, bob = pair
    client.post("/friends", json={"friendId": bob.id}, headers=auth_headers(alice))
    resp = client.post(f"/friends/requests/{alice.id}/respond", json={"action": "reject"}, headers=auth_headers(bob))
    assert resp.json()["state"] == "none"

    client.post("/friends", json={"friendId": bob.id}, headers=auth_headers(alice))
    assert client.delete(f"/friends/requests/{bob.id}", headers=auth_headers(alice)).status_code == 204
    assert client.delete(f"/friends/requests/{bob.id}", headers=auth_headers(alice)).status_code == 400


def test_post_friends_without_id(client: TestClient, pair, auth_headers):
    alice, _ = pair
    resp = client.post("/friends", json={}, headers=auth_headers(alice))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "friendId is required"
