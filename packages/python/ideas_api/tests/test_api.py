import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from core_server.main import app
from ideas_api.kratos_client import get_identity, get_optional_identity

ADA = {"id": "kratos-ada", "traits": {"email": "ada@example.com", "name": {"first": "Ada", "last": "L"}}}
BOB = {"id": "kratos-bob", "traits": {"email": "bob@example.com", "display_name": "Bob"}}


class Session:
    """Identity the fake Kratos dependency hands out."""

    identity = None


@pytest.fixture()
def client():
    session = Session()

    def fake_identity():
        if session.identity is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return session.identity

    def fake_optional_identity():
        return session.identity

    app.dependency_overrides[get_identity] = fake_identity
    app.dependency_overrides[get_optional_identity] = fake_optional_identity
    test_client = TestClient(app)
    test_client.fake_session = session
    yield test_client
    app.dependency_overrides.clear()


def _login(client, identity, register=True):
    client.fake_session.identity = identity
    if register:
        response = client.post("/profile", json={})
        assert response.status_code == 201
        return response.json()
    return None


def _new_idea(client, title="Community fridge"):
    response = client.post(
        "/ideas",
        json={"title": title, "description": "Share surplus food", "tags": ["Food"]},
    )
    assert response.status_code == 201
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_profile_uses_identity_traits(client):
    profile = _login(client, ADA)

    assert profile["displayName"] == "Ada L"
    assert profile["email"] == "ada@example.com"
    assert client.get("/profile").json()["id"] == profile["id"]

    bob = _login(client, BOB)
    assert bob["displayName"] == "Bob"


def test_vote_lifecycle(client):
    _login(client, ADA)
    idea = _new_idea(client)
    url = f"/ideas/{idea['id']}/vote"

    added = client.post(url, json={"voteType": "UPVOTE"})
    assert added.status_code == 201
    assert added.json() == {"message": "Vote added", "voteType": "UPVOTE"}
    assert client.get(url).json() == {"voteType": "UPVOTE"}

    changed = client.post(url, json={"voteType": "DOWNVOTE"})
    assert changed.status_code == 200
    assert changed.json() == {"message": "Vote changed", "voteType": "DOWNVOTE"}

    detail = client.get(f"/ideas/{idea['id']}").json()
    assert (detail["upvotes"], detail["downvotes"], detail["isValidated"]) == (0, 1, False)

    removed = client.post(url, json={"voteType": "DOWNVOTE"})
    assert removed.status_code == 200
    assert removed.json() == {"message": "Vote removed", "voteType": None}
    assert client.get(url).json() == {"voteType": None}


@pytest.mark.parametrize("body", [{}, {"voteType": "upvote"}, {"voteType": None}])
def test_vote_with_bad_type_is_400(client, body):
    _login(client, ADA)
    idea = _new_idea(client)

    response = client.post(f"/ideas/{idea['id']}/vote", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid vote type"}


def test_vote_requires_authentication(client):
    _login(client, ADA)
    idea = _new_idea(client)
    client.fake_session.identity = None

    response = client.post(f"/ideas/{idea['id']}/vote", json={"voteType": "UPVOTE"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_vote_without_profile_is_404(client):
    _login(client, ADA)
    idea = _new_idea(client)
    _login(client, BOB, register=False)

    response = client.post(f"/ideas/{idea['id']}/vote", json={"voteType": "UPVOTE"})

    assert response.status_code == 404
    assert response.json() == {"error": "Profile not found"}


def test_bad_vote_type_is_reported_before_missing_profile(client):
    _login(client, ADA)
    idea = _new_idea(client)
    _login(client, BOB, register=False)

    response = client.post(f"/ideas/{idea['id']}/vote", json={"voteType": "SIDEWAYS"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid vote type"}


def test_authentication_is_checked_before_vote_type(client):
    _login(client, ADA)
    idea = _new_idea(client)
    client.fake_session.identity = None

    response = client.post(f"/ideas/{idea['id']}/vote", json={"voteType": "SIDEWAYS"})

    assert response.status_code == 401


def test_vote_on_missing_idea_is_404(client):
    _login(client, ADA)

    response = client.post("/ideas/does-not-exist/vote", json={"voteType": "UPVOTE"})

    assert response.status_code == 404
    assert response.json() == {"error": "Idea not found"}


def test_anonymous_vote_status_is_null(client):
    _login(client, ADA)
    idea = _new_idea(client)
    client.post(f"/ideas/{idea['id']}/vote", json={"voteType": "UPVOTE"})
    client.fake_session.identity = None

    response = client.get(f"/ideas/{idea['id']}/vote")

    assert response.status_code == 200
    assert response.json() == {"voteType": None}


def test_idea_listing_and_ownership(client):
    _login(client, ADA)
    idea = _new_idea(client, title="Tool library")

    listing = client.get("/ideas", params={"search": "tool", "sortBy": "newest"}).json()
    assert [item["id"] for item in listing["ideas"]] == [idea["id"]]
    assert listing["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}
    assert listing["ideas"][0]["author"]["displayName"] == "Ada L"
    assert "votes" not in listing["ideas"][0]

    _login(client, BOB)
    forbidden = client.put(f"/ideas/{idea['id']}", json={"title": "Bob's now"})
    assert forbidden.status_code == 403
    assert client.delete(f"/ideas/{idea['id']}").status_code == 403

    client.fake_session.identity = ADA
    updated = client.put(f"/ideas/{idea['id']}", json={"description": "Borrow, don't buy"})
    assert updated.status_code == 200
    assert updated.json()["description"] == "Borrow, don't buy"
    assert client.get("/profile/ideas").json()["ideas"][0]["id"] == idea["id"]

    assert client.delete(f"/ideas/{idea['id']}").json() == {"success": True}
    assert client.get(f"/ideas/{idea['id']}").status_code == 404


def test_create_idea_validation(client):
    _login(client, ADA)

    missing = client.post("/ideas", json={"description": "no title"})
    blank = client.post("/ideas", json={"title": " ", "description": "blank title"})

    assert missing.status_code == 400
    assert blank.status_code == 400
    assert blank.json() == {"error": "Title is required"}


def test_threaded_comments(client):
    _login(client, ADA)
    idea = _new_idea(client)
    base = f"/ideas/{idea['id']}/comments"

    top = client.post(base, json={"content": "  Great idea  "})
    assert top.status_code == 201
    top_id = top.json()["id"]
    reply = client.post(base, json={"content": "Thanks", "parentId": top_id})
    assert reply.status_code == 201

    assert client.post(base, json={"content": "   "}).status_code == 400
    assert client.post(base, json={"content": "x", "parentId": "nope"}).json() == {
        "error": "Parent comment not found"
    }

    threads = client.get(base).json()
    assert len(threads) == 1
    assert threads[0]["content"] == "Great idea"
    assert [r["id"] for r in threads[0]["replies"]] == [reply.json()["id"]]
    assert client.get(f"/ideas/{idea['id']}").json()["commentsCount"] == 2

    _login(client, BOB)
    assert client.put(f"/comments/{top_id}", json={"content": "mine"}).status_code == 403

    client.fake_session.identity = ADA
    edited = client.put(f"/comments/{top_id}", json={"content": "Edited"})
    assert edited.json()["content"] == "Edited"
    assert client.delete(f"/comments/{top_id}").json() == {"success": True}
    assert client.get(base).json() == []


def test_public_profile_counts(client):
    ada = _login(client, ADA)
    idea = _new_idea(client)
    client.post(f"/ideas/{idea['id']}/comments", json={"content": "first"})

    profile = client.get(f"/profile/{ada['id']}").json()

    assert (profile["ideasCount"], profile["commentsCount"]) == (1, 1)
    assert client.get("/profile/missing").status_code == 404


def test_update_own_profile(client):
    _login(client, ADA)

    response = client.put("/profile", json={"displayName": "Countess", "bio": "Maths"})

    assert response.status_code == 200
    assert (response.json()["displayName"], response.json()["bio"]) == ("Countess", "Maths")
    assert client.put("/profile", json={"displayName": "  "}).status_code == 400
