"""HTTP tests for the JSON API."""

import pytest


def _register(client, name):
    resp = client.post(
        "/api/auth/register",
        json={"email": f"{name}@example.com", "username": name, "password": "secret123"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
def alice(client):
    return _register(client, "alice")


@pytest.fixture
def bob(client):
    return _register(client, "bob")


# 3/10 from 10ft = 9 points; clears no weekly challenge type
LOW_SESSION = {"makes": 3, "attempts": 10, "distance": 10}


class TestAuth:
    def test_health(self, client):
        assert client.get("/api/health").get_json() == {"status": "ok"}

    def test_register_and_login(self, client, alice):
        resp = client.post("/api/auth/login", json={"identifier": "alice", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["username"] == "alice"

        resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})
        assert resp.status_code == 401

    def test_duplicate_email(self, client, alice):
        resp = client.post(
            "/api/auth/register",
            json={"email": "alice@example.com", "username": "alice2", "password": "secret123"},
        )
        assert resp.status_code == 400

    def test_token_required(self, client):
        resp = client.get("/api/sessions")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Missing or invalid auth token"

    def test_me(self, client, alice):
        user_id, headers = alice
        assert client.get("/api/auth/me", headers=headers).get_json()["user"]["id"] == user_id


class TestSessionRoutes:
    def test_add_list_edit_delete(self, client, alice):
        _, headers = alice

        resp = client.post("/api/sessions", json=LOW_SESSION, headers=headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["session"]["points"] == 9
        assert body["user"]["total_points"] == 9
        assert body["challenge_completed"] is False
        sid = body["session"]["id"]

        listing = client.get("/api/sessions", headers=headers).get_json()["sessions"]
        assert [s["id"] for s in listing] == [sid]

        resp = client.put(f"/api/sessions/{sid}", json={"makes": 4}, headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["points_diff"] == 7

        resp = client.delete(f"/api/sessions/{sid}", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["total_points"] == 0

    def test_validation_errors(self, client, alice):
        _, headers = alice
        resp = client.post("/api/sessions", json={"makes": 11, "attempts": 10, "distance": 10}, headers=headers)
        assert resp.status_code == 400
        assert resp.get_json()["errors"] == ["Makes cannot exceed attempts"]

    def test_missing_session(self, client, alice):
        _, headers = alice
        assert client.delete("/api/sessions/12345", headers=headers).status_code == 404


class TestCrossLoggingRoutes:
    def test_log_for_and_accept(self, client, alice, bob):
        alice_id, alice_headers = alice
        bob_id, bob_headers = bob

        resp = client.post("/api/sessions/log-for", json={"user_id": bob_id, **LOW_SESSION}, headers=alice_headers)
        assert resp.status_code == 201
        sid = resp.get_json()["session"]["id"]

        pending = client.get("/api/pending", headers=bob_headers).get_json()
        assert [s["id"] for s in pending["sessions"]] == [sid]

        # only bob can review it
        assert client.post(f"/api/pending/session/{sid}/accept", headers=alice_headers).status_code == 403

        resp = client.post(f"/api/pending/session/{sid}/accept", headers=bob_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["total_points"] == 9

    def test_log_for_self(self, client, alice):
        alice_id, headers = alice
        resp = client.post("/api/sessions/log-for", json={"user_id": alice_id, **LOW_SESSION}, headers=headers)
        assert resp.status_code == 400

    def test_log_for_bad_user_id(self, client, alice):
        _, headers = alice
        resp = client.post("/api/sessions/log-for", json={"user_id": "abc", **LOW_SESSION}, headers=headers)
        assert resp.status_code == 400
        resp = client.post("/api/games/log-for", json={"user_id": "abc", "game_id": "par_game", "strokes": 17},
                           headers=headers)
        assert resp.status_code == 400

    def test_bulk(self, client, alice, bob):
        _, headers = alice
        bob_id, _ = bob
        resp = client.post(
            "/api/sessions/bulk",
            json={"entries": [{"user_id": bob_id, **LOW_SESSION}, {"user_id": 999, **LOW_SESSION}]},
            headers=headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert len(body["logged"]) == 1
        assert body["failed"][0]["user_id"] == 999


class TestCatalogAndGames:
    def test_catalogs_are_public(self, client):
        assert len(client.get("/api/routines/catalog").get_json()["routines"]) == 4
        assert len(client.get("/api/games/catalog").get_json()["games"]) == 7

    def test_game_and_leaderboard(self, client, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        client.post("/api/games", json={"game_id": "par_game", "strokes": 20}, headers=alice_headers)
        resp = client.post("/api/games", json={"game_id": "par_game", "strokes": 17}, headers=bob_headers)
        assert resp.status_code == 201
        assert resp.get_json()["game"]["points"] == 240

        board = client.get("/api/games/leaderboard/par_game", headers=alice_headers).get_json()["leaderboard"]
        assert [row["score"] for row in board] == [17, 20]

        stats = client.get("/api/games/stats/par_game", headers=alice_headers).get_json()["stats"]
        assert stats["times_played"] == 1
        assert stats["best_score"] == 20

    def test_unknown_game_stats(self, client, alice):
        _, headers = alice
        assert client.get("/api/games/stats/golf", headers=headers).status_code == 404


class TestDashboardAndSocial:
    def test_dashboard(self, client, alice):
        _, headers = alice
        client.post("/api/sessions", json=LOW_SESSION, headers=headers)

        body = client.get("/api/dashboard/overview", headers=headers).get_json()
        assert body["stats"]["total_sessions"] == 1
        assert body["stats"]["level"] == 1
        assert body["last7days"]["total_points"] == 9
        assert len(body["last7days"]["by_day"]) == 7

    def test_rewards(self, client, alice):
        _, headers = alice
        resp = client.post("/api/rewards/games-viewed", headers=headers)
        assert resp.get_json()["new_achievements"] == ["game_on"]
        assert client.post("/api/rewards/games-viewed", headers=headers).get_json()["new_achievements"] == []

        summary = client.get("/api/rewards/overview", headers=headers).get_json()["summary"]
        assert summary["total_achievements_count"] == 60
        assert summary["unlocked_achievements_count"] >= 1

    def test_leaderboard_hides_users(self, client, alice, bob):
        alice_id, alice_headers = alice
        bob_id, bob_headers = bob
        client.post("/api/sessions", json=LOW_SESSION, headers=bob_headers)
        client.put("/api/profile", json={"hide_from_leaderboard": True}, headers=alice_headers)

        body = client.get("/api/social/leaderboard", headers=alice_headers).get_json()
        assert [row["id"] for row in body["leaderboard"]] == [bob_id]
        assert body["my_rank"] == -1

    def test_friends(self, client, alice, bob):
        _, alice_headers = alice
        bob_id, bob_headers = bob
        alice_id = alice[0]

        assert client.post("/api/social/friends/request", json={"username": "bob"}, headers=alice_headers).status_code == 201
        assert client.post(f"/api/social/friends/{alice_id}/accept", headers=bob_headers).status_code == 200

        friends = client.get("/api/social/friends", headers=alice_headers).get_json()["friends"]
        assert [f["id"] for f in friends] == [bob_id]

        # asking again returns the existing friendship
        resp = client.post("/api/social/friends/request", json={"user_id": bob_id}, headers=alice_headers)
        assert resp.status_code == 200
        assert resp.get_json()["friendship"]["status"] == "accepted"

    def test_friend_request_rules(self, client, alice, bob):
        _, alice_headers = alice
        bob_id, bob_headers = bob
        alice_id = alice[0]

        assert client.post("/api/social/friends/request", json={"username": "alice"}, headers=alice_headers).status_code == 400
        assert client.post("/api/social/friends/request", json={"username": "nobody"}, headers=alice_headers).status_code == 404
        assert client.post(f"/api/social/friends/{bob_id}/accept", headers=alice_headers).status_code == 404

        assert client.post(f"/api/social/friends/{alice_id}/block", headers=bob_headers).status_code == 200
        assert client.post("/api/social/friends/request", json={"user_id": bob_id}, headers=alice_headers).status_code == 403

    def test_weekly_challenge(self, client, alice):
        _, headers = alice
        body = client.get("/api/social/challenge", headers=headers).get_json()
        assert body["completed"] is False
        assert body["challenge"]["type"] in {"accuracy", "distance", "volume", "streak", "points"}
