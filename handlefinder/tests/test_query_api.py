"""Tests for api/main.py"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from models import MatchResult, MoveTreeNode

GAMES = [
    {"moves": ["e4", "e5", "Nf3"]},
    {"moves": ["e4", "e5", "Bc4"]},
    {"moves": ["e4", "c5"]},
    {"moves": ["d4", "d5"]},
]


@pytest.fixture
def client():
    from api.main import app
    return TestClient(app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_search_returns_both_platforms(client):
    found = {
        "chesscom": [MatchResult(handle="JohnSmith", confidence=55, matched_criteria=("Name pattern", "Federation"),
                                 federation="US", rating=2050, last_online="2024-03-05")],
        "lichess": [],
    }
    search = AsyncMock(return_value=found)
    with patch("api.main.search", search):
        resp = client.post("/api/search", json={"name": "John Smith", "federation": "US", "ratings": "2100"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["lichess"] == []
    assert data["chesscom"][0] == {
        "handle": "JohnSmith",
        "confidence": 55,
        "matchedCriteria": ["Name pattern", "Federation"],
        "federation": "US",
        "rating": 2050,
        "lastOnline": "2024-03-05",
    }
    hints = search.call_args.args[0]
    assert hints.full_name == "John Smith"
    assert hints.fide_rating == 2100


@pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "   "}])
def test_search_requires_name(client, body):
    search = AsyncMock()
    with patch("api.main.search", search):
        resp = client.post("/api/search", json=body)
    assert resp.status_code == 400
    search.assert_not_called()


def test_search_rejects_non_numeric_rating(client):
    with patch("api.main.search", AsyncMock()):
        resp = client.post("/api/search", json={"name": "John Smith", "ratings": "strong"})
    assert resp.status_code == 400


def test_player_games_count(client):
    with patch("api.main.count_games", AsyncMock(return_value=321)) as count:
        resp = client.get("/api/player-games", params={"username": " jsmith ", "platform": "lichess"})
    assert resp.status_code == 200
    assert resp.json() == {"count": 321}
    assert count.call_args.args[:2] == ("jsmith", "lichess")


@pytest.mark.parametrize("params", [
    {"username": "jsmith"},
    {"platform": "lichess"},
    {"username": "jsmith", "platform": "chess24"},
])
def test_player_games_bad_request(client, params):
    resp = client.get("/api/player-games", params=params)
    assert resp.status_code == 400


def test_player_games_upstream_failure(client):
    failing = AsyncMock(side_effect=httpx.ConnectError("down"))
    with patch("api.main.count_games", failing):
        resp = client.get("/api/player-games", params={"username": "jsmith", "platform": "chess.com"})
    assert resp.status_code == 502


def test_players_opening_tree(client):
    root = MoveTreeNode(play_count=2, position_key="start")
    root.children["e4"] = MoveTreeNode(move="e4", play_count=2, position_key="after-e4")
    build = AsyncMock(return_value=root)
    with patch("api.main.build_opening_tree", build):
        resp = client.post("/api/opening-tree", json={
            "players": [{"username": "jsmith", "platform": "lichess"}, {"username": "JohnSmith", "platform": "chess.com"}],
            "maxPlies": 12,
        })

    assert resp.status_code == 200
    data = resp.json()
    assert data["totalGames"] == 2
    assert data["tree"]["children"]["e4"]["playCount"] == 2
    assert build.call_args.args[0] == [("jsmith", "lichess"), ("JohnSmith", "chess.com")]
    assert build.call_args.kwargs["max_plies"] == 12


def test_players_opening_tree_validation(client):
    with patch("api.main.build_opening_tree", AsyncMock()) as build:
        assert client.post("/api/opening-tree", json={"players": []}).status_code == 422
        resp = client.post("/api/opening-tree", json={"players": [{"username": "x", "platform": "fics"}]})
    assert resp.status_code == 400
    build.assert_not_called()


def test_games_opening_tree(client):
    resp = client.post("/api/opening-tree/games", json={"games": GAMES})
    assert resp.status_code == 200
    data = resp.json()
    assert data["totalGames"] == 4
    assert data["tree"]["children"]["e4"]["playCount"] == 3
    assert data["tree"]["children"]["e4"]["children"]["e5"]["playCount"] == 2


def test_games_opening_tree_rejects_string_moves(client):
    resp = client.post("/api/opening-tree/games", json={"games": [{"moves": "e4 e5"}]})
    assert resp.status_code == 400


def test_path_stats(client):
    resp = client.post("/api/opening-tree/stats", json={"games": GAMES, "path": ["e4"]})
    assert resp.status_code == 200
    data = resp.json()
    assert data["path"] == ["e4"]
    assert data["inTree"] is True
    assert data["playCount"] == 3
    assert data["frequency"] == 75
    assert data["positionShare"] == 75
    assert data["topContinuation"] == {"move": "e5", "percentage": 67}
    assert data["continuations"] == [
        {"move": "e5", "playCount": 2, "percentage": 67},
        {"move": "c5", "playCount": 1, "percentage": 33},
    ]


def test_path_stats_off_tree(client):
    resp = client.post("/api/opening-tree/stats", json={"games": GAMES, "path": ["c4"]})
    data = resp.json()
    assert data["inTree"] is False
    assert data["playCount"] == 0
    assert data["frequency"] == 0
    assert data["topContinuation"] is None


def test_path_stats_invalid_move(client):
    resp = client.post("/api/opening-tree/stats", json={"games": GAMES, "path": ["e4", "e4"]})
    assert resp.status_code == 400
    assert "e4" in resp.json()["detail"]
