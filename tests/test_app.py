from __future__ import annotations

import re

import pytest

from web import create_app

BACK_RANK = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
START = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
BARE_KINGS = "8/8/4k3/8/8/3K4/8/8 w - - 0 1"


@pytest.fixture()
def client():
    app = create_app({"MAX_DEPTH": 2, "DEFAULT_DEPTH": 1, "MOVE_TIME_LIMIT_MS": 1500})
    return app.test_client()


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


def test_ai_move(client):
    r = client.post("/api/ai/move", json={"fen": START, "depth": 2})
    assert r.status_code == 200
    assert re.match(r"^[a-h][1-8][a-h][1-8]$", r.get_json()["move"])


def test_ai_move_requires_valid_fen(client):
    assert client.post("/api/ai/move", json={}).status_code == 400
    r = client.post("/api/ai/move", json={"fen": "nonsense"})
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_ai_evaluate(client):
    r = client.post("/api/ai/evaluate", json={"fen": START})
    assert r.status_code == 200
    assert abs(r.get_json()["evaluation"]) <= 0.11

    mated = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
    r = client.post("/api/ai/evaluate", json={"fen": mated, "depth": 2})
    assert r.get_json()["evaluation"] == -1000

    assert client.post("/api/ai/evaluate", json={"fen": "x"}).status_code == 400


def test_puzzle_solve(client):
    r = client.post("/api/puzzles/solve", json={"fen": BACK_RANK, "solution": "a1a8", "mateIn": 1})
    assert r.status_code == 200
    assert r.get_json() == {"solved": True}

    r = client.post("/api/puzzles/solve", json={"fen": BACK_RANK, "solution": "a1a2", "mateIn": 1})
    assert r.get_json() == {"solved": False}


def test_puzzle_solve_validation(client):
    assert client.post("/api/puzzles/solve", json={"fen": BACK_RANK}).status_code == 400
    assert client.post("/api/puzzles/solve", json={"fen": BACK_RANK, "solution": ""}).status_code == 400
    r = client.post("/api/puzzles/solve", json={"fen": "bad fen", "solution": "e2e4"})
    assert r.status_code == 200
    assert r.get_json() == {"solved": False}


def test_new_game_as_black_gets_engine_opening(client):
    r = client.post("/api/new", json={"color": "black"})
    assert r.status_code == 200
    data = r.get_json()
    assert data["ai_move"]
    assert data["turn"] == "black"
    assert data["pre_fen"] == START.replace("KQkq", "-")
    assert data["moves_made"] == {"white": 1, "black": 0}


def test_move_and_engine_reply(client):
    client.post("/api/new", json={})
    r = client.post("/api/move", json={"move": "e2e4"})
    assert r.status_code == 200
    data = r.get_json()
    assert data["ai_move"]
    assert data["turn"] == "white"
    assert data["moves_left"] == {"white": 5, "black": 5}


def test_illegal_move_is_bad_request(client):
    client.post("/api/new", json={})
    assert client.post("/api/move", json={"move": "e2e5"}).status_code == 400
    assert client.post("/api/move", json={}).status_code == 400


def test_new_game_rejects_bad_fen(client):
    assert client.post("/api/new", json={"fen": "garbage"}).status_code == 400


def test_timeout_passes_turn_to_engine(client):
    client.post("/api/new", json={})
    r = client.post("/api/timeout", json={})
    assert r.status_code == 200
    data = r.get_json()
    assert data["history"][0]["missed"] is True
    assert data["scores"]["white"] == 0
    assert data["ai_move"]
    assert data["turn"] == "white"


def test_config_from_environment(monkeypatch):
    monkeypatch.setenv("HUKUM_MAX_DEPTH", "1")
    app = create_app()
    assert app.config["MAX_DEPTH"] == 1
    assert app.config["PUZZLE_TIME_LIMIT_MS"] == 15000


def test_shootout_needs_a_tied_game(client):
    client.post("/api/new", json={})
    r = client.post("/api/shootout/attempt", json={"fen": BACK_RANK, "solution": "a1a8", "mateIn": 1})
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_tied_game_runs_shootout(client):
    # Bare kings are a dead draw, so the game is tied from the start
    r = client.post("/api/new", json={"fen": BARE_KINGS})
    data = r.get_json()
    assert data["status"] == "tie"
    assert data["shootout"]["state"] == "awaiting_puzzle"

    r = client.post("/api/shootout/attempt", json={"fen": BACK_RANK, "solution": "a1a8", "mateIn": 1})
    assert r.status_code == 200
    data = r.get_json()
    assert data["solved"] is True
    assert data["state"] == "solved"
    assert data["solved_count"] == 1

    assert client.post("/api/shootout/attempt", json={"fen": BACK_RANK, "solution": ""}).status_code == 400
    assert client.post("/api/shootout/attempt", json={"fen": "bad", "solution": "a1a8"}).status_code == 400

    r = client.post("/api/shootout/attempt", json={"fen": BACK_RANK, "solution": "a1a2", "mateIn": 1})
    data = r.get_json()
    assert data["solved"] is False
    assert data["state"] == "challenge_succeeds"
    assert data["finished"] is True
    assert data["results"] == [True, False]

    r = client.post("/api/shootout/attempt", json={"fen": BACK_RANK, "solution": "a1a8", "mateIn": 1})
    assert r.status_code == 400
