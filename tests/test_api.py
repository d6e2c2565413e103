"""Tests for the FastAPI Tic-Tac-Toe interface."""

from __future__ import annotations

import logging

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.ui import app


client = TestClient(app)


def new_game(**payload):
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def play(game_id, cell_index):
    return client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell_index})


def test_create_game_initial_state():
    payload = new_game()
    assert payload["board"] == [""] * 9
    assert payload["currentPlayer"] == "X"
    assert payload["status"] == "in_progress"
    assert payload["winner"] is None
    assert payload["winningLine"] is None
    assert payload["availableMoves"] == list(range(9))
    assert payload["statusMessage"] == "Turn: X"
    assert payload["restartLabel"] == "Restart"
    assert payload["cellLabels"] == ["Empty square"] * 9
    assert payload["theme"] == "light"


def test_create_game_without_body():
    response = client.post("/api/game")
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"


def test_first_move():
    game_id = new_game()["id"]
    response = play(game_id, 0)
    assert response.status_code == 200
    state = response.json()
    assert state["board"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["statusMessage"] == "Turn: O"
    assert state["cellLabels"][0] == "Played: X"
    assert 0 not in state["availableMoves"]

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    assert follow_up.json() == state


def test_double_click_is_ignored():
    game_id = new_game()["id"]
    first = play(game_id, 0).json()
    second = play(game_id, 0)
    assert second.status_code == 200
    assert second.json() == first
    assert second.json()["currentPlayer"] == "O"


def test_win_and_start_new_game():
    game_id = new_game()["id"]
    for index in (0, 4, 1, 5):
        play(game_id, index)
    state = play(game_id, 2).json()
    assert state["status"] == "won"
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["board"] == ["X", "X", "X", "", "O", "O", "", "", ""]
    assert state["statusMessage"] == "X wins!"
    assert state["restartLabel"] == "Start New Game"
    assert state["availableMoves"] == []

    after = play(game_id, 8).json()
    assert after == state

    restarted = client.post(f"/api/game/{game_id}/restart")
    assert restarted.status_code == 200
    reset = restarted.json()
    assert reset["board"] == [""] * 9
    assert reset["currentPlayer"] == "X"
    assert reset["status"] == "in_progress"
    assert reset["restartLabel"] == "Restart"


def test_draw_message():
    game_id = new_game()["id"]
    for index in (0, 1, 2, 4, 3, 5, 7, 6, 8):
        state = play(game_id, index).json()
    assert state["status"] == "draw"
    assert state["winner"] is None
    assert state["statusMessage"] == "It's a draw!"
    assert state["restartLabel"] == "Start New Game"


@pytest.mark.parametrize("cell_index", [-1, 9, "middle", True, "3", 2.0, None])
def test_out_of_range_move_rejected(cell_index):
    game_id = new_game()["id"]
    response = play(game_id, cell_index)
    assert response.status_code == 422
    state = client.get(f"/api/game/{game_id}").json()
    assert state["board"] == [""] * 9


def test_engine_rejection_maps_to_422():
    game_id, session = ui._create_session()
    with pytest.raises(HTTPException) as excinfo:
        ui._apply_player_move(session, 9)
    assert excinfo.value.status_code == 422
    assert ui.SESSIONS[game_id].game.available_moves() == list(range(9))


def test_theme_toggle_leaves_game_alone():
    game_id = new_game()["id"]
    before = play(game_id, 4).json()

    dark = client.post(f"/api/game/{game_id}/theme").json()
    assert dark["theme"] == "dark"
    assert dark["themeToggleLabel"] == "☀️ Light"
    assert dark["themeToggleAriaLabel"] == "Switch to light mode"
    for key in ("board", "currentPlayer", "status", "winner"):
        assert dark[key] == before[key]

    light = client.post(f"/api/game/{game_id}/theme").json()
    assert light["theme"] == "light"
    assert light["themeToggleLabel"] == "🌙 Dark"
    assert light["themeToggleAriaLabel"] == "Switch to dark mode"


def test_restart_keeps_theme():
    game_id = new_game(theme="dark")["id"]
    play(game_id, 0)
    reset = client.post(f"/api/game/{game_id}/restart").json()
    assert reset["theme"] == "dark"


def test_rejects_unknown_theme():
    response = client.post("/api/game", json={"theme": "sepia"})
    assert response.status_code == 422


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/game/missing"),
        ("post", "/api/game/missing/restart"),
        ("post", "/api/game/missing/theme"),
    ],
)
def test_missing_game_returns_404(method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 404
    assert response.json()["detail"] == "Game not found"


def test_move_on_missing_game_returns_404():
    assert play("missing", 0).status_code == 404


def test_idle_sessions_are_purged(monkeypatch, caplog):
    stale_id = new_game()["id"]
    monkeypatch.setattr(ui, "SESSION_TTL_SECONDS", 0)
    with caplog.at_level(logging.INFO, logger="tictactoe.ui"):
        fresh_id = new_game()["id"]
    assert "Purged" in caplog.text
    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert fresh_id in ui.SESSIONS


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Tic Tac Toe" in response.text
    assert "/api/game" in response.text


def test_new_sessions_use_default_theme(monkeypatch):
    monkeypatch.setattr(ui, "DEFAULT_THEME", ui.Theme.DARK)
    assert new_game()["theme"] == "dark"
    assert new_game(theme="light")["theme"] == "light"


def test_theme_toggle_logs_new_theme(caplog):
    game_id = new_game(theme="light")["id"]
    with caplog.at_level(logging.INFO, logger="tictactoe.ui"):
        client.post(f"/api/game/{game_id}/theme")
    assert f"Game session {game_id} switched to dark theme" in caplog.text
