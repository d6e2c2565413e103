"""FastAPI-powered web UI for playing Tic-Tac-Toe in the browser."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .game import (
    GameSnapshot,
    GameStatus,
    InvalidCellIndex,
    TicTacToeGame,
    winning_line,
)
from .theme import Theme, parse_theme

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """One page's game together with its cosmetic theme flag."""

    game: TicTacToeGame
    theme: Theme = Theme.LIGHT
    last_seen: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
SESSIONS_LOCK = threading.Lock()
app = FastAPI(
    title="Tic Tac Toe", description="Two-player tic-tac-toe played in the browser"
)


DEFAULT_THEME: Theme = parse_theme(os.environ.get("TICTACTOE_DEFAULT_THEME", "light"))
SESSION_TTL_SECONDS = int(os.environ.get("TICTACTOE_SESSION_TTL", str(60 * 30)))


# ---------- Label policy ----------


def status_message(snapshot: GameSnapshot) -> str:
    if snapshot.status is GameStatus.WON:
        return f"{snapshot.winner} wins!"
    if snapshot.status is GameStatus.DRAW:
        return "It's a draw!"
    return f"Turn: {snapshot.turn}"


def restart_label(snapshot: GameSnapshot) -> str:
    return "Restart" if snapshot.status is GameStatus.IN_PROGRESS else "Start New Game"


def cell_label(value: str) -> str:
    if value in ("X", "O"):
        return f"Played: {value}"
    return "Empty square"


def theme_toggle_label(theme: Theme) -> str:
    return "🌙 Dark" if theme is Theme.LIGHT else "☀️ Light"


def theme_toggle_aria_label(theme: Theme) -> str:
    return f"Switch to {theme.toggled().value} mode"


# ---------- Requests ----------


class NewGameRequest(BaseModel):
    """Request payload for starting a new game session."""

    theme: Optional[Theme] = Field(
        default=None,
        description="Initial theme; the server default is used when omitted",
    )


class MoveRequest(BaseModel):
    """Request payload for marking a cell on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8, strict=True)


# ---------- Sessions ----------


def _cleanup_sessions() -> None:
    """Drop sessions nobody has touched for ``SESSION_TTL_SECONDS``."""

    now = time.time()
    expired = [
        session_id
        for session_id, session in list(SESSIONS.items())
        if now - session.last_seen >= SESSION_TTL_SECONDS
    ]
    for session_id in expired:
        SESSIONS.pop(session_id, None)
    if expired:
        logger.info("Purged %d idle game session(s)", len(expired))


def _create_session(theme: Optional[Theme] = None) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(game=TicTacToeGame(), theme=theme or DEFAULT_THEME)
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        _cleanup_sessions()
        SESSIONS[session_id] = session
    logger.info("Created game session %s (theme=%s)", session_id, session.theme.value)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        logger.warning("Unknown game session %s", game_id)
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_seen = time.time()
    return session


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        snapshot = session.game.snapshot()
        line = winning_line(snapshot.board)
        board: List[str] = [c if c in ("X", "O") else "" for c in snapshot.board]
        return {
            "id": game_id,
            "board": board,
            "currentPlayer": snapshot.turn,
            "status": snapshot.status.value,
            "winner": snapshot.winner,
            "winningLine": list(line) if line else None,
            "availableMoves": session.game.available_moves(),
            "statusMessage": status_message(snapshot),
            "restartLabel": restart_label(snapshot),
            "cellLabels": [cell_label(c) for c in snapshot.board],
            "theme": session.theme.value,
            "themeToggleLabel": theme_toggle_label(session.theme),
            "themeToggleAriaLabel": theme_toggle_aria_label(session.theme),
        }


def _apply_player_move(session: GameSession, cell_index: int) -> None:
    # Occupied cells and finished games are no-ops in the engine, not errors.
    with session.lock:
        try:
            session.game.place_mark(cell_index)
        except InvalidCellIndex as exc:
            logger.warning("Rejected move: %s", exc)
            raise HTTPException(status_code=422, detail=str(exc)) from exc


# ---------- Routes ----------


@app.post("/api/game")
def create_game(request: Optional[NewGameRequest] = None) -> Dict[str, object]:
    theme = request.theme if request else None
    game_id, session = _create_session(theme)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(session, request.cell_index)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.game.restart()
    logger.info("Restarted game session %s", game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/theme")
def toggle_theme(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        theme = session.theme = session.theme.toggled()
    logger.info("Game session %s switched to %s theme", game_id, theme.value)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\" data-theme=\"light\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe</title>
    <link rel=\"preconnect\" href=\"https://fonts.googleapis.com\" />
    <link rel=\"preconnect\" href=\"https://fonts.gstatic.com\" crossorigin />
    <link
      href=\"https://fonts.googleapis.com/css2?family=Poppins:wght@400;500;600;700&display=swap\"
      rel=\"stylesheet\"
    />
    <style>
      :root {
        color-scheme: light;
        font-family: 'Poppins', system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
        font-weight: 400;
        --bg: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        --surface: rgba(255, 255, 255, 0.92);
        --text-color: #13203a;
        --cell-bg: rgba(255, 255, 255, 0.95);
        --cell-border: rgba(80, 100, 160, 0.25);
        --cell-disabled: rgba(240, 240, 240, 0.8);
        --primary-color: #f04a6a;
        --accent-color: #3a7bff;
        --highlight: rgba(58, 102, 255, 0.55);
      }
      [data-theme='dark'] {
        color-scheme: dark;
        --bg: radial-gradient(circle at top, #1d2540, #131a2e 40%, #0b1020 70%);
        --surface: rgba(24, 30, 52, 0.94);
        --text-color: #e6ebff;
        --cell-bg: rgba(36, 44, 72, 0.95);
        --cell-border: rgba(140, 160, 220, 0.25);
        --cell-disabled: rgba(30, 36, 58, 0.9);
        --primary-color: #ff6f8a;
        --accent-color: #6fa0ff;
        --highlight: rgba(111, 160, 255, 0.6);
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: var(--bg);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: var(--text-color);
        transition: background 0.4s ease, color 0.4s ease;
      }
      main {
        background: var(--surface);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(520px, 100%);
        align-self: flex-start;
      }
      h1 {
        margin: 0 0 0.5rem;
        font-size: clamp(1.8rem, 2.4vw + 1.2rem, 2.6rem);
        text-align: center;
        letter-spacing: 0.06em;
      }
      button {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: var(--cell-bg);
        color: var(--text-color);
        cursor: pointer;
        transition: transform 0.1s ease, box-shadow 0.1s ease;
        font-family: inherit;
      }
      button:hover:not(:disabled) {
        transform: translateY(-1px);
        box-shadow: 0 8px 18px rgba(0, 64, 128, 0.12);
      }
      button:disabled {
        cursor: default;
      }
      .btn-primary {
        background: var(--accent-color);
        color: white;
        font-weight: 600;
      }
      .theme-toggle {
        position: fixed;
        top: 20px;
        right: 20px;
      }
      #status {
        text-align: center;
        font-size: 1.1rem;
        font-weight: 600;
        margin: 0 auto 1rem;
        min-height: 1.6rem;
      }
      #status .winner-mark {
        color: var(--primary-color);
      }
      #message {
        text-align: center;
        min-height: 1.25rem;
        color: #b00020;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      .ttt-board {
        display: grid;
        grid-template-columns: repeat(3, minmax(0, 1fr));
        gap: 0.55rem;
        max-width: 360px;
        margin: 0 auto;
      }
      .ttt-square {
        aspect-ratio: 1 / 1;
        font-size: clamp(1.8rem, 6vw, 2.8rem);
        font-weight: 700;
        border-radius: 12px;
        border: 2px solid var(--cell-border);
        background: var(--cell-bg);
        display: grid;
        place-items: center;
        padding: 0;
      }
      .ttt-square:disabled {
        background: var(--cell-disabled);
      }
      .ttt-square.x {
        color: var(--primary-color);
      }
      .ttt-square.o {
        color: var(--accent-color);
      }
      .ttt-square.winning {
        box-shadow: 0 0 0 3px var(--highlight);
      }
      .ttt-board--ended .ttt-square:not(.winning) {
        opacity: 0.6;
      }
      .game-controls {
        display: flex;
        justify-content: center;
        margin-top: 1.5rem;
      }
      .game-footer {
        text-align: center;
        margin-top: 1.5rem;
        font-weight: 600;
      }
    </style>
  </head>
  <body>
    <main class=\"App\">
      <header class=\"game-header\">
        <h1 class=\"brand-title\">Tic Tac Toe</h1>
        <div id=\"status\" class=\"game-status\" aria-live=\"polite\">Setting up your game…</div>
      </header>
      <div id=\"message\" role=\"status\"></div>
      <div id=\"board\" class=\"ttt-board\"></div>
      <div class=\"game-controls\">
        <button id=\"restart\" class=\"btn-primary\" type=\"button\" aria-label=\"Restart\">Restart</button>
      </div>
      <footer class=\"game-footer\">
        <span style=\"color: var(--primary-color)\">X</span> &nbsp;|&nbsp;
        <span style=\"color: var(--accent-color)\">O</span>
      </footer>
    </main>
    <button id=\"theme-toggle\" class=\"theme-toggle\" type=\"button\"></button>
    <script>
      const boardContainer = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const restartButton = document.getElementById('restart');
      const themeToggle = document.getElementById('theme-toggle');

      let gameId = null;
      let gameState = null;
      let isRequestPending = false;

      async function callApi(path, body) {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch(path, {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify(body || {}),
          });
          if (!response.ok) {
            const payload = await response.json().catch(() => ({}));
            const detail = payload?.detail;
            messageEl.textContent = typeof detail === 'string' ? detail : 'Request failed';
            return;
          }
          setState(await response.json());
        } catch (error) {
          messageEl.textContent = 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      function startGame() {
        return callApi('/api/game', {});
      }

      function sendMove(cellIndex) {
        if (!gameId) return;
        return callApi(`/api/game/${gameId}/move`, { cellIndex });
      }

      function restartGame() {
        if (!gameId) return startGame();
        return callApi(`/api/game/${gameId}/restart`);
      }

      function toggleTheme() {
        if (!gameId) return;
        return callApi(`/api/game/${gameId}/theme`);
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        render();
      }

      function renderStatus() {
        statusEl.innerHTML = '';
        if (gameState.status === 'won') {
          const mark = document.createElement('b');
          mark.classList.add('winner-mark');
          mark.textContent = gameState.winner;
          statusEl.appendChild(mark);
          statusEl.appendChild(document.createTextNode(' wins!'));
          statusEl.dataset.testid = 'winner';
        } else {
          statusEl.textContent = gameState.statusMessage;
          delete statusEl.dataset.testid;
        }
      }

      function render() {
        if (!gameState) return;
        document.documentElement.setAttribute('data-theme', gameState.theme);
        themeToggle.textContent = gameState.themeToggleLabel;
        themeToggle.setAttribute('aria-label', gameState.themeToggleAriaLabel);
        restartButton.textContent = gameState.restartLabel;
        renderStatus();

        const playable = new Set(gameState.availableMoves || []);
        const winning = new Set(gameState.winningLine || []);
        boardContainer.innerHTML = '';
        boardContainer.classList.toggle('ttt-board--ended', gameState.status !== 'in_progress');
        gameState.board.forEach((value, index) => {
          const square = document.createElement('button');
          square.type = 'button';
          square.classList.add('ttt-square');
          if (value) {
            square.classList.add(value === 'X' ? 'x' : 'o');
            square.textContent = value;
          }
          if (winning.has(index)) {
            square.classList.add('winning');
          }
          square.setAttribute('aria-label', gameState.cellLabels[index]);
          if (playable.has(index)) {
            square.addEventListener('click', () => sendMove(index));
          } else {
            square.disabled = true;
          }
          boardContainer.appendChild(square);
        });
      }

      restartButton.addEventListener('click', restartGame);
      themeToggle.addEventListener('click', toggleTheme);
      startGame();
    </script>
  </body>
</html>
"""
