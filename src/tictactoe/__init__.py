"""Tic-Tac-Toe package exposing game logic, the theme flag, and the web application."""

from .game import GameSnapshot, GameStatus, InvalidCellIndex, TicTacToeGame
from .theme import Theme
from .ui import app

__all__ = [
    "GameSnapshot",
    "GameStatus",
    "InvalidCellIndex",
    "TicTacToeGame",
    "Theme",
    "app",
]
