"""Hukum Chess: six moves a side, most material wins.

Modules:
- rules: Position/Move types and the python-chess rules adapter
- evaluator: Material, center-control, check and capture scoring
- ai: Minimax with alpha-beta pruning and capture-first ordering
- puzzles: Mate-puzzle solving on top of the search
- shootout: Puzzle shootout that settles tied games
- game: Six-move game orchestration and scoring
- api: String-level entry points used by the web layer
"""

from .ai import AIPlayer, SearchResult
from .evaluator import Evaluator
from .game import HukumGame
from .puzzles import PuzzleSolver
from .rules import ChessRules, InvalidPositionError, Move, Position, parse_position
from .shootout import PuzzleShootout, ShootoutState

__all__ = [
    "AIPlayer",
    "ChessRules",
    "Evaluator",
    "HukumGame",
    "InvalidPositionError",
    "Move",
    "Position",
    "PuzzleShootout",
    "PuzzleSolver",
    "SearchResult",
    "ShootoutState",
    "parse_position",
]
