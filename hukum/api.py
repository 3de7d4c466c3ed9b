"""String-in, string-out boundary used by the web layer.

Each call parses its own Position, so concurrent callers never share a board.
"""

from __future__ import annotations

from typing import Optional

import logging

from .ai import AIPlayer
from .puzzles import PuzzleSolver
from .rules import InvalidPositionError, parse_position

_log = logging.getLogger(__name__)


def get_move(
    fen: str,
    depth: int = 3,
    time_limit_ms: Optional[float] = 2000,
    player: Optional[AIPlayer] = None,
) -> str:
    """Best move for the side to move as ``<from><to>[promotion]``; "" if none."""
    position = parse_position(fen)
    player = player if player is not None else AIPlayer()
    move = player.find_best_move(position, depth, time_limit_ms=time_limit_ms)
    return move.uci() if move is not None else ""


def evaluate_position(
    fen: str,
    depth: int = 0,
    time_limit_ms: Optional[float] = None,
    player: Optional[AIPlayer] = None,
) -> float:
    """White-positive score: static at depth 0, minimax value above that."""
    position = parse_position(fen)
    player = player if player is not None else AIPlayer()
    if depth <= 0:
        return player.evaluator.evaluate(position)
    return player.search(position, depth, time_limit_ms=time_limit_ms).score


def solve_puzzle(
    fen: str,
    solution: Optional[str],
    mate_in: int = 2,
    time_limit_ms: Optional[float] = 15000,
    solver: Optional[PuzzleSolver] = None,
) -> bool:
    try:
        position = parse_position(fen)
    except InvalidPositionError as exc:
        _log.warning("Rejected puzzle position: %s", exc)
        return False
    solver = solver if solver is not None else PuzzleSolver()
    return solver.solve(position, solution, mate_in, time_limit_ms=time_limit_ms)
