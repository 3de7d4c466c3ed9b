from __future__ import annotations

from typing import List, Optional

import logging

from .ai import AIPlayer
from .rules import Move, Position

_log = logging.getLogger(__name__)

# Puzzles in a shootout are short; the search never goes deeper than this.
PUZZLE_DEPTH_CAP = 3


def puzzle_search_depth(mate_in: int) -> int:
    return max(1, min(int(mate_in) * 2, PUZZLE_DEPTH_CAP))


def parse_solution(solution: Optional[str]) -> List[str]:
    """Split a whitespace-separated list of coordinate moves."""
    return [token.lower() for token in (solution or "").split()]


class PuzzleSolver:
    """Checks whether the engine finds a puzzle's solution within its search depth.

    Solving is advisory game-flow logic: any failure is logged and reported
    as "not solved" instead of being raised.
    """

    def __init__(self, player: Optional[AIPlayer] = None) -> None:
        self.player = player if player is not None else AIPlayer()

    def solve(
        self,
        position: Position,
        solution_moves: Optional[str],
        mate_in: int,
        time_limit_ms: Optional[float] = None,
    ) -> bool:
        try:
            depth = puzzle_search_depth(mate_in)
            move = self.player.find_best_move(position, depth, time_limit_ms=time_limit_ms)
            if move is None:
                return False
            accepted = parse_solution(solution_moves)
            if accepted:
                solved = move.uci() in accepted
            else:
                # No known solution: only an immediate mate counts
                solved = self._delivers_mate(position, move)
            _log.info("Puzzle depth=%d move=%s solved=%s fen=%s", depth, move.uci(), solved, position.fen())
            return solved
        except Exception:
            _log.exception("Error solving puzzle (mate in %s)", mate_in)
            return False

    def _delivers_mate(self, position: Position, move: Move) -> bool:
        rules = self.player.rules
        probe = position.copy()
        rules.apply(probe, move)
        return rules.is_checkmate(probe)
