from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from .puzzles import PuzzleSolver
from .rules import parse_position

# Consecutive solves needed for the solving side to take the shootout.
SOLVES_TO_WIN = 5


class ShootoutState(str, Enum):
    AWAITING_PUZZLE = "awaiting_puzzle"
    SOLVED = "solved"
    CHALLENGER_WINS = "challenger_wins"
    CHALLENGE_SUCCEEDS = "challenge_succeeds"


class ShootoutFinishedError(RuntimeError):
    pass


class PuzzleShootout:
    """Tie-break after a drawn six-move game.

    One side sets mate puzzles, the engine tries them. An unsolved puzzle ends
    the shootout for the setter; five solves in a row end it for the solver.
    """

    def __init__(self, solves_to_win: int = SOLVES_TO_WIN) -> None:
        self.solves_to_win = solves_to_win
        self.state = ShootoutState.AWAITING_PUZZLE
        self.results: List[bool] = []

    @property
    def solved_count(self) -> int:
        return sum(1 for solved in self.results if solved)

    @property
    def is_finished(self) -> bool:
        return self.state in (ShootoutState.CHALLENGER_WINS, ShootoutState.CHALLENGE_SUCCEEDS)

    def snapshot(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "results": list(self.results),
            "solved_count": self.solved_count,
            "solves_to_win": self.solves_to_win,
            "finished": self.is_finished,
        }

    def record(self, solved: bool) -> ShootoutState:
        if self.is_finished:
            raise ShootoutFinishedError(f"Shootout already over: {self.state.value}")
        self.results.append(bool(solved))
        if not solved:
            self.state = ShootoutState.CHALLENGE_SUCCEEDS
        elif self.solved_count >= self.solves_to_win:
            self.state = ShootoutState.CHALLENGER_WINS
        else:
            self.state = ShootoutState.SOLVED
        return self.state

    def next_puzzle(self) -> None:
        if self.is_finished:
            raise ShootoutFinishedError(f"Shootout already over: {self.state.value}")
        self.state = ShootoutState.AWAITING_PUZZLE

    def attempt(
        self,
        solver: PuzzleSolver,
        fen: str,
        solution: Optional[str],
        mate_in: int,
        time_limit_ms: Optional[float] = None,
    ) -> ShootoutState:
        """Run the solver on one puzzle and record the outcome."""
        if self.state == ShootoutState.SOLVED:
            self.next_puzzle()
        position = parse_position(fen)
        return self.record(solver.solve(position, solution, mate_in, time_limit_ms=time_limit_ms))
