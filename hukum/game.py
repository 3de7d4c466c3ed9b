from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import logging

import chess

from .ai import AIPlayer
from .evaluator import Evaluator
from .rules import ChessRules, Move, Position, parse_position
from .shootout import PuzzleShootout

_log = logging.getLogger(__name__)

MOVES_PER_SIDE = 6
MISSED_MOVE_PENALTY = 1
# A capture is foul when it costs the mover more than this many pawns.
FOUL_CAPTURE_THRESHOLD = 2
FOUL_CAPTURE_DEPTH = 1

IN_PROGRESS = "in_progress"
WHITE_WIN = "white_win"
BLACK_WIN = "black_win"
TIE = "tie"


class IllegalMoveError(ValueError):
    pass


class GameOverError(RuntimeError):
    pass


@dataclass
class MoveRecord:
    uci: Optional[str]
    color: str
    captured: Optional[str]
    points: int
    move_number: int
    resulting_fen: str
    missed: bool = False


def color_name(color: chess.Color) -> str:
    return "white" if color == chess.WHITE else "black"


def move_points(move: Move) -> int:
    """Points scored by a move: captured material plus any promotion gain."""
    points = 0
    if move.captured is not None:
        points += Evaluator.material_value(move.captured)
    if move.promotion is not None:
        points += Evaluator.material_value(move.promotion) - Evaluator.material_value(chess.PAWN)
    return points


def is_foul_capture(position: Position, move: Move, player: AIPlayer) -> bool:
    """True when a capture leaves the mover clearly worse off after the best reply."""
    if move.captured is None:
        return False
    before = player.evaluator.evaluate(position)
    probe = position.copy()
    player.rules.apply(probe, move)
    after = player.search(probe, FOUL_CAPTURE_DEPTH).score
    loss = before - after if move.color == chess.WHITE else after - before
    return loss > FOUL_CAPTURE_THRESHOLD


class HukumGame:
    """Six moves a side, most points wins.

    Owns the mutable game state: the position, per-side scores and move
    counters, the move log and the result. Castling is not part of the
    variant and is stripped from the starting position.
    """

    def __init__(self, starting_fen: Optional[str] = None, player: Optional[AIPlayer] = None) -> None:
        self.rules = ChessRules()
        self.player = player if player is not None else AIPlayer(rules=self.rules)
        self.reset(starting_fen)

    def reset(self, starting_fen: Optional[str] = None) -> None:
        self.position = parse_position(starting_fen) if starting_fen else Position(chess.Board())
        self.position.board.set_castling_fen("-")
        self.scores: Dict[chess.Color, int] = {chess.WHITE: 0, chess.BLACK: 0}
        self.moves_made: Dict[chess.Color, int] = {chess.WHITE: 0, chess.BLACK: 0}
        self.allowance: Dict[chess.Color, int] = {chess.WHITE: MOVES_PER_SIDE, chess.BLACK: MOVES_PER_SIDE}
        self.free_hit_granted: Dict[chess.Color, bool] = {chess.WHITE: False, chess.BLACK: False}
        self.history: List[MoveRecord] = []
        self.status = IN_PROGRESS
        self.last_move_was_capture = False
        self.shootout: Optional[PuzzleShootout] = None
        # A starting position can already be decided
        self._settle()

    @property
    def turn(self) -> chess.Color:
        return self.position.turn

    def get_full_fen(self) -> str:
        return self.position.fen()

    def get_turn_color(self) -> str:
        return color_name(self.turn)

    def moves_left(self, color: chess.Color) -> int:
        return max(0, self.allowance[color] - self.moves_made[color])

    def is_game_over(self) -> bool:
        return self.status != IN_PROGRESS

    def get_legal_moves(self) -> List[str]:
        if self.is_game_over():
            return []
        return [move.uci() for move in self.rules.legal_moves(self.position)]

    def find_legal_move(self, uci: str) -> Move:
        legal = {move.uci(): move for move in self.rules.legal_moves(self.position)}
        uci = uci.strip().lower()
        if uci in legal:
            return legal[uci]
        # Auto-queen promotion if the suffix is missing
        if len(uci) == 4 and uci + "q" in legal:
            return legal[uci + "q"]
        raise IllegalMoveError(f"Illegal move: {uci}")

    def push_uci(self, uci: str) -> Move:
        if self.is_game_over():
            raise GameOverError(f"Game is already over: {self.status}")
        move = self.find_legal_move(uci)
        mover = move.color

        foul = False
        last_of_side = self.moves_made[mover] + 1 >= self.allowance[mover]
        if last_of_side and move.is_capture and not self.free_hit_granted[not mover]:
            foul = is_foul_capture(self.position, move, self.player)

        points = move_points(move)
        self.rules.apply(self.position, move)
        self.scores[mover] += points
        self.moves_made[mover] += 1
        self.last_move_was_capture = move.is_capture
        self.history.append(
            MoveRecord(
                uci=move.uci(),
                color=color_name(mover),
                captured=chess.piece_symbol(move.captured) if move.captured else None,
                points=points,
                move_number=self.moves_made[mover],
                resulting_fen=self.position.fen(),
            )
        )

        if foul:
            opponent = not mover
            self.allowance[opponent] += 1
            self.free_hit_granted[opponent] = True
            _log.info("Foul capture %s by %s: free hit for %s", move.uci(), color_name(mover), color_name(opponent))

        self._settle()
        return move

    def skip_turn(self) -> None:
        """The side to move ran out of time: it loses a point and its move.

        A side in check cannot pass, so it keeps the turn and still has to
        answer the check with its next move.
        """
        if self.is_game_over():
            raise GameOverError(f"Game is already over: {self.status}")
        mover = self.turn
        self.scores[mover] = max(0, self.scores[mover] - MISSED_MOVE_PENALTY)
        self.moves_made[mover] += 1
        if not self.rules.is_check(self.position):
            self.rules.pass_turn(self.position)
        self.last_move_was_capture = False
        self.history.append(
            MoveRecord(
                uci=None,
                color=color_name(mover),
                captured=None,
                points=-MISSED_MOVE_PENALTY,
                move_number=self.moves_made[mover],
                resulting_fen=self.position.fen(),
                missed=True,
            )
        )
        self._settle()

    def play_engine_move(self, depth: int, time_limit_ms: Optional[float] = None) -> Optional[str]:
        """Let the engine move for the side to move. Returns the move played."""
        if self.is_game_over():
            return None
        uci = self.player.choose_move(self.position, depth, time_limit_ms=time_limit_ms)
        if uci is None:
            return None
        self.push_uci(uci)
        return uci

    def resign(self, color: chess.Color) -> None:
        if self.is_game_over():
            raise GameOverError(f"Game is already over: {self.status}")
        self.status = BLACK_WIN if color == chess.WHITE else WHITE_WIN

    def get_result(self) -> Optional[str]:
        return None if self.status == IN_PROGRESS else self.status

    def _settle(self) -> None:
        if self.rules.is_checkmate(self.position):
            self.status = BLACK_WIN if self.turn == chess.WHITE else WHITE_WIN
            return
        if self.rules.is_draw(self.position):
            self._finish_on_points()
            return
        mover, other = self.turn, not self.turn
        if self.moves_left(mover) == 0 and (self.moves_left(other) == 0 or self.rules.is_check(self.position)):
            # A null move is not playable out of check, so a checked side cannot hand over the turn
            self._finish_on_points()
        elif self.moves_left(mover) == 0:
            # Only the other side still has moves (free hit): hand it the turn
            self.rules.pass_turn(self.position)
            self._settle()

    def _finish_on_points(self) -> None:
        white, black = self.scores[chess.WHITE], self.scores[chess.BLACK]
        if white > black:
            self.status = WHITE_WIN
        elif black > white:
            self.status = BLACK_WIN
        else:
            self.status = TIE
            self.shootout = PuzzleShootout()

    def snapshot(self) -> Dict[str, object]:
        last_uci: Optional[str] = None
        for record in reversed(self.history):
            if record.uci is not None:
                last_uci = record.uci
                break

        in_check = self.rules.is_check(self.position)
        check_square: Optional[str] = None
        if in_check:
            king_sq = self.position.board.king(self.turn)
            if king_sq is not None:
                check_square = chess.SQUARE_NAMES[king_sq]

        return {
            "fen": self.get_full_fen(),
            "turn": self.get_turn_color(),
            "legal_moves": self.get_legal_moves(),
            "game_over": self.is_game_over(),
            "status": self.status,
            "result": self.get_result(),
            "scores": {color_name(c): s for c, s in self.scores.items()},
            "moves_made": {color_name(c): n for c, n in self.moves_made.items()},
            "moves_left": {color_name(c): self.moves_left(c) for c in (chess.WHITE, chess.BLACK)},
            "last_move": last_uci,
            "in_check": in_check,
            "check_square": check_square,
            "last_move_capture": self.last_move_was_capture,
            "history": [asdict(record) for record in self.history],
            "shootout": self.shootout.snapshot() if self.shootout is not None else None,
        }
