from __future__ import annotations

import random
from typing import Dict, List, Optional

import chess

from .rules import ChessRules, Position, RulesAdapter

MATE_SCORE = 1000.0
DRAW_SCORE = 0.0


class Evaluator:
    """Static evaluation for Hukum Chess positions.

    Positive scores favor White, negative scores favor Black. Units are pawns.
    A small random term keeps repeated games from replaying move for move;
    pass ``noise=0`` (or a seeded ``rng``) for reproducible scores.
    """

    MATERIAL_VALUES: Dict[chess.PieceType, int] = {
        chess.PAWN: 1,
        chess.KNIGHT: 3,
        chess.BISHOP: 3,
        chess.ROOK: 5,
        chess.QUEEN: 9,
        chess.KING: 0,
    }

    # Center control, row 0 is rank 8. Same table for every piece kind.
    SQUARE_VALUES: List[List[float]] = [
        [0, 0, 0, 0, 0, 0, 0, 0],
        [0, 0.1, 0.2, 0.2, 0.2, 0.2, 0.1, 0],
        [0, 0.2, 0.3, 0.4, 0.4, 0.3, 0.2, 0],
        [0, 0.2, 0.4, 0.5, 0.5, 0.4, 0.2, 0],
        [0, 0.2, 0.4, 0.5, 0.5, 0.4, 0.2, 0],
        [0, 0.2, 0.3, 0.4, 0.4, 0.3, 0.2, 0],
        [0, 0.1, 0.2, 0.2, 0.2, 0.2, 0.1, 0],
        [0, 0, 0, 0, 0, 0, 0, 0],
    ]

    POSITION_WEIGHT = 0.2
    CAPTURE_BONUS = 0.5
    CHECK_BONUS = 0.25

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        noise: float = 0.1,
        rules: Optional[RulesAdapter] = None,
    ) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.noise = noise
        self.rules = rules if rules is not None else ChessRules()

    def evaluate(self, position: Position) -> float:
        rules = self.rules
        if rules.is_checkmate(position):
            # The side to move is mated
            return -MATE_SCORE if rules.turn(position) == chess.WHITE else MATE_SCORE
        if rules.is_draw(position):
            return DRAW_SCORE

        score = 0.0
        for square, piece_type, color in rules.pieces(position):
            sign = _sign(color)
            score += self.MATERIAL_VALUES[piece_type] * sign
            score += self.square_bonus(square, color) * self.POSITION_WEIGHT * sign

        if rules.is_check(position):
            score -= self.CHECK_BONUS * _sign(rules.turn(position))

        if self.noise:
            score += self.rng.uniform(-self.noise, self.noise)

        last = rules.last_move(position)
        if last is not None and last.captured is not None:
            score += self.MATERIAL_VALUES[last.captured] * self.CAPTURE_BONUS * _sign(last.color)

        return score

    @classmethod
    def material_value(cls, piece_type: chess.PieceType) -> int:
        return cls.MATERIAL_VALUES[piece_type]

    @classmethod
    def square_bonus(cls, square: chess.Square, color: chess.Color) -> float:
        row = 7 - chess.square_rank(square)
        if color == chess.BLACK:
            row = 7 - row
        return cls.SQUARE_VALUES[row][chess.square_file(square)]


def _sign(color: chess.Color) -> int:
    return 1 if color == chess.WHITE else -1
