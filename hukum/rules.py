from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Tuple

import chess


class InvalidPositionError(ValueError):
    """Raised when a serialized position cannot be turned into a Position."""


@dataclass(frozen=True)
class Move:
    """A legal move described the way the engine needs it.

    Squares and piece kinds use python-chess integer constants.
    """

    from_square: chess.Square
    to_square: chess.Square
    color: chess.Color
    piece: chess.PieceType
    promotion: Optional[chess.PieceType] = None
    captured: Optional[chess.PieceType] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    def to_chess_move(self) -> chess.Move:
        return chess.Move(self.from_square, self.to_square, promotion=self.promotion)

    def uci(self) -> str:
        return self.to_chess_move().uci()

    def __str__(self) -> str:
        return self.uci()


class Position:
    """Mutable board state plus the log of moves applied through the rules.

    The log is what lets evaluation see the captured piece of the last move;
    a position parsed from FEN starts with an empty log.
    """

    def __init__(self, board: Optional[chess.Board] = None, history: Optional[List[Optional[Move]]] = None) -> None:
        self.board = board if board is not None else chess.Board()
        self.history: List[Optional[Move]] = list(history or [])

    @property
    def turn(self) -> chess.Color:
        return self.board.turn

    def fen(self) -> str:
        return self.board.fen()

    def copy(self) -> "Position":
        return Position(self.board.copy(), self.history)

    def __repr__(self) -> str:
        return f"Position({self.fen()!r})"


def parse_position(fen: str) -> Position:
    """Build a Position from a FEN string, rejecting anything unplayable."""
    if not isinstance(fen, str) or not fen.strip():
        raise InvalidPositionError("FEN string is required")
    try:
        board = chess.Board(fen.strip())
    except ValueError as exc:
        raise InvalidPositionError(f"Invalid FEN: {exc}") from exc
    if board.king(chess.WHITE) is None or board.king(chess.BLACK) is None:
        raise InvalidPositionError(f"Invalid FEN: both kings are required ({fen})")
    return Position(board)


class RulesAdapter(Protocol):
    """Capabilities the search and evaluation need from a chess rules library."""

    def legal_moves(self, position: Position) -> List[Move]: ...

    def apply(self, position: Position, move: Move) -> None: ...

    def undo(self, position: Position) -> Optional[Move]: ...

    def is_checkmate(self, position: Position) -> bool: ...

    def is_draw(self, position: Position) -> bool: ...

    def is_check(self, position: Position) -> bool: ...

    def is_game_over(self, position: Position) -> bool: ...

    def turn(self, position: Position) -> chess.Color: ...

    def pieces(self, position: Position) -> Iterator[Tuple[chess.Square, chess.PieceType, chess.Color]]: ...

    def last_move(self, position: Position) -> Optional[Move]: ...


class ChessRules:
    """RulesAdapter backed by python-chess."""

    def describe(self, board: chess.Board, move: chess.Move) -> Move:
        piece = board.piece_at(move.from_square)
        if piece is None:
            raise ValueError(f"No piece on {chess.square_name(move.from_square)}")
        captured: Optional[chess.PieceType] = None
        if board.is_en_passant(move):
            captured = chess.PAWN
        elif board.is_capture(move):
            captured = board.piece_type_at(move.to_square)
        return Move(
            from_square=move.from_square,
            to_square=move.to_square,
            color=piece.color,
            piece=piece.piece_type,
            promotion=move.promotion,
            captured=captured,
        )

    def legal_moves(self, position: Position) -> List[Move]:
        board = position.board
        return [self.describe(board, move) for move in board.legal_moves]

    def apply(self, position: Position, move: Move) -> None:
        position.board.push(move.to_chess_move())
        position.history.append(move)

    def pass_turn(self, position: Position) -> None:
        """Hand the turn to the other side without moving a piece."""
        position.board.push(chess.Move.null())
        position.history.append(None)

    def undo(self, position: Position) -> Optional[Move]:
        position.board.pop()
        return position.history.pop() if position.history else None

    def is_checkmate(self, position: Position) -> bool:
        return position.board.is_checkmate()

    def is_draw(self, position: Position) -> bool:
        board = position.board
        return (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.is_fifty_moves()
            or board.is_repetition(3)
        )

    def is_check(self, position: Position) -> bool:
        return position.board.is_check()

    def is_game_over(self, position: Position) -> bool:
        return self.is_checkmate(position) or self.is_draw(position)

    def turn(self, position: Position) -> chess.Color:
        return position.board.turn

    def pieces(self, position: Position) -> Iterator[Tuple[chess.Square, chess.PieceType, chess.Color]]:
        for square, piece in position.board.piece_map().items():
            yield square, piece.piece_type, piece.color

    def last_move(self, position: Position) -> Optional[Move]:
        if not position.history:
            return None
        return position.history[-1]
