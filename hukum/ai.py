from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import logging
import math
import time

import chess

from .evaluator import Evaluator
from .rules import ChessRules, Move, Position, RulesAdapter

_log = logging.getLogger(__name__)


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: float
    nodes: int
    depth: int = 0


@dataclass
class SearchContext:
    """Per-search bookkeeping: node counter, deadline and root fallback."""

    deadline_ts: Optional[float] = None
    nodes: int = 0
    root_best: Optional[Move] = None

    def guard_time(self) -> None:
        if self.deadline_ts is None:
            return
        if time.time() >= self.deadline_ts:
            raise _SearchTimeout()


class AIPlayer:
    """Minimax with Alpha-Beta pruning over a pluggable rules adapter.

    The player holds no search state between calls; every search works on a
    private copy of the position it is given.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None, rules: Optional[RulesAdapter] = None) -> None:
        if rules is None:
            rules = evaluator.rules if evaluator is not None else ChessRules()
        self.rules = rules
        self.evaluator = evaluator if evaluator is not None else Evaluator(rules=rules)

    def choose_move(self, position: Position, depth: int, time_limit_ms: Optional[float] = None) -> Optional[str]:
        """Return the best move as a coordinate string, or None if there is none."""
        move = self.find_best_move(position, depth, time_limit_ms=time_limit_ms)
        return move.uci() if move is not None else None

    def find_best_move(
        self,
        position: Position,
        depth: int,
        color: Optional[chess.Color] = None,
        time_limit_ms: Optional[float] = None,
    ) -> Optional[Move]:
        return self.search(position, depth, color=color, time_limit_ms=time_limit_ms).best_move

    def search(
        self,
        position: Position,
        depth: int,
        color: Optional[chess.Color] = None,
        time_limit_ms: Optional[float] = None,
    ) -> SearchResult:
        """Search ``depth`` plies for ``color`` (defaults to the side to move).

        Without a time limit the tree is searched once to the full depth.
        With one, the search deepens from 1 ply up to ``depth`` and returns
        the deepest fully computed result when the deadline passes.
        """
        depth = max(1, depth)
        search_position = position.copy()
        if color is None:
            color = self.rules.turn(search_position)

        context = SearchContext()
        if time_limit_ms is None:
            result = self._alphabeta_root(search_position, depth, color, context)
        else:
            context.deadline_ts = time.time() + time_limit_ms / 1000.0
            result = None
            for d in range(1, depth + 1):
                try:
                    result = self._alphabeta_root(search_position, d, color, context)
                except _SearchTimeout:
                    _log.debug("Search deadline hit at depth %d after %d nodes", d, context.nodes)
                    break
            if result is None:
                result = SearchResult(
                    best_move=context.root_best or self._first_move(search_position),
                    score=self.evaluator.evaluate(search_position),
                    nodes=context.nodes,
                    depth=0,
                )

        _log.debug(
            "Search move=%s score=%.2f depth=%d nodes=%d fen=%s",
            result.best_move.uci() if result.best_move else None,
            result.score,
            result.depth,
            result.nodes,
            search_position.fen(),
        )
        return result

    def order_moves(self, moves: List[Move]) -> List[Move]:
        """Captures first; enumeration order is kept within each group."""
        return sorted(moves, key=lambda m: m.is_capture, reverse=True)

    def _alphabeta_root(self, position: Position, depth: int, color: chess.Color, context: SearchContext) -> SearchResult:
        maximizing = color == chess.WHITE
        best_score = -math.inf if maximizing else math.inf
        best_move: Optional[Move] = None
        context.root_best = None

        moves = self.order_moves(self.rules.legal_moves(position))
        if not moves:
            context.nodes += 1
            return SearchResult(best_move=None, score=self.evaluator.evaluate(position), nodes=context.nodes, depth=depth)

        for move in moves:
            context.guard_time()
            self.rules.apply(position, move)
            try:
                score = self.minimax(position, depth - 1, -math.inf, math.inf, not maximizing, context)
            finally:
                self.rules.undo(position)
            if (maximizing and score > best_score) or (not maximizing and score < best_score):
                best_score = score
                best_move = move
                context.root_best = move

        if best_move is None:
            # Nothing beat the initial bound; fall back to the first enumerated move
            best_move = moves[0]

        return SearchResult(best_move=best_move, score=best_score, nodes=context.nodes, depth=depth)

    def minimax(
        self,
        position: Position,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
        context: Optional[SearchContext] = None,
    ) -> float:
        if context is None:
            context = SearchContext()
        context.nodes += 1

        if depth <= 0 or self.rules.is_game_over(position):
            return self.evaluator.evaluate(position)

        moves = self.order_moves(self.rules.legal_moves(position))

        if maximizing:
            value = -math.inf
            for move in moves:
                context.guard_time()
                self.rules.apply(position, move)
                try:
                    score = self.minimax(position, depth - 1, alpha, beta, False, context)
                finally:
                    self.rules.undo(position)
                value = max(value, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    break
            return value
        else:
            value = math.inf
            for move in moves:
                context.guard_time()
                self.rules.apply(position, move)
                try:
                    score = self.minimax(position, depth - 1, alpha, beta, True, context)
                finally:
                    self.rules.undo(position)
                value = min(value, score)
                beta = min(beta, score)
                if beta <= alpha:
                    break
            return value

    def _first_move(self, position: Position) -> Optional[Move]:
        moves = self.order_moves(self.rules.legal_moves(position))
        return moves[0] if moves else None


class _SearchTimeout(Exception):
    pass
