from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import logging

import chess
from flask import Flask, jsonify, request

from hukum import AIPlayer, HukumGame, PuzzleSolver
from hukum.api import evaluate_position, get_move, solve_puzzle
from hukum.game import GameOverError, IllegalMoveError
from hukum.rules import InvalidPositionError
from hukum.shootout import ShootoutFinishedError

_log = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "DEFAULT_DEPTH": 3,
    "MAX_DEPTH": 4,
    "MOVE_TIME_LIMIT_MS": 2000,
    "PUZZLE_TIME_LIMIT_MS": 15000,
    "PUZZLE_MATE_IN": 2,
}


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    # HUKUM_MAX_DEPTH=3 etc. in the environment
    app.config.from_prefixed_env("HUKUM")
    if config:
        app.config.update(config)

    player = AIPlayer()
    solver = PuzzleSolver(player)
    game = HukumGame(player=player)
    seats = {"human": chess.WHITE}

    def requested_depth(raw: Any) -> int:
        try:
            depth = int(raw)
        except (TypeError, ValueError):
            depth = int(app.config["DEFAULT_DEPTH"])
        return max(1, min(depth, int(app.config["MAX_DEPTH"])))

    def requested_time_limit(raw: Any, default_key: str) -> float:
        try:
            return max(1.0, float(raw))
        except (TypeError, ValueError):
            return float(app.config[default_key])

    def engine_replies(depth: int, time_limit_ms: float) -> Optional[str]:
        # Usually one reply; a free hit can give the engine two moves in a row
        ai_move_uci = None
        while not game.is_game_over() and game.turn != seats["human"]:
            played = game.play_engine_move(depth, time_limit_ms=time_limit_ms)
            if played is None:
                break
            ai_move_uci = played
            _log.info("Engine played %s (depth=%d) fen=%s", played, depth, game.get_full_fen())
        return ai_move_uci

    @app.get("/api/health")
    def api_health():
        return jsonify({"status": "ok"})

    @app.post("/api/ai/move")
    def api_ai_move():
        data = request.get_json(silent=True) or {}
        fen = data.get("fen")
        if not fen:
            return jsonify({"error": "FEN string is required"}), 400
        depth = requested_depth(data.get("depth"))
        time_limit_ms = requested_time_limit(data.get("timeLimit"), "MOVE_TIME_LIMIT_MS")
        try:
            move = get_move(fen, depth, time_limit_ms, player=player)
        except InvalidPositionError as exc:
            return jsonify({"error": str(exc)}), 400
        _log.info("Move=%s depth=%d fen=%s", move, depth, fen[:40])
        return jsonify({"move": move})

    @app.post("/api/ai/evaluate")
    def api_ai_evaluate():
        data = request.get_json(silent=True) or {}
        fen = data.get("fen")
        if not fen:
            return jsonify({"error": "FEN string is required"}), 400
        depth = data.get("depth", 0)
        depth = requested_depth(depth) if depth else 0
        try:
            evaluation = evaluate_position(
                fen, depth, float(app.config["MOVE_TIME_LIMIT_MS"]), player=player
            )
        except InvalidPositionError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify({"evaluation": evaluation})

    @app.post("/api/puzzles/solve")
    def api_puzzles_solve():
        data = request.get_json(silent=True) or {}
        fen = data.get("fen")
        solution = data.get("solution")
        if not fen or not solution:
            return jsonify({"error": "FEN string and solution are required"}), 400
        mate_in = data.get("mateIn", app.config["PUZZLE_MATE_IN"])
        time_limit_ms = requested_time_limit(data.get("timeLimit"), "PUZZLE_TIME_LIMIT_MS")
        solved = solve_puzzle(fen, solution, mate_in, time_limit_ms, solver=solver)
        return jsonify({"solved": solved})

    @app.post("/api/new")
    def api_new():
        data = request.get_json(silent=True) or {}
        fen = data.get("fen")
        color = (data.get("color") or "white").lower()
        depth = requested_depth(data.get("depth"))

        try:
            game.reset(fen)
        except InvalidPositionError as exc:
            return jsonify({"error": str(exc)}), 400
        seats["human"] = chess.BLACK if color == "black" else chess.WHITE

        pre_fen: Optional[str] = None
        if game.turn != seats["human"]:
            # Capture starting position so the client can animate the first engine move
            pre_fen = game.get_full_fen()
        ai_move_uci = engine_replies(depth, float(app.config["MOVE_TIME_LIMIT_MS"]))

        snap = game.snapshot()
        snap["ai_move"] = ai_move_uci
        if pre_fen is not None:
            snap["pre_fen"] = pre_fen
        return jsonify(snap)

    @app.post("/api/move")
    def api_move():
        payload = request.get_json(silent=True) or {}
        uci = payload.get("move")
        depth = requested_depth(payload.get("depth"))
        if not uci:
            return jsonify({"error": "Missing move"}), 400

        try:
            game.push_uci(uci)
        except (IllegalMoveError, GameOverError) as exc:
            return jsonify({"error": str(exc)}), 400

        ai_move_uci = engine_replies(depth, float(app.config["MOVE_TIME_LIMIT_MS"]))
        snap = game.snapshot()
        snap["ai_move"] = ai_move_uci
        return jsonify(snap)

    @app.post("/api/timeout")
    def api_timeout():
        payload = request.get_json(silent=True) or {}
        depth = requested_depth(payload.get("depth"))
        try:
            game.skip_turn()
        except GameOverError as exc:
            return jsonify({"error": str(exc)}), 400

        ai_move_uci = engine_replies(depth, float(app.config["MOVE_TIME_LIMIT_MS"]))
        snap = game.snapshot()
        snap["ai_move"] = ai_move_uci
        return jsonify(snap)

    @app.post("/api/shootout/attempt")
    def api_shootout_attempt():
        payload = request.get_json(silent=True) or {}
        shootout = game.shootout
        if shootout is None:
            return jsonify({"error": "No shootout in progress"}), 400
        fen = payload.get("fen")
        solution = payload.get("solution")
        if not fen or not solution:
            return jsonify({"error": "FEN string and solution are required"}), 400
        mate_in = payload.get("mateIn", app.config["PUZZLE_MATE_IN"])
        time_limit_ms = requested_time_limit(payload.get("timeLimit"), "PUZZLE_TIME_LIMIT_MS")

        try:
            state = shootout.attempt(solver, fen, solution, mate_in, time_limit_ms=time_limit_ms)
        except (InvalidPositionError, ShootoutFinishedError) as exc:
            return jsonify({"error": str(exc)}), 400
        _log.info("Shootout puzzle solved=%s state=%s", shootout.results[-1], state.value)

        snap = shootout.snapshot()
        snap["solved"] = shootout.results[-1]
        return jsonify(snap)

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5000, debug=True)
