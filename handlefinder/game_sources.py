"""Conversion of PGN text and platform game payloads into GameRecord move lists."""

import io
import sys
from pathlib import Path

import chess
import chess.pgn

sys.path.insert(0, str(Path(__file__).resolve().parent))
from models import GameRecord

LICHESS_WINNER_RESULTS = {"white": "1-0", "black": "0-1"}


def _player_color(headers, player: str | None) -> str:
    if player and headers.get("Black", "").lower() == player.lower():
        return "black"
    return "white"


def game_from_pgn(game: chess.pgn.Game, player: str | None = None) -> GameRecord:
    """Mainline SAN moves of a parsed game. Moves from the first null or illegal one on are dropped."""
    board = game.board()
    moves = []
    for node in game.mainline():
        if not node.move:
            break
        try:
            moves.append(board.san(node.move))
            board.push(node.move)
        except (AssertionError, ValueError):
            break
    return GameRecord(
        moves=moves,
        result=game.headers.get("Result", "*"),
        player_color=_player_color(game.headers, player),
        opening=game.headers.get("Opening") or game.headers.get("ECOUrl", "").rsplit("/", 1)[-1] or None,
    )


def games_from_pgn_text(text: str, player: str | None = None) -> list[GameRecord]:
    games = []
    handle = io.StringIO(text)
    while True:
        game = chess.pgn.read_game(handle)
        if game is None:
            break
        if player and player.lower() not in (
            game.headers.get("White", "").lower(),
            game.headers.get("Black", "").lower(),
        ):
            continue
        games.append(game_from_pgn(game, player))
    return games


def read_pgn_games(pgn_path: Path, player: str | None = None) -> list[GameRecord]:
    """Read every game in a PGN file, optionally keeping only one player's games."""
    if not pgn_path.exists():
        print(f"Warning: {pgn_path} not found", file=sys.stderr)
        return []
    with open(pgn_path, encoding="utf-8", errors="replace") as f:
        return games_from_pgn_text(f.read(), player)


def game_from_chesscom(data: dict, handle: str) -> GameRecord | None:
    """One entry of a chess.com monthly archive. Non-standard variants are skipped."""
    if data.get("rules", "chess") != "chess" or not data.get("pgn"):
        return None
    game = chess.pgn.read_game(io.StringIO(data["pgn"]))
    if game is None:
        return None
    record = game_from_pgn(game, handle)
    black = (data.get("black") or {}).get("username", "")
    record.player_color = "black" if black.lower() == handle.lower() else "white"
    record.time_class = data.get("time_class")
    return record


def game_from_lichess(data: dict, handle: str) -> GameRecord | None:
    """One NDJSON game from the Lichess export endpoint."""
    if data.get("variant", "standard") != "standard":
        return None
    moves = (data.get("moves") or "").split()
    black = ((data.get("players") or {}).get("black") or {}).get("user") or {}
    color = "black" if black.get("name", "").lower() == handle.lower() else "white"
    winner = data.get("winner")
    if winner:
        result = LICHESS_WINNER_RESULTS.get(winner, "*")
    elif data.get("status") in ("draw", "stalemate"):
        result = "1/2-1/2"
    else:
        result = "*"
    opening = (data.get("opening") or {}).get("name")
    return GameRecord(
        moves=moves,
        result=result,
        player_color=color,
        time_class=data.get("speed"),
        opening=opening,
    )
