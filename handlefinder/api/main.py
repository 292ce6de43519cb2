"""
FastAPI Query API for the chess account finder

Endpoints:
  POST /api/search  - Candidate accounts on chess.com and Lichess for a name
  GET /api/player-games?username=...&platform=...  - Number of games an account has played
  POST /api/opening-tree  - Opening tree for a set of accounts
  POST /api/opening-tree/games  - Opening tree for posted games
  POST /api/opening-tree/stats  - Move statistics along a path for posted games
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

import config
from discovery import build_opening_tree, search
from models import GameRecord, InvalidInputError, NameInput
from opening_tree import TreeCursor, fold
from platforms import count_games, make_session

app = FastAPI(title="Chess Account Finder API", version="1.0.0")


class SearchRequest(BaseModel):
    name: str | None = None
    fide: str | None = None
    federation: str | None = None
    ratings: int | str | None = None
    birthYear: int | str | None = None


class Player(BaseModel):
    username: str
    platform: str


class PlayersTreeRequest(BaseModel):
    players: list[Player] = Field(min_length=1)
    maxPlies: int | None = None
    limit: int = Field(config.GAMES_PER_PLAYER, le=500)


class GamesTreeRequest(BaseModel):
    games: list[dict]
    maxPlies: int | None = None


class PathStatsRequest(GamesTreeRequest):
    path: list[str] = []


def _games(raw: list[dict]) -> list[GameRecord]:
    try:
        return [GameRecord.from_dict(g) for g in raw]
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/search")
async def search_endpoint(body: SearchRequest):
    """Search both platforms for a player."""
    if not body.name or not body.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    try:
        hints = NameInput.from_dict(body.model_dump())
        results = await search(hints)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {platform: [r.to_dict() for r in found] for platform, found in results.items()}


@app.get("/api/player-games")
async def player_games(username: str | None = Query(None), platform: str | None = Query(None)):
    """Total games played by one account."""
    if not username or not platform:
        raise HTTPException(status_code=400, detail="Username and platform are required")
    if platform not in config.PLATFORMS:
        raise HTTPException(status_code=400, detail=f"Unknown platform: {platform}")
    try:
        async with make_session() as session:
            count = await count_games(username.strip(), platform, session)
    except (httpx.HTTPError, ValueError) as e:
        print(f"Error fetching game count for {username}: {e}", file=sys.stderr)
        raise HTTPException(status_code=502, detail="Failed to get game count")
    return {"count": count}


@app.post("/api/opening-tree")
async def players_opening_tree(body: PlayersTreeRequest):
    """Fetch games for the selected accounts and fold them into one tree."""
    for p in body.players:
        if p.platform not in config.PLATFORMS:
            raise HTTPException(status_code=400, detail=f"Unknown platform: {p.platform}")
    root = await build_opening_tree(
        [(p.username.strip(), p.platform) for p in body.players],
        limit=body.limit,
        max_plies=body.maxPlies,
    )
    return {"totalGames": root.play_count, "tree": root.to_dict()}


@app.post("/api/opening-tree/games")
def games_opening_tree(body: GamesTreeRequest):
    root = fold(_games(body.games), max_plies=body.maxPlies)
    return {"totalGames": root.play_count, "tree": root.to_dict()}


@app.post("/api/opening-tree/stats")
def path_stats(body: PathStatsRequest):
    """Replay path over the tree of the posted games and report what the board view shows."""
    cursor = TreeCursor(fold(_games(body.games), max_plies=body.maxPlies))
    for move in body.path:
        try:
            cursor.push(move)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid move: {move}")
    top = cursor.top_continuation()
    return {
        "path": cursor.history,
        "fen": cursor.board.fen(),
        "inTree": cursor.in_tree,
        "playCount": cursor.node.play_count if cursor.in_tree else 0,
        "frequency": cursor.frequency(),
        "positionShare": cursor.position_share(),
        "topContinuation": {"move": top[0], "percentage": top[1]} if top else None,
        "continuations": [
            {"move": m, "playCount": n, "percentage": pct} for m, n, pct in cursor.continuations()
        ],
    }


@app.get("/health")
def health():
    return {"status": "ok"}
