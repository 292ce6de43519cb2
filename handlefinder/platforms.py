"""
Chess.com and Lichess lookups.

Every function takes an httpx.AsyncClient. A 404 means "no such account" and
comes back as None; other HTTP failures on optional lookups are reported on
stderr and also come back as None so scoring can carry on without them.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent))
import config
from game_sources import game_from_chesscom, game_from_lichess
from models import GameRecord, InvalidInputError, NameInput, PlatformProfile
from scoring import wants_profile_text, wants_stats

CHESSCOM_RATING_KEYS = ("chess_rapid", "chess_blitz", "chess_bullet", "chess_daily")
LICHESS_RATING_KEYS = ("classical", "rapid", "blitz", "bullet")


def make_session() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.HTTP_TIMEOUT,
        headers={"User-Agent": config.USER_AGENT},
        follow_redirects=True,
    )


def _lichess_headers() -> dict | None:
    return {"Authorization": f"Bearer {config.LICHESS_TOKEN}"} if config.LICHESS_TOKEN else None


async def get_json(session: httpx.AsyncClient, url: str, headers: dict | None = None):
    """GET a JSON document. Returns None on 404."""
    resp = await session.get(url, headers=headers)
    if resp.status_code == 404:
        return None
    resp.raise_for_status()
    return resp.json()


async def _optional(coro, what: str):
    try:
        return await coro
    except (httpx.HTTPError, ValueError) as e:
        print(f"API error for {what}: {e}", file=sys.stderr)
        return None


def _max_rating(ratings: list) -> int | None:
    ratings = [r for r in ratings if isinstance(r, int) and r > 0]
    return max(ratings) if ratings else None


# --- chess.com ---------------------------------------------------------------


def chesscom_country(country_url: str | None) -> str | None:
    """chess.com reports country as an API URL ending in the ISO code."""
    if not country_url:
        return None
    return country_url.rstrip("/").rsplit("/", 1)[-1] or None


def chesscom_max_rating(stats: dict | None) -> int | None:
    if not stats:
        return None
    return _max_rating([((stats.get(key) or {}).get("last") or {}).get("rating") for key in CHESSCOM_RATING_KEYS])


async def chesscom_player(handle: str, session: httpx.AsyncClient) -> dict | None:
    return await get_json(session, f"{config.CHESSCOM_API}/player/{quote(handle.lower())}")


async def chesscom_stats(handle: str, session: httpx.AsyncClient) -> dict | None:
    return await get_json(session, f"{config.CHESSCOM_API}/player/{quote(handle.lower())}/stats")


async def profile_page_text(url: str, session: httpx.AsyncClient) -> str | None:
    resp = await session.get(url)
    if resp.status_code != 200:
        return None
    return resp.text


async def fetch_chesscom_profile(
    handle: str, session: httpx.AsyncClient, hints: NameInput | None = None
) -> PlatformProfile | None:
    """Profile plus the secondary lookups the hints call for."""
    player = await chesscom_player(handle, session)
    if not player or not player.get("username"):
        return None
    username = player["username"]

    max_rating = None
    if hints is None or wants_stats(hints):
        stats = await _optional(chesscom_stats(username, session), f"{username} stats")
        max_rating = chesscom_max_rating(stats)

    text = None
    if hints is not None and wants_profile_text(hints) and player.get("url"):
        text = await _optional(profile_page_text(player["url"], session), f"{username} profile page")

    last_online = player.get("last_online")
    return PlatformProfile(
        handle=username,
        country=chesscom_country(player.get("country")),
        max_rating=max_rating,
        last_active_at=datetime.fromtimestamp(last_online, tz=timezone.utc) if last_online else None,
        title=player.get("title"),
        profile_text=text,
    )


async def chesscom_archives(handle: str, session: httpx.AsyncClient) -> list[str]:
    data = await get_json(session, f"{config.CHESSCOM_API}/player/{quote(handle.lower())}/games/archives")
    return list((data or {}).get("archives", []))


async def fetch_chesscom_games(handle: str, session: httpx.AsyncClient, limit: int) -> list[GameRecord]:
    """Most recent games first, walking monthly archives backwards."""
    games: list[GameRecord] = []
    for archive_url in reversed(await chesscom_archives(handle, session)):
        if len(games) >= limit:
            break
        data = await _optional(get_json(session, archive_url), f"archive {archive_url}")
        for entry in reversed((data or {}).get("games", [])):
            record = game_from_chesscom(entry, handle)
            if record is not None:
                games.append(record)
            if len(games) >= limit:
                break
    return games


async def count_chesscom_games(handle: str, session: httpx.AsyncClient) -> int:
    count = 0
    for archive_url in await chesscom_archives(handle, session):
        data = await _optional(get_json(session, archive_url), f"archive {archive_url}")
        count += len((data or {}).get("games", []))
    return count


# --- Lichess -----------------------------------------------------------------


async def lichess_search(term: str, session: httpx.AsyncClient) -> list[str]:
    """User ids whose name starts with term."""
    url = f"{config.LICHESS_API}/player/autocomplete?term={quote(term)}&object=true"
    data = await get_json(session, url, headers=_lichess_headers())
    if isinstance(data, dict):
        data = data.get("result")
    if not isinstance(data, list):
        return []
    ids = []
    for item in data:
        if isinstance(item, str):
            ids.append(item)
        elif isinstance(item, dict) and item.get("id"):
            ids.append(item["id"])
    return ids


async def lichess_user(handle: str, session: httpx.AsyncClient) -> dict | None:
    return await get_json(session, f"{config.LICHESS_API}/user/{quote(handle)}", headers=_lichess_headers())


def lichess_profile_from_user(data: dict) -> PlatformProfile:
    profile = data.get("profile") or {}
    perfs = data.get("perfs") or {}
    seen_at = data.get("seenAt")
    fide_rating = profile.get("fideRating")
    birth_year = profile.get("birthYear")
    return PlatformProfile(
        handle=data.get("id") or data.get("username", ""),
        country=profile.get("country") or profile.get("flag"),
        max_rating=_max_rating([(perfs.get(key) or {}).get("rating") for key in LICHESS_RATING_KEYS]),
        last_active_at=datetime.fromtimestamp(seen_at / 1000, tz=timezone.utc) if seen_at else None,
        title=data.get("title"),
        bio_text=profile.get("bio"),
        fide_rating_linked=int(fide_rating) if fide_rating else None,
        birth_year=int(birth_year) if birth_year else None,
    )


async def fetch_lichess_profile(
    handle: str, session: httpx.AsyncClient, hints: NameInput | None = None
) -> PlatformProfile | None:
    """Lichess returns everything the scorer reads in one document; hints are not needed."""
    data = await lichess_user(handle, session)
    if not data or data.get("disabled"):
        return None
    return lichess_profile_from_user(data)


async def fetch_lichess_games(handle: str, session: httpx.AsyncClient, limit: int) -> list[GameRecord]:
    url = f"{config.LICHESS_API}/games/user/{quote(handle)}?max={limit}&moves=true&opening=true"
    headers = {"Accept": "application/x-ndjson"}
    headers.update(_lichess_headers() or {})
    resp = await session.get(url, headers=headers)
    if resp.status_code == 404:
        return []
    resp.raise_for_status()
    games = []
    for line in resp.text.splitlines():
        if not line.strip():
            continue
        record = game_from_lichess(json.loads(line), handle)
        if record is not None:
            games.append(record)
    return games


async def count_lichess_games(handle: str, session: httpx.AsyncClient) -> int:
    data = await lichess_user(handle, session)
    return int(((data or {}).get("count") or {}).get("all") or 0)


# --- dispatch ----------------------------------------------------------------


def _check_platform(platform: str) -> None:
    if platform not in config.PLATFORMS:
        raise InvalidInputError(f"Unknown platform: {platform}")


async def fetch_profile(
    handle: str, platform: str, session: httpx.AsyncClient, hints: NameInput | None = None
) -> PlatformProfile | None:
    _check_platform(platform)
    if platform == "chess.com":
        return await fetch_chesscom_profile(handle, session, hints)
    return await fetch_lichess_profile(handle, session, hints)


async def fetch_games(
    handle: str, platform: str, session: httpx.AsyncClient, limit: int = config.GAMES_PER_PLAYER
) -> list[GameRecord]:
    _check_platform(platform)
    if platform == "chess.com":
        return await fetch_chesscom_games(handle, session, limit)
    return await fetch_lichess_games(handle, session, limit)


async def count_games(handle: str, platform: str, session: httpx.AsyncClient) -> int:
    _check_platform(platform)
    if platform == "chess.com":
        return await count_chesscom_games(handle, session)
    return await count_lichess_games(handle, session)
