#!/usr/bin/env python3
"""
Account Discovery

Probes chess.com and Lichess with the handles generated for a name, scores
every account found and returns each platform's candidates best first. Also
assembles the opening tree for a chosen set of accounts.

Usage:
  python discovery.py --name "John Smith" --federation USA --rating 2100
  LICHESS_TOKEN=xxx python discovery.py --name "John Smith" --fide 2000000
"""

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent))
import config
from fide import fetch_reference_info, merge_reference
from models import InvalidInputError, MatchResult, MoveTreeNode, NameInput, PlatformProfile
from name_patterns import search_patterns
from opening_tree import fold
from platforms import fetch_games, fetch_profile, lichess_search, make_session
from scoring import base_result, rank, score_chesscom, score_lichess


class SeenHandles:
    """Handles already taken by one platform pipeline during one search, case-insensitive."""

    def __init__(self):
        self._seen: set[str] = set()

    def add(self, handle: str) -> bool:
        """Record handle. Returns False if it was already seen."""
        key = handle.lower()
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __contains__(self, handle: str) -> bool:
        return handle.lower() in self._seen

    def __len__(self) -> int:
        return len(self._seen)


def probe_handles(patterns: tuple[str, ...]) -> list[str]:
    """Lowercased usable patterns, first occurrence order. Both platforms match usernames case-insensitively."""
    return list(dict.fromkeys(p.lower() for p in patterns if len(p) >= config.MIN_HANDLE_LENGTH))


async def _lookup_profile(
    handle: str,
    platform: str,
    session: httpx.AsyncClient,
    hints: NameInput,
    semaphore: asyncio.Semaphore,
) -> PlatformProfile | None:
    async with semaphore:
        try:
            return await fetch_profile(handle, platform, session, hints)
        except (httpx.HTTPError, ValueError) as e:
            print(f"API error for {platform} {handle}: {e}", file=sys.stderr)
            return None


async def _search_lichess(term: str, session: httpx.AsyncClient, semaphore: asyncio.Semaphore) -> list[str]:
    async with semaphore:
        try:
            return await lichess_search(term, session)
        except (httpx.HTTPError, ValueError) as e:
            print(f"API error for lichess search {term}: {e}", file=sys.stderr)
            return []


async def discover_chesscom(
    patterns: tuple[str, ...],
    hints: NameInput,
    session: httpx.AsyncClient,
    semaphore: asyncio.Semaphore,
    seen: SeenHandles | None = None,
) -> list[MatchResult]:
    """Direct profile lookup for every pattern."""
    seen = seen if seen is not None else SeenHandles()
    profiles = await asyncio.gather(
        *(_lookup_profile(h, "chess.com", session, hints, semaphore) for h in probe_handles(patterns))
    )
    results = []
    for profile in profiles:
        if profile is None or not seen.add(profile.handle):
            continue
        results.append(score_chesscom(profile, hints, patterns))
    return rank(results)


async def discover_lichess(
    patterns: tuple[str, ...],
    hints: NameInput,
    session: httpx.AsyncClient,
    semaphore: asyncio.Semaphore,
    seen: SeenHandles | None = None,
) -> list[MatchResult]:
    """
    Name search first, then direct lookups for patterns the search missed.
    A search hit whose profile cannot be fetched keeps the base score.
    """
    seen = seen if seen is not None else SeenHandles()
    probes = probe_handles(patterns)

    hits = await asyncio.gather(*(_search_lichess(p, session, semaphore) for p in probes))
    found = [user_id for ids in hits for user_id in ids if seen.add(user_id)]
    found_profiles = await asyncio.gather(
        *(_lookup_profile(user_id, "lichess", session, hints, semaphore) for user_id in found)
    )

    results = []
    for user_id, profile in zip(found, found_profiles):
        if profile is None:
            results.append(base_result(user_id))
        else:
            results.append(score_lichess(profile, hints, patterns))

    direct = [p for p in probes if p not in seen]
    direct_profiles = await asyncio.gather(
        *(_lookup_profile(p, "lichess", session, hints, semaphore) for p in direct)
    )
    for profile in direct_profiles:
        if profile is None or not seen.add(profile.handle):
            continue
        results.append(score_lichess(profile, hints, patterns))
    return rank(results)


async def search(
    hints: NameInput,
    session: httpx.AsyncClient | None = None,
    lookup_reference: bool = True,
) -> dict[str, list[MatchResult]]:
    """Candidates on both platforms for one person, each list best first."""
    if not hints.full_name or not hints.full_name.strip():
        raise InvalidInputError("full name is required")
    if session is None:
        async with make_session() as own_session:
            return await search(hints, own_session, lookup_reference)

    if hints.fide_id and lookup_reference:
        hints = merge_reference(hints, await fetch_reference_info(hints.fide_id, session))

    patterns = search_patterns(hints)
    chesscom, lichess = await asyncio.gather(
        discover_chesscom(patterns, hints, session, asyncio.Semaphore(config.MAX_CONCURRENCY)),
        discover_lichess(patterns, hints, session, asyncio.Semaphore(config.MAX_CONCURRENCY)),
    )
    return {"chesscom": chesscom, "lichess": lichess}


async def _player_games(handle, platform, session, semaphore, limit):
    async with semaphore:
        try:
            return await fetch_games(handle, platform, session, limit)
        except (httpx.HTTPError, ValueError) as e:
            print(f"API error for {platform} {handle} games: {e}", file=sys.stderr)
            return []


async def build_opening_tree(
    players: list[tuple[str, str]],
    session: httpx.AsyncClient | None = None,
    limit: int = config.GAMES_PER_PLAYER,
    max_plies: int | None = None,
) -> MoveTreeNode:
    """Fetch games for each (handle, platform) and fold them in player order."""
    if session is None:
        async with make_session() as own_session:
            return await build_opening_tree(players, own_session, limit, max_plies)

    semaphore = asyncio.Semaphore(config.MAX_CONCURRENCY)
    batches = await asyncio.gather(
        *(_player_games(handle, platform, session, semaphore, limit) for handle, platform in players)
    )
    return fold([game for batch in batches for game in batch], max_plies=max_plies)


def print_results(platform: str, results: list[MatchResult], limit: int) -> None:
    print(f"{platform}: {len(results)} candidates")
    for r in results[:limit]:
        details = ", ".join(r.matched_criteria)
        rating = r.rating if r.rating is not None else "-"
        print(f"  {r.confidence:3d}%  {r.handle:24s} rating {rating:>5}  {details}")


async def main_async():
    parser = argparse.ArgumentParser(description="Find a player's chess.com and Lichess accounts")
    parser.add_argument("--name", required=True)
    parser.add_argument("--fide", default=None, help="FIDE ID")
    parser.add_argument("--federation", default=None)
    parser.add_argument("--rating", type=int, default=None, help="FIDE rating")
    parser.add_argument("--birth-year", type=int, default=None)
    parser.add_argument("--limit", type=int, default=10, help="Results shown per platform")
    parser.add_argument("--no-fide-lookup", action="store_true", help="Do not query ratings.fide.com")
    args = parser.parse_args()

    hints = NameInput(
        full_name=args.name,
        fide_id=args.fide,
        federation=args.federation,
        fide_rating=args.rating,
        birth_year=args.birth_year,
    )
    results = await search(hints, lookup_reference=not args.no_fide_lookup)
    print_results("chess.com", results["chesscom"], args.limit)
    print_results("lichess", results["lichess"], args.limit)


def main():
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
