"""Reference player lookup on the FIDE rating site."""

import dataclasses
import re
import sys
from pathlib import Path

import httpx
from bs4 import BeautifulSoup

sys.path.insert(0, str(Path(__file__).resolve().parent))
import config
from models import NameInput, ReferencePlayer


def _labelled_value(soup: BeautifulSoup, label: str) -> str | None:
    """Text of the element following the one labelled `label`."""
    marker = soup.find(string=re.compile(rf"^\s*{re.escape(label)}", re.IGNORECASE))
    if marker is None:
        return None
    value = marker.parent.find_next_sibling()
    if value is None:
        return None
    return value.get_text(" ", strip=True) or None


def _first_number(text: str | None, pattern: str) -> int | None:
    if not text:
        return None
    m = re.search(pattern, text)
    return int(m.group(0)) if m else None


def parse_profile_page(fide_id: str, html: str) -> ReferencePlayer | None:
    soup = BeautifulSoup(html, "html.parser")
    title = soup.select_one(".profile-top-title")
    name = title.get_text(strip=True) if title else ""
    if not name:
        return None
    rating_block = soup.select_one(".profile-top-rating_block") or soup.select_one(".profile-standart")
    return ReferencePlayer(
        fide_id=fide_id,
        name=name,
        federation=_labelled_value(soup, "Federation"),
        birth_year=_first_number(_labelled_value(soup, "B-Year"), r"\d{4}"),
        rating=_first_number(rating_block.get_text(" ", strip=True) if rating_block else None, r"\d{3,4}"),
    )


async def fetch_reference_info(fide_id: str, session: httpx.AsyncClient) -> ReferencePlayer | None:
    """Scrape the player's FIDE profile. Any failure yields None."""
    if not fide_id or not fide_id.strip().isdigit():
        return None
    fide_id = fide_id.strip()
    try:
        resp = await session.get(f"{config.FIDE_PROFILE_URL}/{fide_id}")
        resp.raise_for_status()
    except httpx.HTTPError as e:
        print(f"Error fetching FIDE info for {fide_id}: {e}", file=sys.stderr)
        return None
    return parse_profile_page(fide_id, resp.text)


def merge_reference(hints: NameInput, ref: ReferencePlayer | None) -> NameInput:
    """Fill hints the user left empty from the FIDE record."""
    if ref is None:
        return hints
    return dataclasses.replace(
        hints,
        fide_id=hints.fide_id or ref.fide_id,
        federation=hints.federation or ref.federation,
        fide_rating=hints.fide_rating if hints.fide_rating is not None else ref.rating,
        birth_year=hints.birth_year if hints.birth_year is not None else ref.birth_year,
    )
