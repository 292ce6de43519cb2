"""Tests for fide.py"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import config
from fide import fetch_reference_info, merge_reference, parse_profile_page
from models import NameInput, ReferencePlayer

PROFILE_HTML = """
<html><body>
<div class="profile-top">
  <div class="profile-top-title">Smith, John</div>
  <div class="profile-top-rating_block">
    <div class="profile-top-rating_header">std</div>
    <div class="profile-top-rating_data">2154</div>
  </div>
  <div class="profile-top-info__block">
    <div class="profile-top-info__block__row">
      <div class="profile-top-info__block__row__header">Federation:</div>
      <div class="profile-top-info__block__row__data">United States of America</div>
    </div>
    <div class="profile-top-info__block__row">
      <div class="profile-top-info__block__row__header">B-Year:</div>
      <div class="profile-top-info__block__row__data">1990</div>
    </div>
  </div>
</div>
</body></html>
"""


def test_parse_profile_page():
    ref = parse_profile_page("2016192", PROFILE_HTML)
    assert ref == ReferencePlayer(
        fide_id="2016192",
        name="Smith, John",
        federation="United States of America",
        birth_year=1990,
        rating=2154,
    )


def test_parse_page_without_player_is_none():
    assert parse_profile_page("1", "<html><body>Not found</body></html>") is None


@pytest.mark.asyncio
async def test_fetch_reference_info(routed_session):
    session = routed_session({f"{config.FIDE_PROFILE_URL}/2016192": (200, PROFILE_HTML)})
    ref = await fetch_reference_info(" 2016192 ", session)
    assert ref.name == "Smith, John"
    assert ref.rating == 2154


@pytest.mark.asyncio
async def test_fetch_reference_info_failure_is_none(routed_session, capsys):
    session = routed_session({f"{config.FIDE_PROFILE_URL}/2016192": (503, "")})
    assert await fetch_reference_info("2016192", session) is None
    assert "Error fetching FIDE info" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_non_numeric_fide_id_is_not_requested(routed_session):
    session = routed_session({})
    assert await fetch_reference_info("abc", session) is None
    session.get.assert_not_called()


def test_merge_reference_fills_only_missing_hints():
    hints = NameInput(full_name="John Smith", fide_id="2016192", federation="US")
    ref = ReferencePlayer(fide_id="2016192", name="Smith, John", federation="United States", birth_year=1990, rating=2154)
    merged = merge_reference(hints, ref)
    assert merged.federation == "US"
    assert merged.fide_rating == 2154
    assert merged.birth_year == 1990
    assert merged.full_name == "John Smith"
    assert merge_reference(hints, None) is hints
