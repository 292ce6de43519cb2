"""
Confidence scoring for discovered accounts.

A candidate starts at the base weight for having matched a generated name
pattern and collects additive bonuses for every independent signal its
profile supports. Scorers are pure: every value they read has already been
fetched, and a missing value simply means the signal did not match.
"""

from typing import Callable, Iterable

from models import MatchResult, NameInput, PlatformProfile

BASE_CONFIDENCE = 20
MAX_CONFIDENCE = 100
SIMILAR_FEDERATION_THRESHOLD = 0.5

# (max rating difference, bonus, label), tightest first
RATING_BRACKETS = (
    (50, 35, "Very Similar Rating"),
    (100, 25, "Similar Rating"),
    (200, 15, "Rating"),
    (300, 5, "Distant Rating"),
)


def federation_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lowercase character sets of two strings."""
    set_a, set_b = set(a.lower()), set(b.lower())
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def wants_profile_text(hints: NameInput) -> bool:
    """The profile page is only worth fetching when there is something to look for in it."""
    return bool(hints.fide_id or hints.birth_year)


def wants_stats(hints: NameInput) -> bool:
    """chess.com ratings live behind the stats endpoint and are shown even without a rating hint."""
    return True


class _Tally:
    def __init__(self):
        self.confidence = BASE_CONFIDENCE
        self.criteria = ["Name pattern"]

    def add(self, bonus: int, label: str) -> None:
        self.confidence += bonus
        self.criteria.append(label)

    @property
    def has_extra_signal(self) -> bool:
        return len(self.criteria) > 1

    def clamped(self) -> int:
        return max(0, min(self.confidence, MAX_CONFIDENCE))


def _score_federation(tally: _Tally, country: str | None, federation: str | None) -> None:
    if not country or not federation:
        return
    if country.lower() == federation.lower():
        tally.add(25, "Federation")
    elif federation_similarity(country, federation) >= SIMILAR_FEDERATION_THRESHOLD:
        tally.add(15, "Similar Federation")


def _score_rating(tally: _Tally, rating: int | None, fide_rating: int | None) -> None:
    if rating is None or fide_rating is None:
        return
    diff = abs(rating - fide_rating)
    for limit, bonus, label in RATING_BRACKETS:
        if diff <= limit:
            tally.add(bonus, label)
            return


def _score_fide_id_text(tally: _Tally, profile: PlatformProfile, hints: NameInput) -> None:
    if hints.fide_id and profile.profile_text and hints.fide_id in profile.profile_text:
        tally.add(35, "FIDE ID")


def _score_specificity(tally: _Tally, handle: str, patterns: Iterable[str]) -> None:
    if not tally.has_extra_signal:
        return
    handle = handle.lower()
    if any(handle == p.lower() for p in patterns):
        tally.add(10, "Exact Pattern")


def _result(tally: _Tally, profile: PlatformProfile) -> MatchResult:
    last_online = profile.last_active_at.date().isoformat() if profile.last_active_at else None
    return MatchResult(
        handle=profile.handle,
        confidence=tally.clamped(),
        matched_criteria=tuple(tally.criteria),
        federation=profile.country,
        rating=profile.max_rating,
        last_online=last_online,
    )


def score_chesscom(profile: PlatformProfile, hints: NameInput, patterns: Iterable[str]) -> MatchResult:
    """Score a chess.com account. Identity evidence comes from the public profile page text."""
    tally = _Tally()
    _score_federation(tally, profile.country, hints.federation)
    _score_rating(tally, profile.max_rating, hints.fide_rating)
    _score_fide_id_text(tally, profile, hints)
    if hints.birth_year is not None and profile.profile_text:
        if str(hints.birth_year) in profile.profile_text:
            tally.add(20, "Birth Year")
    _score_specificity(tally, profile.handle, patterns)
    return _result(tally, profile)


def score_lichess(profile: PlatformProfile, hints: NameInput, patterns: Iterable[str]) -> MatchResult:
    """Score a Lichess account. Lichess exposes birth year, linked FIDE rating and title as fields."""
    tally = _Tally()
    _score_federation(tally, profile.country, hints.federation)
    _score_rating(tally, profile.max_rating, hints.fide_rating)
    _score_fide_id_text(tally, profile, hints)
    if hints.birth_year is not None:
        if profile.birth_year is not None and profile.birth_year == hints.birth_year:
            tally.add(30, "Birth Year")
        if profile.bio_text and str(hints.birth_year) in profile.bio_text:
            tally.add(10, "Birth Year in Bio")
    if profile.fide_rating_linked is not None:
        tally.add(25, "FIDE Rating")
        # Lichess exposes only the linked rating, so it is compared to the id string.
        if hints.fide_id and str(profile.fide_rating_linked) == hints.fide_id.strip():
            tally.add(40, "FIDE ID Match")
    if profile.title:
        tally.add(5, f"{profile.title} Title")
    _score_specificity(tally, profile.handle, patterns)
    return _result(tally, profile)


Scorer = Callable[[PlatformProfile, NameInput, Iterable[str]], MatchResult]

SCORERS: dict[str, Scorer] = {
    "chess.com": score_chesscom,
    "lichess": score_lichess,
}


def base_result(handle: str) -> MatchResult:
    """Result for a candidate whose profile could not be fetched."""
    return MatchResult(handle=handle, confidence=BASE_CONFIDENCE, matched_criteria=("Name pattern",))


def rank(results: Iterable[MatchResult]) -> list[MatchResult]:
    """Highest confidence first; equal scores keep discovery order."""
    return sorted(results, key=lambda r: -r.confidence)
