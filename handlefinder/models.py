"""Data models for the chess account finder."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal


class InvalidInputError(ValueError):
    """Caller passed input that violates a contract (empty name, malformed game)."""


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    digits = str(value).strip()
    if not digits.lstrip("-").isdigit():
        raise InvalidInputError(f"Expected an integer, got {value!r}")
    return int(digits)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class NameInput:
    """A person to look for, plus the optional hints used to score candidates."""

    full_name: str
    fide_id: str | None = None
    federation: str | None = None
    fide_rating: int | None = None
    birth_year: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "NameInput":
        """Build from the JSON shape used across the HTTP boundary."""
        return cls(
            full_name=str(data.get("fullName") or data.get("name") or "").strip(),
            fide_id=_opt_str(data.get("fideId", data.get("fide"))),
            federation=_opt_str(data.get("federation")),
            fide_rating=_opt_int(data.get("fideRating", data.get("ratings"))),
            birth_year=_opt_int(data.get("birthYear")),
        )


@dataclass
class PlatformProfile:
    """Normalized facts about one discovered account, fetched for a single scoring call."""

    handle: str
    country: str | None = None
    max_rating: int | None = None
    last_active_at: datetime | None = None
    title: str | None = None
    bio_text: str | None = None
    fide_rating_linked: int | None = None
    profile_text: str | None = None
    birth_year: int | None = None


@dataclass(frozen=True)
class MatchResult:
    """A scored candidate account on one platform."""

    handle: str
    confidence: int
    matched_criteria: tuple[str, ...] = ()
    federation: str | None = None
    rating: int | None = None
    last_online: str | None = None

    def to_dict(self) -> dict:
        return {
            "handle": self.handle,
            "confidence": self.confidence,
            "matchedCriteria": list(self.matched_criteria),
            "federation": self.federation,
            "rating": self.rating,
            "lastOnline": self.last_online,
        }


@dataclass
class GameRecord:
    """One game as a move list, seen from the searched player's side."""

    moves: list[str] = field(default_factory=list)
    result: str = "*"
    player_color: Literal["white", "black"] = "white"
    time_class: str | None = None
    opening: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "GameRecord":
        moves = data.get("moves")
        if moves is None:
            moves = []
        if isinstance(moves, (str, bytes)) or not isinstance(moves, (list, tuple)):
            raise InvalidInputError(f"Game moves must be a list, got {type(moves).__name__}")
        color = data.get("playerColor") or "white"
        if color not in ("white", "black"):
            raise InvalidInputError(f"Unknown player color: {color!r}")
        return cls(
            moves=list(moves),
            result=data.get("result") or "*",
            player_color=color,
            time_class=data.get("timeClass"),
            opening=data.get("opening"),
        )


@dataclass
class MoveTreeNode:
    """Position reached by a move path, with how many folded games reached it."""

    move: str | None = None
    play_count: int = 0
    position_key: str = ""
    children: dict[str, "MoveTreeNode"] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "moveNotation": self.move,
            "playCount": self.play_count,
            "positionKey": self.position_key,
            "children": {san: child.to_dict() for san, child in self.children.items()},
        }


@dataclass
class ReferencePlayer:
    """Player record from the FIDE rating site."""

    fide_id: str
    name: str = ""
    federation: str | None = None
    birth_year: int | None = None
    rating: int | None = None
