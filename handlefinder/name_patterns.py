"""
Candidate handle generation.

Turns a real name plus optional birth year / federation hints into the set of
account handles worth probing on each platform. Generation is deterministic:
the ordered tuple from search_patterns() is built once per search and handed
to every platform pipeline unchanged.
"""

import re
from datetime import date

from models import InvalidInputError, NameInput

SEPARATORS = ("", "_", "-", ".")
YEAR_SWEEP = tuple(f"{y:02d}" for y in range(0, 21))
NUMERIC_SUFFIXES = ("1", "2", "3", "123", "007", "777")

# Known accounts that no generative rule produces, keyed by normalized name.
HANDLE_OVERRIDES: dict[str, tuple[str, ...]] = {
    "derek yuan": ("Derekyuan",),
}


def tokenize_name(full_name: str) -> list[str]:
    """Strip punctuation and split on whitespace."""
    return re.sub(r"[^\w\s]", "", full_name).split()


def normalize_name(full_name: str) -> str:
    return " ".join(tokenize_name(full_name)).lower()


def _current_short_year() -> str:
    return f"{date.today().year % 100:02d}"


def _single_token_patterns(token: str) -> list[str]:
    t = token.lower()
    return [t, f"{t}chess", f"chess{t}", f"{t}player"]


def _multi_token_patterns(parts: list[str]) -> list[str]:
    first, last = parts[0], parts[-1]
    f, l = first.lower(), last.lower()
    fi, li = f[0], l[0]
    initials = "".join(p[0] for p in parts).lower()

    patterns = [f + l, first + last, first.capitalize() + last.capitalize()]
    for sep in SEPARATORS:
        patterns.append(f"{f}{sep}{l}")
        patterns.append(f"{l}{sep}{f}")
    for sep in SEPARATORS:
        for form in (f"{fi}{sep}{l}", f"{f}{sep}{li}"):
            patterns.append(form)
            patterns.append(form.upper())
    patterns += [f, l, initials, initials.upper()]

    for stem in (f, l, f + l, initials):
        patterns.append(f"{stem}chess")
        patterns.append(f"chess{stem}")

    middle = parts[1:-1]
    if middle:
        mi = "".join(p[0] for p in middle).lower()
        patterns.append(f"{f}{mi}{l}")
        patterns.append(f"{fi}{mi}{l}")
        patterns.append(f"{fi}{mi[0]}{l}")

    for suffix in (_current_short_year(), *YEAR_SWEEP, *NUMERIC_SUFFIXES):
        patterns.append(f"{f}{l}{suffix}")
        patterns.append(f"{first[0]}{l}{suffix}")
    return patterns


def generate_name_patterns(full_name: str) -> list[str]:
    """
    Base handle patterns for a name, without hint expansion.
    Order is generation order with duplicates removed.
    """
    if not full_name or not full_name.strip():
        raise InvalidInputError("full name is required")

    parts = tokenize_name(full_name)
    if not parts:
        return []
    if len(parts) == 1:
        patterns = _single_token_patterns(parts[0])
    else:
        patterns = _multi_token_patterns(parts)
    return list(dict.fromkeys(p for p in patterns if p))


def combine_with(patterns: list[str], value: str) -> list[str]:
    """Attach value before and after every pattern using each separator."""
    combined = []
    for pattern in patterns:
        for sep in SEPARATORS:
            combined.append(f"{pattern}{sep}{value}")
            combined.append(f"{value}{sep}{pattern}")
    return combined


def generate_birth_year_patterns(patterns: list[str], birth_year: int | str) -> list[str]:
    year = str(birth_year).strip()
    if not year:
        return []
    values = [year]
    if len(year) > 2:
        values.append(year[-2:])
    result = []
    for value in values:
        result += combine_with(patterns, value)
    return result


def generate_federation_patterns(patterns: list[str], federation: str) -> list[str]:
    federation = federation.strip()
    if not federation:
        return []
    return combine_with(patterns, federation)


def search_patterns(name: NameInput) -> tuple[str, ...]:
    """
    Every handle to probe for one search, in deterministic order.

    Birth year and federation variants are both derived from the base
    patterns; neither expansion feeds the other.
    """
    base = generate_name_patterns(name.full_name)
    patterns = list(base)
    if name.birth_year is not None:
        patterns += generate_birth_year_patterns(base, name.birth_year)
    if name.federation:
        patterns += generate_federation_patterns(base, name.federation)
    patterns += HANDLE_OVERRIDES.get(normalize_name(name.full_name), ())
    return tuple(dict.fromkeys(patterns))


def generate(name: NameInput) -> frozenset[str]:
    """The de-duplicated candidate handle set for a name and its hints."""
    return frozenset(search_patterns(name))
