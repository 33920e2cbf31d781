"""Enforcement-scope selectors resolved to ISO3 country-code sets.

Two jurisdiction tests are kept apart: flag-state jurisdiction (the country a
vessel is registered to) and territorial jurisdiction (the EEZ the vessel
currently sits in).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Literal, Optional, Sequence, TypeVar

from events.records import VesselStatus
from events.store import EventStore

SelectorKind = Literal["country", "nato", "five_eyes", "any"]

FIVE_EYES: FrozenSet[str] = frozenset({"USA", "GBR", "NZL", "AUS", "CAN"})
NATO_CATEGORY = "NATO"
_UNKNOWN_CODES = frozenset({"", "UNKNOWN", "NA", "NAN", "NONE"})

__all__ = [
    "DEFAULT_NATO_ROSTER",
    "FIVE_EYES",
    "JurisdictionSelector",
    "RosterEntry",
    "filter_by_eez",
    "filter_by_flag",
    "is_known_code",
    "nato_members",
    "observed_codes",
    "parse_selector",
    "resolve",
]

T = TypeVar("T")


@dataclass(frozen=True)
class RosterEntry:
    """Row of the NATO country-code roster (``CTR`` code, ``CAT`` category)."""

    code: str
    category: str = NATO_CATEGORY


DEFAULT_NATO_ROSTER: Sequence[RosterEntry] = tuple(
    RosterEntry(code)
    for code in (
        "ALB", "BEL", "BGR", "CAN", "HRV", "CZE", "DNK", "EST", "FIN", "FRA", "DEU",
        "GRC", "HUN", "ISL", "ITA", "LVA", "LTU", "LUX", "MNE", "NLD", "MKD", "NOR",
        "POL", "PRT", "ROU", "SVK", "SVN", "ESP", "SWE", "TUR", "GBR", "USA",
    )
)


@dataclass(frozen=True)
class JurisdictionSelector:
    """Who is doing the enforcing: one country, an alliance, or anyone."""

    kind: SelectorKind
    country: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind == "country":
            if not self.country or not is_known_code(self.country):
                raise ValueError("a single-country selector needs an ISO3 code")
            object.__setattr__(self, "country", self.country.strip().upper())
        elif self.country is not None:
            raise ValueError(f"{self.kind} selector does not take a country code")

    @classmethod
    def single(cls, code: str) -> "JurisdictionSelector":
        return cls("country", code)

    @property
    def label(self) -> str:
        if self.kind == "country":
            return "U.S." if self.country == "USA" else str(self.country)
        if self.kind == "nato":
            return "NATO"
        if self.kind == "five_eyes":
            return "Five Eyes"
        return "any country"


def parse_selector(text: str) -> JurisdictionSelector:
    """Parse UI labels (``"U.S."``, ``"NATO"``, ``"any country"``) or ISO3 codes."""

    raw = text.strip()
    key = raw.lower().replace("_", "-")
    if key in {"any", "any country", "any-country"}:
        return JurisdictionSelector("any")
    if key in {"nato", "alliance-nato"}:
        return JurisdictionSelector("nato")
    if key in {"five eyes", "five-eyes", "alliance-five-eyes"}:
        return JurisdictionSelector("five_eyes")
    if key in {"u.s.", "us", "u.s.a."}:
        return JurisdictionSelector.single("USA")
    if key.startswith("single-country:"):
        return JurisdictionSelector.single(raw.split(":", 1)[1])
    if len(raw) == 3 and raw.isalpha():
        return JurisdictionSelector.single(raw)
    raise ValueError(f"unrecognised jurisdiction selector: {text!r}")


def nato_members(roster: Iterable[RosterEntry]) -> FrozenSet[str]:
    return frozenset(
        entry.code.strip().upper()
        for entry in roster
        if entry.category.strip().upper() == NATO_CATEGORY and is_known_code(entry.code)
    )


def resolve(
    selector: JurisdictionSelector,
    *,
    nato_roster: Optional[Iterable[RosterEntry]] = None,
    universe: Iterable[Optional[str]] = (),
) -> FrozenSet[str]:
    """Return the ISO3 codes covered by ``selector``.

    ``universe`` is only consulted for ``any`` and should hold every flag/EEZ
    code observed in the data (see :func:`observed_codes`).
    """

    if selector.kind == "country":
        return frozenset({str(selector.country)})
    if selector.kind == "nato":
        return nato_members(DEFAULT_NATO_ROSTER if nato_roster is None else nato_roster)
    if selector.kind == "five_eyes":
        return FIVE_EYES
    return frozenset(code.strip().upper() for code in universe if is_known_code(code))


def observed_codes(store: EventStore, statuses: Iterable[VesselStatus] = ()) -> FrozenSet[str]:
    """Flag and EEZ codes seen anywhere in the meeting and status tables."""

    codes = set(store.meeting_frame["vessel_flag"].dropna().astype(str))
    for status in statuses:
        codes.update(code for code in (status.flag, status.eez) if code)
    return frozenset(code.strip().upper() for code in codes if is_known_code(code))


def filter_by_flag(rows: Sequence[T], codes: Iterable[str]) -> List[T]:
    """Rows whose vessel is registered to one of ``codes``."""

    wanted = frozenset(codes)
    return [row for row in rows if _code_of(row, "flag") in wanted]


def filter_by_eez(rows: Sequence[T], codes: Iterable[str]) -> List[T]:
    """Rows whose vessel currently sits inside the EEZ of one of ``codes``."""

    wanted = frozenset(codes)
    return [row for row in rows if _code_of(row, "eez") in wanted]


def is_known_code(code: object) -> bool:
    if code is None or not isinstance(code, str):
        return False
    return code.strip().upper() not in _UNKNOWN_CODES


def _code_of(row: object, attr: str) -> Optional[str]:
    value = getattr(row, attr, None)
    if not is_known_code(value):
        return None
    return str(value).strip().upper()
