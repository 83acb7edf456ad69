"""
Cookie Registry

One entry per cookie variety. Everything else (DC column names, SC numeric ids,
transfer abbreviations, prices, display order) is derived from COOKIE_REGISTRY.

Key concepts:
- CookieType values are the display names, so a variety reads naturally in reports
- Cookie Share is the only non-physical variety: a donated package that is never
  held by a scout or the troop
- Proceeds are paid per package, with the first N packages of each girl exempt
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class CookieType(str, Enum):
    """Cookie varieties (value = display name)"""
    THIN_MINTS = "Thin Mints"
    CARAMEL_DELITES = "Caramel deLites"
    PEANUT_BUTTER_PATTIES = "Peanut Butter Patties"
    PEANUT_BUTTER_SANDWICH = "Peanut Butter Sandwich"
    TREFOILS = "Trefoils"
    ADVENTUREFULS = "Adventurefuls"
    LEMONADES = "Lemonades"
    EXPLOREMORES = "Exploremores"
    CARAMEL_CHOCOLATE_CHIP = "Caramel Chocolate Chip"
    COOKIE_SHARE = "Cookie Share"   # Donation, never physical


@dataclass(frozen=True)
class CookieInfo:
    cookie: CookieType
    price: float
    is_physical: bool
    dc_column: Optional[str]         # DC export header (None = not exported)
    sc_api_id: Optional[int]         # SC numeric cookie id
    sc_abbr: Optional[str]           # SC transfer abbreviation
    sort_order: int
    name_variations: Tuple[str, ...] = field(default_factory=tuple)


COOKIE_REGISTRY: Tuple[CookieInfo, ...] = (
    CookieInfo(CookieType.THIN_MINTS, 6.0, True, "Thin Mints", 4, "TM", 0, ("Thin Mint", "Thin Mints")),
    CookieInfo(CookieType.CARAMEL_DELITES, 6.0, True, "Caramel deLites", 1, "CD", 1, ("Caramel deLite", "Caramel deLites")),
    CookieInfo(CookieType.PEANUT_BUTTER_PATTIES, 6.0, True, "Peanut Butter Patties", 2, "PBP", 2,
               ("Peanut Butter Patty", "Peanut Butter Patties")),
    CookieInfo(CookieType.PEANUT_BUTTER_SANDWICH, 6.0, True, "Peanut Butter Sandwich", 5, "PBS", 3,
               ("Peanut Butter Sandwich", "Peanut Butter Sandwiches")),
    CookieInfo(CookieType.TREFOILS, 6.0, True, "Trefoils", 3, "TRE", 4, ("Trefoil", "Trefoils")),
    CookieInfo(CookieType.ADVENTUREFULS, 6.0, True, "Adventurefuls", 48, "ADV", 5, ("Adventureful", "Adventurefuls")),
    CookieInfo(CookieType.LEMONADES, 6.0, True, "Lemonades", 34, "LEM", 6, ("Lemonade", "Lemonades")),
    CookieInfo(CookieType.EXPLOREMORES, 6.0, True, "Exploremores", 56, "EXP", 7, ("Exploremore", "Exploremores")),
    CookieInfo(CookieType.CARAMEL_CHOCOLATE_CHIP, 7.0, True, "Caramel Chocolate Chip", 52, "GFC", 8,
               ("Caramel Chocolate Chip", "Caramel Chocolate Chips")),
    CookieInfo(CookieType.COOKIE_SHARE, 6.0, False, None, 37, "CShare", 9, ("Cookie Share",)),
)


# =============================================================================
# Derived lookups
# =============================================================================

COOKIE_INFO: Dict[CookieType, CookieInfo] = {e.cookie: e for e in COOKIE_REGISTRY}

COOKIE_ORDER: List[CookieType] = [e.cookie for e in sorted(COOKIE_REGISTRY, key=lambda e: e.sort_order)]

PHYSICAL_COOKIE_TYPES: List[CookieType] = [c for c in COOKIE_ORDER if COOKIE_INFO[c].is_physical]

# DC export column → variety
DC_COOKIE_COLUMNS: Dict[str, CookieType] = {
    COOKIE_INFO[c].dc_column: c for c in COOKIE_ORDER if COOKIE_INFO[c].dc_column
}

# SC numeric id (as string) → variety
COOKIE_ID_MAP: Dict[str, CookieType] = {
    str(e.sc_api_id): e.cookie for e in COOKIE_REGISTRY if e.sc_api_id is not None
}

# SC transfer abbreviation → variety
COOKIE_ABBR_MAP: Dict[str, CookieType] = {
    e.sc_abbr: e.cookie for e in COOKIE_REGISTRY if e.sc_abbr
}

_NAME_LOOKUP: Dict[str, CookieType] = {}
for _entry in COOKIE_REGISTRY:
    _NAME_LOOKUP[_entry.cookie.name.lower()] = _entry.cookie
    _NAME_LOOKUP[_entry.cookie.value.lower()] = _entry.cookie
    for _name in _entry.name_variations:
        _NAME_LOOKUP[_name.lower()] = _entry.cookie


# =============================================================================
# Proceeds policy
# =============================================================================

PROCEEDS_EXEMPT_PACKAGES = 50

# (minimum per-girl average, rate), highest tier first
PROCEEDS_TIERS: Tuple[Tuple[int, float], ...] = (
    (350, 0.95),
    (200, 0.90),
    (0, 0.85),
)


def proceeds_rate_for_pga(per_girl_average: float) -> float:
    """Proceeds rate for a troop's per-girl average (PGA)"""
    for minimum, rate in PROCEEDS_TIERS:
        if per_girl_average >= minimum:
            return rate
    return PROCEEDS_TIERS[-1][1]


# =============================================================================
# Helpers
# =============================================================================

Varieties = Dict[CookieType, int]


def normalize_cookie_name(name: Any) -> Optional[CookieType]:
    """Resolve a display name, enum key, singular/plural variation or SC abbreviation"""
    if isinstance(name, CookieType):
        return name
    if name is None:
        return None
    s = re.sub(r"\s+", " ", str(name)).strip()
    if not s:
        return None
    if s in COOKIE_ABBR_MAP:
        return COOKIE_ABBR_MAP[s]
    return _NAME_LOOKUP.get(s.lower())


def price_of(cookie: CookieType) -> float:
    return COOKIE_INFO[cookie].price


def calculate_revenue(varieties: Mapping[CookieType, int]) -> float:
    """Retail value of a variety mapping"""
    return float(sum(price_of(c) * n for c, n in varieties.items() if n))


def physical_only(varieties: Mapping[CookieType, int]) -> Varieties:
    return {c: n for c, n in varieties.items() if c != CookieType.COOKIE_SHARE and n}


def sum_physical(varieties: Mapping[CookieType, int]) -> int:
    return sum(n for c, n in varieties.items() if c != CookieType.COOKIE_SHARE)


def add_varieties(target: Varieties, source: Mapping[CookieType, int], sign: int = 1) -> None:
    for cookie, count in source.items():
        if count:
            target[cookie] = target.get(cookie, 0) + sign * count


def ordered_varieties(varieties: Mapping[CookieType, int]) -> Varieties:
    """Copy in display order, dropping zero counts"""
    return {c: varieties[c] for c in COOKIE_ORDER if varieties.get(c)}


def varieties_to_dict(varieties: Mapping[CookieType, int]) -> Dict[str, int]:
    return {c.value: n for c, n in ordered_varieties(varieties).items()}


def build_cookie_id_map(extra: Optional[Mapping[Any, Any]] = None) -> Dict[str, CookieType]:
    """
    Merge a season-specific id map (SC id → name) over the built-in ids.
    Entries whose names cannot be resolved are ignored.
    """
    id_map = dict(COOKIE_ID_MAP)
    for key, value in (extra or {}).items():
        cookie = normalize_cookie_name(value)
        if cookie is not None:
            id_map[str(key)] = cookie
    return id_map

