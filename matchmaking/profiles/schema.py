"""
Profile schema for compatibility scoring.

Defines the record compared by the signal engine and the categorical
vocabularies (company size, funding stage) used by the ordinal signals.

Every field except the identifier is optional. A missing value never raises;
it only suppresses the signals that need it.
"""

import math
from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
import re

DateLike = Union[str, date, datetime, int]

LIST_FIELDS = (
    "industry",
    "platforms",
    "technologies",
    "markets",
    "capabilities",
    "needs",
)

NUMERIC_FIELDS = ("employees", "revenue", "last_funding_amount")

# camelCase keys used by the profile store -> attribute names
FIELD_ALIASES = {
    "foundedYear": "founded_year",
    "fundingStage": "funding_stage",
    "lastFundingAmount": "last_funding_amount",
    "lastFundingDate": "last_funding_date",
    "lookingFor": "looking_for",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

_LIST_SPLIT = re.compile(r"[;,|]")


class CompanySize(Enum):
    """Company size categories, ordered from smallest to largest."""
    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["CompanySize"]:
        """Map a free-form size label onto the vocabulary (None if unknown)."""
        key = _vocabulary_key(value)
        if key is None:
            return None
        key = SIZE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def ordinal(self) -> int:
        return list(CompanySize).index(self)


SIZE_ALIASES = {
    "solo": "micro",
    "tiny": "micro",
    "startup": "small",
    "indie": "small",
    "sme": "medium",
    "mid": "medium",
    "mid_size": "medium",
    "midsize": "medium",
    "big": "large",
    "corporate": "enterprise",
    "corporation": "enterprise",
}


class FundingStage(Enum):
    """Funding stages, ordered from earliest to latest."""
    BOOTSTRAP = "bootstrap"
    PRE_SEED = "pre_seed"
    SEED = "seed"
    SERIES_A = "series_a"
    SERIES_B = "series_b"
    SERIES_C = "series_c"
    GROWTH = "growth"
    IPO = "ipo"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["FundingStage"]:
        """Map a free-form funding stage label onto the vocabulary (None if unknown)."""
        key = _vocabulary_key(value)
        if key is None:
            return None
        key = FUNDING_STAGE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def ordinal(self) -> int:
        return list(FundingStage).index(self)


FUNDING_STAGE_ALIASES = {
    "bootstrapped": "bootstrap",
    "self_funded": "bootstrap",
    "preseed": "pre_seed",
    "angel": "pre_seed",
    "seriesa": "series_a",
    "seriesb": "series_b",
    "seriesc": "series_c",
    "series_d": "growth",
    "series_e": "growth",
    "late_stage": "growth",
    "public": "ipo",
    "listed": "ipo",
}


def _vocabulary_key(value: Optional[str]) -> Optional[str]:
    """Normalize a vocabulary label: 'Series A' -> 'series_a'."""
    if value is None:
        return None
    key = re.sub(r"[\s\-]+", "_", str(value).strip().lower())
    return key or None


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _coerce_list(value: Any) -> Tuple[str, ...]:
    """Coerce list-like input (list, tuple, delimited string) to a tuple of strings."""
    if _is_missing(value):
        return ()
    if isinstance(value, str):
        items = _LIST_SPLIT.split(value)
    else:
        items = list(value)
    return tuple(str(item).strip() for item in items if not _is_missing(item) and str(item).strip())


def _coerce_number(value: Any) -> Optional[float]:
    """Finite float or None; booleans and inf / nan spellings are not numbers."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value).strip()


@dataclass(frozen=True)
class Profile:
    """
    Organizational profile compared by the signal engine.

    Attributes:
        id: Stable identifier supplied by the profile store
        name: Company / organization name
        size: Free-form size label (see CompanySize)
        stage: Product / business stage (idea, prototype, ..., mature)
        funding_stage: Funding round label (see FundingStage)
        industry, platforms, technologies, markets: Category lists
        capabilities, needs: What the organization offers / is looking for
        employees, revenue, last_funding_amount: Numeric facts
        founded_year: Year the organization was founded
        last_funding_date: Date of the latest funding round
        pitch, looking_for, description: Free text
    """
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    stage: Optional[str] = None
    funding_stage: Optional[str] = None

    industry: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    technologies: Tuple[str, ...] = ()
    markets: Tuple[str, ...] = ()
    capabilities: Tuple[str, ...] = ()
    needs: Tuple[str, ...] = ()

    employees: Optional[float] = None
    founded_year: Optional[int] = None
    revenue: Optional[float] = None
    last_funding_amount: Optional[float] = None
    last_funding_date: Optional[DateLike] = None

    pitch: Optional[str] = None
    looking_for: Optional[str] = None

    source: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """
        Create a profile from a store record.

        Accepts camelCase or snake_case keys, ignores unknown keys and
        normalizes blanks / NaN to None.

        Raises:
            ValueError: If the record has no id
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            attr = FIELD_ALIASES.get(key, key)
            if attr in known:
                values[attr] = value

        if _is_missing(values.get("id")):
            raise ValueError("Profile record is missing an id")
        values["id"] = str(values["id"]).strip()

        for attr in LIST_FIELDS:
            values[attr] = _coerce_list(values.get(attr))
        for attr in NUMERIC_FIELDS:
            values[attr] = _coerce_number(values.get(attr))

        year = _coerce_number(values.get("founded_year"))
        values["founded_year"] = int(year) if year is not None else None

        funding_date = values.get("last_funding_date")
        values["last_funding_date"] = None if _is_missing(funding_date) else funding_date

        for attr in ("name", "description", "country", "city", "type", "size", "stage",
                     "funding_stage", "pitch", "looking_for", "source", "created_at", "updated_at"):
            values[attr] = _coerce_text(values.get(attr))

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a store record with camelCase keys."""
        reverse_aliases = {v: k for k, v in FIELD_ALIASES.items()}
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            result[reverse_aliases.get(f.name, f.name)] = value
        return result
