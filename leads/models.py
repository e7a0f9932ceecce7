"""
Buyer lead entity and enumerations.

A buyer lead is a prospective property buyer tracked by a single owner
(the authenticated user who created it). Rows are stored in the hosted
``buyers`` table with snake_case column names; this module converts between
those rows and the ``Buyer`` dataclass.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Type


class City(Enum):
    """Cities the sales team covers."""
    CHANDIGARH = "Chandigarh"
    MOHALI = "Mohali"
    ZIRAKPUR = "Zirakpur"
    PANCHKULA = "Panchkula"
    OTHER = "Other"


class PropertyType(Enum):
    APARTMENT = "apartment"
    VILLA = "villa"
    PLOT = "plot"
    OFFICE = "office"
    SHOP = "shop"
    WAREHOUSE = "warehouse"


class Purpose(Enum):
    INVESTMENT = "investment"
    END_USE = "end-use"


class Timeline(Enum):
    IMMEDIATE = "immediate"
    ONE_TO_THREE_MONTHS = "1-3 months"
    THREE_TO_SIX_MONTHS = "3-6 months"
    SIX_PLUS_MONTHS = "6+ months"


class LeadSource(Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social media"
    ADVERTISEMENT = "advertisement"
    WALK_IN = "walk-in"
    PHONE = "phone"
    OTHER = "other"


class BuyerStatus(Enum):
    """Pipeline stage of a lead. New leads start at ``NEW``."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    VIEWING = "viewing"
    NEGOTIATING = "negotiating"
    CLOSED = "closed"
    LOST = "lost"


BHK_VALUES = (1, 2, 3, 4, 5)

# Property types that must carry a BHK (bedroom count)
RESIDENTIAL_TYPES = {PropertyType.APARTMENT.value, PropertyType.VILLA.value}


def enum_values(enum_cls: Type[Enum]) -> List[str]:
    """Allowed values of an enum, in declaration order."""
    return [member.value for member in enum_cls]


def match_enum(enum_cls: Type[Enum], value: Optional[str]) -> Optional[str]:
    """
    Case-insensitive lookup of an enum value.

    Returns the canonical spelling, or None when the value is not listed.
    """
    if value is None:
        return None
    needle = str(value).strip().lower()
    for member in enum_cls:
        if member.value.lower() == needle:
            return member.value
    return None


@dataclass
class Buyer:
    """A persisted buyer lead."""
    full_name: str
    phone: str
    city: str
    property_type: str
    purpose: str
    timeline: str
    source: str
    status: str = BuyerStatus.NEW.value
    email: Optional[str] = None
    bhk: Optional[int] = None
    budget_min: Optional[int] = None
    budget_max: Optional[int] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    id: Optional[str] = None
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Buyer":
        """Build a Buyer from a ``buyers`` table row."""
        known = {f.name for f in fields(cls)}
        data = {key: value for key, value in row.items() if key in known}
        data["owner_id"] = row.get("user_id", row.get("owner_id"))
        data["tags"] = list(row.get("tags") or [])
        for stamp in ("created_at", "updated_at"):
            data[stamp] = _parse_timestamp(row.get(stamp))
        return cls(**data)

    def to_row(self) -> Dict:
        """
        Column mapping for insert/update.

        Server-assigned columns (id, created_at, updated_at) are omitted
        when unset.
        """
        row = {
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "property_type": self.property_type,
            "bhk": self.bhk,
            "purpose": self.purpose,
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "timeline": self.timeline,
            "source": self.source,
            "notes": self.notes,
            "tags": list(self.tags),
            "status": self.status,
        }
        if self.owner_id:
            row["user_id"] = self.owner_id
        if self.id:
            row["id"] = self.id
        return row

    def add_tag(self, tag: str) -> bool:
        """Append a tag unless it is blank or already present."""
        tag = tag.strip()
        if ";" in tag or "," in tag:
            raise ValueError(f"Tag cannot contain ';' or ',': {tag!r}")
        if not tag or tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def remove_tag(self, tag: str) -> bool:
        if tag not in self.tags:
            return False
        self.tags.remove(tag)
        return True

    @property
    def requires_bhk(self) -> bool:
        return self.property_type in RESIDENTIAL_TYPES


@dataclass
class BuyerFilter:
    """
    Query options for listing an owner's leads.

    ``search`` matches name, phone or email; the other fields are exact
    matches. ``limit=None`` returns every matching lead.
    """
    search: Optional[str] = None
    city: Optional[str] = None
    property_type: Optional[str] = None
    status: Optional[str] = None
    timeline: Optional[str] = None
    page: int = 1
    limit: Optional[int] = None

    MAX_LIMIT = 100

    def __post_init__(self):
        checks = (
            ("city", City),
            ("property_type", PropertyType),
            ("status", BuyerStatus),
            ("timeline", Timeline),
        )
        for name, enum_cls in checks:
            value = getattr(self, name)
            if not value:
                setattr(self, name, None)
                continue
            canonical = match_enum(enum_cls, value)
            if canonical is None:
                raise ValueError(f"Invalid {name} filter: {value!r}")
            setattr(self, name, canonical)

        if self.search is not None:
            self.search = self.search.strip() or None

        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit is not None and not 1 <= self.limit <= self.MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {self.MAX_LIMIT}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * (self.limit or 0)


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    # PostgREST returns ISO 8601, sometimes with a trailing Z
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
