"""
Validation rules for buyer leads.

One rule set serves both entry points:

- INTERACTIVE: the create/edit form. Enforces the name length and accepts
  10-15 digit phone numbers.
- BATCH: CSV import rows. Only requires a name and expects exactly 10 phone
  digits.

Rules run independently and every violation is collected, so a caller can
show all problems with a record at once. Cross-field refinements (BHK for
residential types, budget ordering) follow the required-field checks; the
optional fields (status, notes, tags) are checked last.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .models import (
    BHK_VALUES,
    RESIDENTIAL_TYPES,
    BuyerStatus,
    City,
    LeadSource,
    PropertyType,
    Purpose,
    Timeline,
    enum_values,
    match_enum,
)


EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_DIGITS = re.compile(r"\D")
TAG_SEPARATORS = re.compile(r"[;,]")
# Plain decimal literals only: no exponents, underscores, hex or "inf"
NUMBER_REGEX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

NOTES_MAX_LENGTH = 1000


@dataclass(frozen=True)
class FieldError:
    """A single violation attached to one field."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationContext:
    """Knobs that differ between form entry and CSV import."""
    name: str
    phone_min_digits: int
    phone_max_digits: int
    name_min_length: Optional[int] = None
    name_max_length: Optional[int] = None

    @property
    def phone_message(self) -> str:
        if self.phone_min_digits == self.phone_max_digits:
            return f"Phone must be {self.phone_min_digits} digits"
        return f"Phone must be {self.phone_min_digits}-{self.phone_max_digits} digits"


INTERACTIVE = ValidationContext(
    name="interactive",
    phone_min_digits=10,
    phone_max_digits=15,
    name_min_length=2,
    name_max_length=80,
)

BATCH = ValidationContext(
    name="batch",
    phone_min_digits=10,
    phone_max_digits=10,
)


class ValidationError(Exception):
    """Raised when a record fails validation outside of a batch import."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)

    def errors_by_field(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped


# (field, enum, label) for the required enum columns other than city
REQUIRED_CHOICES = (
    ("property_type", PropertyType, "Property type"),
    ("purpose", Purpose, "Purpose"),
    ("timeline", Timeline, "Timeline"),
    ("source", LeadSource, "Source"),
)


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_phone(value) -> str:
    """Strip everything that is not a digit."""
    return NON_DIGITS.sub("", _text(value))


def parse_number(value) -> Optional[float]:
    """Parse a numeric string; None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _text(value)
        if not NUMBER_REGEX.match(text):
            return None
        number = float(text)
    return number if math.isfinite(number) else None


def _whole_positive(number: float) -> bool:
    return number > 0 and number.is_integer()


def split_tags(value) -> List[str]:
    """
    Turn a tag field into an ordered, duplicate-free list.

    Accepts either a list or a single ``;``/``,`` separated string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = TAG_SEPARATORS.split(value)
    else:
        parts = [str(part) for part in value]

    tags: List[str] = []
    for part in parts:
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _check_name(data: Mapping, context: ValidationContext) -> List[FieldError]:
    name = _text(data.get("full_name"))
    if not name:
        return [FieldError("full_name", "Full name is required")]
    if context.name_min_length and len(name) < context.name_min_length:
        return [FieldError(
            "full_name", f"Full name must be at least {context.name_min_length} characters"
        )]
    if context.name_max_length and len(name) > context.name_max_length:
        return [FieldError(
            "full_name", f"Full name must be at most {context.name_max_length} characters"
        )]
    return []


def _require_phone(data: Mapping) -> List[FieldError]:
    if not _text(data.get("phone")):
        return [FieldError("phone", "Phone is required")]
    return []


def _check_phone(data: Mapping, context: ValidationContext) -> List[FieldError]:
    raw = _text(data.get("phone"))
    if not raw:
        return []
    digits = normalize_phone(raw)
    if not context.phone_min_digits <= len(digits) <= context.phone_max_digits:
        return [FieldError("phone", context.phone_message)]
    return []


def _check_email(data: Mapping) -> List[FieldError]:
    email = _text(data.get("email"))
    if email and not EMAIL_REGEX.match(email):
        return [FieldError("email", "Invalid email format")]
    return []


def _check_city(data: Mapping) -> List[FieldError]:
    city = _text(data.get("city"))
    if not city:
        return [FieldError("city", "City is required")]
    if match_enum(City, city) is None:
        return [FieldError("city", f"City must be one of: {', '.join(enum_values(City))}")]
    return []


def _check_choices(data: Mapping) -> List[FieldError]:
    errors = []
    for name, enum_cls, label in REQUIRED_CHOICES:
        if match_enum(enum_cls, _text(data.get(name)) or None) is None:
            errors.append(FieldError(
                name, f"{label} must be one of: {', '.join(enum_values(enum_cls))}"
            ))
    return errors


def _check_budgets(data: Mapping) -> Tuple[List[FieldError], Dict[str, float]]:
    errors = []
    parsed = {}
    for name, label in (("budget_min", "Budget min"), ("budget_max", "Budget max")):
        raw = data.get(name)
        if _text(raw) == "":
            continue
        number = parse_number(raw)
        if number is None:
            errors.append(FieldError(name, f"{label} must be a number"))
        elif not _whole_positive(number):
            errors.append(FieldError(name, f"{label} must be a positive whole number"))
        else:
            parsed[name] = number
    return errors, parsed


def _check_optional_fields(data: Mapping) -> List[FieldError]:
    errors = []
    status = _text(data.get("status"))
    if status and match_enum(BuyerStatus, status) is None:
        errors.append(FieldError(
            "status", f"Status must be one of: {', '.join(enum_values(BuyerStatus))}"
        ))
    notes = _text(data.get("notes"))
    if len(notes) > NOTES_MAX_LENGTH:
        errors.append(FieldError(
            "notes", f"Notes must be less than {NOTES_MAX_LENGTH} characters"
        ))
    return errors


def _check_tags(data: Mapping) -> List[FieldError]:
    # A tag list is written to CSV joined by ";", so a separator inside one
    # tag would come back as two tags.
    tags = data.get("tags")
    if isinstance(tags, (list, tuple)):
        if any(TAG_SEPARATORS.search(str(tag)) for tag in tags):
            return [FieldError("tags", "Tags cannot contain ';' or ','")]
    return []


def _refine_bhk(data: Mapping) -> List[FieldError]:
    property_type = _text(data.get("property_type")).lower()
    if property_type not in RESIDENTIAL_TYPES:
        return []
    number = parse_number(data.get("bhk"))
    if number is None:
        return [FieldError("bhk", f"BHK is required for {property_type}")]
    if not number.is_integer() or int(number) not in BHK_VALUES:
        return [FieldError(
            "bhk", f"BHK must be one of: {', '.join(str(v) for v in BHK_VALUES)}"
        )]
    return []


def _refine_budget_order(parsed: Dict[str, float]) -> List[FieldError]:
    if "budget_min" in parsed and "budget_max" in parsed:
        if parsed["budget_max"] < parsed["budget_min"]:
            return [FieldError(
                "budget_max", "Budget max must be greater than or equal to budget min"
            )]
    return []


def validate_buyer(data: Mapping, context: ValidationContext = INTERACTIVE) -> List[FieldError]:
    """
    Validate a lead mapping and return every violation found.

    An empty list means the record can be stored. The function is pure:
    validating the same mapping twice gives the same list.
    """
    budget_errors, budgets = _check_budgets(data)

    errors: List[FieldError] = []
    errors += _check_name(data, context)
    errors += _require_phone(data)
    errors += _check_city(data)
    errors += _check_email(data)
    errors += _check_phone(data, context)
    errors += _check_choices(data)
    errors += budget_errors

    # Cross-field refinements
    errors += _refine_budget_order(budgets)
    errors += _refine_bhk(data)

    errors += _check_optional_fields(data)
    errors += _check_tags(data)
    return errors


def validate_row(row: Mapping) -> List[FieldError]:
    """Validate one parsed CSV row."""
    return validate_buyer(row, BATCH)


def validate_form(data: Mapping) -> List[FieldError]:
    """Validate create/edit form input."""
    return validate_buyer(data, INTERACTIVE)


def to_record(data: Mapping, owner_id: Optional[str] = None) -> Dict:
    """
    Convert validated input into the canonical stored form.

    Strings are trimmed, enum values lowercased (cities keep their listed
    spelling), the phone reduced to digits and numeric fields converted to
    integers. BHK is dropped for non-residential property types.
    """
    property_type = match_enum(PropertyType, _text(data.get("property_type")))

    bhk = None
    if property_type in RESIDENTIAL_TYPES:
        number = parse_number(data.get("bhk"))
        bhk = int(number) if number is not None else None

    record = {
        "full_name": _text(data.get("full_name")),
        "email": _text(data.get("email")) or None,
        "phone": normalize_phone(data.get("phone")),
        "city": match_enum(City, _text(data.get("city"))),
        "property_type": property_type,
        "bhk": bhk,
        "purpose": match_enum(Purpose, _text(data.get("purpose"))),
        "budget_min": _to_int(data.get("budget_min")),
        "budget_max": _to_int(data.get("budget_max")),
        "timeline": match_enum(Timeline, _text(data.get("timeline"))),
        "source": match_enum(LeadSource, _text(data.get("source"))),
        "notes": _text(data.get("notes")) or None,
        "tags": split_tags(data.get("tags")),
        "status": match_enum(BuyerStatus, _text(data.get("status")) or BuyerStatus.NEW.value),
    }
    if owner_id:
        record["user_id"] = owner_id
    return record


def _to_int(value) -> Optional[int]:
    if _text(value) == "":
        return None
    number = parse_number(value)
    return int(number) if number is not None else None
