"""CSV export of buyer leads."""

import csv
import io
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

from .models import Buyer

EXPORT_COLUMNS = [
    ("fullName", "full_name"),
    ("email", "email"),
    ("phone", "phone"),
    ("city", "city"),
    ("propertyType", "property_type"),
    ("bhk", "bhk"),
    ("purpose", "purpose"),
    ("budgetMin", "budget_min"),
    ("budgetMax", "budget_max"),
    ("timeline", "timeline"),
    ("source", "source"),
    ("notes", "notes"),
    ("tags", "tags"),
    ("status", "status"),
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ";".join(str(v) for v in value)
    return str(value)


def export_row(buyer: Union[Buyer, Dict]) -> List[str]:
    row = buyer.to_row() if isinstance(buyer, Buyer) else buyer
    return [_cell(row.get(column)) for _, column in EXPORT_COLUMNS]


def export_buyers_csv(buyers: Iterable[Union[Buyer, Dict]]) -> str:
    """
    Render leads as CSV text.

    Accepts Buyer objects or raw table rows. Every field is quoted and tags
    are joined with ``;``.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for buyer in buyers:
        writer.writerow(export_row(buyer))
    return buffer.getvalue().rstrip("\n")


def export_filename(day: Optional[date] = None) -> str:
    """``buyer-leads-2025-03-05.csv`` for the given (or today's) date."""
    day = day or date.today()
    return f"buyer-leads-{day.isoformat()}.csv"
