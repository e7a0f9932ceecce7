"""
CSV parsing for lead imports.

Turns raw CSV text into a list of row dicts keyed by normalized header
names. Parsing never rejects a row: short rows are padded, extra values are
dropped, and anything else that is wrong with a row is left for validation.
"""

import csv
import io
import re
from typing import Dict, List

WHITESPACE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    """``"  Full Name "`` -> ``"full_name"``"""
    return WHITESPACE.sub("_", header.strip().lower())


def _clean(value: str) -> str:
    # csv.reader has already removed the surrounding quotes; any quote left
    # is part of the value
    return value.strip()


def parse_csv(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into row dicts.

    The first record is the header. Quoted fields may contain commas and
    doubled quotes. Returns an empty list when there is no data row.
    """
    text = text.lstrip("\ufeff").strip()
    if not text:
        return []

    records = list(csv.reader(io.StringIO(text), skipinitialspace=True))
    if len(records) < 2:
        return []

    headers = [normalize_header(h) for h in records[0]]
    rows = []
    for values in records[1:]:
        cleaned = [_clean(v) for v in values]
        cleaned += [""] * (len(headers) - len(cleaned))
        rows.append(dict(zip(headers, cleaned)))
    return rows
