"""
Lead Importer - CSV import with per-row validation.

Every row is validated and inserted on its own: a bad row is recorded in
the result and the import carries on with the next one. Only problems with
the file as a whole (unreadable, too many rows, no owner) abort the import.

Usage:
    from database import get_client
    from leads import LeadImporter

    importer = LeadImporter(get_client())
    result = importer.import_csv("leads.csv", owner_id=user_id)

    print(f"Imported: {result.success_count}")
    print(f"Failed rows: {result.failed_count}")
    for error in result.errors:
        print(error["row"], error["field"], error["message"])
"""

import csv
import io
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from database.supabase_client import DatabaseError

from .parser import parse_csv
from .validation import to_record, validate_row

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 200

# Header line is line 1, first data row is line 2
FIRST_DATA_LINE = 2


class LeadImportError(Exception):
    """Raised when an import cannot run at all."""
    pass


@dataclass
class ImportResult:
    """Results from a lead import operation."""
    success_count: int = 0
    failed_count: int = 0
    errors: List[Dict] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return self.success_count + self.failed_count

    def add_error(self, row: int, field_name: str, message: str, data: Dict) -> None:
        self.errors.append({
            "row": row,
            "field": field_name,
            "message": message,
            "data": data,
        })

    def summary(self) -> str:
        return (
            f"Successfully imported {self.success_count} leads. "
            f"{self.failed_count} failed."
        )

    def to_dict(self) -> Dict:
        return {
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "errors": list(self.errors),
        }


TEMPLATE_HEADERS = [
    "full_name",
    "email",
    "phone",
    "city",
    "property_type",
    "bhk",
    "purpose",
    "budget_min",
    "budget_max",
    "timeline",
    "source",
    "notes",
    "tags",
    "status",
]

REQUIRED_COLUMNS = {"full_name", "phone", "city", "property_type", "purpose", "timeline", "source"}

# Alternate header spellings (after normalization) accepted on import.
# Covers the camelCase headers written by the CSV export.
COLUMN_MAPPINGS = {
    # Name variations
    "fullname": "full_name",
    "name": "full_name",
    "buyer_name": "full_name",

    # Email variations
    "email_address": "email",

    # Phone variations
    "phone_number": "phone",
    "mobile": "phone",
    "mobile_number": "phone",

    # Property variations
    "propertytype": "property_type",
    "type": "property_type",

    # Budget variations
    "budgetmin": "budget_min",
    "min_budget": "budget_min",
    "budgetmax": "budget_max",
    "max_budget": "budget_max",

    # Lead source
    "lead_source": "source",
}

TEMPLATE_ROWS = [
    ["John Doe", "john@email.com", "9876543210", "Chandigarh", "apartment", "3",
     "investment", "5000000", "7000000", "1-3 months", "website",
     "Looking for modern apartment", "urgent;premium", "new"],
    ["Jane Smith", "jane.smith@gmail.com", "9123456789", "Mohali", "villa", "4",
     "end-use", "8000000", "12000000", "immediate", "referral",
     "Family of 4 needs spacious villa", "family;spacious", "contacted"],
    ["Rajesh Kumar", "rajesh.k@yahoo.com", "9988776655", "Panchkula", "plot", "",
     "investment", "2000000", "3000000", "3-6 months", "social media",
     "Looking for plot in good location", "investment;commercial", "new"],
    ["Priya Sharma", "priya.sharma@outlook.com", "9876123456", "Zirakpur", "apartment", "2",
     "end-use", "3500000", "4500000", "1-3 months", "advertisement",
     "First time buyer", "first-time;urgent", "qualified"],
    ["Amit Singh", "", "9654321098", "Other", "office", "",
     "investment", "", "", "6+ months", "walk-in",
     "", "", ""],
]


class LeadImporter:
    """
    Imports buyer leads from CSV text into the database.

    Features:
    - Header normalization plus common alias mappings
    - Full per-row validation, reporting every violation
    - Row-level isolation: one row's failure never affects another
    - Enforced row cap checked before anything is written
    """

    def __init__(
        self,
        gateway,
        max_rows: Optional[int] = DEFAULT_MAX_ROWS,
        column_mappings: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the importer.

        Args:
            gateway: Persistence gateway with ``create_buyer(owner_id, fields)``
            max_rows: Maximum data rows per file (None disables the cap)
            column_mappings: Additional header alias mappings
        """
        self.gateway = gateway
        self.max_rows = max_rows
        self.column_mappings = {**COLUMN_MAPPINGS}
        if column_mappings:
            self.column_mappings.update(column_mappings)

    @classmethod
    def from_env(cls, gateway) -> "LeadImporter":
        """Create an importer using LEAD_IMPORT_MAX_ROWS (default 200)."""
        max_rows = int(os.environ.get("LEAD_IMPORT_MAX_ROWS", str(DEFAULT_MAX_ROWS)))
        return cls(gateway, max_rows=max_rows)

    def import_csv(
        self,
        filepath: str,
        owner_id: str,
        encoding: str = "utf-8-sig"  # Handles BOM from Excel exports
    ) -> ImportResult:
        """
        Import leads from a CSV file.

        Raises:
            LeadImportError: If the file is missing or cannot be decoded
        """
        return self.import_text(read_csv_file(filepath, encoding), owner_id)

    def import_text(self, text: str, owner_id: str) -> ImportResult:
        """
        Import leads from CSV text on behalf of ``owner_id``.

        Rows are processed in order, one at a time.

        Returns:
            ImportResult with counts and per-row errors

        Raises:
            LeadImportError: If there is no owner or the file exceeds max_rows
        """
        if not owner_id:
            raise LeadImportError("An owner id is required to import leads")

        rows = parse_csv(text)
        self._check_row_limit(rows)

        result = ImportResult()

        for index, row in enumerate(rows):
            row_num = index + FIRST_DATA_LINE
            mapped = self._map_row(row)

            violations = validate_row(mapped)
            if violations:
                result.failed_count += 1
                for violation in violations:
                    result.add_error(row_num, violation.field, violation.message, row)
                logger.debug("Row %d rejected: %d violation(s)", row_num, len(violations))
                continue

            try:
                self.gateway.create_buyer(owner_id, to_record(mapped, owner_id))
            except DatabaseError as e:
                result.failed_count += 1
                result.add_error(row_num, "database", e.message or "Database insert failed", row)
                logger.warning("Row %d insert failed: %s", row_num, e)
                continue

            result.success_count += 1

        logger.info("Import for owner %s: %s", owner_id, result.summary())
        return result

    def validate_text(self, text: str) -> Tuple[bool, List[str]]:
        """
        Validate CSV text without importing.

        Returns:
            Tuple of (is_valid, list of issues)
        """
        rows = parse_csv(text)
        if not rows:
            return False, ["No data rows found"]

        issues = []
        if self.max_rows is not None and len(rows) > self.max_rows:
            issues.append(f"Too many rows: {len(rows)} (maximum {self.max_rows})")

        present = set(self._map_row(rows[0]))
        missing = REQUIRED_COLUMNS - present
        if missing:
            issues.append(f"Missing required columns: {', '.join(sorted(missing))}")

        for index, row in enumerate(rows):
            for violation in validate_row(self._map_row(row)):
                issues.append(f"Row {index + FIRST_DATA_LINE}: {violation.field}: {violation.message}")

        return len(issues) == 0, issues

    def _check_row_limit(self, rows: List[Dict[str, str]]) -> None:
        if self.max_rows is not None and len(rows) > self.max_rows:
            logger.error("Import rejected: %d rows exceeds limit of %d", len(rows), self.max_rows)
            raise LeadImportError(
                f"CSV has {len(rows)} rows; at most {self.max_rows} can be imported at once"
            )

    def _map_row(self, row: Dict[str, str]) -> Dict[str, str]:
        """Rename alias headers to their canonical column names."""
        mapped = {}
        for header, value in row.items():
            name = self.column_mappings.get(header, header)
            # A canonical column wins over an alias for the same field
            if name in mapped and header != name:
                continue
            mapped[name] = value
        return mapped


def read_csv_file(filepath: str, encoding: str = "utf-8-sig") -> str:
    """Read a CSV file, turning I/O and decoding problems into LeadImportError."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise LeadImportError(f"CSV file not found: {filepath}")

    try:
        return filepath.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise LeadImportError(f"Could not read CSV file {filepath}: {e}") from e


def generate_template() -> str:
    """
    Sample CSV for users preparing an import.

    One header line plus five example rows, every field quoted.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerows(TEMPLATE_ROWS)
    return buffer.getvalue().rstrip("\n")


# CLI interface
def _cli(argv: Optional[List[str]] = None) -> int:
    import argparse

    from database import get_client

    from .export import export_buyers_csv, export_filename

    parser = argparse.ArgumentParser(description="Import and export buyer leads")
    parser.add_argument("command", choices=["import", "validate", "template", "export"])
    parser.add_argument("filepath", nargs="?", help="CSV file to import or validate")
    parser.add_argument("--owner", help="Owner (user) id the leads belong to")
    parser.add_argument("--output", help="Where to write template/export output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    if args.command == "template":
        _write_output(generate_template(), args.output)
        return 0

    if args.command in ("import", "validate") and not args.filepath:
        parser.error(f"{args.command} requires a filepath")
    if args.command in ("import", "export") and not args.owner:
        parser.error(f"{args.command} requires --owner")

    try:
        if args.command == "validate":
            importer = LeadImporter.from_env(gateway=None)
            is_valid, issues = importer.validate_text(read_csv_file(args.filepath))
            if is_valid:
                print("File is valid")
                return 0
            print("Validation issues:")
            for issue in issues:
                print(f"  - {issue}")
            return 1

        client = get_client()

        if args.command == "export":
            buyers = client.list_buyers(args.owner)
            _write_output(export_buyers_csv(buyers), args.output or export_filename())
            return 0

        importer = LeadImporter.from_env(client)
        result = importer.import_csv(args.filepath, owner_id=args.owner)

    except (LeadImportError, DatabaseError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print(result.summary())

    if result.errors:
        print("\nFirst 5 errors:")
        for error in result.errors[:5]:
            print(f"  Row {error['row']} [{error['field']}]: {error['message']}")

    return 0 if result.failed_count == 0 else 1


def _write_output(content: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(content + "\n", encoding="utf-8")
        print(f"Wrote {output}")
    else:
        print(content)


if __name__ == "__main__":
    sys.exit(_cli())
