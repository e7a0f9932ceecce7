"""
Pytest configuration and fixtures
"""
import pytest
from unittest.mock import MagicMock

OWNER_ID = "0b6f5c1e-6a43-4c1f-9d1a-2f3b4c5d6e7f"

HEADER = (
    "full_name,email,phone,city,property_type,bhk,purpose,budget_min,"
    "budget_max,timeline,source,notes,tags,status"
)


def csv_line(**overrides):
    """One CSV data line in HEADER order, starting from a valid row."""
    values = {
        "full_name": "Ravi Verma",
        "email": "ravi@example.in",
        "phone": "9876543210",
        "city": "Mohali",
        "property_type": "apartment",
        "bhk": "3",
        "purpose": "investment",
        "budget_min": "5000000",
        "budget_max": "7000000",
        "timeline": "1-3 months",
        "source": "website",
        "notes": "Wants a corner unit",
        "tags": "urgent;premium",
        "status": "new",
    }
    values.update(overrides)
    return ",".join(values[name] for name in HEADER.split(","))


@pytest.fixture
def owner_id():
    return OWNER_ID


@pytest.fixture
def valid_row():
    """A parsed CSV row that passes batch validation"""
    return {
        "full_name": "Ravi Verma",
        "email": "ravi@example.in",
        "phone": "9876543210",
        "city": "Mohali",
        "property_type": "apartment",
        "bhk": "3",
        "purpose": "investment",
        "budget_min": "5000000",
        "budget_max": "7000000",
        "timeline": "1-3 months",
        "source": "website",
        "notes": "",
        "tags": "",
        "status": "",
    }


@pytest.fixture
def valid_form():
    """Form input that passes interactive validation"""
    return {
        "full_name": "Neha Gupta",
        "email": "neha@example.in",
        "phone": "+91 98765-43210",
        "city": "Chandigarh",
        "property_type": "villa",
        "bhk": 4,
        "purpose": "end-use",
        "budget_min": 8000000,
        "budget_max": 12000000,
        "timeline": "immediate",
        "source": "referral",
        "notes": "Needs a garden",
        "tags": ["family", "garden"],
        "status": "contacted",
    }


@pytest.fixture
def mock_gateway():
    """Persistence gateway that echoes inserted rows back with an id"""
    gateway = MagicMock()
    counter = {"n": 0}

    def create_buyer(owner_id, fields):
        counter["n"] += 1
        return {**fields, "id": f"buyer-{counter['n']}", "user_id": owner_id}

    gateway.create_buyer.side_effect = create_buyer
    return gateway


@pytest.fixture
def make_csv():
    """Build CSV text from the standard header plus lines from csv_line()"""
    def build(*lines):
        return "\n".join((HEADER,) + lines)
    return build


@pytest.fixture
def line():
    return csv_line
