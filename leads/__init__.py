"""
Lead management module for Buyer Leads.

Handles validating, importing, exporting and editing buyer leads.
"""

from .importer import (
    LeadImporter,
    LeadImportError,
    ImportResult,
    generate_template
)
from .models import Buyer, BuyerFilter
from .service import BuyerService
from .validation import FieldError, ValidationError, validate_form, validate_row

__all__ = [
    "LeadImporter",
    "LeadImportError",
    "ImportResult",
    "generate_template",
    "Buyer",
    "BuyerFilter",
    "BuyerService",
    "FieldError",
    "ValidationError",
    "validate_form",
    "validate_row"
]
