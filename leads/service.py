"""
Form-driven lead operations.

``BuyerService`` is what the create/edit screens call: it validates form
input with the interactive rules, converts it to the stored form and hands
it to the persistence gateway with the owner id supplied by the caller.
"""

import logging
from typing import Dict, List, Mapping, Optional

from .models import Buyer, BuyerFilter
from .validation import ValidationError, to_record, validate_form

logger = logging.getLogger(__name__)


class BuyerService:
    """
    Create, edit, fetch, list and delete an owner's leads.

    Usage:
        service = BuyerService(get_client())
        buyer = service.create(owner_id, form_data)
    """

    def __init__(self, gateway):
        self.gateway = gateway

    def create(self, owner_id: str, form: Mapping) -> Buyer:
        """
        Validate and store a new lead.

        Raises:
            ValidationError: If the form data breaks any rule
            DatabaseError: If the insert fails
        """
        record = self._clean(owner_id, form)
        row = self.gateway.create_buyer(owner_id, record)
        logger.info("Lead for %s created", record["full_name"])
        return Buyer.from_row(row)

    def update(self, buyer_id: str, owner_id: str, form: Mapping) -> Buyer:
        """
        Replace every mutable field of an existing lead.

        The id and owner never change; fields missing from ``form`` are
        cleared, not kept.
        """
        record = self._clean(owner_id, form)
        row = self.gateway.update_buyer(buyer_id, owner_id, record)
        logger.info("Lead %s updated", buyer_id)
        return Buyer.from_row(row)

    def delete(self, buyer_id: str, owner_id: str) -> bool:
        deleted = self.gateway.delete_buyer(buyer_id, owner_id)
        if deleted:
            logger.info("Lead %s deleted", buyer_id)
        else:
            logger.warning("Lead %s not found for owner %s", buyer_id, owner_id)
        return deleted

    def get(self, buyer_id: str, owner_id: str) -> Optional[Buyer]:
        row = self.gateway.get_buyer(buyer_id, owner_id)
        return Buyer.from_row(row) if row else None

    def list(self, owner_id: str, filters: Optional[BuyerFilter] = None) -> List[Buyer]:
        return [Buyer.from_row(row) for row in self.gateway.list_buyers(owner_id, filters)]

    def _clean(self, owner_id: str, form: Mapping) -> Dict:
        if not owner_id:
            raise ValueError("owner_id is required")

        errors = validate_form(form)
        if errors:
            logger.debug("Form rejected: %s", [e.field for e in errors])
            raise ValidationError(errors)
        return to_record(form, owner_id)
