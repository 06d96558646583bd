"""Returning borrower lookup for SwiftKopa.

Borrowers are identified by their M-Pesa number. Numbers are compared in
international form (2547XXXXXXXX) so that 0712..., +254712... and
254 712 ... all match the same person.
"""
import logging
import re
from dataclasses import replace

from swiftkopa.data_structures import BorrowerInfo

logger = logging.getLogger(__name__)


def normalize_phone(phone) -> str:
    """Normalize a phone number: 07XXXXXXXX -> 2547XXXXXXXX."""
    digits = re.sub(r"\D", "", str(phone or ""))
    if digits.startswith("0"):
        digits = "254" + digits[1:]
    return digits


def describe_collateral(category, asset_value) -> str:
    """Collateral summary stored with an application, e.g. 'vehicle: 500000'."""
    label = getattr(category, "value", category) or "asset"
    if isinstance(asset_value, float) and asset_value.is_integer():
        asset_value = int(asset_value)
    return f"{label}: {asset_value}"


def detect_collateral_change(borrower: BorrowerInfo, collateral_description: str) -> BorrowerInfo:
    """Flag a repeat borrower whose pledged collateral differs from last time.

    First-time borrowers and repeat borrowers without collateral on file are
    returned unchanged.
    """
    if borrower is None or not borrower.is_repeat or not borrower.previous_collateral:
        return borrower
    changed = borrower.previous_collateral != collateral_description
    return replace(borrower, collateral_changed=changed)


class BorrowerService:
    """Matches a phone number against borrowers already on file."""

    def __init__(self, repository):
        """Initialize BorrowerService.

        Args:
            repository: ApplicationRepository providing fetch_borrowers().
        """
        self.repository = repository

    def find_borrower(self, phone):
        """Return the stored borrower record for a phone number, or None."""
        normalized_id = normalize_phone(phone)
        for record in self.repository.fetch_borrowers():
            if normalize_phone(record.get('borrowerId', '')) == normalized_id:
                return record
        return None

    def check_borrower(self, phone) -> BorrowerInfo:
        """Look up a borrower by phone number.

        Returns:
            BorrowerInfo with is_repeat=True and the details on file when the
            number matches, otherwise a blank record for the normalized number.

        Raises:
            RepositoryError: If the borrower list cannot be fetched.
        """
        normalized_id = normalize_phone(phone)
        match = self.find_borrower(phone)

        if match:
            info = BorrowerInfo(
                borrower_id=normalized_id,
                full_name=match.get('fullName', '') or '',
                email=match.get('email', '') or '',
                is_repeat=True,
                previous_collateral=match.get('previousCollateral', '') or '',
            )
        else:
            info = BorrowerInfo(borrower_id=normalized_id)

        logger.info("Borrower check for %s: match=%s", normalized_id, bool(match))
        return info
