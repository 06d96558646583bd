"""Caller-side input checks for the loan application wizard.

These rules sit on top of the pricing engine: the engine prices any positive
amount and term, while the product only offers 1,000-500,000 over 1-12
months. Every check returns a Result so the wizard can show the message next
to the offending field.
"""
import re
import numbers

from swiftkopa.config import (
    MIN_LOAN_AMOUNT, MAX_LOAN_AMOUNT,
    MIN_TERM_MONTHS, MAX_TERM_MONTHS,
    MIN_ASSET_VALUE,
)
from swiftkopa.data_structures import (
    DocumentKind, DocumentRequirement, LoanType,
)
from swiftkopa.exceptions import ValidationError
from swiftkopa.formatting import format_currency
from swiftkopa.result import Result, ErrorType
from swiftkopa.services.collateral_sizer import max_loan

# Kenyan mobile numbers: 07XXXXXXXX, 01XXXXXXXX, 2547..., +2547...
PHONE_PATTERN = re.compile(r"^(0[17]\d{8}|254[17]\d{8}|\+254[17]\d{8})$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_BASE_DOCUMENTS = (
    DocumentRequirement(DocumentKind.ID, "National ID", "Front and back of your ID card"),
    DocumentRequirement(DocumentKind.INCOME, "Proof of Income",
                        "Payslip, bank statement, or M-Pesa statement"),
)

_SECURED_DOCUMENTS = (
    DocumentRequirement(DocumentKind.ASSET, "Asset Documents",
                        "Logbook, title deed, or ownership proof"),
    DocumentRequirement(DocumentKind.PHOTO, "Asset Photos", "Clear photos of the asset",
                        accept="image/*", multiple=True),
)


def _is_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_amount(amount, max_amount=None) -> Result:
    """Check a requested amount against the product range and an optional limit.

    Amounts above the collateral limit are refused rather than clamped.
    """
    if not _is_number(amount):
        return Result.fail("Enter a loan amount", ErrorType.VALIDATION)
    if amount < MIN_LOAN_AMOUNT:
        return Result.fail(
            f"Minimum loan amount is {format_currency(MIN_LOAN_AMOUNT)}", ErrorType.OUT_OF_RANGE
        )
    if amount > MAX_LOAN_AMOUNT:
        return Result.fail(
            f"Maximum loan amount is {format_currency(MAX_LOAN_AMOUNT)}", ErrorType.OUT_OF_RANGE
        )
    if max_amount is not None and amount > max_amount:
        return Result.fail(
            f"Your collateral supports at most {format_currency(max_amount)}",
            ErrorType.ABOVE_COLLATERAL_LIMIT,
        )
    return Result.ok(amount)


def validate_term(term_months) -> Result:
    if isinstance(term_months, bool) or not isinstance(term_months, numbers.Integral):
        return Result.fail("Choose a repayment period", ErrorType.VALIDATION)
    if not MIN_TERM_MONTHS <= term_months <= MAX_TERM_MONTHS:
        return Result.fail(
            f"Repayment period must be {MIN_TERM_MONTHS}-{MAX_TERM_MONTHS} months",
            ErrorType.OUT_OF_RANGE,
        )
    return Result.ok(int(term_months))


def validate_collateral(category, asset_value) -> Result:
    """Check that the asset can secure at least the minimum loan.

    Returns:
        Result holding the CollateralLimit on success.
    """
    if category is None:
        return Result.fail("Select a collateral type", ErrorType.VALIDATION)
    if not _is_number(asset_value) or asset_value < MIN_ASSET_VALUE:
        return Result.fail(
            f"Minimum asset value is {format_currency(MIN_ASSET_VALUE)}", ErrorType.OUT_OF_RANGE
        )
    try:
        limit = max_loan(category, asset_value)
    except ValidationError as e:
        return Result.fail(e.message, ErrorType.VALIDATION)
    if limit.max_principal < MIN_LOAN_AMOUNT:
        return Result.fail(
            f"This asset secures less than the minimum loan of {format_currency(MIN_LOAN_AMOUNT)}",
            ErrorType.OUT_OF_RANGE,
        )
    return Result.ok(limit)


def format_phone_input(value: str) -> str:
    """Normalize what the borrower types into a 10 digit local number."""
    cleaned = re.sub(r"\D", "", value or "")
    if cleaned.startswith("254"):
        cleaned = "0" + cleaned[3:]
    return cleaned[:10]


def validate_phone(phone: str) -> Result:
    cleaned = re.sub(r"\s", "", phone or "")
    if not PHONE_PATTERN.match(cleaned):
        return Result.fail("Enter a valid M-Pesa number", ErrorType.VALIDATION)
    return Result.ok(cleaned)


def validate_name(full_name: str) -> Result:
    name = (full_name or "").strip()
    if len(name) < 3 or len(name.split()) < 2:
        return Result.fail("Enter your full name as on your ID", ErrorType.VALIDATION)
    return Result.ok(name)


def validate_email(email: str) -> Result:
    address = (email or "").strip()
    if not EMAIL_PATTERN.match(address):
        return Result.fail("Enter a valid email address", ErrorType.VALIDATION)
    return Result.ok(address)


def required_documents(loan_type, collateral_only=False):
    """Documents a borrower must attach for the given loan type.

    A returning borrower who reuses their documents but pledges new
    collateral only uploads the asset documents and photos.
    """
    if LoanType(loan_type) is not LoanType.SECURED:
        return () if collateral_only else _BASE_DOCUMENTS
    if collateral_only:
        return _SECURED_DOCUMENTS
    return _BASE_DOCUMENTS + _SECURED_DOCUMENTS


def validate_documents(loan_type, documents, collateral_only=False) -> Result:
    attached = {doc.kind for doc in documents}
    missing = [req.label for req in required_documents(loan_type, collateral_only)
               if req.required and req.kind not in attached]
    if missing:
        return Result.fail(f"Missing documents: {', '.join(missing)}", ErrorType.MISSING_DOCUMENT)
    return Result.ok(tuple(documents))

