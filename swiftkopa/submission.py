"""Builds the payload the applications endpoint expects for a new loan.

The endpoint appends one spreadsheet row per payload and stores attachments
in Drive, so files travel inline as base64 text.
"""
import base64

from swiftkopa.config import MONTHLY_INTEREST_RATE
from swiftkopa.data_structures import DocumentKind
from swiftkopa.exceptions import StepIncompleteError
from swiftkopa.services.borrower_service import normalize_phone
from swiftkopa.wizard import WizardState, needs_collateral_documents, submission_problems


def encode_document(document) -> dict:
    return {
        'base64': base64.b64encode(document.content).decode("ascii"),
        'fileName': document.name,
        'mimeType': document.mime_type,
    }


def interest_rate_percent() -> float:
    percent = round(MONTHLY_INTEREST_RATE * 100, 4)
    return int(percent) if float(percent).is_integer() else percent


def build_payload(state: WizardState) -> dict:
    """Turn a completed wizard state into the submission payload.

    Attachments are left out when a returning borrower chose to reuse the
    documents already on file, except proof of newly pledged collateral.

    Raises:
        StepIncompleteError: If any required field is missing or invalid.
    """
    problems = submission_problems(state)
    if problems:
        raise StepIncompleteError(state.step.value, problems)

    borrower = state.borrower
    docs_reused = state.docs_reused
    documents = state.documents
    if needs_collateral_documents(state):
        documents = [doc for doc in documents if doc.kind in (DocumentKind.ASSET, DocumentKind.PHOTO)]
    elif docs_reused:
        documents = []
    files = [encode_document(doc) for doc in documents]

    return {
        # Borrower identification
        'borrowerId': normalize_phone(state.mpesa_number),
        'fullName': state.full_name.strip(),
        'email': state.email.strip(),
        'mpesaNumber': state.mpesa_number,

        # Repeat borrower flags
        'isRepeat': bool(borrower and borrower.is_repeat),
        'docsReused': docs_reused,
        'collateralChanged': bool(borrower and borrower.collateral_changed),

        # Loan details, under both column names the sheet has used
        'loanType': state.loan_type.value,
        'loanAmount': state.amount,
        'amount': state.amount,
        'loanTerm': state.term_months,
        'termMonths': state.term_months,
        'interestRate': interest_rate_percent(),

        # Collateral
        'collateralType': state.collateral_category.value if state.collateral_category else None,
        'collateralDescription': state.collateral_description,
        'assetValue': state.asset_value,

        'files': files,
    }
