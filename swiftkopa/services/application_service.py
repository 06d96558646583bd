"""Admin review service for SwiftKopa.

Reads applications from the repository, normalizes sheet rows into
LoanApplicationRecord objects, computes dashboard statistics, and records
review decisions.

Sheet rows have been written with two key styles over time: spreadsheet
headers ("Full Name", "Loan Amount") and camelCase payload keys ("fullName",
"amount"). Both are accepted.
"""
import logging
from datetime import datetime, timezone

import pandas as pd
from dateutil import parser as date_parser

from swiftkopa.data_structures import ApplicationStatus, LoanApplicationRecord, LoanStats
from swiftkopa.exceptions import RepositoryError, ApplicationNotFoundError
from swiftkopa.result import Result, ErrorType

logger = logging.getLogger(__name__)

FIELD_KEYS = {
    'row_index': ('rowIndex', 'rowNumber', 'Row'),
    'full_name': ('fullName', 'Full Name', 'Name'),
    'email': ('email', 'Email'),
    'loan_type': ('loanType', 'Loan Type'),
    'amount': ('amount', 'loanAmount', 'Loan Amount', 'Amount'),
    'term_months': ('termMonths', 'loanTerm', 'Loan Term', 'Term (Months)'),
    'mpesa_number': ('mpesaNumber', 'M-Pesa Number', 'Mpesa Number'),
    'status': ('status', 'Status'),
    'notes': ('notes', 'Notes'),
    'submitted_at': ('submittedAt', 'Timestamp'),
    'collateral_type': ('collateralType', 'Collateral Type'),
    'asset_value': ('assetValue', 'Asset Value'),
    'documents': ('documents', 'Documents'),
}


def _pick(row, field, default=None):
    for key in FIELD_KEYS[field]:
        if key in row and row[key] not in (None, ""):
            return row[key]
    return default


def _to_number(value, cast=float, default=0):
    if value in (None, ""):
        return default
    try:
        return cast(float(str(value).replace(",", "")))
    except (TypeError, ValueError):
        return default


def parse_timestamp(value):
    """Parse a sheet timestamp into a naive UTC datetime, or None."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_documents(value):
    if not value:
        return []
    if isinstance(value, str):
        # Older rows hold a comma separated list of Drive links
        return [{'fileName': url.strip().rsplit('/', 1)[-1], 'fileUrl': url.strip()}
                for url in value.split(',') if url.strip()]
    return [dict(doc) for doc in value]


def normalize_record(row: dict) -> LoanApplicationRecord:
    """Build a LoanApplicationRecord from either sheet key style."""
    try:
        status = ApplicationStatus.parse(_pick(row, 'status', ''))
    except ValueError:
        logger.warning("Row %s has unknown status %r; treating as pending",
                       _pick(row, 'row_index'), _pick(row, 'status'))
        status = ApplicationStatus.PENDING_REVIEW

    collateral_type = _pick(row, 'collateral_type')
    return LoanApplicationRecord(
        row_index=_to_number(_pick(row, 'row_index'), int, 0),
        full_name=str(_pick(row, 'full_name', '')),
        email=str(_pick(row, 'email', '')),
        loan_type=str(_pick(row, 'loan_type', '')).lower(),
        amount=_to_number(_pick(row, 'amount')),
        term_months=_to_number(_pick(row, 'term_months'), int, 0),
        mpesa_number=str(_pick(row, 'mpesa_number', '')),
        status=status,
        notes=str(_pick(row, 'notes', '')),
        submitted_at=parse_timestamp(_pick(row, 'submitted_at')),
        collateral_type=str(collateral_type) if collateral_type else None,
        asset_value=_to_number(_pick(row, 'asset_value')),
        documents=_parse_documents(_pick(row, 'documents')),
    )


def compute_stats(records) -> LoanStats:
    """Volume and status counts for the dashboard header."""
    if not records:
        return LoanStats()

    df = pd.DataFrame({
        'amount': [r.amount for r in records],
        'status': [r.status.value for r in records],
    })
    counts = df['status'].value_counts()
    pending = df['status'] == ApplicationStatus.PENDING_REVIEW.value

    return LoanStats(
        total_volume=float(df['amount'].sum()),
        pending_volume=float(df.loc[pending, 'amount'].sum()),
        pending_count=int(counts.get(ApplicationStatus.PENDING_REVIEW.value, 0)),
        approved_count=int(counts.get(ApplicationStatus.APPROVED.value, 0)),
        rejected_count=int(counts.get(ApplicationStatus.REJECTED.value, 0)),
        disbursed_count=int(counts.get(ApplicationStatus.DISBURSED.value, 0)),
    )


class ApplicationService:
    """Dashboard operations over an ApplicationRepository."""

    def __init__(self, repository):
        self.repository = repository

    def list_applications(self):
        """All applications, newest first. Rows without a timestamp come last.

        Raises:
            RepositoryError: If the repository cannot be read.
        """
        rows, _ = self.repository.fetch_applications()
        return self._sorted([normalize_record(row) for row in rows])

    @staticmethod
    def _sorted(records):
        dated = [r for r in records if r.submitted_at is not None]
        undated = [r for r in records if r.submitted_at is None]
        dated.sort(key=lambda r: r.submitted_at, reverse=True)
        return dated + undated

    def load_dashboard(self):
        """Return (records, stats) for the admin dashboard.

        Volumes reported by the store are used when present; counts are
        always computed from the rows.
        """
        rows, store_stats = self.repository.fetch_applications()
        records = self._sorted([normalize_record(row) for row in rows])
        stats = compute_stats(records)
        if store_stats:
            stats.total_volume = _to_number(store_stats.get('totalVolume'), float, stats.total_volume)
            stats.pending_volume = _to_number(store_stats.get('pendingVolume'), float, stats.pending_volume)
        return records, stats

    def update_status(self, row_index, status, notes="") -> Result:
        """Record a review decision.

        Returns:
            Result holding the new ApplicationStatus, or a failure describing
            why the store was not updated.
        """
        try:
            status = ApplicationStatus.parse(status)
        except ValueError as e:
            return Result.fail(str(e), ErrorType.VALIDATION)

        try:
            self.repository.update_application(row_index, {'status': status.value, 'notes': notes})
        except ApplicationNotFoundError as e:
            logger.warning("Status update failed: %s", e)
            return Result.fail(e.message, ErrorType.NOT_FOUND)
        except RepositoryError as e:
            logger.warning("Status update for row %s failed: %s", row_index, e)
            return Result.fail(e.message, ErrorType.REPOSITORY)

        logger.info("Application row %s marked %s", row_index, status.value)
        return Result.ok(status)

    def update_notes(self, record: LoanApplicationRecord, notes) -> Result:
        """Save notes without changing the review status."""
        return self.update_status(record.row_index, record.status, notes)
