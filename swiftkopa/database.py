"""SQLite application store for SwiftKopa.

Implements the same repository interface as the Apps Script client so the
dashboard and the wizard can run offline, and so tests have a real store.
"""
import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime

import pandas as pd

from swiftkopa.data_structures import ApplicationStatus
from swiftkopa.exceptions import RepositoryError, ApplicationNotFoundError
from swiftkopa.repository import ApplicationRepository

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class DatabaseManager(ApplicationRepository):
    """Handles all SQLite database operations."""

    def __init__(self, db_name="swiftkopa.db"):
        self.db_name = db_name
        try:
            self.conn = sqlite3.connect(db_name)
        except sqlite3.Error as e:
            raise RepositoryError(f"Cannot open database '{db_name}': {e}") from e
        self._closed = False
        self.create_tables()

    def close(self):
        """Close the database connection."""
        if self.conn and not self._closed:
            self.conn.close()
            self._closed = True

    def __del__(self):
        """Ensure connection is closed on garbage collection."""
        if hasattr(self, "_closed"):
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self):
        """Context manager for database transactions with automatic rollback on failure.

        Usage:
            with db.transaction():
                db.conn.execute(...)
                db.conn.execute(...)
        """
        try:
            yield
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RepositoryError(f"Transaction failed: {str(e)}") from e
        except Exception:
            self.conn.rollback()
            raise

    def create_tables(self):
        with self.transaction():
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS applications (
                    row_index INTEGER PRIMARY KEY AUTOINCREMENT,
                    submitted_at TEXT,
                    borrower_id TEXT,
                    full_name TEXT NOT NULL,
                    email TEXT,
                    mpesa_number TEXT,
                    loan_type TEXT,
                    amount REAL,
                    term_months INTEGER,
                    interest_rate REAL,
                    collateral_type TEXT,
                    collateral_description TEXT,
                    asset_value REAL DEFAULT 0,
                    is_repeat INTEGER DEFAULT 0,
                    docs_reused INTEGER DEFAULT 0,
                    collateral_changed INTEGER DEFAULT 0,
                    status TEXT DEFAULT 'Pending Review',
                    notes TEXT DEFAULT '',
                    documents TEXT DEFAULT '[]'
                )
            """)

    # Application operations
    def submit_application(self, payload, submitted_at=None):
        """Insert a new application and return its row index."""
        submitted_at = submitted_at or datetime.now().strftime(TIMESTAMP_FORMAT)
        # Attachments are not kept locally, only their names
        documents = [{'fileName': f.get('fileName', '')} for f in payload.get('files', [])]

        with self.transaction():
            cursor = self.conn.execute("""
                INSERT INTO applications (
                    submitted_at, borrower_id, full_name, email, mpesa_number, loan_type,
                    amount, term_months, interest_rate, collateral_type, collateral_description,
                    asset_value, is_repeat, docs_reused, collateral_changed, status, documents
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                submitted_at, payload.get('borrowerId'), payload.get('fullName', ''),
                payload.get('email', ''), payload.get('mpesaNumber', ''), payload.get('loanType'),
                payload.get('amount', 0), payload.get('termMonths', 0), payload.get('interestRate'),
                payload.get('collateralType'), payload.get('collateralDescription', ''),
                payload.get('assetValue', 0) or 0, int(bool(payload.get('isRepeat'))),
                int(bool(payload.get('docsReused'))), int(bool(payload.get('collateralChanged'))),
                ApplicationStatus.PENDING_REVIEW.value, json.dumps(documents),
            ))
        logger.info("Stored application row %s for %s", cursor.lastrowid, payload.get('borrowerId'))
        return cursor.lastrowid

    def get_applications_df(self):
        query = """
            SELECT row_index AS rowIndex, submitted_at AS submittedAt, borrower_id AS borrowerId,
                   full_name AS fullName, email, mpesa_number AS mpesaNumber,
                   loan_type AS loanType, amount, term_months AS termMonths,
                   collateral_type AS collateralType, asset_value AS assetValue,
                   status, notes, documents
            FROM applications
            ORDER BY row_index
        """
        return pd.read_sql_query(query, self.conn)

    def fetch_applications(self):
        df = self.get_applications_df()
        if df.empty:
            return [], {'totalVolume': 0, 'pendingVolume': 0}

        df['documents'] = df['documents'].apply(lambda raw: json.loads(raw or '[]'))
        pending = df['status'] == ApplicationStatus.PENDING_REVIEW.value
        stats = {
            'totalVolume': float(df['amount'].sum()),
            'pendingVolume': float(df.loc[pending, 'amount'].sum()),
        }
        return df.to_dict('records'), stats

    def get_application(self, row_index):
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM applications WHERE row_index=?", (row_index,))
        row = cursor.fetchone()
        if row:
            cols = [description[0] for description in cursor.description]
            return dict(zip(cols, row))
        return None

    def update_application(self, row_index, patch):
        columns = {'status': 'status', 'notes': 'notes'}
        updates = {columns[key]: value for key, value in patch.items() if key in columns}
        if not updates:
            return
        if self.get_application(row_index) is None:
            raise ApplicationNotFoundError(row_index)

        if 'status' in updates:
            updates['status'] = ApplicationStatus.parse(updates['status']).value
        assignments = ", ".join(f"{col}=?" for col in updates)
        with self.transaction():
            self.conn.execute(
                f"UPDATE applications SET {assignments} WHERE row_index=?",
                (*updates.values(), row_index),
            )

    def fetch_borrowers(self):
        """Latest details per borrower, newest application wins."""
        cursor = self.conn.cursor()
        cursor.execute("""
            SELECT a.borrower_id, a.full_name, a.email, a.collateral_description
            FROM applications a
            JOIN (
                SELECT borrower_id, MAX(row_index) AS last_row
                FROM applications
                WHERE borrower_id IS NOT NULL AND borrower_id != ''
                GROUP BY borrower_id
            ) latest ON latest.last_row = a.row_index
        """)
        return [
            {
                'borrowerId': borrower_id,
                'fullName': full_name or '',
                'email': email or '',
                'previousCollateral': collateral or '',
            }
            for borrower_id, full_name, email, collateral in cursor.fetchall()
        ]
