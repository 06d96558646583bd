import os
import sys
import unittest
from unittest.mock import MagicMock

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from swiftkopa.data_structures import DocumentFile, DocumentKind, LoanType
from swiftkopa.database import DatabaseManager
from swiftkopa.engine import LoanEngine
from swiftkopa.exceptions import AccessDeniedError, RepositoryError, StepIncompleteError
from swiftkopa.wizard import (
    Step, AttachDocuments, Next, SelectLoanType, SetAmount, SetContact, SetTerm,
)

ADMINS = frozenset({'admin@swiftkopa.co.ke'})


def doc(kind):
    return DocumentFile(kind=kind, name=f"{kind.value}.pdf", mime_type="application/pdf", content=b"x")


def reviewed_state(engine):
    """Drive a fresh unsecured application up to the review step."""
    state = engine.start()
    for event in (
        SelectLoanType(LoanType.UNSECURED), SetAmount(10000), SetTerm(6), Next(),
        AttachDocuments(DocumentKind.ID, (doc(DocumentKind.ID),)),
        AttachDocuments(DocumentKind.INCOME, (doc(DocumentKind.INCOME),)), Next(),
        SetContact("0712345678", "Amina Wanjiru", "amina@example.com"), Next(),
    ):
        state = engine.dispatch(state, event)
    return state


class TestLoanEngine(unittest.TestCase):

    def setUp(self):
        self.repo = MagicMock()
        self.repo.fetch_borrowers.return_value = []
        self.engine = LoanEngine(self.repo, admin_emails=ADMINS)

    def test_quote_and_limit(self):
        self.assertEqual(self.engine.quote(10000, 6).total_repayment, 20000)
        self.assertEqual(self.engine.collateral_limit("land", 333333).max_principal, 199999)

    def test_services_are_lazy(self):
        self.assertIsNone(self.engine._application_service)
        self.assertIs(self.engine.application_service, self.engine.application_service)

    def test_submit(self):
        state = reviewed_state(self.engine)
        self.assertIs(state.step, Step.REVIEW)

        done = self.engine.submit(state)
        self.assertIs(done.step, Step.SUCCESS)
        sent = self.repo.submit_application.call_args.args[0]
        self.assertEqual(sent['borrowerId'], '254712345678')
        self.assertEqual(sent['loanTerm'], 6)
        self.assertEqual(len(sent['files']), 2)

    def test_submit_before_review_sends_nothing(self):
        state = self.engine.dispatch(self.engine.start(), SelectLoanType(LoanType.SECURED))
        with self.assertRaises(StepIncompleteError):
            self.engine.submit(state)
        self.repo.submit_application.assert_not_called()

    def test_submit_failure_keeps_review_state(self):
        self.repo.submit_application.side_effect = RepositoryError("offline")
        state = reviewed_state(self.engine)
        with self.assertRaises(RepositoryError):
            self.engine.submit(state)
        self.assertIs(state.step, Step.REVIEW)

    def test_check_borrower_falls_back_to_new(self):
        self.repo.fetch_borrowers.side_effect = RepositoryError("offline")
        with self.assertLogs('swiftkopa.engine', level='WARNING'):
            state = self.engine.check_borrower(self.engine.start(), "0712345678")
        self.assertFalse(state.is_repeat)
        self.assertEqual(state.borrower.borrower_id, '254712345678')

    def test_check_borrower_returning(self):
        self.repo.fetch_borrowers.return_value = [
            {'borrowerId': '254712345678', 'fullName': 'Amina Wanjiru', 'email': 'amina@example.com'},
        ]
        state = self.engine.check_borrower(self.engine.start(), "0712345678")
        self.assertTrue(state.is_repeat)
        self.assertEqual(state.full_name, 'Amina Wanjiru')

    def test_dashboard_requires_admin(self):
        with self.assertRaises(AccessDeniedError):
            self.engine.dashboard('someone@example.com')
        self.repo.fetch_applications.assert_not_called()

        self.repo.fetch_applications.return_value = ([], {})
        records, stats = self.engine.dashboard(' Admin@SwiftKopa.co.ke ')
        self.assertEqual(records, [])
        self.assertEqual(stats.total_volume, 0)

    def test_update_status_requires_admin(self):
        with self.assertRaises(AccessDeniedError):
            self.engine.update_status(None, 2, 'Approved')
        self.assertTrue(self.engine.update_status('admin@swiftkopa.co.ke', 2, 'Approved'))


class TestEngineOverSqlite(unittest.TestCase):

    def test_second_application_is_recognized(self):
        with DatabaseManager(":memory:") as db:
            engine = LoanEngine(db, admin_emails=ADMINS)
            state = reviewed_state(engine)
            engine.submit(state)

            again = engine.check_borrower(engine.start(), "+254 712 345 678")
            self.assertTrue(again.is_repeat)
            self.assertEqual(again.email, 'amina@example.com')

            records, _ = engine.dashboard('admin@swiftkopa.co.ke')
            self.assertEqual(len(records), 1)
            self.assertEqual(records[0].amount, 10000)


if __name__ == '__main__':
    unittest.main()
