import os
import sys
import unittest
from unittest.mock import MagicMock

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from swiftkopa.data_structures import BorrowerInfo, CollateralCategory
from swiftkopa.exceptions import RepositoryError
from swiftkopa.services.borrower_service import (
    BorrowerService, normalize_phone, describe_collateral, detect_collateral_change,
)


class TestNormalizePhone(unittest.TestCase):

    def test_local_number(self):
        self.assertEqual(normalize_phone("0712345678"), "254712345678")

    def test_international_forms(self):
        self.assertEqual(normalize_phone("+254 712 345 678"), "254712345678")
        self.assertEqual(normalize_phone("254712345678"), "254712345678")

    def test_numbers_and_empty(self):
        self.assertEqual(normalize_phone(700038822), "700038822")
        self.assertEqual(normalize_phone(None), "")


class TestCollateralDescription(unittest.TestCase):

    def test_describe(self):
        self.assertEqual(describe_collateral(CollateralCategory.LAND, 250000), "land: 250000")
        self.assertEqual(describe_collateral("vehicle", 500000.0), "vehicle: 500000")
        self.assertEqual(describe_collateral(None, 1000), "asset: 1000")

    def test_change_detection_requires_history(self):
        first_time = BorrowerInfo(borrower_id="254712345678")
        self.assertIs(detect_collateral_change(first_time, "land: 1"), first_time)
        self.assertIsNone(detect_collateral_change(None, "land: 1"))

        no_history = BorrowerInfo(borrower_id="254712345678", is_repeat=True)
        self.assertFalse(detect_collateral_change(no_history, "land: 1").collateral_changed)


class TestBorrowerService(unittest.TestCase):

    def setUp(self):
        self.repo = MagicMock()
        self.repo.fetch_borrowers.return_value = [
            {'borrowerId': '0700038822', 'fullName': 'Winnie Mango',
             'email': 'winnie@example.com', 'previousCollateral': 'vehicle: 500000'},
            {'borrowerId': '254711000000', 'fullName': 'Otieno Baraka', 'email': ''},
        ]
        self.service = BorrowerService(self.repo)

    def test_match_on_normalized_number(self):
        info = self.service.check_borrower("+254 700 038 822")
        self.assertTrue(info.is_repeat)
        self.assertEqual(info.borrower_id, "254700038822")
        self.assertEqual(info.full_name, "Winnie Mango")
        self.assertEqual(info.previous_collateral, "vehicle: 500000")
        self.assertFalse(info.docs_reused)
        self.assertFalse(info.collateral_changed)

    def test_match_without_collateral(self):
        info = self.service.check_borrower("0711000000")
        self.assertTrue(info.is_repeat)
        self.assertEqual(info.previous_collateral, "")

    def test_no_match(self):
        info = self.service.check_borrower("0799999999")
        self.assertEqual(info, BorrowerInfo(borrower_id="254799999999"))

    def test_repository_errors_propagate(self):
        self.repo.fetch_borrowers.side_effect = RepositoryError("down")
        with self.assertRaises(RepositoryError):
            self.service.check_borrower("0712345678")


if __name__ == '__main__':
    unittest.main()
