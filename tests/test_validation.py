import os
import sys
import unittest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from swiftkopa.data_structures import DocumentFile, DocumentKind, LoanType
from swiftkopa.result import ErrorType
from swiftkopa import validation


def doc(kind, name="file.pdf"):
    return DocumentFile(kind=kind, name=name, mime_type="application/pdf", content=b"x")


class TestAmountAndTerm(unittest.TestCase):

    def test_amount_in_range(self):
        self.assertTrue(validation.validate_amount(1000))
        self.assertTrue(validation.validate_amount(500000))

    def test_amount_out_of_range(self):
        low = validation.validate_amount(999)
        high = validation.validate_amount(500001)
        self.assertFalse(low)
        self.assertFalse(high)
        self.assertEqual(low.error_type, ErrorType.OUT_OF_RANGE)
        self.assertIn("KES 1,000", low.error)
        self.assertIn("KES 500,000", high.error)

    def test_amount_above_collateral_limit_is_rejected(self):
        """The wizard refuses amounts above the LTV limit instead of clamping."""
        result = validation.validate_amount(300000, max_amount=250000)
        self.assertFalse(result)
        self.assertEqual(result.error_type, ErrorType.ABOVE_COLLATERAL_LIMIT)
        self.assertTrue(validation.validate_amount(250000, max_amount=250000))

    def test_amount_not_a_number(self):
        for bad in (None, "10000", True):
            with self.subTest(amount=bad):
                self.assertEqual(validation.validate_amount(bad).error_type, ErrorType.VALIDATION)

    def test_term_bounds(self):
        self.assertTrue(validation.validate_term(1))
        self.assertTrue(validation.validate_term(12))
        self.assertFalse(validation.validate_term(0))
        self.assertFalse(validation.validate_term(13))
        self.assertFalse(validation.validate_term(3.5))


class TestCollateral(unittest.TestCase):

    def test_valid_collateral_returns_limit(self):
        result = validation.validate_collateral("vehicle", 500000)
        self.assertTrue(result)
        self.assertEqual(result.value.max_principal, 250000)

    def test_missing_category(self):
        self.assertFalse(validation.validate_collateral(None, 500000))

    def test_asset_below_minimum(self):
        result = validation.validate_collateral("land", 9999)
        self.assertFalse(result)
        self.assertIn("KES 10,000", result.error)

    def test_unknown_category(self):
        result = validation.validate_collateral("boat", 50000)
        self.assertFalse(result)
        self.assertIn("boat", result.error)

    def test_minimum_asset_secures_minimum_loan(self):
        """The lowest ratio at the minimum appraisal still clears the minimum loan."""
        result = validation.validate_collateral("equipment", 10000)
        self.assertTrue(result)
        self.assertEqual(result.value.max_principal, 3000)


class TestContactDetails(unittest.TestCase):

    def test_phone_formats(self):
        for good in ("0712345678", "0112345678", "254712345678", "+254712345678", "0712 345 678"):
            with self.subTest(phone=good):
                self.assertTrue(validation.validate_phone(good))
        for bad in ("", "0812345678", "071234567", "07123456789", None):
            with self.subTest(phone=bad):
                self.assertFalse(validation.validate_phone(bad))

    def test_format_phone_input(self):
        self.assertEqual(validation.format_phone_input("+254 712-345-678"), "0712345678")
        self.assertEqual(validation.format_phone_input("07123456789999"), "0712345678")
        self.assertEqual(validation.format_phone_input(""), "")

    def test_name_needs_two_words(self):
        self.assertTrue(validation.validate_name("Winnie Mango"))
        self.assertFalse(validation.validate_name("Winnie"))
        self.assertFalse(validation.validate_name("  "))

    def test_email(self):
        self.assertTrue(validation.validate_email(" winnie@example.com "))
        self.assertEqual(validation.validate_email(" winnie@example.com ").value, "winnie@example.com")
        self.assertFalse(validation.validate_email("winnie@example"))
        self.assertFalse(validation.validate_email(""))

    def test_result_unwrap(self):
        self.assertEqual(validation.validate_name(" Winnie Mango ").unwrap(), "Winnie Mango")
        self.assertEqual(validation.validate_name("W").unwrap_or(""), "")
        with self.assertRaises(ValueError):
            validation.validate_name("W").unwrap()


class TestDocuments(unittest.TestCase):

    def test_unsecured_requirements(self):
        kinds = [req.kind for req in validation.required_documents(LoanType.UNSECURED)]
        self.assertEqual(kinds, [DocumentKind.ID, DocumentKind.INCOME])

    def test_secured_requirements(self):
        kinds = [req.kind for req in validation.required_documents("secured")]
        self.assertEqual(kinds, [DocumentKind.ID, DocumentKind.INCOME,
                                 DocumentKind.ASSET, DocumentKind.PHOTO])

    def test_collateral_only_requirements(self):
        kinds = [req.kind for req in validation.required_documents("secured", collateral_only=True)]
        self.assertEqual(kinds, [DocumentKind.ASSET, DocumentKind.PHOTO])
        self.assertEqual(validation.required_documents("unsecured", collateral_only=True), ())

        docs = [doc(DocumentKind.ASSET), doc(DocumentKind.PHOTO)]
        self.assertTrue(validation.validate_documents("secured", docs, collateral_only=True))
        self.assertFalse(validation.validate_documents("secured", docs))

    def test_missing_documents_are_listed(self):
        result = validation.validate_documents("secured", [doc(DocumentKind.ID)])
        self.assertFalse(result)
        self.assertEqual(result.error_type, ErrorType.MISSING_DOCUMENT)
        self.assertIn("Proof of Income", result.error)
        self.assertIn("Asset Photos", result.error)
        self.assertNotIn("National ID", result.error)

    def test_complete_documents(self):
        docs = [doc(DocumentKind.ID), doc(DocumentKind.INCOME)]
        self.assertTrue(validation.validate_documents("unsecured", docs))


if __name__ == '__main__':
    unittest.main()
