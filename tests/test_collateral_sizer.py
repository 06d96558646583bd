"""Tests for CollateralSizer loan-to-value limits."""
import math
import os
import sys
import unittest
from fractions import Fraction

from hypothesis import given, strategies as st

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from swiftkopa.config import LTV_RATIOS
from swiftkopa.data_structures import CollateralCategory
from swiftkopa.exceptions import InvalidAmount, UnknownCollateralCategory
from swiftkopa.services.collateral_sizer import CollateralSizer, max_loan

categories = st.sampled_from(list(CollateralCategory))
asset_values = st.floats(min_value=0.01, allow_nan=False, allow_infinity=False)


def exact_limit(category, value):
    return Fraction(value) * Fraction(str(LTV_RATIOS[category.value]))


class TestMaxLoanExamples(unittest.TestCase):

    def test_vehicle_half_value(self):
        limit = max_loan("vehicle", 500000)
        self.assertEqual(limit.max_principal, 250000)
        self.assertEqual(limit.loan_to_value_ratio, 0.50)
        self.assertIs(limit.collateral_category, CollateralCategory.VEHICLE)

    def test_land_floors_fraction(self):
        """333,333 x 0.60 = 199,999.8 floors to 199,999."""
        self.assertEqual(max_loan("land", 333333).max_principal, 199999)

    def test_equipment_ratio(self):
        self.assertEqual(max_loan(CollateralCategory.EQUIPMENT, 100000).max_principal, 30000)

    def test_exact_products_are_not_rounded_down(self):
        """Products that are whole numbers in decimal stay whole."""
        self.assertEqual(max_loan("land", 5).max_principal, 3)
        self.assertEqual(max_loan("equipment", 10).max_principal, 3)
        self.assertEqual(max_loan("land", 10000).max_principal, 6000)

    def test_no_minimum_asset_value(self):
        """Small appraisals are sized; the wizard decides if they are enough."""
        self.assertEqual(max_loan("vehicle", 1).max_principal, 0)

    def test_huge_appraisal_never_rounds_up(self):
        """1e30 x 0.6 has more digits than a default decimal context keeps."""
        limit = max_loan("land", 1e30)
        self.assertEqual(limit.max_principal, math.floor(Fraction(1e30) * Fraction(3, 5)))
        self.assertEqual(limit.max_principal, 600000000000000011930774903193)

    def test_max_principal_is_int(self):
        self.assertIsInstance(max_loan("land", 333333.33).max_principal, int)

    def test_as_dict_uses_plain_category(self):
        data = max_loan("vehicle", 500000).as_dict()
        self.assertEqual(data['collateral_category'], "vehicle")


class TestMaxLoanErrors(unittest.TestCase):

    def test_unknown_category(self):
        with self.assertRaises(UnknownCollateralCategory) as ctx:
            max_loan("boat", 10000)
        self.assertEqual(ctx.exception.category, "boat")

    def test_category_is_case_sensitive(self):
        """'Vehicle' is treated as a typo, not silently accepted."""
        for bad in ("Vehicle", " land", "", None, 1):
            with self.subTest(category=bad):
                with self.assertRaises(UnknownCollateralCategory):
                    max_loan(bad, 10000)

    def test_non_positive_asset_value(self):
        for bad in (0, -100, float('nan')):
            with self.subTest(asset_value=bad):
                with self.assertRaises(InvalidAmount) as ctx:
                    max_loan("land", bad)
                self.assertEqual(ctx.exception.field, "asset_value")


class TestSizerPolicy(unittest.TestCase):

    def test_ratio_table(self):
        sizer = CollateralSizer()
        self.assertEqual(sizer.ratio_for("vehicle"), 0.50)
        self.assertEqual(sizer.ratio_for("equipment"), 0.30)
        self.assertEqual(sizer.ratio_for("land"), 0.60)

    def test_custom_ratio_table(self):
        sizer = CollateralSizer(ratios={"vehicle": 0.4, "equipment": 0.3, "land": 0.6})
        self.assertEqual(sizer.max_loan("vehicle", 1000).max_principal, 400)


class TestMaxLoanProperties(unittest.TestCase):

    @given(categories, asset_values)
    def test_matches_floor_of_product(self, category, value):
        self.assertEqual(max_loan(category, value).max_principal, math.floor(exact_limit(category, value)))

    @given(categories, asset_values)
    def test_never_exceeds_exact_product(self, category, value):
        max_principal = max_loan(category, value).max_principal
        self.assertLessEqual(max_principal, exact_limit(category, value))
        self.assertGreater(max_principal + 1, exact_limit(category, value))

    @given(categories, asset_values)
    def test_never_exceeds_asset_value(self, category, value):
        limit = max_loan(category, value)
        self.assertLessEqual(limit.max_principal, value)

    @given(categories, asset_values)
    def test_repeat_calls_are_identical(self, category, value):
        self.assertEqual(max_loan(category, value), max_loan(category.value, value))


if __name__ == '__main__':
    unittest.main()
