"""Collateral sizing service for SwiftKopa.

Secured loans are limited to a fixed share of the appraised asset value.
The share (loan-to-value ratio) depends only on the asset class and lives in
config.LTV_RATIOS. The minimum appraisal is a wizard rule and is not applied
here.
"""
import math
from fractions import Fraction

from swiftkopa.config import LTV_RATIOS
from swiftkopa.data_structures import CollateralCategory, CollateralLimit
from swiftkopa.services.loan_pricer import check_positive_amount


class CollateralSizer:
    """Computes the maximum principal an asset can secure."""

    def __init__(self, ratios=None):
        # Only tests override the policy table
        self.ratios = dict(LTV_RATIOS if ratios is None else ratios)

    def ratio_for(self, category) -> float:
        category = CollateralCategory.parse(category)
        return self.ratios[category.value]

    def max_loan(self, category, asset_value) -> CollateralLimit:
        """Size a secured loan.

        Args:
            category: CollateralCategory or one of "vehicle", "equipment", "land".
            asset_value: Appraised value of the asset, above zero.

        Returns:
            CollateralLimit whose max_principal is floor(asset_value x ratio),
            computed in exact rational arithmetic so it never rounds up,
            however large the appraisal.

        Raises:
            UnknownCollateralCategory: If category is not a known asset class.
            InvalidAmount: If asset_value is not a positive finite number.
        """
        category = CollateralCategory.parse(category)
        asset_value = check_positive_amount(asset_value, "asset_value")
        ratio = self.ratios[category.value]

        return CollateralLimit(
            collateral_category=category,
            asset_value=asset_value,
            loan_to_value_ratio=ratio,
            max_principal=math.floor(Fraction(asset_value) * Fraction(str(ratio))),
        )


_default_sizer = CollateralSizer()


def max_loan(category, asset_value) -> CollateralLimit:
    """Size a secured loan with the configured LTV table. See CollateralSizer.max_loan."""
    return _default_sizer.max_loan(category, asset_value)
