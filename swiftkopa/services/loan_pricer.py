"""Loan pricing service for SwiftKopa.

Prices a flat-interest loan: interest is charged every month on the full
principal, then capped by the duplum rule so that total interest never
exceeds the principal.

    raw_interest     = principal x MONTHLY_INTEREST_RATE x term_months
    capped_interest  = min(raw_interest, principal)
    total_repayment  = principal + capped_interest
    monthly          = total_repayment / term_months

Amounts are not rounded to whole shillings here; that belongs to display
(see formatting).
"""
import math
import numbers
from decimal import Decimal

from swiftkopa.config import MONTHLY_INTEREST_RATE
from swiftkopa.data_structures import LoanTerms
from swiftkopa.exceptions import InvalidAmount, InvalidTerm


def check_positive_amount(amount, field="principal"):
    """Return `amount` as a float, or raise InvalidAmount.

    Booleans, NaN and infinities are rejected along with non-positive values.
    """
    if isinstance(amount, bool) or not isinstance(amount, numbers.Real):
        raise InvalidAmount(amount, field)
    value = float(amount)
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount(amount, field)
    return value


def check_term(term_months):
    if isinstance(term_months, bool) or not isinstance(term_months, numbers.Integral):
        raise InvalidTerm(term_months)
    if term_months <= 0:
        raise InvalidTerm(term_months)
    return int(term_months)


class LoanPricer:
    """Computes full repayment terms for a principal and a term.

    The pricer is stateless; one instance can be shared freely. It does not
    apply the 1-12 month product range: any positive whole term is priced.
    """

    monthly_rate = MONTHLY_INTEREST_RATE

    def price(self, principal, term_months) -> LoanTerms:
        """Price a loan.

        Args:
            principal: Amount borrowed. Must be a finite number above zero.
            term_months: Repayment term in whole months. Must be above zero.

        Returns:
            A LoanTerms with both the uncapped and capped interest.

        Raises:
            InvalidAmount: If principal is not a positive finite number.
            InvalidTerm: If term_months is not a positive integer.
        """
        principal = check_positive_amount(principal, "principal")
        term_months = check_term(term_months)

        # Exact decimal factor: in binary floats 3 x 0.2 x 5 comes out above 3
        interest_factor = Decimal(str(self.monthly_rate)) * term_months
        raw_interest = float(Decimal(principal) * interest_factor)

        # Duplum rule: interest may equal but never exceed the principal.
        # raw_interest > principal exactly when rate x term > 1.
        interest_cap_applied = interest_factor > 1
        capped_interest = min(raw_interest, principal)
        total_repayment = principal + capped_interest

        return LoanTerms(
            principal=principal,
            monthly_rate=self.monthly_rate,
            term_months=term_months,
            raw_interest=raw_interest,
            capped_interest=capped_interest,
            interest_cap_applied=interest_cap_applied,
            total_repayment=total_repayment,
            monthly_installment=total_repayment / term_months,
        )


_default_pricer = LoanPricer()


def price(principal, term_months) -> LoanTerms:
    """Price a loan with the system-wide monthly rate. See LoanPricer.price."""
    return _default_pricer.price(principal, term_months)
