"""Services package for SwiftKopa business logic.

The pricer and sizer are pure and have no dependencies; the borrower and
application services work over an ApplicationRepository.
"""

from .loan_pricer import LoanPricer, price
from .collateral_sizer import CollateralSizer, max_loan
from .borrower_service import BorrowerService, normalize_phone
from .application_service import ApplicationService

__all__ = ['LoanPricer', 'price', 'CollateralSizer', 'max_loan',
           'BorrowerService', 'normalize_phone', 'ApplicationService']
