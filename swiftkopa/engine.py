"""Business logic engine for SwiftKopa.

This module provides the LoanEngine class, a facade over the focused
service classes in swiftkopa/services/ and the wizard state machine.

Service Classes:
    - LoanPricer: flat-rate pricing with the duplum cap
    - CollateralSizer: loan-to-value limits for secured loans
    - BorrowerService: returning borrower lookup
    - ApplicationService: admin review dashboard
"""
import logging

from swiftkopa.auth import require_admin
from swiftkopa.data_structures import BorrowerInfo
from swiftkopa.exceptions import RepositoryError
from swiftkopa.services import LoanPricer, CollateralSizer, BorrowerService, ApplicationService
from swiftkopa.services.borrower_service import normalize_phone
from swiftkopa.submission import build_payload
from swiftkopa import wizard

logger = logging.getLogger(__name__)


class LoanEngine:
    """Sequences pricing, sizing, the wizard and the repository.

    The pricer and sizer never see the repository; only submission and the
    admin operations use it.

    Attributes:
        repository: ApplicationRepository used for lookups and writes.
        pricer: LoanPricer instance.
        sizer: CollateralSizer instance.
        borrower_service: BorrowerService instance (lazy-loaded).
        application_service: ApplicationService instance (lazy-loaded).
    """

    def __init__(self, repository, admin_emails=None):
        self.repository = repository
        self.admin_emails = admin_emails
        self.pricer = LoanPricer()
        self.sizer = CollateralSizer()
        self._borrower_service = None
        self._application_service = None

    @property
    def borrower_service(self):
        """Lazy-load BorrowerService instance."""
        if self._borrower_service is None:
            self._borrower_service = BorrowerService(self.repository)
        return self._borrower_service

    @property
    def application_service(self):
        """Lazy-load ApplicationService instance."""
        if self._application_service is None:
            self._application_service = ApplicationService(self.repository)
        return self._application_service

    # Pricing
    def quote(self, amount, term_months):
        return self.pricer.price(amount, term_months)

    def collateral_limit(self, category, asset_value):
        return self.sizer.max_loan(category, asset_value)

    # Wizard
    def start(self):
        return wizard.WizardState()

    def dispatch(self, state, event):
        return wizard.transition(state, event)

    def check_borrower(self, state, phone):
        """Look up the borrower behind `phone` and fold the result into the state.

        A failed lookup is treated as a first-time borrower so the
        application can still go through.
        """
        try:
            borrower = self.borrower_service.check_borrower(phone)
        except RepositoryError as e:
            logger.warning("Borrower lookup failed, continuing as new borrower: %s", e)
            borrower = BorrowerInfo(borrower_id=normalize_phone(phone))
        return wizard.transition(state, wizard.BorrowerChecked(borrower))

    def submit(self, state):
        """Send a reviewed application and move the wizard to the success step.

        Raises:
            StepIncompleteError: If the state is not at review or is incomplete.
            RepositoryError: If the application could not be stored.
        """
        # Validate the transition before anything is sent
        submitted = wizard.transition(state, wizard.Submitted())
        payload = build_payload(state)
        self.repository.submit_application(payload)
        logger.info("Application submitted for %s", payload['borrowerId'])
        return submitted

    # Admin dashboard
    def dashboard(self, admin_email):
        """Return (records, stats) for an allow-listed admin.

        Raises:
            AccessDeniedError: If admin_email is not on the allow-list.
        """
        require_admin(admin_email, self.admin_emails)
        return self.application_service.load_dashboard()

    def update_status(self, admin_email, row_index, status, notes=""):
        require_admin(admin_email, self.admin_emails)
        return self.application_service.update_status(row_index, status, notes)
