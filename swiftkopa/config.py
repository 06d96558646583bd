"""Centralized configuration for the SwiftKopa loan engine.

This module contains all policy constants, caller-side business rules and
environment-driven settings. The pricing and sizing functions read their
rates from here and take no rate arguments, so changing a policy value is a
one-line edit in this file.
"""
import os

# =============================================================================
# LOAN PRICING
# =============================================================================

# Flat interest charged per month on the full principal (20%)
MONTHLY_INTEREST_RATE = 0.20

# =============================================================================
# COLLATERAL POLICY
# =============================================================================

# Maximum loan-to-value ratio per collateral category
LTV_VEHICLE = 0.50
LTV_EQUIPMENT = 0.30
LTV_LAND = 0.60

LTV_RATIOS = {
    "vehicle": LTV_VEHICLE,
    "equipment": LTV_EQUIPMENT,
    "land": LTV_LAND,
}

# =============================================================================
# BUSINESS RULES (enforced by the wizard, not by the engine)
# =============================================================================

# Loan amount bounds
MIN_LOAN_AMOUNT = 1000
MAX_LOAN_AMOUNT = 500000

# Loan term bounds in months
MIN_TERM_MONTHS = 1
MAX_TERM_MONTHS = 12

# Smallest appraisal accepted for a secured loan
MIN_ASSET_VALUE = 10000

# Values the wizard starts with
DEFAULT_LOAN_AMOUNT = 10000
DEFAULT_TERM_MONTHS = 3

# =============================================================================
# DISPLAY FORMATS
# =============================================================================

CURRENCY_CODE = "KES"

# =============================================================================
# REMOTE DATA STORE
# =============================================================================

# Apps Script web app that fronts the applications spreadsheet
APPS_SCRIPT_URL = os.environ.get("SWIFTKOPA_SCRIPT_URL", "")

# Seconds before an HTTP call to the script is abandoned
REQUEST_TIMEOUT_SECONDS = 15

# =============================================================================
# ADMIN ACCESS
# =============================================================================

# Comma-separated list of admin emails
ADMIN_EMAILS_ENV = "SWIFTKOPA_ADMIN_EMAILS"

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("SWIFTKOPA_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
