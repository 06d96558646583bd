"""Custom exceptions for the SwiftKopa loan engine."""


class SwiftKopaError(Exception):
    """Base exception for all SwiftKopa errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(SwiftKopaError):
    """Raised when a caller passes a value the engine cannot price."""
    pass


class InvalidAmount(ValidationError):
    """Raised when a monetary input (principal or asset value) is not positive."""

    def __init__(self, amount, field: str = "principal"):
        details = {
            'field': field,
            'amount': amount
        }
        message = f"Invalid {field.replace('_', ' ')}: {amount!r} (must be a positive amount)"
        super().__init__(message, details)
        self.amount = amount
        self.field = field


class InvalidTerm(ValidationError):
    """Raised when the repayment term is not a positive whole number of months."""

    def __init__(self, term_months):
        details = {'term_months': term_months}
        message = f"Invalid term: {term_months!r} (must be a positive whole number of months)"
        super().__init__(message, details)
        self.term_months = term_months


class UnknownCollateralCategory(ValidationError):
    """Raised when a collateral category is not vehicle, equipment or land."""

    def __init__(self, category):
        details = {'category': category}
        message = f"Unknown collateral category: {category!r}"
        super().__init__(message, details)
        self.category = category


class StepIncompleteError(SwiftKopaError):
    """Raised when the wizard cannot leave a step because its inputs are incomplete."""

    def __init__(self, step: str, reasons: list = None):
        self.step = step
        self.reasons = list(reasons or [])
        details = {'step': step}
        if self.reasons:
            details['reasons'] = self.reasons
        message = f"Step '{step}' is incomplete"
        super().__init__(message, details)


class RepositoryError(SwiftKopaError):
    """Raised when reading from or writing to the application store fails."""
    pass


class EndpointNotConfiguredError(RepositoryError):
    """Raised when no Apps Script URL has been configured."""

    def __init__(self):
        super().__init__("Apps Script URL not configured")


class ApplicationNotFoundError(RepositoryError):
    """Raised when an application row cannot be found."""

    def __init__(self, row_index: int):
        details = {'row_index': row_index}
        message = f"Application at row {row_index} not found"
        super().__init__(message, details)
        self.row_index = row_index


class AccessDeniedError(SwiftKopaError):
    """Raised when an identity is not on the admin allow-list."""

    def __init__(self, email: str = None):
        details = {}
        if email:
            details['email'] = email
        message = "Access denied. Your email is not authorized as an admin."
        super().__init__(message, details)
