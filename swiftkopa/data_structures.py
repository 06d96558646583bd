from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Dict, Any, Optional

from swiftkopa.exceptions import UnknownCollateralCategory


class LoanType(str, Enum):
    SECURED = "secured"
    UNSECURED = "unsecured"


class CollateralCategory(str, Enum):
    """Asset classes accepted as security. Closed set: no other values price."""
    VEHICLE = "vehicle"
    EQUIPMENT = "equipment"
    LAND = "land"

    @classmethod
    def parse(cls, value) -> 'CollateralCategory':
        """Resolve an enum member or its exact string value.

        Raises:
            UnknownCollateralCategory: For anything else, including other casings.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise UnknownCollateralCategory(value) from None


class DocumentKind(str, Enum):
    ID = "id"
    INCOME = "income"
    ASSET = "asset"
    PHOTO = "photo"


class ApplicationStatus(str, Enum):
    """Review states as written in the applications sheet."""
    PENDING_REVIEW = "Pending Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    DISBURSED = "Disbursed"

    @classmethod
    def parse(cls, value) -> 'ApplicationStatus':
        """Lenient parse: accepts sheet labels and the older lowercase values."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in ("", "pending", "pending review"):
            return cls.PENDING_REVIEW
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown application status: {value!r}")


@dataclass(frozen=True)
class LoanTerms:
    """Repayment terms for one principal/term pair.

    All fields are derived together by LoanPricer.price; instances are never
    mutated.
    """
    principal: float
    monthly_rate: float
    term_months: int
    raw_interest: float
    capped_interest: float
    interest_cap_applied: bool
    total_repayment: float
    monthly_installment: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CollateralLimit:
    """Largest principal a given asset can secure."""
    collateral_category: CollateralCategory
    asset_value: float
    loan_to_value_ratio: float
    max_principal: int

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['collateral_category'] = self.collateral_category.value
        return data


@dataclass(frozen=True)
class DocumentFile:
    """An uploaded attachment held in memory until submission."""
    kind: DocumentKind
    name: str
    mime_type: str
    content: bytes = field(default=b"", repr=False)


@dataclass(frozen=True)
class DocumentRequirement:
    kind: DocumentKind
    label: str
    description: str
    accept: str = "image/*,.pdf"
    required: bool = True
    multiple: bool = False


@dataclass(frozen=True)
class BorrowerInfo:
    """What is known about the person applying, after a phone lookup."""
    borrower_id: str
    full_name: str = ""
    email: str = ""
    is_repeat: bool = False
    docs_reused: bool = False
    collateral_changed: bool = False
    previous_collateral: str = ""


@dataclass
class LoanApplicationRecord:
    """One row of the applications sheet as shown on the admin dashboard."""
    row_index: int
    full_name: str
    email: str
    loan_type: str
    amount: float
    term_months: int
    mpesa_number: str
    status: ApplicationStatus
    notes: str = ""
    submitted_at: Optional[datetime] = None
    collateral_type: Optional[str] = None
    asset_value: float = 0.0
    documents: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class LoanStats:
    total_volume: float = 0.0
    pending_volume: float = 0.0
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    disbursed_count: int = 0
