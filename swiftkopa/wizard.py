"""Loan application wizard as an explicit state machine.

The whole form lives in one immutable WizardState. Every user action is an
event, and `transition(state, event)` returns the next state without touching
the old one, so a state can be serialized between requests, replayed in
tests, or thrown away when the borrower starts over.

Step order:
    secured:   type > collateral > amount > [doc-choice] > documents > mpesa > review > success
    unsecured: type > amount > [doc-choice] > documents > mpesa > review > success

The doc-choice step only appears for repeat borrowers, who may reuse the
documents already on file instead of uploading new ones. A secured borrower
who reuses documents but pledges different collateral still visits the
documents step, for the asset documents and photos only.
"""
import base64
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple, List

from swiftkopa.config import DEFAULT_LOAN_AMOUNT, DEFAULT_TERM_MONTHS, MAX_LOAN_AMOUNT
from swiftkopa.data_structures import (
    BorrowerInfo, CollateralCategory, DocumentFile, DocumentKind, LoanTerms, LoanType,
)
from swiftkopa.exceptions import StepIncompleteError
from swiftkopa.services.borrower_service import describe_collateral, detect_collateral_change
from swiftkopa.services.collateral_sizer import max_loan
from swiftkopa.services.loan_pricer import price
from swiftkopa import validation


class Step(str, Enum):
    TYPE = "type"
    COLLATERAL = "collateral"
    AMOUNT = "amount"
    DOC_CHOICE = "doc-choice"
    DOCUMENTS = "documents"
    MPESA = "mpesa"
    REVIEW = "review"
    SUCCESS = "success"


@dataclass(frozen=True)
class WizardState:
    step: Step = Step.TYPE
    loan_type: Optional[LoanType] = None
    amount: float = DEFAULT_LOAN_AMOUNT
    term_months: int = DEFAULT_TERM_MONTHS
    collateral_category: Optional[CollateralCategory] = None
    asset_value: float = 0
    collateral_description: str = ""
    documents: Tuple[DocumentFile, ...] = ()
    mpesa_number: str = ""
    full_name: str = ""
    email: str = ""
    borrower: Optional[BorrowerInfo] = None

    @property
    def is_secured(self) -> bool:
        return self.loan_type is LoanType.SECURED

    @property
    def is_repeat(self) -> bool:
        return bool(self.borrower and self.borrower.is_repeat)

    @property
    def docs_reused(self) -> bool:
        return bool(self.borrower and self.borrower.docs_reused)

    def to_dict(self, include_content=False) -> dict:
        """JSON-safe snapshot. Attachment bytes are included only on request."""
        documents = []
        for doc in self.documents:
            entry = {'kind': doc.kind.value, 'name': doc.name, 'mimeType': doc.mime_type}
            if include_content:
                entry['content'] = base64.b64encode(doc.content).decode("ascii")
            documents.append(entry)

        borrower = None
        if self.borrower is not None:
            borrower = {
                'borrowerId': self.borrower.borrower_id,
                'fullName': self.borrower.full_name,
                'email': self.borrower.email,
                'isRepeat': self.borrower.is_repeat,
                'docsReused': self.borrower.docs_reused,
                'collateralChanged': self.borrower.collateral_changed,
                'previousCollateral': self.borrower.previous_collateral,
            }

        return {
            'step': self.step.value,
            'loanType': self.loan_type.value if self.loan_type else None,
            'amount': self.amount,
            'termMonths': self.term_months,
            'collateralType': self.collateral_category.value if self.collateral_category else None,
            'assetValue': self.asset_value,
            'collateralDescription': self.collateral_description,
            'documents': documents,
            'mpesaNumber': self.mpesa_number,
            'fullName': self.full_name,
            'email': self.email,
            'borrower': borrower,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WizardState':
        documents = tuple(
            DocumentFile(
                kind=DocumentKind(doc['kind']),
                name=doc['name'],
                mime_type=doc.get('mimeType', ''),
                content=base64.b64decode(doc['content']) if doc.get('content') else b"",
            )
            for doc in data.get('documents', [])
        )

        borrower = None
        raw = data.get('borrower')
        if raw:
            borrower = BorrowerInfo(
                borrower_id=raw.get('borrowerId', ''),
                full_name=raw.get('fullName', ''),
                email=raw.get('email', ''),
                is_repeat=raw.get('isRepeat', False),
                docs_reused=raw.get('docsReused', False),
                collateral_changed=raw.get('collateralChanged', False),
                previous_collateral=raw.get('previousCollateral', ''),
            )

        collateral = data.get('collateralType')
        return cls(
            step=Step(data.get('step', Step.TYPE.value)),
            loan_type=LoanType(data['loanType']) if data.get('loanType') else None,
            amount=data.get('amount', DEFAULT_LOAN_AMOUNT),
            term_months=data.get('termMonths', DEFAULT_TERM_MONTHS),
            collateral_category=CollateralCategory.parse(collateral) if collateral else None,
            asset_value=data.get('assetValue', 0),
            collateral_description=data.get('collateralDescription', ''),
            documents=documents,
            mpesa_number=data.get('mpesaNumber', ''),
            full_name=data.get('fullName', ''),
            email=data.get('email', ''),
            borrower=borrower,
        )


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class SelectLoanType:
    loan_type: LoanType


@dataclass(frozen=True)
class SelectCollateral:
    category: CollateralCategory


@dataclass(frozen=True)
class SetAssetValue:
    asset_value: float


@dataclass(frozen=True)
class SetAmount:
    amount: float


@dataclass(frozen=True)
class SetTerm:
    term_months: int


@dataclass(frozen=True)
class AttachDocuments:
    """Replace every attachment of `kind` with `files`."""
    kind: DocumentKind
    files: Tuple[DocumentFile, ...] = ()


@dataclass(frozen=True)
class RemoveDocument:
    index: int


@dataclass(frozen=True)
class SetContact:
    """Update contact fields; None leaves a field as it is."""
    mpesa_number: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class BorrowerChecked:
    borrower: BorrowerInfo


@dataclass(frozen=True)
class ChooseDocumentReuse:
    reuse: bool


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class Submitted:
    pass


@dataclass(frozen=True)
class Reset:
    pass


# =============================================================================
# DERIVED VALUES
# =============================================================================

def step_order(state: WizardState) -> List[Step]:
    order = [Step.TYPE]
    if state.is_secured:
        order.append(Step.COLLATERAL)
    order.append(Step.AMOUNT)
    if state.is_repeat:
        order.append(Step.DOC_CHOICE)
    order.extend([Step.DOCUMENTS, Step.MPESA, Step.REVIEW, Step.SUCCESS])
    return order


def progress_step(state: WizardState) -> Step:
    """Step shown on the progress bar; doc-choice counts as documents."""
    if state.step is Step.DOC_CHOICE:
        return Step.DOCUMENTS
    return state.step


def collateral_limit(state: WizardState):
    """CollateralLimit for a secured state with collateral entered, else None."""
    if state.is_secured and state.collateral_category and state.asset_value > 0:
        return max_loan(state.collateral_category, state.asset_value)
    return None


def effective_max_amount(state: WizardState):
    limit = collateral_limit(state)
    if limit is not None:
        return limit.max_principal
    return MAX_LOAN_AMOUNT


def needs_collateral_documents(state: WizardState) -> bool:
    """True when reused documents must be topped up with proof of new collateral."""
    return state.docs_reused and state.is_secured and state.borrower.collateral_changed


def current_terms(state: WizardState) -> LoanTerms:
    return price(state.amount, state.term_months)


def incomplete_reasons(state: WizardState, step: Step) -> List[str]:
    """Why `step` cannot be left yet; an empty list means it can."""
    checks = []
    if step is Step.TYPE:
        if state.loan_type is None:
            return ["Select a loan type"]
    elif step is Step.COLLATERAL:
        checks.append(validation.validate_collateral(state.collateral_category, state.asset_value))
    elif step is Step.AMOUNT:
        if state.is_secured:
            checks.append(validation.validate_collateral(state.collateral_category, state.asset_value))
        max_amount = effective_max_amount(state) if state.is_secured else None
        checks.append(validation.validate_amount(state.amount, max_amount))
        checks.append(validation.validate_term(state.term_months))
    elif step is Step.DOC_CHOICE:
        return ["Choose whether to reuse your documents"]
    elif step is Step.DOCUMENTS:
        if state.loan_type is None:
            return ["Select a loan type"]
        checks.append(validation.validate_documents(
            state.loan_type, state.documents, collateral_only=state.docs_reused))
    elif step is Step.MPESA:
        checks.append(validation.validate_phone(state.mpesa_number))
        checks.append(validation.validate_name(state.full_name))
        checks.append(validation.validate_email(state.email))
    elif step is Step.REVIEW:
        return ["Submit the application to continue"]
    elif step is Step.SUCCESS:
        return ["The application has already been submitted"]
    return [result.error for result in checks if not result]


def submission_problems(state: WizardState) -> List[str]:
    """Every reason the state is not ready to be sent."""
    steps = [Step.TYPE, Step.AMOUNT, Step.MPESA]
    if state.is_secured:
        steps.insert(1, Step.COLLATERAL)
    if not state.docs_reused or needs_collateral_documents(state):
        steps.append(Step.DOCUMENTS)
    problems = []
    for step in steps:
        for reason in incomplete_reasons(state, step):
            if reason not in problems:
                problems.append(reason)
    return problems


# =============================================================================
# TRANSITIONS
# =============================================================================

def _with_collateral(state: WizardState, **changes) -> WizardState:
    state = replace(state, **changes)
    description = describe_collateral(state.collateral_category, state.asset_value)
    return replace(
        state,
        collateral_description=description,
        borrower=detect_collateral_change(state.borrower, description),
    )


def _next(state: WizardState) -> WizardState:
    reasons = incomplete_reasons(state, state.step)
    if reasons:
        raise StepIncompleteError(state.step.value, reasons)
    order = step_order(state)
    if state.step not in order:
        raise StepIncompleteError(state.step.value, ["Step is not part of this application"])
    return replace(state, step=order[order.index(state.step) + 1])


def _back(state: WizardState) -> WizardState:
    if state.step is Step.DOC_CHOICE:
        return replace(state, step=Step.AMOUNT)
    if state.step is Step.MPESA and state.docs_reused and not needs_collateral_documents(state):
        return replace(state, step=Step.DOC_CHOICE)
    if state.step in (Step.TYPE, Step.SUCCESS):
        return state
    order = step_order(state)
    if state.step not in order:
        return replace(state, step=Step.TYPE)
    return replace(state, step=order[order.index(state.step) - 1])


def transition(state: WizardState, event) -> WizardState:
    """Apply one event to a wizard state and return the new state.

    Raises:
        StepIncompleteError: If a navigation event is not allowed yet.
        UnknownCollateralCategory: If SelectCollateral names an unknown asset class.
        TypeError: For objects that are not wizard events.
    """
    if isinstance(event, SelectLoanType):
        loan_type = LoanType(event.loan_type)
        changes = {'loan_type': loan_type}
        if loan_type is LoanType.UNSECURED:
            changes.update(collateral_category=None, asset_value=0, collateral_description="")
        state = replace(state, **changes)
        order = step_order(state)
        if state.step is Step.TYPE:
            return replace(state, step=order[1])
        if state.step not in order:
            # Collateral step dropped by switching to unsecured
            return replace(state, step=Step.AMOUNT)
        if state.is_secured and not validation.validate_collateral(state.collateral_category, state.asset_value):
            return replace(state, step=Step.COLLATERAL)
        return state

    if isinstance(event, SelectCollateral):
        category = CollateralCategory.parse(event.category)
        if state.asset_value > 0:
            return _with_collateral(state, collateral_category=category)
        return replace(state, collateral_category=category)

    if isinstance(event, SetAssetValue):
        return _with_collateral(state, asset_value=event.asset_value)

    if isinstance(event, SetAmount):
        return replace(state, amount=event.amount)

    if isinstance(event, SetTerm):
        return replace(state, term_months=event.term_months)

    if isinstance(event, AttachDocuments):
        kind = DocumentKind(event.kind)
        kept = tuple(doc for doc in state.documents if doc.kind is not kind)
        return replace(state, documents=kept + tuple(event.files))

    if isinstance(event, RemoveDocument):
        if not 0 <= event.index < len(state.documents):
            return state
        documents = state.documents[:event.index] + state.documents[event.index + 1:]
        return replace(state, documents=documents)

    if isinstance(event, SetContact):
        changes = {}
        if event.mpesa_number is not None:
            changes['mpesa_number'] = validation.format_phone_input(event.mpesa_number)
        if event.full_name is not None:
            changes['full_name'] = event.full_name
        if event.email is not None:
            changes['email'] = event.email
        return replace(state, **changes)

    if isinstance(event, BorrowerChecked):
        borrower = event.borrower
        if state.collateral_description:
            borrower = detect_collateral_change(borrower, state.collateral_description)
        return replace(
            state,
            borrower=borrower,
            full_name=state.full_name or borrower.full_name,
            email=state.email or borrower.email,
        )

    if isinstance(event, ChooseDocumentReuse):
        if state.step is not Step.DOC_CHOICE or not state.is_repeat:
            raise StepIncompleteError(state.step.value, ["Document reuse is only offered to returning borrowers"])
        state = replace(state, borrower=replace(state.borrower, docs_reused=event.reuse))
        if event.reuse and not needs_collateral_documents(state):
            return replace(state, step=Step.MPESA)
        return replace(state, step=Step.DOCUMENTS)

    if isinstance(event, Next):
        return _next(state)

    if isinstance(event, Back):
        return _back(state)

    if isinstance(event, Submitted):
        if state.step is not Step.REVIEW:
            raise StepIncompleteError(state.step.value, ["Only a reviewed application can be submitted"])
        problems = submission_problems(state)
        if problems:
            raise StepIncompleteError(state.step.value, problems)
        return replace(state, step=Step.SUCCESS)

    if isinstance(event, Reset):
        return WizardState()

    raise TypeError(f"Unknown wizard event: {event!r}")
