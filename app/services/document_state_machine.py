"""
Invoice / Quotation State Machine

This module is the SINGLE SOURCE OF TRUTH for document status transitions.
All status changes go through validate_transition / apply_transition.

Validation runs to completion before anything is written to the document,
so a failed transition leaves the document untouched.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.config import settings
from app.core.exceptions import AccessDeniedError, IllegalTransitionError, ValidationError
from app.models.document import (
    Invoice, InvoiceItem, InvoiceStatus, Quotation, QuotationStatus,
)
from app.services.payment_validation import (
    PARTY_FIELDS, payment_metadata, validate_payment_details,
)


logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION RULES
# =============================================================================

# Format: current_status -> [list of allowed next statuses]
INVOICE_TRANSITIONS: Dict[str, List[str]] = {
    InvoiceStatus.DRAFT.value: [
        InvoiceStatus.PENDING.value,    # Issue to client
        InvoiceStatus.CONFIRMED.value,  # Confirm with client first
        InvoiceStatus.PAID.value,       # Paid on the spot
        InvoiceStatus.OVERDUE.value,    # Due date passed
    ],
    InvoiceStatus.PENDING.value: [
        InvoiceStatus.PAID.value,
        InvoiceStatus.OVERDUE.value,
    ],
    InvoiceStatus.CONFIRMED.value: [
        InvoiceStatus.PENDING.value,
        InvoiceStatus.PAID.value,
        InvoiceStatus.OVERDUE.value,
    ],
    InvoiceStatus.OVERDUE.value: [
        InvoiceStatus.PAID.value,       # Late payment
    ],
    InvoiceStatus.PAID.value: [],       # Terminal state
}

QUOTATION_TRANSITIONS: Dict[str, List[str]] = {
    QuotationStatus.DRAFT.value: [
        QuotationStatus.SENT.value,
    ],
    QuotationStatus.SENT.value: [
        QuotationStatus.ACCEPTED.value,
        QuotationStatus.REJECTED.value,
    ],
    QuotationStatus.ACCEPTED.value: [
        QuotationStatus.CONVERTED.value,  # Only through convert_to_invoice
    ],
    QuotationStatus.REJECTED.value: [],   # Terminal state
    QuotationStatus.CONVERTED.value: [],  # Terminal state
}

TRANSITIONS: Dict[str, Dict[str, List[str]]] = {
    Invoice.KIND: INVOICE_TRANSITIONS,
    Quotation.KIND: QUOTATION_TRANSITIONS,
}

# Human-readable action names for each transition
TRANSITION_ACTIONS: Dict[Tuple[str, str, str], str] = {
    (Invoice.KIND, "draft", "pending"): "Issue",
    (Invoice.KIND, "draft", "confirmed"): "Confirm",
    (Invoice.KIND, "draft", "paid"): "Mark Paid",
    (Invoice.KIND, "draft", "overdue"): "Mark Overdue",
    (Invoice.KIND, "pending", "paid"): "Mark Paid",
    (Invoice.KIND, "pending", "overdue"): "Mark Overdue",
    (Invoice.KIND, "confirmed", "pending"): "Issue",
    (Invoice.KIND, "confirmed", "paid"): "Mark Paid",
    (Invoice.KIND, "confirmed", "overdue"): "Mark Overdue",
    (Invoice.KIND, "overdue", "paid"): "Mark Paid",
    (Quotation.KIND, "draft", "sent"): "Send",
    (Quotation.KIND, "sent", "accepted"): "Accept",
    (Quotation.KIND, "sent", "rejected"): "Reject",
    (Quotation.KIND, "accepted", "converted"): "Convert to Invoice",
}

# Statuses in which line items, rates and party details may still change
EDITABLE_STATUSES: Dict[str, List[str]] = {
    Invoice.KIND: [
        InvoiceStatus.DRAFT.value,
        InvoiceStatus.PENDING.value,
        InvoiceStatus.CONFIRMED.value,
        InvoiceStatus.OVERDUE.value,
    ],
    Quotation.KIND: [
        QuotationStatus.DRAFT.value,
        QuotationStatus.SENT.value,
    ],
}

# Statuses the overdue sweep may move to overdue
OVERDUE_ELIGIBLE_STATUSES = [
    InvoiceStatus.DRAFT.value,
    InvoiceStatus.PENDING.value,
    InvoiceStatus.CONFIRMED.value,
]


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _status_value(status: Any) -> str:
    return status.value if hasattr(status, "value") else str(status)


def get_allowed_transitions(kind: str, current_status: str) -> List[str]:
    """Get list of statuses that can be transitioned to from current status."""
    return TRANSITIONS[kind].get(_status_value(current_status), [])


def get_transition_action(kind: str, current_status: str, new_status: str) -> str:
    """Get human-readable action name for a transition."""
    current, new = _status_value(current_status), _status_value(new_status)
    return TRANSITION_ACTIONS.get((kind, current, new), f"{current} -> {new}")


def is_terminal(kind: str, status: str) -> bool:
    """Is this a terminal (final) state?"""
    return not get_allowed_transitions(kind, status)


def can_edit(kind: str, status: str) -> bool:
    """Can line items and rates of a document in this status be edited?"""
    return _status_value(status) in EDITABLE_STATUSES[kind]


def check_owner(document: Any, actor_id: Optional[uuid.UUID]) -> None:
    """Raise AccessDeniedError unless actor_id owns the document."""
    if actor_id is None:
        return
    if str(document.owner_id) != str(actor_id):
        logger.warning(f"User {actor_id} denied access to {document.KIND} {document.id}")
        raise AccessDeniedError(f"You do not have access to this {document.KIND}")


def _check_status_path(document: Any, new_status: str) -> None:
    kind = document.KIND
    current = _status_value(document.status)
    if new_status not in TRANSITIONS[kind]:
        raise ValidationError("status", f"unknown {kind} status '{new_status}'")

    allowed = get_allowed_transitions(kind, current)
    if new_status not in allowed:
        raise IllegalTransitionError(current, new_status, allowed)


def _payment_fields(document: Any, payment_details: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Payment details merged with the document's own PAN/GST numbers."""
    fields: Dict[str, Any] = {
        name: getattr(document, name, None) for name, _ in PARTY_FIELDS
    }
    for name, value in (payment_details or {}).items():
        if value is not None:
            fields[name] = value
    return fields


def validate_transition(
    document: Any,
    new_status: str,
    payment_details: Optional[Mapping[str, Any]] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> None:
    """
    Validate a status transition without changing the document.

    Raises:
        AccessDeniedError: actor_id is given and does not own the document
        IllegalTransitionError: new_status is not reachable
        ValidationError: payment details are missing or malformed
    """
    check_owner(document, actor_id)
    new_status = _status_value(new_status)

    if document.KIND == Quotation.KIND and new_status == QuotationStatus.CONVERTED.value:
        # Conversion needs the new invoice; it is not a plain status change
        _check_status_path(document, new_status)
        return

    _check_status_path(document, new_status)

    if document.KIND == Invoice.KIND and new_status == InvoiceStatus.PAID.value:
        fields = _payment_fields(document, payment_details)
        validate_payment_details(fields.get("payment_mode"), fields)


def can_transition(
    document: Any,
    new_status: str,
    payment_details: Optional[Mapping[str, Any]] = None,
) -> bool:
    """Check if a transition (including its payment validation) would succeed."""
    try:
        validate_transition(document, new_status, payment_details)
    except (IllegalTransitionError, ValidationError):
        return False
    return True


# =============================================================================
# TRANSITION EXECUTOR
# =============================================================================

def apply_transition(
    document: Any,
    new_status: str,
    payment_details: Optional[Mapping[str, Any]] = None,
    actor_id: Optional[uuid.UUID] = None,
    now: Optional[datetime] = None,
) -> Any:
    """
    Transition a document to a new status.

    This function:
    1. Validates ownership, the status path and (for paid) payment details
    2. Updates the status and updated_at
    3. Records payment metadata when an invoice is marked paid

    Persistence is the caller's job.

    Returns:
        The same document, updated.
    """
    new_status = _status_value(new_status)

    if document.KIND == Quotation.KIND and new_status == QuotationStatus.CONVERTED.value:
        raise ValidationError("status", "use convert_to_invoice to convert a quotation")

    validate_transition(document, new_status, payment_details, actor_id)

    now = now or datetime.now(timezone.utc)
    previous = document.status

    if document.KIND == Invoice.KIND and new_status == InvoiceStatus.PAID.value:
        fields = _payment_fields(document, payment_details)
        mode = validate_payment_details(fields.get("payment_mode"), fields)
        for name, value in payment_metadata(mode, fields).items():
            setattr(document, name, value)
        for name, _ in PARTY_FIELDS:
            if fields.get(name):
                setattr(document, name, fields[name])
        document.paid_at = now

    document.status = new_status
    document.updated_at = now

    logger.info(
        f"{document.KIND.capitalize()} {document.document_number}: "
        f"{get_transition_action(document.KIND, previous, new_status)} ({previous} -> {new_status})"
    )
    return document


# Fields copied from a quotation onto the invoice it becomes
CONVERSION_FIELDS = (
    "owner_id",
    "client_name", "client_email", "client_address", "client_gst_number", "client_pan_number",
    "company_name", "company_address", "company_email", "company_gst_number", "company_pan_number",
    "igst", "cgst", "sgst", "discount_rate",
    "subtotal", "igst_amount", "cgst_amount", "sgst_amount", "discount_amount", "total",
    "notes",
)


def convert_to_invoice(
    quotation: Quotation,
    invoice_number: str,
    actor_id: Optional[uuid.UUID] = None,
    now: Optional[datetime] = None,
) -> Tuple[Quotation, Invoice]:
    """
    Convert an accepted quotation into a pending invoice.

    Builds a new Invoice copying parties, items, rates and totals, with a
    fresh number, and flips the quotation to converted. The quotation's due
    date is kept unless it falls before the invoice's issue date (today).
    Both objects must be persisted together by the caller.

    Returns:
        (updated quotation, new invoice)
    """
    validate_transition(quotation, QuotationStatus.CONVERTED.value, actor_id=actor_id)

    if not invoice_number:
        raise ValidationError("document_number", "a fresh invoice number is required")
    if invoice_number == quotation.document_number:
        raise ValidationError("document_number", "must differ from the quotation number")

    now = now or datetime.now(timezone.utc)
    issue_date = now.date()

    # The invoice is never due before it is issued
    due_date = quotation.due_date
    if due_date is None or due_date < issue_date:
        due_date = issue_date + timedelta(days=settings.DEFAULT_DUE_DAYS)

    invoice = Invoice(
        id=uuid.uuid4(),
        document_number=invoice_number,
        status=InvoiceStatus.PENDING.value,
        issue_date=issue_date,
        due_date=due_date,
        source_quotation_id=quotation.id,
        created_at=now,
        updated_at=now,
        **{name: getattr(quotation, name) for name in CONVERSION_FIELDS},
    )
    invoice.items = [
        InvoiceItem(
            id=item.id,
            position=item.position,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.amount,
        )
        for item in quotation.items
    ]

    quotation.status = QuotationStatus.CONVERTED.value
    quotation.converted_invoice_id = invoice.id
    quotation.updated_at = now

    logger.info(f"Quotation {quotation.document_number} converted to invoice {invoice_number}")
    return quotation, invoice
