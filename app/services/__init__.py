# Services module
from app.services.auth_service import AuthService
from app.services.invoice_service import InvoiceService
from app.services.quotation_service import QuotationService
from app.services.transaction_service import TransactionService

# Document core
from app.services.document_calculator import DocumentTotals, compute_totals
from app.services.document_state_machine import (
    apply_transition,
    can_transition,
    convert_to_invoice,
    validate_transition,
)
from app.services.payment_validation import validate_payment_details

__all__ = [
    "AuthService",
    "InvoiceService",
    "QuotationService",
    "TransactionService",
    # Document core
    "DocumentTotals",
    "compute_totals",
    "apply_transition",
    "can_transition",
    "convert_to_invoice",
    "validate_transition",
    "validate_payment_details",
]
