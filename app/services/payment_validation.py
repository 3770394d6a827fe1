"""
Payment detail validation for invoices moving to ``paid``.

One validator per payment mode, dispatched on the mode value. Shared by the
create flow (invoice created directly as paid) and the status update flow.
Validation stops at the first failing rule.
"""
import re
from typing import Callable, Dict, Mapping, Optional

from app.core.exceptions import ValidationError
from app.models.document import PaymentMode


PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GST_NUMBER_PATTERN = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][A-Z0-9]Z[A-Z0-9]$")

BANK_ACCOUNT_PATTERN = re.compile(r"^\d{11}$")
UTR_PATTERN = re.compile(r"^UTR[A-Z0-9]{13}$")
UPI_ID_PATTERNS = (
    re.compile(r"^[\w.-]+@[\w.-]+$"),
    re.compile(r"^\d{10}@upi$"),
)
# TODO: switch to the UPI reference format once the payments team confirms it
UPI_TRANSACTION_ID_PATTERN = GST_NUMBER_PATTERN
CARD_TRANSACTION_ID_PATTERN = re.compile(r"^T\d{21}$")
CHEQUE_NUMBER_PATTERN = re.compile(r"^\d{6}$")

# Fields stored on the invoice when it is marked paid
PAYMENT_FIELDS = ("payment_mode", "transaction_id", "bank_account", "upi_id")


def _value(fields: Mapping[str, Optional[str]], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _require(fields: Mapping[str, Optional[str]], name: str, reason: str) -> str:
    value = _value(fields, name)
    if value is None:
        raise ValidationError(name, reason)
    return value


def _match(value: str, pattern: re.Pattern, field: str, reason: str) -> None:
    if not pattern.match(value):
        raise ValidationError(field, reason)


def validate_pan(value: str, field: str = "pan_number") -> None:
    _match(value, PAN_PATTERN, field, "must be a valid PAN (e.g. ABCDE1234F)")


def validate_gst_number(value: str, field: str = "gst_number") -> None:
    _match(value, GST_NUMBER_PATTERN, field, "must be a valid GSTIN (e.g. 27ABCDE1234F1Z5)")


# Party identifiers checked when an invoice is marked paid
PARTY_FIELDS = (
    ("client_pan_number", validate_pan),
    ("company_pan_number", validate_pan),
    ("client_gst_number", validate_gst_number),
    ("company_gst_number", validate_gst_number),
)


def _validate_bank_transfer(fields: Mapping[str, Optional[str]]) -> None:
    account = _require(fields, "bank_account", "required for bank transfer")
    _match(account, BANK_ACCOUNT_PATTERN, "bank_account", "must be 11 digits")
    transaction_id = _value(fields, "transaction_id")
    if transaction_id is not None:
        _match(transaction_id, UTR_PATTERN, "transaction_id", "must be a UTR (UTR followed by 13 letters or digits)")


def _validate_upi(fields: Mapping[str, Optional[str]]) -> None:
    upi_id = _require(fields, "upi_id", "required for UPI payments")
    if not any(pattern.match(upi_id) for pattern in UPI_ID_PATTERNS):
        raise ValidationError("upi_id", "must look like name@bank or a 10 digit number @upi")
    transaction_id = _value(fields, "transaction_id")
    if transaction_id is not None:
        _match(transaction_id, UPI_TRANSACTION_ID_PATTERN, "transaction_id", "is not a valid UPI transaction reference")


def _validate_card(fields: Mapping[str, Optional[str]]) -> None:
    transaction_id = _value(fields, "transaction_id")
    if transaction_id is not None:
        _match(transaction_id, CARD_TRANSACTION_ID_PATTERN, "transaction_id", "must be T followed by 21 digits")


def _validate_cheque(fields: Mapping[str, Optional[str]]) -> None:
    cheque_number = _require(fields, "transaction_id", "cheque number is required")
    _match(cheque_number, CHEQUE_NUMBER_PATTERN, "transaction_id", "cheque number must be 6 digits")


def _validate_cash(fields: Mapping[str, Optional[str]]) -> None:
    if _value(fields, "transaction_id") is not None:
        raise ValidationError("transaction_id", "not allowed for cash")


MODE_VALIDATORS: Dict[str, Callable[[Mapping[str, Optional[str]]], None]] = {
    PaymentMode.BANK_TRANSFER.value: _validate_bank_transfer,
    PaymentMode.UPI.value: _validate_upi,
    PaymentMode.CARD.value: _validate_card,
    PaymentMode.CHEQUE.value: _validate_cheque,
    PaymentMode.CASH.value: _validate_cash,
}


def normalize_payment_mode(payment_mode) -> Optional[str]:
    if isinstance(payment_mode, PaymentMode):
        return payment_mode.value
    if payment_mode is None:
        return None
    return str(payment_mode).strip().lower() or None


def validate_payment_details(payment_mode, fields: Mapping[str, Optional[str]]) -> str:
    """
    Validate the details needed to mark an invoice paid.

    Checks, in order: the payment mode, party PAN numbers, party GST numbers,
    then the rules of the chosen mode.

    Args:
        payment_mode: One of bank_transfer, upi, cash, card, cheque.
        fields: transaction_id, bank_account, upi_id and the party
            PAN/GST numbers. Missing or blank values count as absent.

    Returns:
        The normalised payment mode.

    Raises:
        ValidationError: At the first failing rule.
    """
    mode = normalize_payment_mode(payment_mode)
    if mode is None:
        raise ValidationError("payment_mode", "is required")
    if mode not in MODE_VALIDATORS:
        raise ValidationError(
            "payment_mode",
            f"must be one of: {', '.join(MODE_VALIDATORS.keys())}"
        )

    for name, validator in PARTY_FIELDS:
        value = _value(fields, name)
        if value is not None:
            validator(value, field=name)

    MODE_VALIDATORS[mode](fields)
    return mode


def payment_metadata(payment_mode: str, fields: Mapping[str, Optional[str]]) -> dict:
    """
    Invoice fields to store for a validated payment.

    Only the identifier belonging to the mode is kept; the others are cleared.
    """
    return {
        "payment_mode": payment_mode,
        "transaction_id": _value(fields, "transaction_id"),
        "bank_account": _value(fields, "bank_account") if payment_mode == PaymentMode.BANK_TRANSFER.value else None,
        "upi_id": _value(fields, "upi_id") if payment_mode == PaymentMode.UPI.value else None,
    }
