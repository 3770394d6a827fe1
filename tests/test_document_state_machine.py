import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.config import settings
from app.core.exceptions import AccessDeniedError, IllegalTransitionError, ValidationError
from app.models.document import Invoice, Quotation, QuotationItem
from app.services.document_state_machine import (
    apply_transition,
    can_edit,
    can_transition,
    convert_to_invoice,
    get_allowed_transitions,
    is_terminal,
    validate_transition,
)


OWNER = uuid.uuid4()
NOW = datetime(2026, 3, 2, 10, 30, tzinfo=timezone.utc)


def make_invoice(status="draft", **fields):
    return Invoice(
        id=uuid.uuid4(),
        document_number="INV/25-26/00001",
        owner_id=OWNER,
        status=status,
        issue_date=date(2026, 3, 1),
        client_name="Globex Traders",
        company_name="Acme Supplies",
        **fields,
    )


def make_quotation(status="accepted"):
    quotation = Quotation(
        id=uuid.uuid4(),
        document_number="QT/25-26/00007",
        owner_id=OWNER,
        status=status,
        issue_date=date(2026, 2, 20),
        due_date=date(2026, 3, 6),
        client_name="Globex Traders",
        client_gst_number="27ABCDE1234F1Z5",
        company_name="Acme Supplies",
        igst=Decimal("18"),
        cgst=Decimal("0"),
        sgst=Decimal("0"),
        discount_rate=Decimal("5"),
        subtotal=Decimal("1500.00"),
        igst_amount=Decimal("270.00"),
        cgst_amount=Decimal("0.00"),
        sgst_amount=Decimal("0.00"),
        discount_amount=Decimal("75.00"),
        total=Decimal("1695.00"),
        notes="Valid for 15 days",
    )
    quotation.items = [
        QuotationItem(id="a", position=0, description="Filter cartridge", quantity=Decimal("10"),
                      unit_price=Decimal("100"), amount=Decimal("1000.00")),
        QuotationItem(id="b", position=1, description="Installation", quantity=Decimal("1"),
                      unit_price=Decimal("500"), amount=Decimal("500.00")),
    ]
    return quotation


def test_cash_payment_with_transaction_id_is_rejected():
    invoice = make_invoice()

    with pytest.raises(ValidationError) as exc_info:
        apply_transition(invoice, "paid", {"payment_mode": "cash", "transaction_id": "123"})

    assert exc_info.value.field == "transaction_id"
    assert exc_info.value.reason == "not allowed for cash"
    assert invoice.status == "draft"
    assert invoice.payment_mode is None


def test_upi_payment_marks_invoice_paid():
    invoice = make_invoice()

    apply_transition(invoice, "paid", {"payment_mode": "upi", "upi_id": "9999999999@upi"}, now=NOW)

    assert invoice.status == "paid"
    assert invoice.payment_mode == "upi"
    assert invoice.upi_id == "9999999999@upi"
    assert invoice.transaction_id is None
    assert invoice.paid_at == NOW
    assert invoice.updated_at == NOW


def test_paid_is_terminal_and_cannot_be_reapplied():
    invoice = make_invoice()
    payment = {"payment_mode": "cash"}
    apply_transition(invoice, "paid", payment)

    assert is_terminal("invoice", "paid")
    assert can_transition(invoice, "paid", payment) is False
    with pytest.raises(IllegalTransitionError) as exc_info:
        apply_transition(invoice, "paid", payment)
    assert exc_info.value.allowed == []


def test_paid_requires_payment_details():
    with pytest.raises(ValidationError) as exc_info:
        validate_transition(make_invoice(status="pending"), "paid")

    assert exc_info.value.field == "payment_mode"


def test_document_pan_is_validated_on_payment():
    invoice = make_invoice(client_pan_number="BADPAN")

    with pytest.raises(ValidationError) as exc_info:
        apply_transition(invoice, "paid", {"payment_mode": "cash"})

    assert exc_info.value.field == "client_pan_number"


def test_payment_pan_overrides_and_is_stored():
    invoice = make_invoice(client_pan_number="BADPAN")

    apply_transition(invoice, "paid", {"payment_mode": "cash", "client_pan_number": "ABCDE1234F"})

    assert invoice.client_pan_number == "ABCDE1234F"


@pytest.mark.parametrize("current,target", [
    ("draft", "pending"),
    ("draft", "confirmed"),
    ("draft", "overdue"),
    ("pending", "overdue"),
    ("confirmed", "pending"),
])
def test_allowed_invoice_transitions(current, target):
    invoice = make_invoice(status=current)

    apply_transition(invoice, target)

    assert invoice.status == target


@pytest.mark.parametrize("current,target", [
    ("pending", "draft"),
    ("pending", "confirmed"),
    ("overdue", "pending"),
    ("pending", "pending"),
])
def test_illegal_invoice_transitions(current, target):
    with pytest.raises(IllegalTransitionError):
        apply_transition(make_invoice(status=current), target)


def test_unknown_status_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        apply_transition(make_invoice(), "archived")

    assert exc_info.value.field == "status"


def test_other_user_is_denied():
    invoice = make_invoice()

    with pytest.raises(AccessDeniedError):
        apply_transition(invoice, "pending", actor_id=uuid.uuid4())
    assert invoice.status == "draft"


def test_owner_may_transition():
    invoice = make_invoice()

    apply_transition(invoice, "pending", actor_id=OWNER)

    assert invoice.status == "pending"


def test_quotation_flow():
    quotation = make_quotation(status="draft")

    apply_transition(quotation, "sent")
    apply_transition(quotation, "accepted")

    assert quotation.status == "accepted"
    assert get_allowed_transitions("quotation", "accepted") == ["converted"]


def test_quotation_cannot_skip_sending():
    with pytest.raises(IllegalTransitionError):
        apply_transition(make_quotation(status="draft"), "accepted")


def test_rejected_quotation_is_terminal():
    quotation = make_quotation(status="sent")
    apply_transition(quotation, "rejected")

    assert is_terminal("quotation", "rejected")
    with pytest.raises(IllegalTransitionError):
        apply_transition(quotation, "accepted")


def test_converted_is_not_a_plain_status_change():
    with pytest.raises(ValidationError):
        apply_transition(make_quotation(), "converted")


def test_convert_accepted_quotation():
    quotation = make_quotation()

    quotation, invoice = convert_to_invoice(quotation, "INV/25-26/00042", actor_id=OWNER, now=NOW)

    assert invoice.status == "pending"
    assert invoice.document_number == "INV/25-26/00042"
    assert invoice.document_number != quotation.document_number
    assert invoice.issue_date == NOW.date()
    assert invoice.due_date == date(2026, 3, 6)
    assert invoice.source_quotation_id == quotation.id
    assert invoice.client_gst_number == "27ABCDE1234F1Z5"
    assert invoice.total == Decimal("1695.00")
    assert invoice.discount_rate == Decimal("5")
    assert [(i.id, i.amount) for i in invoice.items] == [
        ("a", Decimal("1000.00")),
        ("b", Decimal("500.00")),
    ]
    assert quotation.status == "converted"
    assert quotation.converted_invoice_id == invoice.id


@pytest.mark.parametrize("due_date", [date(2026, 2, 25), None])
def test_conversion_moves_lapsed_due_date_forward(due_date):
    quotation = make_quotation()
    quotation.due_date = due_date

    _, invoice = convert_to_invoice(quotation, "INV/25-26/00042", now=NOW)

    assert invoice.issue_date == date(2026, 3, 2)
    assert invoice.due_date == date(2026, 3, 2) + timedelta(days=settings.DEFAULT_DUE_DAYS)


def test_conversion_keeps_due_date_on_issue_day():
    quotation = make_quotation()
    quotation.due_date = NOW.date()

    _, invoice = convert_to_invoice(quotation, "INV/25-26/00042", now=NOW)

    assert invoice.due_date == NOW.date()


@pytest.mark.parametrize("status", ["draft", "sent", "rejected"])
def test_only_accepted_quotations_convert(status):
    with pytest.raises(IllegalTransitionError):
        convert_to_invoice(make_quotation(status=status), "INV/25-26/00042")


def test_converted_quotation_cannot_convert_again():
    quotation, _ = convert_to_invoice(make_quotation(), "INV/25-26/00042")

    with pytest.raises(IllegalTransitionError):
        convert_to_invoice(quotation, "INV/25-26/00043")


def test_conversion_needs_distinct_number():
    with pytest.raises(ValidationError) as exc_info:
        convert_to_invoice(make_quotation(), "QT/25-26/00007")

    assert exc_info.value.field == "document_number"


def test_conversion_checks_owner():
    with pytest.raises(AccessDeniedError):
        convert_to_invoice(make_quotation(), "INV/25-26/00042", actor_id=uuid.uuid4())


def test_edit_lock_rules():
    assert can_edit("invoice", "overdue")
    assert not can_edit("invoice", "paid")
    assert can_edit("quotation", "sent")
    assert not can_edit("quotation", "accepted")
    assert not can_edit("quotation", "converted")
