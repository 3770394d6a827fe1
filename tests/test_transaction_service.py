from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from app.services.transaction_service import (
    calculate_daily_amounts,
    filter_by_invoice_number,
    sort_by_amount,
    sort_by_date,
    transactions_from_invoices,
)


def invoice(number, status, total, created_at, paid_at=None, updated_at=None):
    return SimpleNamespace(
        id=number,
        document_number=number,
        client_name="Globex Traders",
        status=status,
        total=Decimal(total),
        payment_mode="upi" if status == "paid" else None,
        created_at=created_at,
        updated_at=updated_at or created_at,
        paid_at=paid_at,
    )


MON = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
TUE = datetime(2026, 3, 3, 9, 0, tzinfo=timezone.utc)
WED = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)

INVOICES = [
    invoice("INV/25-26/00001", "paid", "236.00", MON, paid_at=TUE),
    invoice("INV/25-26/00002", "pending", "500.00", MON),
    invoice("INV/25-26/00003", "paid", "1425.00", TUE, paid_at=WED),
    invoice("INV/25-26/00004", "overdue", "100.00", TUE),
    invoice("INV/25-26/00005", "draft", "999.00", WED),
    invoice("QT-like/00006", "paid", "50.00", WED),
]


def test_only_paid_invoices_become_credit_transactions():
    transactions = transactions_from_invoices(INVOICES)

    assert [t["invoice_number"] for t in transactions] == [
        "QT-like/00006",
        "INV/25-26/00003",
        "INV/25-26/00001",
    ]
    assert {t["type"] for t in transactions} == {"credit"}
    assert transactions[1]["amount"] == Decimal("1425.00")
    assert transactions[1]["date"] == WED


def test_transaction_date_falls_back_to_updated_at():
    unpaid_at = invoice("INV/25-26/00009", "paid", "10.00", MON, updated_at=TUE)

    [transaction] = transactions_from_invoices([unpaid_at])

    assert transaction["date"] == TUE


def test_naive_datetimes_are_treated_as_utc():
    naive = invoice("INV/25-26/00010", "paid", "10.00", datetime(2026, 3, 2, 23, 30))

    [transaction] = transactions_from_invoices([naive])

    assert transaction["date"].tzinfo is timezone.utc


def test_filter_by_invoice_number_is_case_insensitive():
    transactions = transactions_from_invoices(INVOICES)

    matches = filter_by_invoice_number(transactions, "inv/25-26/0000")

    assert len(matches) == 2
    assert filter_by_invoice_number(transactions, "") == transactions
    assert filter_by_invoice_number(transactions, "nothing") == []


def test_sort_by_amount():
    transactions = transactions_from_invoices(INVOICES)

    ascending = [t["amount"] for t in sort_by_amount(transactions, "asc")]
    descending = [t["amount"] for t in sort_by_amount(transactions, "desc")]

    assert ascending == [Decimal("50.00"), Decimal("236.00"), Decimal("1425.00")]
    assert descending == list(reversed(ascending))


def test_sort_by_date_ascending():
    transactions = sort_by_date(transactions_from_invoices(INVOICES), "asc")

    assert [t["date"] for t in transactions] == [TUE, WED, WED]


def test_same_day_transactions_are_ordered_by_invoice_number():
    same_day = [
        invoice("INV/25-26/00012", "paid", "10.00", MON, paid_at=WED),
        invoice("INV/25-26/00011", "paid", "10.00", MON, paid_at=WED),
        invoice("INV/25-26/00013", "paid", "10.00", MON, paid_at=WED),
    ]
    transactions = transactions_from_invoices(same_day)

    newest_first = [t["invoice_number"] for t in sort_by_date(transactions, "desc")]
    oldest_first = [t["invoice_number"] for t in sort_by_date(transactions, "asc")]

    assert newest_first == ["INV/25-26/00013", "INV/25-26/00012", "INV/25-26/00011"]
    assert oldest_first == list(reversed(newest_first))


def test_daily_amounts_group_by_creation_day():
    rows = calculate_daily_amounts(INVOICES)

    assert rows == [
        {"day": "Mon", "date": date(2026, 3, 2), "received": Decimal("236.00"), "due": Decimal("500.00")},
        {"day": "Tue", "date": date(2026, 3, 3), "received": Decimal("1425.00"), "due": Decimal("100.00")},
        {"day": "Wed", "date": date(2026, 3, 4), "received": Decimal("50.00"), "due": Decimal("0.00")},
    ]


def test_daily_amounts_for_no_invoices():
    assert calculate_daily_amounts([]) == []
