"""
Transactions view over invoices.

A paid invoice is a credit transaction. The helpers here are pure; the
service only loads the user's invoices and hands them over.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from app.models.document import InvoiceStatus
from app.services.invoice_service import InvoiceService


logger = logging.getLogger(__name__)

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

DUE_STATUSES = (InvoiceStatus.PENDING.value, InvoiceStatus.OVERDUE.value)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _transaction_date(invoice: Any) -> datetime:
    return _as_utc(invoice.paid_at or invoice.updated_at or invoice.created_at)


def transactions_from_invoices(invoices: Iterable[Any]) -> List[Dict[str, Any]]:
    """Paid invoices as credit transactions, newest first."""
    transactions = [
        {
            "id": invoice.id,
            "invoice_id": invoice.id,
            "invoice_number": invoice.document_number,
            "client_name": invoice.client_name,
            "amount": invoice.total,
            "type": "credit",
            "date": _transaction_date(invoice),
            "status": invoice.status,
            "payment_mode": invoice.payment_mode,
        }
        for invoice in invoices
        if invoice.status == InvoiceStatus.PAID.value
    ]
    return sort_by_date(transactions, "desc")


def filter_by_invoice_number(transactions: List[Dict[str, Any]], search: Optional[str]) -> List[Dict[str, Any]]:
    """Case-insensitive substring match on the invoice number."""
    if not search:
        return transactions
    needle = search.lower()
    return [t for t in transactions if needle in t["invoice_number"].lower()]


def sort_by_amount(transactions: List[Dict[str, Any]], direction: str = "desc") -> List[Dict[str, Any]]:
    return sorted(transactions, key=lambda t: t["amount"], reverse=direction == "desc")


def sort_by_date(transactions: List[Dict[str, Any]], direction: str = "desc") -> List[Dict[str, Any]]:
    # Invoice number breaks ties between transactions on the same date
    return sorted(
        transactions, key=lambda t: (t["date"], t["invoice_number"]), reverse=direction == "desc"
    )


def calculate_daily_amounts(invoices: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Received and due totals per creation day, oldest day first.

    ``received`` sums paid invoices; ``due`` sums pending and overdue ones.
    Other statuses still produce a (zero) row for their day.
    """
    daily: Dict[date, Dict[str, Decimal]] = {}
    for invoice in invoices:
        day = _as_utc(invoice.created_at).date()
        amounts = daily.setdefault(day, {"received": Decimal("0.00"), "due": Decimal("0.00")})
        if invoice.status == InvoiceStatus.PAID.value:
            amounts["received"] += invoice.total
        elif invoice.status in DUE_STATUSES:
            amounts["due"] += invoice.total

    ordered = OrderedDict(sorted(daily.items()))
    return [
        {
            "day": WEEKDAYS[day.weekday()],
            "date": day,
            "received": amounts["received"],
            "due": amounts["due"],
        }
        for day, amounts in ordered.items()
    ]


class TransactionService:
    """Transactions and daily amounts for the acting user."""

    def __init__(self, invoices: InvoiceService):
        self.invoices = invoices

    async def list_transactions(
        self,
        search: Optional[str] = None,
        sort_by: str = "date",
        direction: str = "desc",
    ) -> List[Dict[str, Any]]:
        transactions = transactions_from_invoices(await self.invoices.list_all())
        transactions = filter_by_invoice_number(transactions, search)
        if sort_by == "amount":
            return sort_by_amount(transactions, direction)
        return sort_by_date(transactions, direction)

    async def daily_amounts(self) -> List[Dict[str, Any]]:
        return calculate_daily_amounts(await self.invoices.list_all())
