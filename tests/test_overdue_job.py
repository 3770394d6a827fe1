from datetime import date, datetime, timezone

from app.jobs.overdue_invoices import run_overdue_invoices_job
from app.jobs.scheduler import get_job_status
from app.models.document_sequence import DocumentSequence
from app.services.invoice_service import local_today, mark_overdue_invoices
from tests.conftest import invoice_payload


PAST = {"issue_date": "2026-01-01", "due_date": "2026-01-10"}


async def create_invoice(client, headers, **overrides):
    response = await client.post("/api/v1/invoices", json=invoice_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def status_of(client, headers, invoice):
    response = await client.get(f"/api/v1/invoices/{invoice['id']}", headers=headers)
    return response.json()["status"]


async def test_past_due_invoices_are_marked_overdue(client, headers, db):
    pending = await create_invoice(client, headers, **PAST)
    draft = await create_invoice(client, headers, status="draft", **PAST)
    paid = await create_invoice(client, headers, status="paid", payment={"payment_mode": "cash"}, **PAST)
    current = await create_invoice(client, headers, issue_date="2026-01-01", due_date="2026-02-01")

    marked = await mark_overdue_invoices(db, today=date(2026, 1, 15))

    assert marked == 2
    assert await status_of(client, headers, pending) == "overdue"
    assert await status_of(client, headers, draft) == "overdue"
    assert await status_of(client, headers, paid) == "paid"
    assert await status_of(client, headers, current) == "pending"


async def test_due_today_is_not_overdue(client, headers, db):
    invoice = await create_invoice(client, headers, **PAST)

    marked = await mark_overdue_invoices(db, today=date(2026, 1, 10))

    assert marked == 0
    assert await status_of(client, headers, invoice) == "pending"


async def test_overdue_invoice_can_still_be_paid(client, headers, db):
    invoice = await create_invoice(client, headers, **PAST)
    await mark_overdue_invoices(db, today=date(2026, 1, 15))

    response = await client.post(
        f"/api/v1/invoices/{invoice['id']}/status",
        json={"status": "paid", "payment": {"payment_mode": "cheque", "transaction_id": "004512"}},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert response.json()["transaction_id"] == "004512"


async def test_job_reports_marked_count(client, headers):
    await create_invoice(client, headers, **PAST)

    summary = await run_overdue_invoices_job(today=date(2026, 1, 15))

    assert summary["marked_overdue"] == 1
    assert "started_at" in summary
    assert (await run_overdue_invoices_job(today=date(2026, 1, 15)))["marked_overdue"] == 0


def test_no_jobs_scheduled_when_disabled():
    assert get_job_status() == []


def test_financial_year_runs_april_to_march():
    assert DocumentSequence.get_financial_year(date(2026, 1, 15)) == "25-26"
    assert DocumentSequence.get_financial_year(date(2026, 3, 31)) == "25-26"
    assert DocumentSequence.get_financial_year(date(2026, 4, 1)) == "26-27"


def test_today_follows_the_scheduler_timezone():
    # 01:00 in Asia/Kolkata, still the previous day in UTC
    sweep_time = datetime(2026, 1, 14, 19, 30, tzinfo=timezone.utc)

    assert local_today(sweep_time) == date(2026, 1, 15)
    assert local_today(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)) == date(2026, 1, 15)
