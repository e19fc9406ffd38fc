"""
Tests for converting quotes to invoices and recording payments
"""
from datetime import timedelta

import pytest

from backend.extensions import db
from backend.models.invoice import Invoice, InvoiceStatus
from backend.services.errors import AuthorizationError, ConflictError, ValidationError
from backend.services.invoice_service import InvoiceService
from backend.services.quote_service import QuoteService
from backend.tests.factories import make_user
from backend.utils.timezone_utils import utc_now_naive


@pytest.fixture
def accepted_quote(landlord, contractor, open_job):
    quote = QuoteService.create_quote(contractor, {
        'job_id': open_job.id,
        'title': 'Bathroom fan replacement',
        'line_items': [
            {'description': 'Exhaust fan', 'quantity': 1, 'unit_price': 120},
            {'description': 'Labour (hours)', 'quantity': 2, 'unit_price': 65},
        ],
        'discount': 10,
        'tax_rate': 15,
        'notes': 'Includes disposal of the old unit',
    })
    QuoteService.send_quote(contractor, quote.id)
    return QuoteService.accept_quote(landlord, quote.id)


@pytest.fixture
def sent_invoice(contractor, accepted_quote):
    invoice = InvoiceService.create_from_quote(contractor, accepted_quote.id)
    return InvoiceService.send_invoice(contractor, invoice.id)


class TestConvertQuote:

    def test_invoice_copies_quote(self, landlord, contractor, accepted_quote):
        invoice = InvoiceService.create_from_quote(contractor, accepted_quote.id)

        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.invoice_number.startswith('INV-')
        assert invoice.quote_id == accepted_quote.id
        assert invoice.landlord_id == landlord.id
        assert invoice.job_id == accepted_quote.job_id
        assert invoice.subtotal == 250.0
        assert invoice.discount == 10
        assert invoice.tax_amount == 36.0
        assert invoice.total == 276.0
        assert invoice.amount_paid == 0
        assert invoice.notes == 'Includes disposal of the old unit'
        assert [li.description for li in invoice.line_items] == ['Exhaust fan', 'Labour (hours)']
        assert accepted_quote.invoice.id == invoice.id

    def test_conversion_is_idempotent(self, contractor, accepted_quote):
        first = InvoiceService.create_from_quote(contractor, accepted_quote.id)
        second = InvoiceService.create_from_quote(contractor, accepted_quote.id)
        assert first.id == second.id

    def test_concurrent_conversion_returns_the_winner(self, monkeypatch, contractor, accepted_quote):
        first = InvoiceService.create_from_quote(contractor, accepted_quote.id)
        # Simulate a request that checked for an invoice before the first one committed
        monkeypatch.setattr(InvoiceService, '_existing_invoice', staticmethod(lambda quote_id: None))

        second = InvoiceService.create_from_quote(contractor, accepted_quote.id)

        assert second.id == first.id
        assert Invoice.query.filter_by(quote_id=accepted_quote.id).count() == 1

    def test_default_due_date(self, app, contractor, accepted_quote):
        invoice = InvoiceService.create_from_quote(contractor, accepted_quote.id)
        expected = invoice.issued_at + timedelta(days=app.config['DEFAULT_INVOICE_DUE_DAYS'])
        assert abs((invoice.due_date - expected).total_seconds()) < 1

    def test_explicit_due_date(self, contractor, accepted_quote):
        due = (utc_now_naive() + timedelta(days=14)).replace(microsecond=0)
        invoice = InvoiceService.create_from_quote(contractor, accepted_quote.id, due_date=due.isoformat() + 'Z')
        assert invoice.due_date == due

    def test_only_accepted_quotes_convert(self, contractor, open_job):
        quote = QuoteService.create_quote(contractor, {
            'job_id': open_job.id,
            'title': 'Draft quote',
            'line_items': [{'description': 'Labour', 'quantity': 1, 'unit_price': 50}],
        })
        with pytest.raises(ConflictError):
            InvoiceService.create_from_quote(contractor, quote.id)

    def test_only_quote_owner_converts(self, other_contractor, accepted_quote):
        with pytest.raises(AuthorizationError):
            InvoiceService.create_from_quote(other_contractor, accepted_quote.id)


class TestSendAndView:

    def test_landlord_cannot_see_draft(self, landlord, contractor, accepted_quote):
        invoice = InvoiceService.create_from_quote(contractor, accepted_quote.id)
        with pytest.raises(AuthorizationError):
            InvoiceService.get_invoice(landlord, invoice.id)
        assert InvoiceService.list_invoices(landlord) == []

    def test_send_then_view(self, landlord, contractor, sent_invoice):
        assert sent_invoice.status == InvoiceStatus.SENT.value
        assert sent_invoice.sent_at is not None
        invoice = InvoiceService.view_invoice(landlord, sent_invoice.id)
        assert invoice.status == InvoiceStatus.VIEWED.value
        with pytest.raises(ConflictError):
            InvoiceService.send_invoice(contractor, invoice.id)

    def test_overdue_is_derived(self, landlord, sent_invoice):
        sent_invoice.due_date = utc_now_naive() - timedelta(days=1)
        db.session.commit()
        assert sent_invoice.effective_status() == InvoiceStatus.OVERDUE.value
        assert sent_invoice.status == InvoiceStatus.SENT.value
        assert [i.id for i in InvoiceService.list_invoices(landlord, status='overdue')] == [sent_invoice.id]

    def test_strangers_cannot_read(self, sent_invoice):
        with pytest.raises(AuthorizationError):
            InvoiceService.get_invoice(make_user('landlord'), sent_invoice.id)


class TestPayments:

    def test_partial_then_full_payment(self, landlord, sent_invoice):
        invoice = InvoiceService.record_payment(landlord, sent_invoice.id, 100, 'bank_transfer')
        assert invoice.amount_paid == 100
        assert invoice.balance_due == 176.0
        assert invoice.status == InvoiceStatus.SENT.value

        invoice = InvoiceService.record_payment(landlord, sent_invoice.id, 176, 'cash')
        assert invoice.status == InvoiceStatus.PAID.value
        assert invoice.paid_at is not None
        assert invoice.balance_due == 0
        assert invoice.payment_method == 'cash'

    def test_overpayment_rejected(self, landlord, sent_invoice):
        with pytest.raises(ValidationError):
            InvoiceService.record_payment(landlord, sent_invoice.id, 500, 'cash')

    def test_unknown_payment_method(self, landlord, sent_invoice):
        with pytest.raises(ValidationError):
            InvoiceService.record_payment(landlord, sent_invoice.id, 10, 'barter')

    def test_paid_invoice_takes_no_more_payments(self, landlord, sent_invoice):
        InvoiceService.record_payment(landlord, sent_invoice.id, 276, 'check')
        with pytest.raises(ConflictError):
            InvoiceService.record_payment(landlord, sent_invoice.id, 1, 'check')

    def test_draft_cannot_be_paid(self, landlord, contractor, accepted_quote):
        invoice = InvoiceService.create_from_quote(contractor, accepted_quote.id)
        with pytest.raises(ConflictError):
            InvoiceService.record_payment(landlord, invoice.id, 10, 'cash')


class TestCancel:

    def test_cancel_unpaid(self, contractor, sent_invoice):
        invoice = InvoiceService.cancel_invoice(contractor, sent_invoice.id)
        assert invoice.status == InvoiceStatus.CANCELLED.value

    def test_cannot_cancel_after_payment(self, landlord, contractor, sent_invoice):
        InvoiceService.record_payment(landlord, sent_invoice.id, 50, 'cash')
        with pytest.raises(ConflictError):
            InvoiceService.cancel_invoice(contractor, sent_invoice.id)
