import logging
from datetime import timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from backend.extensions import db
from backend.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from backend.models.quote import Quote, QuoteStatus
from backend.schemas.invoice_schema import ConvertQuoteSchema, PaymentSchema
from backend.services.common import (
    atomic, generate_document_number, get_or_404, load_payload, require_contractor, require_landlord
)
from backend.services.errors import AuthorizationError, ConflictError, ValidationError
from backend.utils.timezone_utils import utc_now_naive

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PREFIX = 'INV'
UNPAID_STATUSES = (InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value, InvoiceStatus.VIEWED.value)


class InvoiceService:

    @staticmethod
    def create_from_quote(actor, quote_id: int, due_date=None) -> Invoice:
        """
        Convert an accepted quote into an invoice. The invoice is a snapshot
        copy of the quote's amounts and line items that keeps ``quote_id``.
        Converting the same quote again returns the existing invoice.
        """
        require_contractor(actor)
        quote = get_or_404(Quote, quote_id, 'Quote')
        if quote.contractor_id != actor.id:
            raise AuthorizationError("You can only invoice your own quotes")

        existing = InvoiceService._existing_invoice(quote.id)
        if existing is not None:
            logger.info(f"Quote {quote.quote_number} already converted to invoice {existing.invoice_number}")
            return existing

        if quote.status != QuoteStatus.ACCEPTED.value:
            raise ConflictError("Only accepted quotes can be converted to an invoice")

        payload = load_payload(ConvertQuoteSchema(), {'due_date': due_date} if due_date else {})
        now = utc_now_naive()
        due = payload.get('due_date') or now + timedelta(days=current_app.config.get('DEFAULT_INVOICE_DUE_DAYS', 30))

        try:
            with atomic('create the invoice'):
                invoice = InvoiceService._snapshot(quote, due, now)
                db.session.add(invoice)
                try:
                    db.session.flush()
                except IntegrityError:
                    raise ConflictError(f"Quote {quote_id} was converted concurrently")
        except ConflictError:
            # Lost the race to a concurrent conversion; hand back the winner
            existing = Invoice.query.filter_by(quote_id=quote_id).first()
            if existing is None:
                raise
            return existing

        logger.info(f"Invoice {invoice.invoice_number} created from quote {quote.quote_number}")
        return invoice

    @staticmethod
    def _existing_invoice(quote_id):
        return Invoice.query.filter_by(quote_id=quote_id).first()

    @staticmethod
    def _snapshot(quote, due, now) -> Invoice:
        return Invoice(
            quote_id=quote.id,
            job_id=quote.job_id,
            contractor_id=quote.contractor_id,
            landlord_id=quote.landlord_id,
            invoice_number=generate_document_number(INVOICE_NUMBER_PREFIX, Invoice, Invoice.invoice_number),
            title=quote.title,
            status=InvoiceStatus.DRAFT.value,
            subtotal=quote.subtotal,
            discount=quote.discount,
            tax_rate=quote.tax_rate,
            tax_amount=quote.tax_amount,
            total=quote.total,
            amount_paid=0.0,
            notes=quote.notes,
            terms=quote.terms,
            due_date=due,
            issued_at=now,
            line_items=[
                InvoiceLineItem(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total=item.total,
                    sort_order=item.sort_order,
                )
                for item in quote.line_items
            ],
        )

    @staticmethod
    def get_invoice(actor, invoice_id: int) -> Invoice:
        invoice = get_or_404(Invoice, invoice_id, 'Invoice')
        if actor.id not in (invoice.contractor_id, invoice.landlord_id):
            raise AuthorizationError("You do not have access to this invoice")
        if actor.id == invoice.landlord_id and invoice.status == InvoiceStatus.DRAFT.value:
            raise AuthorizationError("This invoice has not been sent yet")
        return invoice

    @staticmethod
    def list_invoices(actor, status: Optional[str] = None) -> List[Invoice]:
        if actor.is_contractor:
            query = Invoice.query.filter_by(contractor_id=actor.id)
        else:
            query = Invoice.query.filter(
                Invoice.landlord_id == actor.id, Invoice.status != InvoiceStatus.DRAFT.value
            )
        invoices = query.order_by(Invoice.issued_at.desc(), Invoice.id.desc()).all()
        if status:
            now = utc_now_naive()
            invoices = [i for i in invoices if i.effective_status(now) == status]
        return invoices

    @staticmethod
    def send_invoice(actor, invoice_id: int) -> Invoice:
        require_contractor(actor)
        invoice = get_or_404(Invoice, invoice_id, 'Invoice')
        if invoice.contractor_id != actor.id:
            raise AuthorizationError("You can only send your own invoices")
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise ConflictError(f"Invoice {invoice.invoice_number} has already been sent")

        with atomic('send the invoice'):
            invoice.status = InvoiceStatus.SENT.value
            invoice.sent_at = utc_now_naive()

        logger.info(f"Invoice {invoice.invoice_number} sent to landlord {invoice.landlord_id}")
        return invoice

    @staticmethod
    def view_invoice(actor, invoice_id: int) -> Invoice:
        invoice = InvoiceService.get_invoice(actor, invoice_id)
        if actor.id == invoice.landlord_id and invoice.status == InvoiceStatus.SENT.value:
            with atomic('mark the invoice as viewed'):
                invoice.status = InvoiceStatus.VIEWED.value
                invoice.viewed_at = utc_now_naive()
        return invoice

    @staticmethod
    def record_payment(actor, invoice_id: int, amount, payment_method) -> Invoice:
        """Record a (possibly partial) payment; the invoice is paid once the total is covered."""
        require_landlord(actor)
        invoice = get_or_404(Invoice, invoice_id, 'Invoice')
        if invoice.landlord_id != actor.id:
            raise AuthorizationError("You can only pay invoices addressed to you")
        if invoice.status not in (InvoiceStatus.SENT.value, InvoiceStatus.VIEWED.value):
            raise ConflictError(f"Invoice {invoice.invoice_number} is '{invoice.status}' and cannot take payments")

        payload = load_payload(PaymentSchema(), {'amount': amount, 'payment_method': payment_method})
        amount = round(payload['amount'], 2)
        if amount > invoice.balance_due:
            raise ValidationError(f"Payment of {amount:.2f} exceeds the balance due of {invoice.balance_due:.2f}")

        with atomic('record the payment'):
            invoice.amount_paid = round((invoice.amount_paid or 0.0) + amount, 2)
            invoice.payment_method = payload['payment_method']
            if invoice.amount_paid >= invoice.total:
                invoice.status = InvoiceStatus.PAID.value
                invoice.paid_at = utc_now_naive()

        logger.info(
            f"Payment of {amount:.2f} recorded on invoice {invoice.invoice_number}; status {invoice.status}"
        )
        return invoice

    @staticmethod
    def cancel_invoice(actor, invoice_id: int) -> Invoice:
        require_contractor(actor)
        invoice = get_or_404(Invoice, invoice_id, 'Invoice')
        if invoice.contractor_id != actor.id:
            raise AuthorizationError("You can only cancel your own invoices")
        if invoice.status not in UNPAID_STATUSES:
            raise ConflictError(f"Invoice {invoice.invoice_number} is '{invoice.status}' and cannot be cancelled")
        if invoice.amount_paid:
            raise ConflictError("An invoice with recorded payments cannot be cancelled")

        with atomic('cancel the invoice'):
            invoice.status = InvoiceStatus.CANCELLED.value

        logger.info(f"Invoice {invoice.invoice_number} cancelled")
        return invoice
