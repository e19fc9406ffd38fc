import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from flask import current_app

from backend.extensions import db
from backend.models.job import Job, JobStatus
from backend.models.quote import Quote, QuoteLineItem, QuoteStatus
from backend.models.user import User
from backend.schemas.quote_schema import QuoteInputSchema, QuoteRejectSchema
from backend.services.common import (
    atomic, generate_document_number, get_or_404, load_payload, require_contractor
)
from backend.services.errors import AuthorizationError, ConflictError, ValidationError
from backend.services.job_template_service import JobTemplateService
from backend.services.notification_service import NotificationService
from backend.utils.timezone_utils import utc_now_naive

logger = logging.getLogger(__name__)

QUOTE_NUMBER_PREFIX = 'QUO'
DECIDABLE_STATUSES = (QuoteStatus.SENT.value, QuoteStatus.VIEWED.value)


def calculate_totals(line_items, discount=0.0, tax_rate=0.0):
    """
    Price a list of ``{'quantity', 'unit_price'}`` dicts.

    Tax applies to the discounted subtotal. Returns (line_totals, subtotal,
    tax_amount, total), all rounded to cents.
    """
    line_totals = [round(item['quantity'] * item['unit_price'], 2) for item in line_items]
    subtotal = round(sum(line_totals), 2)
    discount = discount or 0.0
    if discount > subtotal:
        raise ValidationError("Discount cannot exceed the subtotal")
    taxable = subtotal - discount
    tax_amount = round(taxable * (tax_rate or 0.0) / 100, 2)
    total = round(taxable + tax_amount, 2)
    return line_totals, subtotal, tax_amount, total


class QuoteService:
    """
    Quotes go draft -> sent -> viewed -> accepted | rejected. A sent or viewed
    quote past its valid_until reads as expired; expiry is computed on read and
    never written.
    """

    @staticmethod
    def _apply_line_items(quote, line_items, discount, tax_rate):
        line_totals, subtotal, tax_amount, total = calculate_totals(line_items, discount, tax_rate)
        quote.line_items = [
            QuoteLineItem(
                description=item['description'].strip(),
                quantity=item['quantity'],
                unit_price=round(item['unit_price'], 2),
                total=line_total,
                sort_order=index,
            )
            for index, (item, line_total) in enumerate(zip(line_items, line_totals))
        ]
        quote.discount = discount
        quote.tax_rate = tax_rate
        quote.subtotal = subtotal
        quote.tax_amount = tax_amount
        quote.total = total

    @staticmethod
    def _apply_template(actor, payload):
        template = JobTemplateService.get_template(actor, payload['template_id'])
        if not payload['line_items']:
            payload['line_items'] = [
                {'description': m.description, 'quantity': m.quantity, 'unit_price': m.unit_price}
                for m in template.materials
            ]
        if payload.get('estimated_duration_days') is None:
            payload['estimated_duration_days'] = template.estimated_duration_days

    @staticmethod
    def _resolve_landlord(actor, payload):
        job_id = payload.get('job_id')
        landlord_id = payload.get('landlord_id')
        if job_id is not None:
            job = get_or_404(Job, job_id, 'Job')
            if job.status not in (JobStatus.OPEN.value, JobStatus.IN_PROGRESS.value):
                raise ConflictError(f"Cannot quote on a job that is '{job.status}'")
            if job.status == JobStatus.IN_PROGRESS.value and job.contractor_id != actor.id:
                raise AuthorizationError("Only the assigned contractor can quote on a job in progress")
            if landlord_id is not None and landlord_id != job.landlord_id:
                raise ValidationError("landlord_id does not match the job's landlord")
            return job.landlord_id
        landlord = db.session.get(User, landlord_id)
        if landlord is None or not landlord.is_landlord:
            raise ValidationError(f"Landlord {landlord_id} not found")
        return landlord.id

    @staticmethod
    def _get_own_quote(actor, quote_id) -> Quote:
        require_contractor(actor)
        quote = get_or_404(Quote, quote_id, 'Quote')
        if quote.contractor_id != actor.id:
            raise AuthorizationError("You can only manage your own quotes")
        return quote

    @staticmethod
    def _get_received_quote(actor, quote_id) -> Quote:
        quote = get_or_404(Quote, quote_id, 'Quote')
        if quote.landlord_id != actor.id:
            raise AuthorizationError("Only the landlord this quote was addressed to can do that")
        return quote

    @staticmethod
    def _require_decidable(quote, now):
        status = quote.effective_status(now)
        if status == QuoteStatus.EXPIRED.value:
            raise ConflictError(f"Quote {quote.quote_number} expired on {quote.valid_until:%Y-%m-%d}")
        if status not in DECIDABLE_STATUSES:
            raise ConflictError(f"Quote {quote.quote_number} is '{status}' and can no longer be accepted or rejected")

    # ------------------------------------------------------------------
    # contractor side
    # ------------------------------------------------------------------
    @staticmethod
    def create_quote(actor, data: Dict[str, Any]) -> Quote:
        require_contractor(actor)
        payload = load_payload(QuoteInputSchema(), data)
        landlord_id = QuoteService._resolve_landlord(actor, payload)
        if payload.get('template_id') is not None:
            QuoteService._apply_template(actor, payload)

        with atomic('create the quote'):
            quote = Quote(
                job_id=payload.get('job_id'),
                contractor_id=actor.id,
                landlord_id=landlord_id,
                quote_number=generate_document_number(QUOTE_NUMBER_PREFIX, Quote, Quote.quote_number),
                title=payload['title'].strip(),
                status=QuoteStatus.DRAFT.value,
                notes=payload.get('notes'),
                terms=payload.get('terms'),
                preferred_start_date=payload.get('preferred_start_date'),
                estimated_duration_days=payload.get('estimated_duration_days'),
                valid_until=payload.get('valid_until'),
                payment_methods=payload.get('payment_methods') or [],
            )
            QuoteService._apply_line_items(quote, payload['line_items'], payload['discount'], payload['tax_rate'])
            db.session.add(quote)

        logger.info(f"Quote {quote.quote_number} created by contractor {actor.id} for landlord {landlord_id}")
        return quote

    @staticmethod
    def update_quote(actor, quote_id: int, data: Dict[str, Any]) -> Quote:
        quote = QuoteService._get_own_quote(actor, quote_id)
        if quote.status != QuoteStatus.DRAFT.value:
            raise ConflictError("Only draft quotes can be edited")

        payload = load_payload(QuoteInputSchema(), data, partial=True)
        for key in ('job_id', 'landlord_id'):
            payload.pop(key, None)

        with atomic('update the quote'):
            for key in ('title', 'notes', 'terms', 'preferred_start_date',
                        'estimated_duration_days', 'valid_until', 'payment_methods'):
                if key in payload:
                    setattr(quote, key, payload[key])
            if {'line_items', 'discount', 'tax_rate'} & set(payload):
                line_items = payload.get('line_items')
                if line_items is None:
                    line_items = [
                        {'description': li.description, 'quantity': li.quantity, 'unit_price': li.unit_price}
                        for li in quote.line_items
                    ]
                QuoteService._apply_line_items(
                    quote, line_items,
                    payload.get('discount', quote.discount),
                    payload.get('tax_rate', quote.tax_rate),
                )

        logger.info(f"Quote {quote.quote_number} updated")
        return quote

    @staticmethod
    def send_quote(actor, quote_id: int) -> Quote:
        quote = QuoteService._get_own_quote(actor, quote_id)
        if quote.status != QuoteStatus.DRAFT.value:
            raise ConflictError(f"Quote {quote.quote_number} has already been sent")
        if not quote.line_items:
            raise ValidationError("A quote needs at least one line item before it can be sent")

        now = utc_now_naive()
        if quote.valid_until is not None and quote.valid_until < now:
            raise ValidationError("valid_until is in the past")

        with atomic('send the quote'):
            quote.status = QuoteStatus.SENT.value
            quote.sent_at = now
            if quote.valid_until is None:
                days = current_app.config.get('DEFAULT_QUOTE_VALIDITY_DAYS', 30)
                quote.valid_until = now + timedelta(days=days)

        logger.info(f"Quote {quote.quote_number} sent to landlord {quote.landlord_id}")
        NotificationService.quote_sent(quote)
        return quote

    # ------------------------------------------------------------------
    # landlord side
    # ------------------------------------------------------------------
    @staticmethod
    def view_quote(actor, quote_id: int) -> Quote:
        """The landlord opens the quote; the first view of a live sent quote marks it viewed."""
        quote = QuoteService._get_received_quote(actor, quote_id)
        now = utc_now_naive()
        if quote.effective_status(now) == QuoteStatus.SENT.value:
            with atomic('mark the quote as viewed'):
                quote.status = QuoteStatus.VIEWED.value
                quote.viewed_at = now
            logger.info(f"Quote {quote.quote_number} viewed by landlord {actor.id}")
        return quote

    @staticmethod
    def accept_quote(actor, quote_id: int) -> Quote:
        quote = QuoteService._get_received_quote(actor, quote_id)
        now = utc_now_naive()
        QuoteService._require_decidable(quote, now)

        with atomic('accept the quote'):
            if quote.viewed_at is None:
                quote.viewed_at = now
            quote.status = QuoteStatus.ACCEPTED.value
            quote.accepted_at = now

        logger.info(f"Quote {quote.quote_number} accepted by landlord {actor.id}")
        return quote

    @staticmethod
    def reject_quote(actor, quote_id: int, reason: Optional[str] = None) -> Quote:
        quote = QuoteService._get_received_quote(actor, quote_id)
        reason = load_payload(QuoteRejectSchema(), {'reason': reason}).get('reason')
        now = utc_now_naive()
        QuoteService._require_decidable(quote, now)

        with atomic('reject the quote'):
            quote.status = QuoteStatus.REJECTED.value
            quote.rejected_at = now
            quote.rejection_reason = reason

        logger.info(f"Quote {quote.quote_number} rejected by landlord {actor.id}")
        return quote

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    @staticmethod
    def get_quote(actor, quote_id: int) -> Quote:
        quote = get_or_404(Quote, quote_id, 'Quote')
        if actor.id not in (quote.contractor_id, quote.landlord_id):
            raise AuthorizationError("You do not have access to this quote")
        # Landlords never see drafts
        if actor.id == quote.landlord_id and actor.id != quote.contractor_id \
                and quote.status == QuoteStatus.DRAFT.value:
            raise AuthorizationError("This quote has not been sent yet")
        return quote

    @staticmethod
    def list_quotes(actor, status: Optional[str] = None) -> List[Quote]:
        if actor.is_contractor:
            quotes = Quote.query.filter_by(contractor_id=actor.id)
        else:
            quotes = Quote.query.filter(
                Quote.landlord_id == actor.id, Quote.status != QuoteStatus.DRAFT.value
            )
        quotes = quotes.order_by(Quote.created_at.desc(), Quote.id.desc()).all()
        if status:
            now = utc_now_naive()
            quotes = [q for q in quotes if q.effective_status(now) == status]
        return quotes
