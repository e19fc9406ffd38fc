from enum import Enum
from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive


class InvoiceStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    CANCELLED = "cancelled"
    # Derived at read time, never stored
    OVERDUE = "overdue"


class PaymentMethod(Enum):
    CASH = "cash"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    VENMO = "venmo"
    OTHER = "other"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


OVERDUE_ELIGIBLE_STATUSES = (InvoiceStatus.SENT.value, InvoiceStatus.VIEWED.value)


class Invoice(db.Model):
    __tablename__ = 'invoice'
    id = db.Column(db.Integer, primary_key=True)
    quote_id = db.Column(db.Integer, db.ForeignKey('quote.id', ondelete='SET NULL'), nullable=True, unique=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id', ondelete='SET NULL'), nullable=True, index=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    landlord_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    invoice_number = db.Column(db.String(32), unique=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=InvoiceStatus.DRAFT.value, index=True)

    subtotal = db.Column(db.Float, default=0.0, nullable=False)
    discount = db.Column(db.Float, default=0.0, nullable=False)
    tax_rate = db.Column(db.Float, default=0.0, nullable=False)
    tax_amount = db.Column(db.Float, default=0.0, nullable=False)
    total = db.Column(db.Float, default=0.0, nullable=False)
    amount_paid = db.Column(db.Float, default=0.0, nullable=False)

    notes = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    issued_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    sent_at = db.Column(db.DateTime, nullable=True)
    viewed_at = db.Column(db.DateTime, nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    payment_method = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    quote = db.relationship('Quote', backref=db.backref('invoice', uselist=False))
    job = db.relationship('Job')
    contractor = db.relationship('User', foreign_keys=[contractor_id])
    landlord = db.relationship('User', foreign_keys=[landlord_id])
    line_items = db.relationship(
        'InvoiceLineItem', back_populates='invoice', lazy=True,
        cascade='all, delete-orphan', order_by='InvoiceLineItem.sort_order'
    )

    @property
    def balance_due(self):
        return round(max(self.total - (self.amount_paid or 0.0), 0.0), 2)

    def effective_status(self, now=None):
        now = now or utc_now_naive()
        if self.status in OVERDUE_ELIGIBLE_STATUSES and self.due_date is not None and self.due_date < now:
            return InvoiceStatus.OVERDUE.value
        return self.status


class InvoiceLineItem(db.Model):
    __tablename__ = 'invoice_line_item'
    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoice.id', ondelete='CASCADE'), nullable=False, index=True)
    description = db.Column(db.String(512), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    total = db.Column(db.Float, nullable=False, default=0.0)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    invoice = db.relationship('Invoice', back_populates='line_items')
