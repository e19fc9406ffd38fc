from marshmallow import Schema, fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.invoice import Invoice, InvoiceLineItem, PaymentMethod
from backend.schemas.common import LenientMeta, UTCDateTime, display_time


class InvoiceLineItemSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = InvoiceLineItem
        load_instance = True

    id = auto_field(dump_only=True)
    description = auto_field(dump_only=True)
    quantity = auto_field(dump_only=True)
    unit_price = auto_field(dump_only=True)
    total = auto_field(dump_only=True)
    sort_order = auto_field(dump_only=True)


class InvoiceSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Invoice
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    quote_id = auto_field(dump_only=True)
    job_id = auto_field(dump_only=True)
    contractor_id = auto_field(dump_only=True)
    landlord_id = auto_field(dump_only=True)
    invoice_number = auto_field(dump_only=True)
    title = auto_field(dump_only=True)
    status = fields.Method('get_status', dump_only=True)
    subtotal = auto_field(dump_only=True)
    discount = auto_field(dump_only=True)
    tax_rate = auto_field(dump_only=True)
    tax_amount = auto_field(dump_only=True)
    total = auto_field(dump_only=True)
    amount_paid = auto_field(dump_only=True)
    balance_due = fields.Float(dump_only=True)
    notes = auto_field(dump_only=True)
    terms = auto_field(dump_only=True)
    due_date = auto_field(dump_only=True)
    due_date_display = display_time('due_date')
    issued_at = auto_field(dump_only=True)
    sent_at = auto_field(dump_only=True)
    viewed_at = auto_field(dump_only=True)
    paid_at = auto_field(dump_only=True)
    payment_method = auto_field(dump_only=True)
    line_items = fields.List(fields.Nested(InvoiceLineItemSchema), dump_only=True)

    def get_status(self, obj):
        return obj.effective_status()


class ConvertQuoteSchema(Schema):
    Meta = LenientMeta

    due_date = UTCDateTime(allow_none=True)


class PaymentSchema(Schema):
    Meta = LenientMeta

    amount = fields.Float(required=True, validate=validate.Range(min=0.01))
    payment_method = fields.Str(required=True, validate=validate.OneOf(PaymentMethod.values()))
