from marshmallow import Schema, fields, validate, validates_schema, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.invoice import PaymentMethod
from backend.models.quote import Quote, QuoteLineItem
from backend.schemas.common import LenientMeta, UTCDateTime, display_time


class QuoteLineItemSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = QuoteLineItem
        load_instance = True

    id = auto_field(dump_only=True)
    description = auto_field()
    quantity = auto_field()
    unit_price = auto_field()
    total = auto_field(dump_only=True)
    sort_order = auto_field(dump_only=True)


class QuoteSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Quote
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    job_id = auto_field(dump_only=True)
    contractor_id = auto_field(dump_only=True)
    landlord_id = auto_field(dump_only=True)
    quote_number = auto_field(dump_only=True)
    title = auto_field()
    # Reported with lazy expiry applied
    status = fields.Method('get_status', dump_only=True)
    subtotal = auto_field(dump_only=True)
    discount = auto_field()
    tax_rate = auto_field()
    tax_amount = auto_field(dump_only=True)
    total = auto_field(dump_only=True)
    notes = auto_field()
    terms = auto_field()
    preferred_start_date = auto_field()
    estimated_duration_days = auto_field()
    valid_until = auto_field()
    valid_until_display = display_time('valid_until')
    payment_methods = fields.List(fields.Str())
    sent_at = auto_field(dump_only=True)
    viewed_at = auto_field(dump_only=True)
    accepted_at = auto_field(dump_only=True)
    rejected_at = auto_field(dump_only=True)
    rejection_reason = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)
    line_items = fields.List(fields.Nested(QuoteLineItemSchema), dump_only=True)
    invoice_id = fields.Function(lambda obj: obj.invoice.id if obj.invoice else None, dump_only=True)

    def get_status(self, obj):
        return obj.effective_status()


class LineItemInputSchema(Schema):
    Meta = LenientMeta

    description = fields.Str(required=True, validate=validate.Length(min=1, max=512))
    quantity = fields.Float(required=True, validate=validate.Range(min=1))
    unit_price = fields.Float(required=True, validate=validate.Range(min=0))


class QuoteInputSchema(Schema):
    Meta = LenientMeta

    job_id = fields.Int(allow_none=True, validate=validate.Range(min=1))
    landlord_id = fields.Int(allow_none=True, validate=validate.Range(min=1))
    # Line items and duration default to those of the contractor's job template
    template_id = fields.Int(allow_none=True, validate=validate.Range(min=1))
    title = fields.Str(required=True, validate=validate.Length(min=3, max=255))
    line_items = fields.List(fields.Nested(LineItemInputSchema), load_default=list)
    discount = fields.Float(load_default=0.0, validate=validate.Range(min=0))
    tax_rate = fields.Float(load_default=0.0, validate=validate.Range(min=0, max=100))
    notes = fields.Str(allow_none=True)
    terms = fields.Str(allow_none=True)
    preferred_start_date = UTCDateTime(allow_none=True)
    estimated_duration_days = fields.Int(allow_none=True, validate=validate.Range(min=0))
    valid_until = UTCDateTime(allow_none=True)
    payment_methods = fields.List(
        fields.Str(validate=validate.OneOf(PaymentMethod.values())), load_default=list
    )

    @validates_schema
    def validate_counterparty(self, data, partial=False, **kwargs):
        if partial:
            return
        if data.get('job_id') is None and data.get('landlord_id') is None:
            raise ValidationError({'landlord_id': ['landlord_id is required when no job_id is given']})


class QuoteRejectSchema(Schema):
    Meta = LenientMeta

    reason = fields.Str(allow_none=True, validate=validate.Length(max=1024))
