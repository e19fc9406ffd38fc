from marshmallow import Schema, fields, validate, validates_schema, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.availability import TimeSlot, TimeSlotStatus
from backend.schemas.common import LenientMeta

HH_MM = validate.Regexp(r'^([01][0-9]|2[0-3]):[0-5][0-9]$', error='Time must be in HH:MM format')


class TimeSlotSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = TimeSlot
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    contractor_id = auto_field(dump_only=True)
    date = auto_field()
    start_time = auto_field()
    end_time = auto_field()
    status = auto_field()
    note = auto_field()
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)


class TimeSlotInputSchema(Schema):
    Meta = LenientMeta

    date = fields.Date(required=True)
    start_time = fields.Str(required=True, validate=HH_MM)
    end_time = fields.Str(required=True, validate=HH_MM)
    status = fields.Str(load_default=TimeSlotStatus.AVAILABLE.value, validate=validate.OneOf(TimeSlotStatus.values()))
    note = fields.Str(allow_none=True, validate=validate.Length(max=1000))

    @validates_schema
    def validate_order(self, data, **kwargs):
        start, end = data.get('start_time'), data.get('end_time')
        if start and end and end <= start:
            raise ValidationError({'end_time': ['End time must be after start time']})


class DateRangeSchema(Schema):
    Meta = LenientMeta

    start_date = fields.Date(allow_none=True)
    end_date = fields.Date(allow_none=True)

    @validates_schema
    def validate_range(self, data, **kwargs):
        start, end = data.get('start_date'), data.get('end_date')
        if start and end and end < start:
            raise ValidationError({'end_date': ['end_date must not be before start_date']})
