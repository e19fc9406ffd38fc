from marshmallow import Schema, fields, validate, validates, validates_schema, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.job import Job, PricingType
from backend.models.job_audit import JobAudit
from backend.schemas.common import LenientMeta, UTCDateTime, display_time


class JobSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Job
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    landlord_id = auto_field(dump_only=True)
    contractor_id = auto_field(dump_only=True)
    title = auto_field()
    description = auto_field()
    status = auto_field(dump_only=True)
    pricing_type = auto_field()
    budget = auto_field()
    address = auto_field()
    city = auto_field()
    state = auto_field()
    zip_code = auto_field()
    latitude = auto_field()
    longitude = auto_field()
    category_tags = fields.List(fields.Str())
    images = fields.List(fields.Str())
    is_urgent = auto_field()
    start_date = auto_field()
    start_date_display = display_time('start_date')
    progress = auto_field(dump_only=True)
    completion_requested_at = auto_field(dump_only=True)
    completed_at = auto_field(dump_only=True)
    cancelled_at = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)
    bid_count = fields.Method('get_bid_count', dump_only=True)

    def get_bid_count(self, obj):
        return obj.bids.count()


class JobAuditSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = JobAudit
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    job_id = auto_field(dump_only=True)
    changed_at = auto_field(dump_only=True)
    changed_by = auto_field(dump_only=True)
    old_status = auto_field(dump_only=True)
    new_status = auto_field(dump_only=True)
    reason = auto_field(dump_only=True)
    additional_data = fields.Raw(dump_only=True)


class JobInputSchema(Schema):
    """Fields a landlord may set when creating or editing a job."""
    Meta = LenientMeta

    title = fields.Str(required=True, validate=validate.Length(min=3, max=255))
    description = fields.Str(required=True, validate=validate.Length(min=5))
    pricing_type = fields.Str(
        load_default=PricingType.OPEN_BID.value,
        validate=validate.OneOf([p.value for p in PricingType])
    )
    budget = fields.Float(allow_none=True, validate=validate.Range(min=0.01))
    address = fields.Str(allow_none=True, validate=validate.Length(max=255))
    city = fields.Str(allow_none=True, validate=validate.Length(max=128))
    state = fields.Str(allow_none=True, validate=validate.Length(max=64))
    zip_code = fields.Str(allow_none=True, validate=validate.Length(max=16))
    latitude = fields.Float(allow_none=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(allow_none=True, validate=validate.Range(min=-180, max=180))
    category_tags = fields.List(fields.Str(), load_default=list)
    images = fields.List(fields.Str(validate=validate.Length(max=1024)), load_default=list)
    is_urgent = fields.Bool(load_default=False)
    start_date = UTCDateTime(allow_none=True)
    publish = fields.Bool(load_default=False)

    @validates('title')
    def validate_title_not_blank(self, value, **kwargs):
        if len(value.strip()) < 3:
            raise ValidationError("Title must be at least 3 characters")

    @validates_schema
    def validate_coordinate_pair(self, data, partial=False, **kwargs):
        # Edits are checked against the stored job by JobService.update_job
        if partial:
            return
        has_lat = data.get('latitude') is not None
        has_lon = data.get('longitude') is not None
        if has_lat != has_lon:
            raise ValidationError({'latitude': ['latitude and longitude must be provided together']})


class JobProgressSchema(Schema):
    Meta = LenientMeta

    progress = fields.Int(required=True, strict=True, validate=validate.Range(min=0, max=100))


class JobAssignSchema(Schema):
    Meta = LenientMeta

    contractor_id = fields.Int(required=True, validate=validate.Range(min=1))


class JobCancelSchema(Schema):
    Meta = LenientMeta

    reason = fields.Str(allow_none=True, validate=validate.Length(max=512))
