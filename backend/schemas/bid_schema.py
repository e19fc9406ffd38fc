from marshmallow import Schema, fields, validate, validates, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.bid import Bid
from backend.schemas.common import LenientMeta, UTCDateTime
from backend.schemas.user_schema import PublicUserSchema

MIN_PROPOSAL_LENGTH = 20


class BidSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Bid
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    job_id = auto_field(dump_only=True)
    contractor_id = auto_field(dump_only=True)
    amount = auto_field()
    proposal = auto_field()
    time_estimate = auto_field()
    proposed_start_date = auto_field()
    status = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)
    contractor = fields.Nested(PublicUserSchema, dump_only=True)
    job_title = fields.Function(lambda obj: obj.job.title if obj.job else None, dump_only=True)


class BidInputSchema(Schema):
    Meta = LenientMeta

    job_id = fields.Int(required=True, validate=validate.Range(min=1))
    amount = fields.Float(required=True, validate=validate.Range(min=0.01))
    proposal = fields.Str(required=True)
    time_estimate = fields.Str(allow_none=True, validate=validate.Length(max=64))
    proposed_start_date = UTCDateTime(allow_none=True)

    @validates('proposal')
    def validate_proposal_length(self, value, **kwargs):
        if len(value.strip()) < MIN_PROPOSAL_LENGTH:
            raise ValidationError(f"Proposal must be at least {MIN_PROPOSAL_LENGTH} characters")
