from marshmallow import Schema, fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.profile import ContractorProfile, LandlordProfile, ServiceArea
from backend.schemas.common import LenientMeta

MAX_RADIUS_KM = 500


class ServiceAreaSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = ServiceArea
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    profile_id = auto_field(dump_only=True)
    city = auto_field()
    state = auto_field()
    latitude = auto_field()
    longitude = auto_field()
    radius_km = auto_field()
    created_at = auto_field(dump_only=True)


class ContractorProfileSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = ContractorProfile
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    user_id = auto_field(dump_only=True)
    business_name = auto_field()
    description = auto_field()
    phone_number = auto_field()
    website = auto_field()
    years_of_experience = auto_field()
    license_number = auto_field()
    has_liability_insurance = auto_field()
    trades = fields.List(fields.Str())
    average_rating = auto_field(dump_only=True)
    total_reviews = auto_field(dump_only=True)
    service_areas = fields.List(fields.Nested(ServiceAreaSchema), dump_only=True)


class LandlordProfileSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = LandlordProfile
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    user_id = auto_field(dump_only=True)
    bio = auto_field()
    average_rating = auto_field(dump_only=True)
    total_reviews = auto_field(dump_only=True)


class ServiceAreaInputSchema(Schema):
    Meta = LenientMeta

    city = fields.Str(required=True, validate=validate.Length(min=1, max=128))
    state = fields.Str(allow_none=True, validate=validate.Length(max=64))
    latitude = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(required=True, validate=validate.Range(min=-180, max=180))
    radius_km = fields.Float(
        required=True,
        validate=validate.Range(min=0, max=MAX_RADIUS_KM, min_inclusive=False)
    )


class ContractorProfileInputSchema(Schema):
    Meta = LenientMeta

    business_name = fields.Str(allow_none=True, validate=validate.Length(max=255))
    description = fields.Str(allow_none=True)
    phone_number = fields.Str(allow_none=True, validate=validate.Length(max=32))
    website = fields.Url(allow_none=True)
    years_of_experience = fields.Int(allow_none=True, validate=validate.Range(min=0, max=80))
    license_number = fields.Str(allow_none=True, validate=validate.Length(max=64))
    has_liability_insurance = fields.Bool()
    trades = fields.List(fields.Str())


class LandlordProfileInputSchema(Schema):
    Meta = LenientMeta

    bio = fields.Str(allow_none=True, validate=validate.Length(max=2000))
