from backend.extensions import db
from backend.models.types import JSONVariant
from backend.utils.timezone_utils import utc_now_naive


class LandlordProfile(db.Model):
    __tablename__ = 'landlord_profile'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), unique=True, nullable=False)
    bio = db.Column(db.Text, nullable=True)
    average_rating = db.Column(db.Float, default=0.0, nullable=False)
    total_reviews = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)

    user = db.relationship('User', back_populates='landlord_profile')


class ContractorProfile(db.Model):
    __tablename__ = 'contractor_profile'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), unique=True, nullable=False)
    business_name = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    years_of_experience = db.Column(db.Integer, nullable=True)
    license_number = db.Column(db.String(64), nullable=True)
    has_liability_insurance = db.Column(db.Boolean, default=False, nullable=False)
    trades = db.Column(JSONVariant, default=list, nullable=False)
    average_rating = db.Column(db.Float, default=0.0, nullable=False)
    total_reviews = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    user = db.relationship('User', back_populates='contractor_profile')
    service_areas = db.relationship(
        'ServiceArea', back_populates='profile', lazy=True,
        cascade='all, delete-orphan', order_by='ServiceArea.id'
    )


class ServiceArea(db.Model):
    __tablename__ = 'service_area'
    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey('contractor_profile.id', ondelete='CASCADE'), nullable=False, index=True)
    city = db.Column(db.String(128), nullable=False)
    state = db.Column(db.String(64), nullable=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    radius_km = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)

    profile = db.relationship('ContractorProfile', back_populates='service_areas')

    def __repr__(self):
        return f"<ServiceArea {self.city} r={self.radius_km}km>"
