from enum import Enum
from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive


class TimeSlotStatus(Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class TimeSlot(db.Model):
    """A block of a contractor's calendar. Times are local wall-clock ``HH:MM``."""
    __tablename__ = 'time_slot'
    id = db.Column(db.Integer, primary_key=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=TimeSlotStatus.AVAILABLE.value)
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    contractor = db.relationship('User', backref=db.backref('time_slots', lazy='dynamic', cascade='all, delete-orphan'))

    def overlaps(self, start_time, end_time):
        # Zero-padded HH:MM strings order the same way as the times they name
        return self.start_time < end_time and start_time < self.end_time

    def __repr__(self):
        return f"<TimeSlot {self.date} {self.start_time}-{self.end_time} {self.status}>"
