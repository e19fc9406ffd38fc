import logging
from typing import Any, Dict, List, Optional

from backend.extensions import db
from backend.models.availability import TimeSlot, TimeSlotStatus
from backend.models.user import User
from backend.schemas.availability_schema import DateRangeSchema, TimeSlotInputSchema
from backend.services.common import atomic, get_or_404, load_payload, require_contractor
from backend.services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Contractor calendars. Slots on the same day may not overlap; landlords
    see only the slots a contractor marked available.
    """

    @staticmethod
    def _in_range(query, data):
        payload = load_payload(DateRangeSchema(), data or {})
        if payload.get('start_date'):
            query = query.filter(TimeSlot.date >= payload['start_date'])
        if payload.get('end_date'):
            query = query.filter(TimeSlot.date <= payload['end_date'])
        return query.order_by(TimeSlot.date, TimeSlot.start_time)

    @staticmethod
    def _check_overlap(contractor_id, date, start_time, end_time, exclude_id=None):
        query = TimeSlot.query.filter_by(contractor_id=contractor_id, date=date)
        if exclude_id is not None:
            query = query.filter(TimeSlot.id != exclude_id)
        for other in query:
            if other.overlaps(start_time, end_time):
                raise ConflictError(
                    f"Slot overlaps {other.start_time}-{other.end_time} on {other.date:%Y-%m-%d}"
                )

    @staticmethod
    def _get_own_slot(actor, slot_id) -> TimeSlot:
        require_contractor(actor)
        slot = get_or_404(TimeSlot, slot_id, 'Time slot')
        if slot.contractor_id != actor.id:
            raise AuthorizationError("You can only manage your own time slots")
        return slot

    @staticmethod
    def list_time_slots(actor, date_range: Optional[Dict[str, Any]] = None) -> List[TimeSlot]:
        require_contractor(actor)
        return AvailabilityService._in_range(TimeSlot.query.filter_by(contractor_id=actor.id), date_range).all()

    @staticmethod
    def list_available_slots(contractor_id: int, date_range: Optional[Dict[str, Any]] = None) -> List[TimeSlot]:
        """Open slots of one contractor, as shown to landlords."""
        contractor = db.session.get(User, contractor_id)
        if contractor is None or not contractor.is_contractor:
            raise NotFoundError(f"Contractor {contractor_id} not found")
        query = TimeSlot.query.filter_by(contractor_id=contractor_id, status=TimeSlotStatus.AVAILABLE.value)
        return AvailabilityService._in_range(query, date_range).all()

    @staticmethod
    def create_time_slot(actor, data: Dict[str, Any]) -> TimeSlot:
        require_contractor(actor)
        payload = load_payload(TimeSlotInputSchema(), data)
        AvailabilityService._check_overlap(actor.id, payload['date'], payload['start_time'], payload['end_time'])

        with atomic('create the time slot'):
            slot = TimeSlot(
                contractor_id=actor.id,
                date=payload['date'],
                start_time=payload['start_time'],
                end_time=payload['end_time'],
                status=payload['status'],
                note=payload.get('note'),
            )
            db.session.add(slot)

        logger.info(f"Time slot {slot.id} ({slot.date} {slot.start_time}-{slot.end_time}) added for contractor {actor.id}")
        return slot

    @staticmethod
    def update_time_slot(actor, slot_id: int, data: Dict[str, Any]) -> TimeSlot:
        slot = AvailabilityService._get_own_slot(actor, slot_id)
        payload = load_payload(TimeSlotInputSchema(), data, partial=True)

        date = payload.get('date', slot.date)
        start_time = payload.get('start_time', slot.start_time)
        end_time = payload.get('end_time', slot.end_time)
        if end_time <= start_time:
            raise ValidationError("End time must be after start time", errors={'end_time': ['End time must be after start time']})
        AvailabilityService._check_overlap(actor.id, date, start_time, end_time, exclude_id=slot.id)

        with atomic('update the time slot'):
            for key, value in payload.items():
                setattr(slot, key, value)

        logger.info(f"Time slot {slot.id} updated by contractor {actor.id}: {sorted(payload)}")
        return slot

    @staticmethod
    def delete_time_slot(actor, slot_id: int) -> None:
        slot = AvailabilityService._get_own_slot(actor, slot_id)
        with atomic('delete the time slot'):
            db.session.delete(slot)
        logger.info(f"Time slot {slot_id} deleted by contractor {actor.id}")
