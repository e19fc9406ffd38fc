import logging
from typing import Any, Dict, List

from flask import current_app

from backend.extensions import db
from backend.models.profile import ContractorProfile, LandlordProfile, ServiceArea
from backend.schemas.profile_schema import (
    ContractorProfileInputSchema, LandlordProfileInputSchema, ServiceAreaInputSchema
)
from backend.services.common import atomic, get_or_404, load_payload, require_contractor
from backend.services.errors import AuthorizationError, ConflictError, NotFoundError
from backend.utils.validation import normalize_tags

logger = logging.getLogger(__name__)


class ServiceAreaService:
    """Contractor profile and the service areas that decide which jobs a contractor sees."""

    @staticmethod
    def _contractor_profile(actor) -> ContractorProfile:
        require_contractor(actor)
        profile = actor.contractor_profile
        if profile is None:
            raise NotFoundError("Contractor profile not found")
        return profile

    @staticmethod
    def get_profile(actor):
        profile = actor.profile
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    @staticmethod
    def update_profile(actor, data: Dict[str, Any]):
        profile = ServiceAreaService.get_profile(actor)
        if isinstance(profile, ContractorProfile):
            payload = load_payload(ContractorProfileInputSchema(), data, partial=True)
            if 'trades' in payload:
                payload['trades'] = normalize_tags(payload['trades'])
        else:
            payload = load_payload(LandlordProfileInputSchema(), data, partial=True)

        with atomic('update the profile'):
            for key, value in payload.items():
                setattr(profile, key, value)

        logger.info(f"Profile updated for user {actor.id}: {sorted(payload)}")
        return profile

    @staticmethod
    def list_service_areas(actor) -> List[ServiceArea]:
        return list(ServiceAreaService._contractor_profile(actor).service_areas)

    @staticmethod
    def add_service_area(actor, data: Dict[str, Any]) -> ServiceArea:
        profile = ServiceAreaService._contractor_profile(actor)
        payload = load_payload(ServiceAreaInputSchema(), data)

        limit = current_app.config.get('MAX_SERVICE_AREAS', 1)
        if len(profile.service_areas) >= limit:
            raise ConflictError(
                f"You can have at most {limit} service area(s); remove one before adding another"
            )

        with atomic('add the service area'):
            area = ServiceArea(
                profile_id=profile.id,
                city=payload['city'].strip(),
                state=payload.get('state'),
                latitude=payload['latitude'],
                longitude=payload['longitude'],
                radius_km=payload['radius_km'],
            )
            db.session.add(area)

        logger.info(f"Service area {area.id} ({area.city}, {area.radius_km} km) added for contractor {actor.id}")
        return area

    @staticmethod
    def remove_service_area(actor, area_id: int) -> None:
        profile = ServiceAreaService._contractor_profile(actor)
        area = get_or_404(ServiceArea, area_id, 'Service area')
        if area.profile_id != profile.id:
            raise AuthorizationError("You can only remove your own service areas")

        with atomic('remove the service area'):
            db.session.delete(area)

        logger.info(f"Service area {area_id} removed for contractor {actor.id}")


def create_profile_for(user):
    """Build the empty profile that matches the user's type (caller commits)."""
    if user.is_contractor:
        profile = ContractorProfile(user=user, trades=[])
    else:
        profile = LandlordProfile(user=user)
    db.session.add(profile)
    return profile
