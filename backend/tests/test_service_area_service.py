"""
Tests for profiles and contractor service areas
"""
import pytest

from backend.models.profile import ContractorProfile, LandlordProfile
from backend.services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from backend.services.service_area_service import ServiceAreaService
from backend.tests.factories import HALIFAX

HALIFAX_AREA = {'city': 'Halifax', 'state': 'NS', 'latitude': HALIFAX[0], 'longitude': HALIFAX[1], 'radius_km': 25}


class TestProfiles:

    def test_profile_matches_user_type(self, landlord, contractor):
        assert isinstance(ServiceAreaService.get_profile(landlord), LandlordProfile)
        assert isinstance(ServiceAreaService.get_profile(contractor), ContractorProfile)

    def test_update_contractor_profile(self, contractor):
        profile = ServiceAreaService.update_profile(contractor, {
            'business_name': 'Harbour Plumbing',
            'years_of_experience': 12,
            'trades': ['Plumbing', 'plumbing', 'Heating'],
        })
        assert profile.business_name == 'Harbour Plumbing'
        assert profile.years_of_experience == 12
        assert profile.trades == ['plumbing', 'heating']

    def test_update_landlord_profile(self, landlord):
        profile = ServiceAreaService.update_profile(landlord, {'bio': 'Three buildings in the North End'})
        assert profile.bio == 'Three buildings in the North End'

    def test_invalid_website_rejected(self, contractor):
        with pytest.raises(ValidationError):
            ServiceAreaService.update_profile(contractor, {'website': 'not a url'})


class TestServiceAreas:

    def test_add_and_list(self, contractor):
        area = ServiceAreaService.add_service_area(contractor, HALIFAX_AREA)
        assert area.radius_km == 25
        assert [a.id for a in ServiceAreaService.list_service_areas(contractor)] == [area.id]

    def test_area_limit(self, contractor):
        ServiceAreaService.add_service_area(contractor, HALIFAX_AREA)
        with pytest.raises(ConflictError):
            ServiceAreaService.add_service_area(contractor, dict(HALIFAX_AREA, city='Dartmouth'))

    def test_area_limit_is_configurable(self, app, contractor):
        app.config['MAX_SERVICE_AREAS'] = 2
        ServiceAreaService.add_service_area(contractor, HALIFAX_AREA)
        ServiceAreaService.add_service_area(contractor, dict(HALIFAX_AREA, city='Dartmouth'))
        assert len(ServiceAreaService.list_service_areas(contractor)) == 2

    @pytest.mark.parametrize('radius', [0, -5, 501])
    def test_radius_bounds(self, contractor, radius):
        with pytest.raises(ValidationError):
            ServiceAreaService.add_service_area(contractor, dict(HALIFAX_AREA, radius_km=radius))

    def test_coordinates_required(self, contractor):
        data = dict(HALIFAX_AREA)
        del data['latitude']
        with pytest.raises(ValidationError):
            ServiceAreaService.add_service_area(contractor, data)

    def test_remove(self, contractor):
        area = ServiceAreaService.add_service_area(contractor, HALIFAX_AREA)
        ServiceAreaService.remove_service_area(contractor, area.id)
        assert ServiceAreaService.list_service_areas(contractor) == []
        with pytest.raises(NotFoundError):
            ServiceAreaService.remove_service_area(contractor, area.id)

    def test_cannot_remove_someone_elses_area(self, contractor, other_contractor):
        area = ServiceAreaService.add_service_area(contractor, HALIFAX_AREA)
        with pytest.raises(AuthorizationError):
            ServiceAreaService.remove_service_area(other_contractor, area.id)

    def test_landlords_have_no_service_areas(self, landlord):
        with pytest.raises(AuthorizationError):
            ServiceAreaService.add_service_area(landlord, HALIFAX_AREA)
