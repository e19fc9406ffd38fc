# DISCLAIMER: THIS IS NOT REAL DATA. ALL CONTENT IN THIS FILE IS FICTITIOUS AND INTENDED FOR LOCAL DEVELOPMENT ONLY.
import os
import sys

# Add the parent directory to the Python path so we can import backend modules
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

from backend.server import create_app
from backend.extensions import db
from backend.models.bid import Bid
from backend.models.job import Job
from backend.models.profile import ServiceArea
from backend.models.role import Role
from backend.models.user import User
from backend.services.bid_service import BidService
from backend.services.job_service import JobService
from backend.services.service_area_service import ServiceAreaService
from backend.services.user_service import UserService

DEMO_PASSWORD = 'Demo-pass123!'


# Helper: get or create
def get_or_create(model, defaults=None, **kwargs):
    instance = model.query.filter_by(**kwargs).first()
    if instance:
        return instance
    params = dict(kwargs)
    if defaults:
        params.update(defaults)
    instance = model(**params)
    db.session.add(instance)
    db.session.commit()
    return instance


def get_or_register(email, username, user_type, full_name):
    user = User.query.filter_by(email=email).first()
    if user:
        return user
    return UserService.register({
        'email': email,
        'username': username,
        'password': DEMO_PASSWORD,
        'user_type': user_type,
        'full_name': full_name,
    })


def main():
    app = create_app()
    with app.app_context():
        db.create_all()

        print("Creating roles...")
        get_or_create(Role, name='landlord', defaults={'description': 'Landlord account'})
        get_or_create(Role, name='contractor', defaults={'description': 'Contractor account'})

        print("Creating users...")
        landlord = get_or_register('landlord@example.com', 'harbourview', 'landlord', 'Harbourview Properties')
        plumber = get_or_register('plumber@example.com', 'dartmouth_plumbing', 'contractor', 'Dartmouth Plumbing')
        electrician = get_or_register('sparks@example.com', 'bluenose_electric', 'contractor', 'Bluenose Electric')

        print("Creating service areas...")
        if not ServiceArea.query.filter_by(profile_id=plumber.contractor_profile.id).first():
            ServiceAreaService.add_service_area(plumber, {
                'city': 'Halifax', 'state': 'NS', 'latitude': 44.6488, 'longitude': -63.5752, 'radius_km': 25,
            })
        if not ServiceArea.query.filter_by(profile_id=electrician.contractor_profile.id).first():
            ServiceAreaService.add_service_area(electrician, {
                'city': 'Montreal', 'state': 'QC', 'latitude': 45.5017, 'longitude': -73.5673, 'radius_km': 40,
            })

        print("Creating jobs...")
        if Job.query.filter_by(landlord_id=landlord.id).count() == 0:
            leak = JobService.create_job(landlord, {
                'title': 'Leaking kitchen faucet',
                'description': 'Kitchen faucet drips constantly; cartridge may need replacement.',
                'city': 'Halifax', 'state': 'NS', 'latitude': 44.6500, 'longitude': -63.5800,
                'category_tags': ['plumbing'],
                'publish': True,
            })
            JobService.create_job(landlord, {
                'title': 'Replace hallway light fixtures',
                'description': 'Three hallway fixtures to be swapped for LED units.',
                'pricing_type': 'fixed', 'budget': 450,
                'city': 'Dartmouth', 'state': 'NS',
                'category_tags': ['electrical'],
                'publish': True,
            })
            BidService.create_bid(plumber, {
                'job_id': leak.id,
                'amount': 180,
                'proposal': 'Replace the cartridge and reseal the base; parts included.',
                'time_estimate': '2 hours',
            })

        print('\n--- Seed Data Complete ---')
        print(f'Users: {User.query.count()}')
        print(f'Roles: {Role.query.count()}')
        print(f'ServiceAreas: {ServiceArea.query.count()}')
        print(f'Jobs: {Job.query.count()}')
        print(f'Bids: {Bid.query.count()}')
        print('SUCCESS: Database seeded successfully!')


if __name__ == '__main__':
    main()
