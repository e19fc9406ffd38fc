"""
Builders shared by the service and API tests.
"""
import itertools

from backend.services.job_service import JobService
from backend.services.user_service import UserService

PASSWORD = 'Str0ng-pass!'

# Halifax, NS and a point about 2.5 km away in Dartmouth
HALIFAX = (44.6488, -63.5752)
DARTMOUTH = (44.6713, -63.5772)
MONTREAL = (45.5017, -73.5673)

_counter = itertools.count(1)


def make_user(user_type, name=None):
    n = next(_counter)
    name = name or f"{user_type}{n}"
    return UserService.register({
        'email': f"{name}@example.com",
        'username': name,
        'password': PASSWORD,
        'user_type': user_type,
        'full_name': name.title(),
    })


def make_job(landlord, publish=True, coordinate=DARTMOUTH, **overrides):
    data = {
        'title': 'Fix leaking faucet',
        'description': 'Kitchen faucet drips all night long.',
        'city': 'Halifax',
        'state': 'NS',
        'category_tags': ['plumbing'],
        'publish': publish,
    }
    if coordinate is not None:
        data['latitude'], data['longitude'] = coordinate
    data.update(overrides)
    return JobService.create_job(landlord, data)


def bid_payload(job, amount, **overrides):
    """``job`` may be a Job or a bare job id."""
    data = {
        'job_id': getattr(job, 'id', job),
        'amount': amount,
        'proposal': 'Licensed plumber, can replace the cartridge tomorrow morning.',
        'time_estimate': '2 hours',
    }
    data.update(overrides)
    return data


def auth_headers(user):
    return {'Authentication-Token': user.get_auth_token()}
