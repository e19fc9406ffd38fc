"""
HTTP-level smoke tests: authentication, role checks and error mapping.
"""
from backend.tests.factories import PASSWORD, auth_headers, bid_payload


class TestAuth:

    def test_health_check_is_public(self, client):
        resp = client.get('/api/health-check')
        assert resp.status_code == 200
        assert resp.get_json()['database'] is True

    def test_missing_token_is_401(self, client):
        resp = client.get('/api/jobs')
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Authentication required'

    def test_wrong_role_is_403(self, client, contractor):
        resp = client.get('/api/jobs', headers=auth_headers(contractor))
        assert resp.status_code == 403

    def test_register(self, client):
        resp = client.post('/api/users/register', json={
            'email': 'sam@example.com',
            'username': 'sam_plumbs',
            'password': PASSWORD,
            'user_type': 'contractor',
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body['user_type'] == 'contractor'
        assert 'password' not in body

    def test_register_duplicate_is_409(self, client, landlord):
        resp = client.post('/api/users/register', json={
            'email': landlord.email,
            'username': 'someone_new',
            'password': PASSWORD,
            'user_type': 'landlord',
        })
        assert resp.status_code == 409
        assert resp.get_json()['type'] == 'ConflictError'

    def test_me(self, client, landlord):
        resp = client.get('/api/users/me', headers=auth_headers(landlord))
        assert resp.status_code == 200
        assert resp.get_json()['email'] == landlord.email

    def test_unknown_endpoint_is_json_404(self, client):
        resp = client.get('/api/nope')
        assert resp.status_code == 404
        assert resp.get_json()['path'] == '/api/nope'


class TestMarketplaceFlow:

    def test_post_bid_accept(self, client, landlord, contractor, other_contractor):
        resp = client.post('/api/jobs', headers=auth_headers(landlord), json={
            'title': 'Patch drywall',
            'description': 'Two fist-sized holes in the hallway.',
            'city': 'Halifax',
            'latitude': 44.65,
            'longitude': -63.58,
            'category_tags': ['Drywall'],
            'publish': True,
        })
        assert resp.status_code == 201
        job = resp.get_json()
        assert job['status'] == 'open'
        assert job['category_tags'] == ['drywall']

        resp = client.get('/api/jobs/available', headers=auth_headers(contractor))
        assert [j['id'] for j in resp.get_json()] == [job['id']]

        winning = client.post('/api/bids', headers=auth_headers(contractor), json=bid_payload(job['id'], 500))
        losing = client.post('/api/bids', headers=auth_headers(other_contractor), json=bid_payload(job['id'], 600))
        assert winning.status_code == 201
        assert losing.status_code == 201

        duplicate = client.post('/api/bids', headers=auth_headers(contractor), json=bid_payload(job['id'], 450))
        assert duplicate.status_code == 409

        resp = client.get(f"/api/jobs/{job['id']}/bids", headers=auth_headers(landlord))
        assert [b['amount'] for b in resp.get_json()] == [500, 600]

        resp = client.post(f"/api/bids/{winning.get_json()['id']}/accept", headers=auth_headers(landlord))
        assert resp.status_code == 200
        assert resp.get_json()['bid']['status'] == 'accepted'

        resp = client.post(f"/api/bids/{losing.get_json()['id']}/accept", headers=auth_headers(landlord))
        assert resp.status_code == 409

        resp = client.get(f"/api/jobs/{job['id']}", headers=auth_headers(contractor))
        assert resp.get_json()['status'] == 'in_progress'
        assert resp.get_json()['contractor_id'] == contractor.id

    def test_validation_error_is_400_with_field_errors(self, client, landlord):
        resp = client.post('/api/jobs', headers=auth_headers(landlord), json={'title': 'x'})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body['type'] == 'ValidationError'
        assert 'description' in body['errors']

    def test_service_area_round_trip(self, client, contractor):
        resp = client.post('/api/service-areas', headers=auth_headers(contractor), json={
            'city': 'Halifax', 'latitude': 44.6488, 'longitude': -63.5752, 'radius_km': 25,
        })
        assert resp.status_code == 201
        resp = client.get('/api/profile', headers=auth_headers(contractor))
        assert resp.status_code == 200
        assert [a['city'] for a in resp.get_json()['service_areas']] == ['Halifax']
