"""
Tests for the forgot-password flow
"""
from datetime import timedelta

import pytest
from flask_security.utils import verify_password

from backend.extensions import db, mail
from backend.models.password_reset_token import PasswordResetToken
from backend.services.errors import ValidationError
from backend.services.password_reset_service import PasswordResetService
from backend.tests.factories import PASSWORD, auth_headers
from backend.utils.timezone_utils import utc_now_naive

NEW_PASSWORD = 'N3w-secret!'


class TestRequestReset:

    def test_unknown_email_sends_nothing(self, app):
        with mail.record_messages() as outbox:
            assert PasswordResetService.request_password_reset('nobody@example.com') is None
        assert outbox == []
        assert PasswordResetToken.query.count() == 0

    def test_reset_link_is_mailed(self, app, landlord):
        with mail.record_messages() as outbox:
            raw_token = PasswordResetService.request_password_reset(landlord.email.upper())

        assert raw_token
        token = PasswordResetToken.query.filter_by(user_id=landlord.id).one()
        assert token.token_hash != raw_token
        assert token.token_hash == PasswordResetToken.hash_token(raw_token)
        assert len(outbox) == 1
        assert outbox[0].recipients == [landlord.email]
        assert f"/reset-password/{raw_token}" in outbox[0].body

    def test_inactive_account_is_ignored(self, app, landlord):
        landlord.active = False
        db.session.commit()
        assert PasswordResetService.request_password_reset(landlord.email) is None

    def test_malformed_email_rejected(self, app):
        with pytest.raises(ValidationError):
            PasswordResetService.request_password_reset('not-an-email')


class TestResetPassword:

    def test_reset_sets_new_password(self, app, landlord):
        raw_token = PasswordResetService.request_password_reset(landlord.email)
        assert PasswordResetService.verify_token(raw_token).id == landlord.id

        user = PasswordResetService.reset_password({
            'token': raw_token, 'password': NEW_PASSWORD, 'confirm_password': NEW_PASSWORD,
        })

        assert user.id == landlord.id
        assert verify_password(NEW_PASSWORD, user.password)
        assert not verify_password(PASSWORD, user.password)
        assert PasswordResetToken.query.filter_by(user_id=landlord.id).one().used_at is not None

    def test_token_is_single_use(self, app, landlord):
        raw_token = PasswordResetService.request_password_reset(landlord.email)
        PasswordResetService.reset_password({'token': raw_token, 'password': NEW_PASSWORD})

        with pytest.raises(ValidationError):
            PasswordResetService.verify_token(raw_token)
        with pytest.raises(ValidationError):
            PasswordResetService.reset_password({'token': raw_token, 'password': 'An0ther-secret!'})

    def test_expired_token_rejected(self, app, landlord):
        raw_token = PasswordResetService.request_password_reset(landlord.email)
        token = PasswordResetToken.query.filter_by(user_id=landlord.id).one()
        token.expires_at = utc_now_naive() - timedelta(minutes=1)
        db.session.commit()

        with pytest.raises(ValidationError):
            PasswordResetService.verify_token(raw_token)
        with pytest.raises(ValidationError):
            PasswordResetService.reset_password({'token': raw_token, 'password': NEW_PASSWORD})

    def test_unknown_token_rejected(self, app):
        with pytest.raises(ValidationError):
            PasswordResetService.reset_password({'token': 'made-up', 'password': NEW_PASSWORD})

    def test_weak_password_keeps_token(self, app, landlord):
        raw_token = PasswordResetService.request_password_reset(landlord.email)

        with pytest.raises(ValidationError) as exc:
            PasswordResetService.reset_password({'token': raw_token, 'password': 'weak'})

        assert 'password' in exc.value.errors
        assert PasswordResetService.verify_token(raw_token).id == landlord.id

    def test_confirmation_must_match(self, app, landlord):
        raw_token = PasswordResetService.request_password_reset(landlord.email)
        with pytest.raises(ValidationError) as exc:
            PasswordResetService.reset_password({
                'token': raw_token, 'password': NEW_PASSWORD, 'confirm_password': 'N3w-secret?',
            })
        assert 'confirm_password' in exc.value.errors


class TestResetApi:

    def test_forgot_password_response_is_generic(self, client, landlord):
        known = client.post('/api/users/forgot-password', json={'email': landlord.email})
        unknown = client.post('/api/users/forgot-password', json={'email': 'nobody@example.com'})
        assert known.status_code == unknown.status_code == 200
        assert known.get_json() == unknown.get_json()

    def test_verify_endpoint(self, client, landlord):
        raw_token = PasswordResetService.request_password_reset(landlord.email)
        assert client.get(f'/api/users/reset-password/{raw_token}').get_json() == {'valid': True}
        assert client.get('/api/users/reset-password/made-up').status_code == 400

    def test_reset_logs_out_existing_sessions(self, client, landlord):
        old_headers = auth_headers(landlord)
        assert client.get('/api/users/me', headers=old_headers).status_code == 200

        raw_token = PasswordResetService.request_password_reset(landlord.email)
        resp = client.post('/api/users/reset-password', json={'token': raw_token, 'password': NEW_PASSWORD})

        assert resp.status_code == 200
        assert client.get('/api/users/me', headers=old_headers).status_code == 401
        assert client.get('/api/users/me', headers=auth_headers(landlord)).status_code == 200
