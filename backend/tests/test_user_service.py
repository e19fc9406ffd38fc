"""
Tests for account registration
"""
import pytest
from flask_security.utils import verify_password

from backend.services.errors import ConflictError, ValidationError
from backend.services.user_service import UserService
from backend.tests.factories import PASSWORD, make_user


def register(**overrides):
    data = {
        'email': 'new.user@example.com',
        'username': 'new_user',
        'password': PASSWORD,
        'user_type': 'contractor',
    }
    data.update(overrides)
    return UserService.register(data)


class TestRegister:

    def test_register_contractor(self, app):
        user = register(full_name='  Nova Electric  ')
        assert user.is_contractor
        assert user.full_name == 'Nova Electric'
        assert [r.name for r in user.roles] == ['contractor']
        assert user.contractor_profile is not None
        assert user.fs_uniquifier
        assert verify_password(PASSWORD, user.password)

    def test_register_landlord(self, app):
        user = register(user_type='landlord')
        assert user.is_landlord
        assert user.landlord_profile is not None

    def test_email_is_case_insensitive_unique(self, app):
        register(email='Someone@Example.com')
        with pytest.raises(ConflictError):
            register(email='someone@example.com', username='someone_else')

    def test_username_is_case_insensitive_unique(self, app):
        register()
        with pytest.raises(ConflictError):
            register(email='other@example.com', username='NEW_USER')

    def test_weak_password(self, app):
        with pytest.raises(ValidationError) as exc:
            register(password='password')
        assert 'password' in exc.value.errors

    def test_unknown_user_type(self, app):
        with pytest.raises(ValidationError):
            register(user_type='admin')

    def test_invalid_email(self, app):
        with pytest.raises(ValidationError):
            register(email='not-an-email')

    def test_update_contact_details(self, app):
        user = make_user('landlord')
        user = UserService.update_user(user, {'phone': ' 902-555-0100 ', 'user_type': 'contractor'})
        assert user.phone == '902-555-0100'
        assert user.is_landlord

    def test_blank_contact_details_are_cleared(self, app):
        user = make_user('landlord')
        user = UserService.update_user(user, {'full_name': '   ', 'phone': '902-555-0100'})
        assert user.full_name is None
        assert user.phone == '902-555-0100'
