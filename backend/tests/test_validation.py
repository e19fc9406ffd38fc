import unittest

from backend.utils.validation import (
    flatten_schema_errors,
    normalize_tags,
    sanitize_string,
    validate_password_strength,
    validate_username
)


class TestPasswordValidation(unittest.TestCase):
    """Test password validation utility functions"""

    def test_validate_password_strength_valid_password(self):
        """Test valid password passes all requirements"""
        is_valid, errors = validate_password_strength("SecurePass123!")
        self.assertTrue(is_valid)
        self.assertEqual(len(errors), 0)

    def test_validate_password_strength_short_password(self):
        """Test password too short fails validation"""
        is_valid, errors = validate_password_strength("Short1!")
        self.assertFalse(is_valid)
        self.assertIn('Password must be at least 8 characters long', errors)

    def test_validate_password_strength_no_uppercase(self):
        is_valid, errors = validate_password_strength("lowercase123!")
        self.assertFalse(is_valid)
        self.assertIn('Password must contain at least one uppercase letter', errors)

    def test_validate_password_strength_no_lowercase(self):
        is_valid, errors = validate_password_strength("UPPERCASE123!")
        self.assertFalse(is_valid)
        self.assertIn('Password must contain at least one lowercase letter', errors)

    def test_validate_password_strength_no_number(self):
        is_valid, errors = validate_password_strength("NoNumbers!")
        self.assertFalse(is_valid)
        self.assertIn('Password must contain at least one number', errors)

    def test_validate_password_strength_no_special_char(self):
        is_valid, errors = validate_password_strength("NoSpecial123")
        self.assertFalse(is_valid)
        self.assertIn('Password must contain at least one special character', errors)

    def test_validate_password_strength_too_long(self):
        is_valid, errors = validate_password_strength("Aa1!" * 40)
        self.assertFalse(is_valid)
        self.assertIn('Password must not exceed 128 characters', errors)

    def test_validate_password_strength_empty_password(self):
        is_valid, errors = validate_password_strength("")
        self.assertFalse(is_valid)
        self.assertIn('Password is required', errors)


class TestInputHelpers(unittest.TestCase):

    def test_validate_username(self):
        self.assertEqual(validate_username('harbour_view'), (True, None))
        ok, message = validate_username('no spaces')
        self.assertFalse(ok)
        self.assertTrue(message)
        self.assertFalse(validate_username('')[0])

    def test_sanitize_string(self):
        self.assertEqual(sanitize_string('  hello '), 'hello')
        self.assertIsNone(sanitize_string('   '))
        self.assertIsNone(sanitize_string(None))
        with self.assertRaises(ValueError):
            sanitize_string('x' * 20, max_length=10)

    def test_normalize_tags(self):
        self.assertEqual(normalize_tags(['Plumbing', 'plumbing ', '', 'HVAC']), ['plumbing', 'hvac'])
        self.assertEqual(normalize_tags('roofing, Gutters'), ['roofing', 'gutters'])
        self.assertEqual(normalize_tags(None), [])

    def test_flatten_schema_errors(self):
        messages = {'title': ['Too short.'], 'line_items': {0: {'quantity': ['Must be at least 1.']}}}
        flat = flatten_schema_errors(messages)
        self.assertIn('title: Too short.', flat)
        self.assertIn('quantity: Must be at least 1.', flat)


if __name__ == '__main__':
    unittest.main()
