"""
Shared input validation helpers used by the user and marketplace services.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{3,64}$')


def validate_password_strength(password: str) -> Tuple[bool, List[str]]:
    """
    Validate password strength based on complexity rules.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    if not password:
        return False, ['Password is required']

    errors = []

    if len(password) < 8:
        errors.append('Password must be at least 8 characters long')
    if not re.search(r'[A-Z]', password):
        errors.append('Password must contain at least one uppercase letter')
    if not re.search(r'[a-z]', password):
        errors.append('Password must contain at least one lowercase letter')
    if not re.search(r'\d', password):
        errors.append('Password must contain at least one number')
    if not re.search(r'[!@#$%^&*()_+\-=\[\]{};:"\\|,.<>\/?]', password):
        errors.append('Password must contain at least one special character')
    if len(password) > 128:
        errors.append('Password must not exceed 128 characters')

    return len(errors) == 0, errors


def validate_username(username: Optional[str]) -> Tuple[bool, Optional[str]]:
    if not username:
        return False, 'Username is required'
    if not USERNAME_PATTERN.match(username):
        return False, 'Username must be 3-64 characters of letters, digits, dot, dash or underscore'
    return True, None


def sanitize_string(value: Optional[str], max_length: int = 512) -> Optional[str]:
    """Strip whitespace; empty strings become None. Raises ValueError when too long."""
    if value is None:
        return None
    sanitized = value.strip()
    if not sanitized:
        return None
    if len(sanitized) > max_length:
        raise ValueError(f"must not exceed {max_length} characters")
    return sanitized


def normalize_tags(tags: Any) -> List[str]:
    """Lower-case, de-duplicated category tags in first-seen order."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(',')
    seen = []
    for tag in tags:
        tag = str(tag).strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def flatten_schema_errors(messages: Dict[str, Any]) -> str:
    """Render marshmallow's nested error dict as one readable line."""
    parts = []
    for field, errors in sorted(messages.items()):
        if isinstance(errors, dict):
            parts.append(f"{field}: {flatten_schema_errors(errors)}")
        elif isinstance(errors, list):
            parts.append(f"{field}: {'; '.join(str(e) for e in errors)}")
        else:
            parts.append(f"{field}: {errors}")
    return ', '.join(parts)
