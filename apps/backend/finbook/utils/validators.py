"""
Sign-up field rules.

Each validator returns the user-facing error message, or ``None`` when the
value is acceptable.
"""

import re

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 20
_SPECIAL_CHARS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


def validate_password(value: str) -> str | None:
    if len(value) < PASSWORD_MIN_LENGTH or len(value) > PASSWORD_MAX_LENGTH:
        return f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters."
    if not re.search(r"[A-Za-z]", value):
        return "Password must include at least one letter."
    if not re.search(r"[0-9]", value):
        return "Password must include at least one number."
    if not _SPECIAL_CHARS.search(value):
        return "Password must include at least one special character."
    return None


def validate_display_name(value: str) -> str | None:
    if len(value.strip()) < 3:
        return "Name must be at least 3 characters."
    if re.search(r"\d", value):
        return "Name cannot contain numbers."
    return None
