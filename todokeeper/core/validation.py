"""Field validation for request payloads and query parameters."""

from typing import Optional, Tuple

from .constants import DEFAULT_OFFSET, DEFAULT_PAGE_SIZE, EMAIL_PATTERN, MAX_PAGE_SIZE, MIN_PASSWORD_LENGTH
from .errors import ValidationError


def validate_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise ValidationError("name is required")
    return name.strip()


def validate_email(email: Optional[str]) -> str:
    if not email:
        raise ValidationError("email is required")
    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email is invalid")
    return email


def validate_password(password: Optional[str], confirm_password: Optional[str]) -> str:
    """Password must be present, match its confirmation and be long enough."""
    if not password:
        raise ValidationError("password is required")
    if password != confirm_password:
        raise ValidationError("password and confirmPassword do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


def validate_registration(
    name: Optional[str], email: Optional[str], password: Optional[str], confirm_password: Optional[str]
) -> Tuple[str, str, str]:
    """Validate a registration in order: name, email, password.

    Returns:
        The cleaned (name, email, password) tuple.

    Raises:
        ValidationError: on the first failing rule.
    """
    return (
        validate_name(name),
        validate_email(email),
        validate_password(password, confirm_password),
    )


def require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def parse_pagination(limit: Optional[str], offset: Optional[str]) -> Tuple[int, int]:
    """Parse ``limit``/``offset`` query values, falling back to defaults instead of failing.

    Unparsable or non-positive limits become DEFAULT_PAGE_SIZE and limits above MAX_PAGE_SIZE
    are capped. Unparsable or negative offsets become 0.
    """
    parsed_limit = _parse_int(limit)
    if parsed_limit is None or parsed_limit <= 0:
        parsed_limit = DEFAULT_PAGE_SIZE
    parsed_limit = min(parsed_limit, MAX_PAGE_SIZE)

    parsed_offset = _parse_int(offset)
    if parsed_offset is None or parsed_offset < 0:
        parsed_offset = DEFAULT_OFFSET

    return parsed_limit, parsed_offset
