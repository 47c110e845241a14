from __future__ import annotations

from typing import Optional

from ..core.constants import MAX_REG_NO_LENGTH, MAX_TEXT_LENGTH
from ..core.enums import UserType
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str, *, max_len: int = MAX_TEXT_LENGTH) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    value = str(value).strip()
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def normalize_reg_no(value: Optional[str]) -> str:
    """Strip scanner noise; the registration number itself is kept case-sensitive."""
    return require_non_empty(value, "Registration number", max_len=MAX_REG_NO_LENGTH)


def require_variant(value: UserType | str | None) -> UserType:
    """Accept STUDENT/STAFF (enum or case-insensitive string). UNKNOWN is not a variant."""
    if isinstance(value, UserType):
        user_type = value
    else:
        raw = (value or "").strip().upper()
        try:
            user_type = UserType(raw)
        except ValueError:
            raise ValidationError(f"Invalid user type: {value!r}")

    if user_type == UserType.UNKNOWN:
        raise ValidationError("User type must be STUDENT or STAFF")
    return user_type
