from __future__ import annotations

from ..core.enums import UserType


def classify(reg_no: str) -> UserType:
    """Naming-convention guess for an identity that is not registered yet.

    Staff IDs start with a letter (e.g. ``LIB01``); student registration
    numbers start with a digit. Never consult this once the identity exists.
    """
    reg_no = (reg_no or "").strip()
    return UserType.STAFF if reg_no[:1].isalpha() else UserType.STUDENT
