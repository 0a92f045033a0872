"""Input normalization shared by the role and permission services."""

import re

from hive_admin.core.constants import (
    KEY_MAX_LENGTH,
    KEY_PATTERN,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
)
from hive_admin.domain.exceptions import ValidationException

_KEY_RE = re.compile(KEY_PATTERN)


def normalize_key(key: str) -> str:
    """Strip and validate a role/permission key (lower-case letters, digits, '_' and '.')."""
    value = (key or "").strip()
    if not value or len(value) > KEY_MAX_LENGTH or not _KEY_RE.fullmatch(value):
        raise ValidationException(
            "Key must be 1-64 characters of lower-case letters, digits, '_' or '.'",
            field="key",
        )
    return value


def normalize_name(name: str) -> str:
    value = (name or "").strip()
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValidationException(
            f"Name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters",
            field="name",
        )
    return value
