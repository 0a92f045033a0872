"""Result of a create-or-update operation."""

from dataclasses import dataclass
from enum import Enum


class MutationMode(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class MutationResult:
    """Which branch ran and the id of the affected entity."""

    mode: MutationMode
    id: str
