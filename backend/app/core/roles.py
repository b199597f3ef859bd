from __future__ import annotations

from enum import Enum
from typing import Iterable


class Role(str, Enum):
    ADMIN = "admin"


def parse_role(raw: object) -> Role | None:
    if not isinstance(raw, str):
        return None
    try:
        return Role(raw)
    except ValueError:
        return None


def has_required_role(user_roles: Iterable[Role], required: Iterable[Role]) -> bool:
    return bool(set(user_roles) & set(required))
